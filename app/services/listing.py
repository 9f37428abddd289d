"""
Shared query building for the resource list endpoints.

Every collection exposes the same list contract: free-text OR-search over a
few columns, exact-match filters, ``sortBy`` / ``sortOrder`` and
``page`` / ``limit`` pagination where ``limit=all`` returns everything.
"""
import logging
import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException, status
from sqlalchemy import false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.schemas import Pagination
from app.utils.helpers import parse_id, raise_field_error, safe_int

logger = logging.getLogger(__name__)

ALL_SENTINEL = "all"

# camelCase aliases accepted for the timestamp columns
_SORT_ALIASES = {"createdAt": "created_at", "updatedAt": "updated_at"}


def parse_pagination(
    page: Optional[str],
    limit: Optional[str],
    default_limit: int,
) -> Tuple[int, Optional[int]]:
    """
    Normalise raw ``page`` / ``limit`` query values.

    Returns:
        ``(page, limit)`` with ``page >= 1`` and ``limit >= 1``, or
        ``limit=None`` when every row is requested.
    """
    page_num = max(1, safe_int(page, 1))
    if limit is not None and limit.strip().lower() == ALL_SENTINEL:
        return page_num, None
    return page_num, max(1, safe_int(limit, default_limit))


def search_clause(term: Optional[str], columns: Sequence[Any]):
    """
    Case-insensitive regular expression match of ``term`` against any of
    ``columns``.

    The ``(?i)`` prefix is understood both by PostgreSQL (``~``) and by the
    Python ``REGEXP`` function SQLAlchemy registers on SQLite connections.

    Raises:
        RequestValidationError: 400 when ``term`` is not a valid pattern
    """
    if not term or not term.strip():
        return None
    pattern = f"(?i){term.strip()}"
    try:
        re.compile(pattern)
    except re.error as exc:
        logger.info("Rejected search pattern %r: %s", term, exc)
        raise_field_error("search", "Invalid search pattern", location="query")
    return or_(*(column.regexp_match(pattern) for column in columns))


def exact_filters(model, **filters: Optional[str]) -> List[Any]:
    """
    Equality conditions for every non-blank filter value.

    A value outside an enum column's allowed set matches nothing.
    """
    conditions = []
    for column_name, value in filters.items():
        if value is None or not value.strip():
            continue
        column = getattr(model, column_name)
        value = value.strip()
        allowed = getattr(column.type, "enums", None)
        if allowed is not None and value not in allowed:
            conditions.append(false())
        else:
            conditions.append(column == value)
    return conditions


def sort_clause(model, sort_by: Optional[str], sort_order: Optional[str], default_sort: str):
    """
    ORDER BY expressions for a whitelisted column.

    Unknown columns fall back to ``default_sort``; ``id`` is appended as a
    tie-breaker so pages never overlap.
    """
    columns = model.__table__.columns
    name = _SORT_ALIASES.get(sort_by or "", sort_by)
    if not name or name not in columns:
        name = default_sort
    column = columns[name]
    primary = column.asc() if (sort_order or "").lower() == "asc" else column.desc()
    return [primary, model.id.asc()]


async def paginate(
    db: AsyncSession,
    model,
    conditions: Sequence[Any],
    order_by: Sequence[Any],
    page: int,
    limit: Optional[int],
) -> Tuple[List[Any], Pagination]:
    """Run the filtered query and its count; ``total`` counts every matching row."""
    query = select(model).where(*conditions).order_by(*order_by)
    if limit is not None:
        query = query.offset((page - 1) * limit).limit(limit)
    items = (await db.execute(query)).scalars().all()

    total = await count_rows(db, model, *conditions)

    pages = math.ceil(total / limit) if limit else 1
    return list(items), Pagination(current=page, pages=pages, total=total, limit=limit)


async def get_or_404(db: AsyncSession, model, item_id: str, label: str):
    """Load one row by id; 400 for a malformed id, 404 when it does not exist."""
    canonical = parse_id(item_id, label)
    item = await db.get(model, canonical)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label.capitalize()} not found",
        )
    return item


async def group_counts(
    db: AsyncSession,
    key,
    *,
    conditions: Sequence[Any] = (),
    order_by: Optional[Sequence[Any]] = None,
    limit: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    ``GROUP BY key`` with a row count per group.

    Rows come back as ``{"_id": key, "count": n, **extra}`` where ``extra``
    maps output names to additional aggregate expressions.
    """
    extra = extra or {}
    count = func.count().label("count")
    columns = [key.label("key"), count] + [expr.label(name) for name, expr in extra.items()]
    query = select(*columns).where(*conditions).group_by(key)
    query = query.order_by(*(order_by if order_by is not None else [key.desc()]))
    if limit is not None:
        query = query.limit(limit)

    rows = (await db.execute(query)).mappings().all()
    result = []
    for row in rows:
        key_value = row["key"].value if hasattr(row["key"], "value") else row["key"]
        entry = {"_id": key_value, "count": row["count"]}
        for name in extra:
            entry[name] = row[name]
        result.append(entry)
    return result


async def count_rows(db: AsyncSession, model, *conditions: Any) -> int:
    return (
        await db.execute(select(func.count()).select_from(model).where(*conditions))
    ).scalar_one()
