"""
Supervised final work endpoints (TFG, TFM, doctoral theses).

PUT replaces the whole record; ``degree`` and ``grade`` are cleared when the
body omits them.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import extract, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import require_creator, require_deleter, require_editor
from app.models.database_models import FinalWork, User
from app.models.schemas import (
    FinalWorkPayload,
    FinalWorkResponse,
    ItemEnvelope,
    ListEnvelope,
    MessageResponse,
    StatsEnvelope,
)
from app.services.listing import (
    count_rows,
    exact_filters,
    get_or_404,
    group_counts,
    paginate,
    parse_pagination,
    search_clause,
    sort_clause,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_COLUMNS = (FinalWork.title, FinalWork.author)


@router.get("", response_model=ListEnvelope[FinalWorkResponse])
async def list_final_works(
    search: Optional[str] = None,
    type: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    conditions = exact_filters(FinalWork, type=type)
    text_match = search_clause(search, SEARCH_COLUMNS)
    if text_match is not None:
        conditions.append(text_match)

    page_num, page_size = parse_pagination(page, limit, settings.DEFAULT_PAGE_SIZE)
    items, pagination = await paginate(
        db,
        FinalWork,
        conditions,
        sort_clause(FinalWork, sort_by, sort_order, "defense_date"),
        page_num,
        page_size,
    )
    return ListEnvelope[FinalWorkResponse](
        data=[FinalWorkResponse.model_validate(w) for w in items],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def final_work_stats(db: AsyncSession = Depends(get_db)):
    year_stats = await group_counts(db, extract("year", FinalWork.defense_date))
    for entry in year_stats:
        entry["_id"] = int(entry["_id"])
    type_stats = await group_counts(
        db, FinalWork.type, order_by=[func.count().desc(), FinalWork.type.asc()]
    )
    total = await count_rows(db, FinalWork)

    return StatsEnvelope(
        data={"yearStats": year_stats, "typeStats": type_stats, "totalWorks": total}
    )


@router.get("/{work_id}", response_model=ItemEnvelope[FinalWorkResponse])
async def get_final_work(work_id: str, db: AsyncSession = Depends(get_db)):
    work = await get_or_404(db, FinalWork, work_id, "final work")
    return ItemEnvelope[FinalWorkResponse](data=FinalWorkResponse.model_validate(work))


@router.post(
    "",
    response_model=ItemEnvelope[FinalWorkResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_final_work(
    body: FinalWorkPayload,
    user: User = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    work = FinalWork(**body.model_dump())
    db.add(work)
    await db.flush()

    logger.info("Final work %s (%s) created by %s", work.id, work.type.value, user.username)
    return ItemEnvelope[FinalWorkResponse](
        message="Final work created successfully",
        data=FinalWorkResponse.model_validate(work),
    )


@router.put("/{work_id}", response_model=ItemEnvelope[FinalWorkResponse])
async def replace_final_work(
    work_id: str,
    body: FinalWorkPayload,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    work = await get_or_404(db, FinalWork, work_id, "final work")
    for key, value in body.model_dump().items():
        setattr(work, key, value)
    await db.flush()

    logger.info("Final work %s replaced by %s", work.id, user.username)
    return ItemEnvelope[FinalWorkResponse](
        message="Final work updated successfully",
        data=FinalWorkResponse.model_validate(work),
    )


@router.delete("/{work_id}", response_model=MessageResponse)
async def delete_final_work(
    work_id: str,
    user: User = Depends(require_deleter),
    db: AsyncSession = Depends(get_db),
):
    work = await get_or_404(db, FinalWork, work_id, "final work")
    await db.delete(work)
    await db.flush()

    logger.info("Final work %s deleted by %s", work_id, user.username)
    return MessageResponse(message="Final work deleted successfully")
