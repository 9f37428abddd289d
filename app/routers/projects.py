"""
Research project endpoints.

GET    /api/projects         — list; ``year`` matches projects starting or ending that year
GET    /api/projects/stats   — projects per start year and total budget
GET    /api/projects/{id}
POST   /api/projects         — create (admin, moderator, user)
PUT    /api/projects/{id}    — partial update, dates re-checked on the merged record
DELETE /api/projects/{id}    — delete (admin)
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import and_, extract, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import require_creator, require_deleter, require_editor
from app.models.database_models import Project, User
from app.models.schemas import (
    ItemEnvelope,
    ListEnvelope,
    MessageResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    StatsEnvelope,
)
from app.services.listing import (
    count_rows,
    get_or_404,
    group_counts,
    paginate,
    parse_pagination,
    search_clause,
    sort_clause,
)
from app.utils.helpers import raise_field_error, safe_int

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_COLUMNS = (
    Project.title,
    Project.description,
    Project.funding_agency,
    Project.principal_investigator,
    Project.reference,
)


def _year_condition(year: int):
    """Start or end date inside calendar ``year``."""
    first, last = date(year, 1, 1), date(year, 12, 31)
    return or_(
        and_(Project.start_date >= first, Project.start_date <= last),
        and_(Project.end_date >= first, Project.end_date <= last),
    )


@router.get("", response_model=ListEnvelope[ProjectResponse])
async def list_projects(
    search: Optional[str] = None,
    year: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    conditions = []
    text_match = search_clause(search, SEARCH_COLUMNS)
    if text_match is not None:
        conditions.append(text_match)
    year_num = safe_int(year)
    if year_num is not None and 1 <= year_num <= 9999:
        conditions.append(_year_condition(year_num))

    page_num, page_size = parse_pagination(page, limit, settings.DEFAULT_PAGE_SIZE)
    items, pagination = await paginate(
        db,
        Project,
        conditions,
        sort_clause(Project, sort_by, sort_order, "start_date"),
        page_num,
        page_size,
    )
    return ListEnvelope[ProjectResponse](
        data=[ProjectResponse.model_validate(p) for p in items],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def project_stats(db: AsyncSession = Depends(get_db)):
    start_year = extract("year", Project.start_date)
    year_stats = await group_counts(db, start_year, limit=10)
    for entry in year_stats:
        entry["_id"] = int(entry["_id"])
    total = await count_rows(db, Project)
    total_budget = (
        await db.execute(select(func.coalesce(func.sum(Project.budget), 0)))
    ).scalar_one()

    return StatsEnvelope(
        data={
            "yearStats": year_stats,
            "totalProjects": total,
            "totalBudget": float(total_budget),
        }
    )


@router.get("/{project_id}", response_model=ItemEnvelope[ProjectResponse])
async def get_project(project_id: str, db: AsyncSession = Depends(get_db)):
    project = await get_or_404(db, Project, project_id, "project")
    return ItemEnvelope[ProjectResponse](data=ProjectResponse.model_validate(project))


@router.post(
    "",
    response_model=ItemEnvelope[ProjectResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    project = Project(**body.model_dump())
    db.add(project)
    await db.flush()

    logger.info("Project %s created by %s", project.id, user.username)
    return ItemEnvelope[ProjectResponse](
        message="Project created successfully",
        data=ProjectResponse.model_validate(project),
    )


@router.put("/{project_id}", response_model=ItemEnvelope[ProjectResponse])
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    """
    Merge the supplied fields into the stored project.

    The date order is checked on the merged values, so moving only the end
    date before the stored start date is rejected.
    """
    project = await get_or_404(db, Project, project_id, "project")
    changes = body.changes()
    start = changes.get("start_date", project.start_date)
    end = changes.get("end_date", project.end_date)
    if end < start:
        raise_field_error("end_date", "end_date must be on or after start_date")

    for key, value in changes.items():
        setattr(project, key, value)
    await db.flush()

    logger.info("Project %s updated by %s", project.id, user.username)
    return ItemEnvelope[ProjectResponse](
        message="Project updated successfully",
        data=ProjectResponse.model_validate(project),
    )


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    user: User = Depends(require_deleter),
    db: AsyncSession = Depends(get_db),
):
    project = await get_or_404(db, Project, project_id, "project")
    await db.delete(project)
    await db.flush()

    logger.info("Project %s deleted by %s", project_id, user.username)
    return MessageResponse(message="Project deleted successfully")
