"""
Teaching innovation project endpoints.

PUT replaces the whole record: optional fields missing from the body are
cleared rather than kept.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import extract
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import require_creator, require_deleter, require_editor
from app.models.database_models import TeachingInnovation, User
from app.models.schemas import (
    ItemEnvelope,
    ListEnvelope,
    MessageResponse,
    StatsEnvelope,
    TeachingInnovationPayload,
    TeachingInnovationResponse,
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

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_COLUMNS = (
    TeachingInnovation.title,
    TeachingInnovation.description,
    TeachingInnovation.principal_researcher,
    TeachingInnovation.call,
)


@router.get("", response_model=ListEnvelope[TeachingInnovationResponse])
async def list_teaching_innovation(
    search: Optional[str] = None,
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

    page_num, page_size = parse_pagination(page, limit, settings.DEFAULT_PAGE_SIZE)
    items, pagination = await paginate(
        db,
        TeachingInnovation,
        conditions,
        sort_clause(TeachingInnovation, sort_by, sort_order, "start_date"),
        page_num,
        page_size,
    )
    return ListEnvelope[TeachingInnovationResponse](
        data=[TeachingInnovationResponse.model_validate(i) for i in items],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def teaching_innovation_stats(db: AsyncSession = Depends(get_db)):
    year_stats = await group_counts(db, extract("year", TeachingInnovation.start_date))
    for entry in year_stats:
        entry["_id"] = int(entry["_id"])
    total = await count_rows(db, TeachingInnovation)
    return StatsEnvelope(data={"yearStats": year_stats, "totalProjects": total})


@router.get("/{innovation_id}", response_model=ItemEnvelope[TeachingInnovationResponse])
async def get_teaching_innovation(innovation_id: str, db: AsyncSession = Depends(get_db)):
    innovation = await get_or_404(db, TeachingInnovation, innovation_id, "teaching innovation project")
    return ItemEnvelope[TeachingInnovationResponse](
        data=TeachingInnovationResponse.model_validate(innovation)
    )


@router.post(
    "",
    response_model=ItemEnvelope[TeachingInnovationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_teaching_innovation(
    body: TeachingInnovationPayload,
    user: User = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    innovation = TeachingInnovation(**body.model_dump())
    db.add(innovation)
    await db.flush()

    logger.info("Teaching innovation %s created by %s", innovation.id, user.username)
    return ItemEnvelope[TeachingInnovationResponse](
        message="Teaching innovation project created successfully",
        data=TeachingInnovationResponse.model_validate(innovation),
    )


@router.put("/{innovation_id}", response_model=ItemEnvelope[TeachingInnovationResponse])
async def replace_teaching_innovation(
    innovation_id: str,
    body: TeachingInnovationPayload,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    innovation = await get_or_404(db, TeachingInnovation, innovation_id, "teaching innovation project")
    for key, value in body.model_dump().items():
        setattr(innovation, key, value)
    await db.flush()

    logger.info("Teaching innovation %s replaced by %s", innovation.id, user.username)
    return ItemEnvelope[TeachingInnovationResponse](
        message="Teaching innovation project updated successfully",
        data=TeachingInnovationResponse.model_validate(innovation),
    )


@router.delete("/{innovation_id}", response_model=MessageResponse)
async def delete_teaching_innovation(
    innovation_id: str,
    user: User = Depends(require_deleter),
    db: AsyncSession = Depends(get_db),
):
    innovation = await get_or_404(db, TeachingInnovation, innovation_id, "teaching innovation project")
    await db.delete(innovation)
    await db.flush()

    logger.info("Teaching innovation %s deleted by %s", innovation_id, user.username)
    return MessageResponse(message="Teaching innovation project deleted successfully")
