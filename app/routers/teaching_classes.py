"""
Teaching class endpoints.

GET    /api/teaching-classes         — list with search / filters / pagination
GET    /api/teaching-classes/stats   — counts by academic year, course, type, language
GET    /api/teaching-classes/{id}
POST   /api/teaching-classes         — create (admin, moderator, user)
PUT    /api/teaching-classes/{id}    — partial update (admin, moderator, user)
DELETE /api/teaching-classes/{id}    — delete (admin)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import require_creator, require_deleter, require_editor
from app.models.database_models import TeachingClass, User
from app.models.schemas import (
    ItemEnvelope,
    ListEnvelope,
    MessageResponse,
    StatsEnvelope,
    TeachingClassCreate,
    TeachingClassResponse,
    TeachingClassUpdate,
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

SEARCH_COLUMNS = (TeachingClass.subject, TeachingClass.degree, TeachingClass.description)


@router.get("", response_model=ListEnvelope[TeachingClassResponse])
async def list_teaching_classes(
    search: Optional[str] = None,
    academic_year: Optional[str] = None,
    course: Optional[str] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    teaching_language: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    conditions = exact_filters(
        TeachingClass,
        academic_year=academic_year.replace("/", "-") if academic_year else None,
        course=course,
        type=type,
        category=category,
        teaching_language=teaching_language,
    )
    text_match = search_clause(search, SEARCH_COLUMNS)
    if text_match is not None:
        conditions.append(text_match)

    page_num, page_size = parse_pagination(page, limit, settings.DEFAULT_PAGE_SIZE)
    items, pagination = await paginate(
        db,
        TeachingClass,
        conditions,
        sort_clause(TeachingClass, sort_by, sort_order, "academic_year"),
        page_num,
        page_size,
    )
    return ListEnvelope[TeachingClassResponse](
        data=[TeachingClassResponse.model_validate(c) for c in items],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def teaching_class_stats(db: AsyncSession = Depends(get_db)):
    year_stats = await group_counts(db, TeachingClass.academic_year)
    course_stats = await group_counts(
        db, TeachingClass.course, order_by=[TeachingClass.course.asc()]
    )
    type_stats = await group_counts(db, TeachingClass.type, order_by=[TeachingClass.type.asc()])
    language_stats = await group_counts(
        db, TeachingClass.teaching_language, order_by=[TeachingClass.teaching_language.asc()]
    )
    total = await count_rows(db, TeachingClass)

    return StatsEnvelope(
        data={
            "yearStats": year_stats,
            "courseStats": course_stats,
            "typeStats": type_stats,
            "languageStats": language_stats,
            "totalClasses": total,
        }
    )


@router.get("/{class_id}", response_model=ItemEnvelope[TeachingClassResponse])
async def get_teaching_class(class_id: str, db: AsyncSession = Depends(get_db)):
    teaching_class = await get_or_404(db, TeachingClass, class_id, "class")
    return ItemEnvelope[TeachingClassResponse](
        data=TeachingClassResponse.model_validate(teaching_class)
    )


@router.post(
    "",
    response_model=ItemEnvelope[TeachingClassResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_teaching_class(
    body: TeachingClassCreate,
    user: User = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    teaching_class = TeachingClass(**body.model_dump())
    db.add(teaching_class)
    await db.flush()

    logger.info("Teaching class %s (%s) created by %s",
                teaching_class.id, teaching_class.subject, user.username)
    return ItemEnvelope[TeachingClassResponse](
        message="Class created successfully",
        data=TeachingClassResponse.model_validate(teaching_class),
    )


@router.put("/{class_id}", response_model=ItemEnvelope[TeachingClassResponse])
async def update_teaching_class(
    class_id: str,
    body: TeachingClassUpdate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    teaching_class = await get_or_404(db, TeachingClass, class_id, "class")
    for key, value in body.changes().items():
        setattr(teaching_class, key, value)
    await db.flush()

    logger.info("Teaching class %s updated by %s", teaching_class.id, user.username)
    return ItemEnvelope[TeachingClassResponse](
        message="Class updated successfully",
        data=TeachingClassResponse.model_validate(teaching_class),
    )


@router.delete("/{class_id}", response_model=MessageResponse)
async def delete_teaching_class(
    class_id: str,
    user: User = Depends(require_deleter),
    db: AsyncSession = Depends(get_db),
):
    teaching_class = await get_or_404(db, TeachingClass, class_id, "class")
    await db.delete(teaching_class)
    await db.flush()

    logger.info("Teaching class %s deleted by %s", class_id, user.username)
    return MessageResponse(message="Class deleted successfully")
