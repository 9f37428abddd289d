"""
Publication endpoints.

GET    /api/publications         — list with search / filters / pagination
GET    /api/publications/stats   — counts by type, year and quartile
GET    /api/publications/{id}    — single publication
POST   /api/publications         — create (admin, moderator, user)
PUT    /api/publications/{id}    — partial update (admin, moderator, user)
DELETE /api/publications/{id}    — delete (admin)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import require_creator, require_deleter, require_editor
from app.models.database_models import Publication, Quartile, User
from app.models.schemas import (
    ItemEnvelope,
    ListEnvelope,
    MessageResponse,
    PublicationCreate,
    PublicationResponse,
    PublicationUpdate,
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
from app.utils.helpers import safe_int

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_COLUMNS = (
    Publication.title,
    Publication.authors,
    Publication.publication,
    Publication.info_publication,
)


@router.get("", response_model=ListEnvelope[PublicationResponse])
async def list_publications(
    search: Optional[str] = None,
    type: Optional[str] = None,
    year: Optional[str] = None,
    quartile: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    """List publications, newest year first unless ``sortBy`` says otherwise."""
    conditions = exact_filters(Publication, type=type, quartile=quartile)
    text_match = search_clause(search, SEARCH_COLUMNS)
    if text_match is not None:
        conditions.append(text_match)
    year_num = safe_int(year)
    if year_num is not None:
        conditions.append(Publication.year_publication == year_num)

    page_num, page_size = parse_pagination(page, limit, settings.DEFAULT_PAGE_SIZE)
    items, pagination = await paginate(
        db,
        Publication,
        conditions,
        sort_clause(Publication, sort_by, sort_order, "year_publication"),
        page_num,
        page_size,
    )
    return ListEnvelope[PublicationResponse](
        data=[PublicationResponse.model_validate(p) for p in items],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def publication_stats(db: AsyncSession = Depends(get_db)):
    type_stats = await group_counts(db, Publication.type, order_by=[func.count().desc()])
    year_stats = await group_counts(db, Publication.year_publication, limit=10)
    quartile_stats = await group_counts(
        db,
        Publication.quartile,
        conditions=[Publication.quartile != Quartile.NONE],
        order_by=[Publication.quartile.asc()],
        extra={"avgIF": func.avg(Publication.impact_factor)},
    )
    total = await count_rows(db, Publication)

    return StatsEnvelope(
        data={
            "typeStats": type_stats,
            "yearStats": year_stats,
            "quartileStats": quartile_stats,
            "totalPublications": total,
        }
    )


@router.get("/{publication_id}", response_model=ItemEnvelope[PublicationResponse])
async def get_publication(publication_id: str, db: AsyncSession = Depends(get_db)):
    publication = await get_or_404(db, Publication, publication_id, "publication")
    return ItemEnvelope[PublicationResponse](data=PublicationResponse.model_validate(publication))


@router.post(
    "",
    response_model=ItemEnvelope[PublicationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_publication(
    body: PublicationCreate,
    user: User = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    publication = Publication(**body.model_dump())
    db.add(publication)
    await db.flush()

    logger.info("Publication %s created by %s", publication.id, user.username)
    return ItemEnvelope[PublicationResponse](
        message="Publication created successfully",
        data=PublicationResponse.model_validate(publication),
    )


@router.put("/{publication_id}", response_model=ItemEnvelope[PublicationResponse])
async def update_publication(
    publication_id: str,
    body: PublicationUpdate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    """Merge the supplied fields into the stored publication."""
    publication = await get_or_404(db, Publication, publication_id, "publication")
    for key, value in body.changes().items():
        setattr(publication, key, value)
    await db.flush()

    logger.info("Publication %s updated by %s", publication.id, user.username)
    return ItemEnvelope[PublicationResponse](
        message="Publication updated successfully",
        data=PublicationResponse.model_validate(publication),
    )


@router.delete("/{publication_id}", response_model=MessageResponse)
async def delete_publication(
    publication_id: str,
    user: User = Depends(require_deleter),
    db: AsyncSession = Depends(get_db),
):
    publication = await get_or_404(db, Publication, publication_id, "publication")
    await db.delete(publication)
    await db.flush()

    logger.info("Publication %s deleted by %s", publication_id, user.username)
    return MessageResponse(message="Publication deleted successfully")
