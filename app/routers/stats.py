"""
Cross-collection statistics.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import get_current_user
from app.models.database_models import (
    FinalWork,
    Project,
    Publication,
    TeachingClass,
    TeachingInnovation,
    User,
)
from app.models.schemas import ItemEnvelope, LastUpdateData

logger = logging.getLogger(__name__)

router = APIRouter()

# Collection name reported to clients -> model
TRACKED_COLLECTIONS = (
    ("publications", Publication),
    ("projects", Project),
    ("teachingClasses", TeachingClass),
    ("teachingInnovation", TeachingInnovation),
    ("finalWorks", FinalWork),
)


@router.get("/last-update", response_model=ItemEnvelope[LastUpdateData])
async def last_update(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Most recent modification across the CV collections.

    ``updatesFound`` counts the collections holding at least one record.
    """
    latest = []
    for name, model in TRACKED_COLLECTIONS:
        updated_at = (
            await db.execute(
                select(model.updated_at).order_by(model.updated_at.desc()).limit(1)
            )
        ).scalar_one_or_none()
        if updated_at is not None:
            latest.append((updated_at, name))

    last_update_at, last_collection = max(latest) if latest else (None, None)
    return ItemEnvelope[LastUpdateData](
        data=LastUpdateData(
            last_update=last_update_at,
            last_update_collection=last_collection,
            collections_checked=len(TRACKED_COLLECTIONS),
            updates_found=len(latest),
        )
    )
