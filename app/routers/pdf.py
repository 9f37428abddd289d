"""
Curriculum PDF export.

GET /api/pdf/generate  — download for signed-in users
GET /api/pdf/public    — same document, no token required
GET /api/pdf/health    — checks the renderer can produce a PDF
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.database import get_db
from app.dependencies.auth import get_current_user
from app.models.database_models import User
from app.services.curriculum_pdf import CurriculumPDFService, PDFRenderError, get_pdf_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _pdf_response(db: AsyncSession, service: CurriculumPDFService) -> Response:
    try:
        pdf_bytes = await service.build(db)
    except PDFRenderError as e:
        logger.error(f"Curriculum PDF generation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error generating PDF",
        )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{settings.PDF_FILENAME}"',
            "Cache-Control": "no-cache",
        },
    )


@router.get("/generate")
async def generate_pdf(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CurriculumPDFService = Depends(get_pdf_service),
):
    logger.info("Curriculum PDF requested by %s", user.username)
    return await _pdf_response(db, service)


@router.get("/public")
async def public_pdf(
    db: AsyncSession = Depends(get_db),
    service: CurriculumPDFService = Depends(get_pdf_service),
):
    logger.info("Public curriculum PDF requested")
    return await _pdf_response(db, service)


@router.get("/health")
async def pdf_health(service: CurriculumPDFService = Depends(get_pdf_service)):
    """Render a one-line document and report the WeasyPrint version."""
    try:
        version = await run_in_threadpool(service.renderer_version)
    except (PDFRenderError, ImportError, OSError) as e:
        logger.error(f"PDF renderer health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="PDF renderer is not available",
        )
    return {"success": True, "message": "PDF renderer is working", "renderer": "weasyprint", "version": version}
