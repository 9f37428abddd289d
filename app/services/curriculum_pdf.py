"""
Curriculum export: loads every CV collection, renders the Jinja2 template
and converts the resulting HTML to PDF with WeasyPrint.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.models.database_models import (
    FinalWork,
    Project,
    Publication,
    TeachingClass,
    TeachingInnovation,
)

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "curriculum.html"

_MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


class PDFRenderError(Exception):
    """Raised when the HTML could not be converted to PDF."""


@dataclass
class CurriculumData:
    """Everything that goes into one exported curriculum."""

    publications: List[Publication] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    teaching_classes: List[TeachingClass] = field(default_factory=list)
    teaching_innovation: List[TeachingInnovation] = field(default_factory=list)
    final_works: List[FinalWork] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "publications": len(self.publications),
            "projects": len(self.projects),
            "teachingClasses": len(self.teaching_classes),
            "teachingInnovation": len(self.teaching_innovation),
            "finalWorks": len(self.final_works),
        }


def format_spanish_date(value: date) -> str:
    """``date(2024, 3, 5)`` -> ``"5 de marzo de 2024"``."""
    return f"{value.day} de {_MONTHS_ES[value.month - 1]} de {value.year}"


def format_euros(value: Optional[float]) -> str:
    """Spanish thousands separator; decimals only when the amount has cents."""
    if value is None:
        return ""
    if float(value).is_integer():
        text = f"{value:,.0f}"
    else:
        text = f"{value:,.2f}"
    # swap separators: 1,234.50 -> 1.234,50
    text = text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")
    return f"{text} €"


class CurriculumPDFService:
    """
    Builds the curriculum document.

    ``collect`` touches the database; ``render_html`` and ``render_pdf`` are
    pure and synchronous so they can run in a worker thread.
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self.jinja_env.filters["euros"] = format_euros

    async def collect(self, db: AsyncSession) -> CurriculumData:
        """
        Load all five collections in their display order.

        Queries run one after another: an ``AsyncSession`` cannot serve
        concurrent statements.
        """

        async def _all(model, *order_by) -> list:
            result = await db.execute(select(model).order_by(*order_by, model.id.asc()))
            return list(result.scalars().all())

        data = CurriculumData(
            publications=await _all(Publication, Publication.year_publication.desc()),
            projects=await _all(Project, Project.start_date.desc()),
            teaching_classes=await _all(TeachingClass, TeachingClass.academic_year.desc()),
            teaching_innovation=await _all(TeachingInnovation, TeachingInnovation.start_date.desc()),
            final_works=await _all(FinalWork, FinalWork.defense_date.desc()),
        )
        logger.info("Collected curriculum data: %s", data.counts)
        return data

    def render_html(self, data: CurriculumData, generated_on: Optional[date] = None) -> str:
        template = self.jinja_env.get_template(TEMPLATE_NAME)
        summary = [
            ("Publicaciones", len(data.publications)),
            ("Proyectos de Investigación", len(data.projects)),
            ("Clases Impartidas", len(data.teaching_classes)),
            ("Proyectos Docentes", len(data.teaching_innovation)),
            ("Trabajos Fin de Estudios", len(data.final_works)),
        ]
        return template.render(
            owner_name=settings.CV_OWNER_NAME,
            subtitle=settings.CV_SUBTITLE,
            generated_on=format_spanish_date(generated_on or date.today()),
            summary=summary,
            publications=data.publications,
            projects=data.projects,
            teaching_classes=data.teaching_classes,
            teaching_innovation=data.teaching_innovation,
            final_works=data.final_works,
        )

    def render_pdf(self, html: str) -> bytes:
        """
        Convert ``html`` to an A4 PDF (page size and margins come from the
        template's ``@page`` rule).

        Raises:
            PDFRenderError: WeasyPrint is missing its native libraries or
                failed to lay out the document.
        """
        try:
            from weasyprint import HTML

            pdf_bytes = HTML(string=html, base_url=str(self.templates_dir)).write_pdf()
        except (ImportError, OSError) as e:
            raise PDFRenderError(f"PDF renderer unavailable: {e}") from e
        except Exception as e:
            raise PDFRenderError(f"PDF rendering failed: {e}") from e

        if not pdf_bytes:
            raise PDFRenderError("PDF renderer produced an empty document")
        logger.info("Rendered curriculum PDF (%d bytes)", len(pdf_bytes))
        return pdf_bytes

    def renderer_version(self) -> str:
        """WeasyPrint version string, verified by rendering a one-line document."""
        import weasyprint

        self.render_pdf("<p>ok</p>")
        return weasyprint.__version__

    async def build(self, db: AsyncSession) -> bytes:
        """Collect, render and convert in one go; the CPU-bound steps run off the event loop."""
        data = await self.collect(db)
        html = self.render_html(data)
        return await run_in_threadpool(self.render_pdf, html)


def get_pdf_service() -> CurriculumPDFService:
    return CurriculumPDFService()
