"""
Main FastAPI application for the academic CV backend.
Handles CORS, request logging middleware, error envelopes, lifespan events,
and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import or_, select
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import AsyncSessionLocal, close_db, init_db
from app.models.database_models import User, UserRole
from app.models.schemas import ErrorResponse, FieldError
from app.routers import (
    final_works,
    health,
    pdf,
    projects,
    publications,
    stats,
    teaching_classes,
    teaching_innovation,
    users,
)
from app.utils.security import hash_password

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = ("body", "query", "path", "header", "cookie")


# ---------------------------------------------------------------------------
# Startup / shutdown helpers
# ---------------------------------------------------------------------------

async def _check_database() -> bool:
    """Initialise DB tables and verify the connection.  Returns True on success."""
    try:
        await init_db()
        logger.info("✓ Database connection OK")
        return True
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise


async def _seed_admin() -> None:
    """
    Create the bootstrap administrator from ADMIN_USERNAME / ADMIN_EMAIL /
    ADMIN_PASSWORD when none of those credentials is taken yet.
    """
    if not (settings.ADMIN_USERNAME and settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        logger.info("  No bootstrap administrator configured")
        return

    email = settings.ADMIN_EMAIL.strip().lower()
    async with AsyncSessionLocal() as session:
        existing = (
            await session.execute(
                select(User.id).where(
                    or_(User.username == settings.ADMIN_USERNAME, User.email == email)
                )
            )
        ).first()
        if existing is not None:
            logger.info("✓ Bootstrap administrator already present")
            return

        session.add(
            User(
                username=settings.ADMIN_USERNAME,
                email=email,
                password_hash=hash_password(settings.ADMIN_PASSWORD),
                role=UserRole.ADMIN,
            )
        )
        await session.commit()
        logger.info("✓ Bootstrap administrator '%s' created", settings.ADMIN_USERNAME)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting academic CV backend …")
    logger.info("=" * 60)

    await _check_database()
    await _seed_admin()

    logger.info("=" * 60)
    logger.info("  CV backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health/", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down CV backend …")
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Academic CV API",
    description=(
        "Manage an academic curriculum: publications, research projects, "
        "teaching classes, teaching-innovation projects and supervised final "
        "works, with role-based access and PDF export.\n\n"
        "Key endpoints:\n"
        "- `POST /api/users/login` — obtain a token\n"
        "- `GET  /api/publications` — list with search, filters and pagination\n"
        "- `GET  /api/pdf/public` — download the curriculum as PDF\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health", "/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap ``HTTPException`` details in the ``{success, message}`` envelope."""
    message = str(exc.detail)
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=message).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report every invalid field with a 400 instead of FastAPI's default 422."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=".".join(loc) or "body", message=message))

    logger.info(
        "Validation failed on %s %s: %s",
        request.method,
        request.url.path,
        [error.field for error in errors],
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message="Validation errors", errors=errors).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message="Internal server error").model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,              prefix="/api/health",              tags=["Health"])
app.include_router(users.router,               prefix="/api/users",               tags=["Users"])
app.include_router(publications.router,        prefix="/api/publications",        tags=["Publications"])
app.include_router(teaching_classes.router,    prefix="/api/teaching-classes",    tags=["Teaching classes"])
app.include_router(projects.router,            prefix="/api/projects",            tags=["Projects"])
app.include_router(teaching_innovation.router, prefix="/api/teaching-innovation", tags=["Teaching innovation"])
app.include_router(final_works.router,         prefix="/api/final-works",         tags=["Final works"])
app.include_router(stats.router,               prefix="/api/stats",               tags=["Stats"])
app.include_router(pdf.router,                 prefix="/api/pdf",                 tags=["PDF"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "Academic CV API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health/",
        "endpoints": {
            "users": "/api/users",
            "publications": "/api/publications",
            "teachingClasses": "/api/teaching-classes",
            "projects": "/api/projects",
            "teachingInnovation": "/api/teaching-innovation",
            "finalWorks": "/api/final-works",
            "stats": "/api/stats/last-update",
            "pdf": "/api/pdf/public",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
