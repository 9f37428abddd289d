"""Database and schema models for the academic CV backend."""
from app.models.database_models import (
    User,
    Publication,
    TeachingClass,
    Project,
    TeachingInnovation,
    FinalWork,
    UserRole,
    PublicationType,
    Quartile,
    Course,
    ClassType,
    Semester,
    TeachingCategory,
    TeachingLanguage,
    FinalWorkType,
)
from app.models.schemas import (
    ItemEnvelope,
    ListEnvelope,
    MessageResponse,
    Pagination,
    PublicationResponse,
    TeachingClassResponse,
    ProjectResponse,
    TeachingInnovationResponse,
    FinalWorkResponse,
    UserResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "User",
    "Publication",
    "TeachingClass",
    "Project",
    "TeachingInnovation",
    "FinalWork",
    "UserRole",
    "PublicationType",
    "Quartile",
    "Course",
    "ClassType",
    "Semester",
    "TeachingCategory",
    "TeachingLanguage",
    "FinalWorkType",
    # Pydantic schemas
    "ItemEnvelope",
    "ListEnvelope",
    "MessageResponse",
    "Pagination",
    "PublicationResponse",
    "TeachingClassResponse",
    "ProjectResponse",
    "TeachingInnovationResponse",
    "FinalWorkResponse",
    "UserResponse",
    "HealthCheckResponse",
]
