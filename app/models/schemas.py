"""
Pydantic schemas for request/response validation.
"""
import re
from datetime import date, datetime
from typing import Any, ClassVar, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    model_validator,
)
from typing_extensions import Annotated

from app.models.database_models import (
    ClassType,
    Course,
    FinalWorkType,
    PublicationType,
    Quartile,
    Semester,
    TeachingCategory,
    TeachingLanguage,
    UserRole,
)

T = TypeVar("T")

MIN_PUBLICATION_YEAR = 1990
MAX_YEARS_AHEAD = 5

_URL_RE = re.compile(r"^https?://.+")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
_ACADEMIC_YEAR_RE = re.compile(r"^(\d{4})[-/](\d{4})$")


# ---------------------------------------------------------------------------
# Reusable field types
# ---------------------------------------------------------------------------

def _check_url(value: str) -> str:
    if value and not _URL_RE.match(value):
        raise ValueError("URL must be a valid http/https address")
    return value


def _check_publication_year(value: int) -> int:
    max_year = date.today().year + MAX_YEARS_AHEAD
    if not MIN_PUBLICATION_YEAR <= value <= max_year:
        raise ValueError(f"Year must be between {MIN_PUBLICATION_YEAR} and {max_year}")
    return value


def _normalise_academic_year(value: str) -> str:
    match = _ACADEMIC_YEAR_RE.match(value)
    if not match:
        raise ValueError("Academic year must use the format YYYY-YYYY (e.g. 2023-2024)")
    return f"{match.group(1)}-{match.group(2)}"


def _normalise_email(value: str) -> str:
    value = value.lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email address")
    return value


UrlStr = Annotated[str, Field(max_length=1000), AfterValidator(_check_url)]
PublicationYear = Annotated[int, AfterValidator(_check_publication_year)]
AcademicYear = Annotated[str, AfterValidator(_normalise_academic_year)]
Email = Annotated[str, Field(max_length=255), AfterValidator(_normalise_email)]
# passwords are taken verbatim; RequestModel trims every other string
Password = Annotated[str, StringConstraints(strip_whitespace=False, min_length=1)]
NewPassword = Annotated[str, StringConstraints(strip_whitespace=False, min_length=6)]


class RequestModel(BaseModel):
    """
    Base for request bodies: strings are trimmed (passwords excepted),
    unknown keys ignored.

    Fields named in ``blank_to_null`` treat an empty or whitespace-only
    string as "not provided".
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    blank_to_null: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_null(cls, data: Any) -> Any:
        if isinstance(data, dict) and cls.blank_to_null:
            data = dict(data)
            for name in cls.blank_to_null:
                value = data.get(name)
                if isinstance(value, str) and not value.strip():
                    data[name] = None
        return data


class PartialUpdateModel(RequestModel):
    """
    Base for PUT bodies that merge into the stored record.

    Only the keys present in the body are applied; an explicit ``null`` is
    rejected for fields the record cannot live without.
    """

    required_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.required_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be empty")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


def _check_date_order(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValueError("end_date must be on or after start_date")


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

class Pagination(BaseModel):
    """Pagination block attached to list responses."""

    current: int
    pages: int
    total: int
    limit: Optional[int] = None


class ItemEnvelope(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[List[FieldError]] = None


StatsEnvelope = ItemEnvelope[Dict[str, Any]]


# ---------------------------------------------------------------------------
# Users & auth
# ---------------------------------------------------------------------------

class Capabilities(BaseModel):
    """Role flags a client uses to show or hide create/edit/delete controls."""

    can_create: bool = Field(alias="canCreate")
    can_edit: bool = Field(alias="canEdit")
    can_delete: bool = Field(alias="canDelete")
    is_guest: bool = Field(alias="isGuest")
    is_admin: bool = Field(alias="isAdmin")

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    """Public view of a user; the password hash is never exposed."""

    id: str
    username: str
    email: str
    role: UserRole
    last_access: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserProfile(UserResponse):
    permissions: Capabilities


class RegisterRequest(RequestModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: Email
    password: NewPassword
    role: Optional[UserRole] = None


class LoginRequest(RequestModel):
    email: Email
    password: Password


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    user: UserProfile


class ProfileUpdateRequest(RequestModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[Email] = None


class ChangePasswordRequest(RequestModel):
    current_password: Password = Field(
        ..., validation_alias=AliasChoices("currentPassword", "current_password")
    )
    new_password: NewPassword = Field(
        ..., validation_alias=AliasChoices("newPassword", "new_password")
    )


class UserCreateRequest(RequestModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: Email
    password: NewPassword
    role: UserRole = UserRole.USER


class UserUpdateRequest(RequestModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[Email] = None
    role: Optional[UserRole] = None


# ---------------------------------------------------------------------------
# Publications
# ---------------------------------------------------------------------------

class PublicationCreate(RequestModel):
    title: str = Field(..., min_length=1, max_length=500)
    authors: str = Field(..., min_length=1)
    type: PublicationType = PublicationType.JOURNAL
    publication: str = Field(..., min_length=1, max_length=500)
    info_publication: str = ""
    year_publication: PublicationYear
    impact_factor: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("if", "impact_factor")
    )
    quartile: Quartile = Quartile.NONE
    doi: str = Field("", max_length=255)
    url: UrlStr = ""


class PublicationUpdate(PartialUpdateModel):
    required_fields: ClassVar[Tuple[str, ...]] = ("title", "authors", "type", "publication", "year_publication")

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    authors: Optional[str] = Field(None, min_length=1)
    type: Optional[PublicationType] = None
    publication: Optional[str] = Field(None, min_length=1, max_length=500)
    info_publication: Optional[str] = None
    year_publication: Optional[PublicationYear] = None
    impact_factor: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("if", "impact_factor")
    )
    quartile: Optional[Quartile] = None
    doi: Optional[str] = Field(None, max_length=255)
    url: Optional[UrlStr] = None

    def changes(self) -> Dict[str, Any]:
        data = super().changes()
        # Free-text columns are stored as "" rather than NULL
        for key in ("info_publication", "doi", "url"):
            if key in data and data[key] is None:
                data[key] = ""
        if data.get("quartile") is None and "quartile" in data:
            data["quartile"] = Quartile.NONE
        return data


class PublicationResponse(BaseModel):
    id: str
    title: str
    authors: str
    type: PublicationType
    publication: str
    info_publication: str = ""
    year_publication: int
    impact_factor: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("impact_factor", "if"),
        serialization_alias="if",
    )
    quartile: Quartile = Quartile.NONE
    doi: str = ""
    url: str = ""
    full_citation: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Teaching classes
# ---------------------------------------------------------------------------

class TeachingClassCreate(RequestModel):
    blank_to_null = ("description",)

    academic_year: AcademicYear
    subject: str = Field(..., min_length=1, max_length=200)
    course: Course = Course.FIRST
    type: ClassType = ClassType.THEORY
    degree: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=1000)
    semester: Semester = Semester.NONE
    category: TeachingCategory = TeachingCategory.TITULAR
    teaching_language: TeachingLanguage = TeachingLanguage.CASTELLANO


class TeachingClassUpdate(PartialUpdateModel):
    blank_to_null = ("description",)
    required_fields: ClassVar[Tuple[str, ...]] = (
        "academic_year", "subject", "course", "type", "degree",
        "semester", "category", "teaching_language",
    )

    academic_year: Optional[AcademicYear] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=200)
    course: Optional[Course] = None
    type: Optional[ClassType] = None
    degree: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=1000)
    semester: Optional[Semester] = None
    category: Optional[TeachingCategory] = None
    teaching_language: Optional[TeachingLanguage] = None


class TeachingClassResponse(BaseModel):
    id: str
    academic_year: str
    subject: str
    course: Course
    type: ClassType
    degree: str
    description: Optional[str] = None
    semester: Semester = Semester.NONE
    category: TeachingCategory
    teaching_language: TeachingLanguage
    full_description: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Research projects
# ---------------------------------------------------------------------------

class ProjectCreate(RequestModel):
    blank_to_null = ("reference", "description", "url")

    title: str = Field(..., min_length=1, max_length=300)
    reference: Optional[str] = Field(None, max_length=100)
    funding_agency: str = Field(..., min_length=1, max_length=200)
    principal_investigator: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    budget: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=2000)
    url: Optional[UrlStr] = None

    @model_validator(mode="after")
    def dates_in_order(self):
        _check_date_order(self.start_date, self.end_date)
        return self


class ProjectUpdate(PartialUpdateModel):
    blank_to_null = ("reference", "description", "url")
    required_fields: ClassVar[Tuple[str, ...]] = (
        "title", "funding_agency", "principal_investigator", "start_date", "end_date",
    )

    title: Optional[str] = Field(None, min_length=1, max_length=300)
    reference: Optional[str] = Field(None, max_length=100)
    funding_agency: Optional[str] = Field(None, min_length=1, max_length=200)
    principal_investigator: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=2000)
    url: Optional[UrlStr] = None


class ProjectResponse(BaseModel):
    id: str
    title: str
    reference: Optional[str] = None
    funding_agency: str
    principal_investigator: str
    start_date: date
    end_date: date
    budget: Optional[float] = None
    description: Optional[str] = None
    url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Teaching innovation
# ---------------------------------------------------------------------------

class TeachingInnovationPayload(RequestModel):
    """Used for both POST and PUT; PUT replaces the whole record."""

    blank_to_null = ("reference", "description", "url")

    title: str = Field(..., min_length=1, max_length=300)
    call: str = Field(..., min_length=1, max_length=200)
    principal_researcher: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    reference: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    url: Optional[UrlStr] = None

    @model_validator(mode="after")
    def dates_in_order(self):
        _check_date_order(self.start_date, self.end_date)
        return self


class TeachingInnovationResponse(BaseModel):
    id: str
    title: str
    call: str
    principal_researcher: str
    start_date: date
    end_date: date
    reference: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Final works
# ---------------------------------------------------------------------------

class FinalWorkPayload(RequestModel):
    """Used for both POST and PUT; PUT replaces the whole record."""

    blank_to_null = ("degree", "grade")

    title: str = Field(..., min_length=1, max_length=300)
    author: str = Field(..., min_length=1, max_length=200)
    type: FinalWorkType
    degree: Optional[str] = Field(None, max_length=200)
    defense_date: date
    grade: Optional[str] = Field(None, max_length=100)


class FinalWorkResponse(BaseModel):
    id: str
    title: str
    author: str
    type: FinalWorkType
    degree: Optional[str] = None
    defense_date: date
    grade: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

class LastUpdateData(BaseModel):
    last_update: Optional[datetime] = Field(None, alias="lastUpdate")
    last_update_collection: Optional[str] = Field(None, alias="lastUpdateCollection")
    collections_checked: int = Field(alias="collectionsChecked")
    updates_found: int = Field(alias="updatesFound")

    model_config = ConfigDict(populate_by_name=True)


class HealthCheckResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime
