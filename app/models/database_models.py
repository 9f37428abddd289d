"""
SQLAlchemy ORM models for the academic CV database.
One table per CV collection plus the user accounts.
"""
from sqlalchemy import (
    Column,
    String,
    Text,
    Date,
    DateTime,
    Float,
    Integer,
    Enum as SQLEnum,
)
from datetime import datetime, timezone
import enum
import uuid

from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_column(enum_cls, name: str) -> SQLEnum:
    """Store the enum *value* (``"journal"``) rather than the member name."""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
    )


# Enums
class UserRole(str, enum.Enum):
    """Role tiers used for permission checks."""

    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"
    GUEST = "guest"


class PublicationType(str, enum.Enum):
    """Kinds of publication."""

    JOURNAL = "journal"
    CONFERENCE = "conference"
    KEYNOTE = "keynote"
    BOOK = "book"
    CHAPTER = "chapter"
    OTHER = "other"


class Quartile(str, enum.Enum):
    """Journal ranking quartile (empty when not ranked)."""

    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"
    NONE = ""


class Course(str, enum.Enum):
    """Course level in which a class is taught."""

    FIRST = "1"
    SECOND = "2"
    THIRD = "3"
    FOURTH = "4"
    POSTGRADUATE = "posgrado"
    OTHERS = "otros"


class ClassType(str, enum.Enum):
    """Type of teaching session."""

    THEORY = "theory"
    PRACTICE = "practice"
    SEMINAR = "seminar"
    OTHER = "other"


class Semester(str, enum.Enum):
    FIRST = "1"
    SECOND = "2"
    ANNUAL = "anual"
    NONE = ""


class TeachingCategory(str, enum.Enum):
    """Academic rank held while teaching the class."""

    AYUDANTE_DOCTOR = "ayudantedoctor"
    CONTRATADO_DOCTOR = "contratadodoctor"
    TITULAR = "titular"
    CATEDRATICO = "catedratico"
    OTRO = "otro"


class TeachingLanguage(str, enum.Enum):
    CASTELLANO = "castellano"
    INGLES = "ingles"


class FinalWorkType(str, enum.Enum):
    """Kinds of supervised final work."""

    TFG = "tfg"
    TFM = "tfm"
    THESIS = "thesis"
    OTHER = "other"


# Models
class User(Base):
    """Account allowed to sign in and manage the CV."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(_enum_column(UserRole, "userrole"), nullable=False, default=UserRole.USER)
    last_access = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class Publication(Base):
    """Journal article, conference paper, book, chapter or talk."""

    __tablename__ = "publications"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(500), nullable=False, index=True)
    authors = Column(Text, nullable=False)
    type = Column(
        _enum_column(PublicationType, "publicationtype"),
        nullable=False,
        default=PublicationType.JOURNAL,
        index=True,
    )
    publication = Column(String(500), nullable=False)  # journal / venue name
    info_publication = Column(Text, nullable=False, default="")  # volume, pages, etc.
    year_publication = Column(Integer, nullable=False, index=True)
    impact_factor = Column(Float, nullable=True)
    quartile = Column(_enum_column(Quartile, "quartile"), nullable=False, default=Quartile.NONE, index=True)
    doi = Column(String(255), nullable=False, default="")
    url = Column(String(1000), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, index=True)

    @property
    def full_citation(self) -> str:
        citation = f"{self.authors} ({self.year_publication}). {self.title}. {self.publication}"
        if self.info_publication:
            citation += f". {self.info_publication}"
        return citation


class TeachingClass(Base):
    """A subject taught during one academic year."""

    __tablename__ = "teaching_classes"

    id = Column(String(36), primary_key=True, default=_new_id)
    academic_year = Column(String(9), nullable=False, index=True)  # YYYY-YYYY
    subject = Column(String(200), nullable=False, index=True)
    course = Column(_enum_column(Course, "course"), nullable=False, default=Course.FIRST, index=True)
    type = Column(_enum_column(ClassType, "classtype"), nullable=False, default=ClassType.THEORY, index=True)
    degree = Column(String(300), nullable=False)
    description = Column(String(1000), nullable=True)
    semester = Column(_enum_column(Semester, "semester"), nullable=False, default=Semester.NONE)
    category = Column(
        _enum_column(TeachingCategory, "teachingcategory"),
        nullable=False,
        default=TeachingCategory.TITULAR,
    )
    teaching_language = Column(
        _enum_column(TeachingLanguage, "teachinglanguage"),
        nullable=False,
        default=TeachingLanguage.CASTELLANO,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, index=True)

    @property
    def full_description(self) -> str:
        return f"{self.subject} - {self.degree} (Curso {self.course.value}, {self.type.value})"


class Project(Base):
    """Funded research project."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(300), nullable=False, index=True)
    reference = Column(String(100), nullable=True)
    funding_agency = Column(String(200), nullable=False)
    principal_investigator = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    budget = Column(Float, nullable=True)
    description = Column(String(2000), nullable=True)
    url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, index=True)


class TeachingInnovation(Base):
    """Teaching-innovation project granted in an institutional call."""

    __tablename__ = "teaching_innovations"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(300), nullable=False, index=True)
    call = Column(String(200), nullable=False)
    principal_researcher = Column(String(200), nullable=False, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    reference = Column(String(100), nullable=True)
    description = Column(String(2000), nullable=True)
    url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, index=True)


class FinalWork(Base):
    """Supervised bachelor / master final work or doctoral thesis."""

    __tablename__ = "final_works"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(300), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    type = Column(_enum_column(FinalWorkType, "finalworktype"), nullable=False, index=True)
    degree = Column(String(200), nullable=True)
    defense_date = Column(Date, nullable=False, index=True)
    grade = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, index=True)
