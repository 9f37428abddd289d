"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

The six tables of the CV database:
users, publications, teaching_classes, projects, teaching_innovations, final_works.
Enum columns are stored as plain strings holding the enum value.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(30), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(9), nullable=False, server_default="user"),
        sa.Column("last_access", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── publications ──────────────────────────────────────────────────────
    op.create_table(
        "publications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("authors", sa.Text, nullable=False),
        sa.Column("type", sa.String(10), nullable=False, server_default="journal"),
        sa.Column("publication", sa.String(500), nullable=False),
        sa.Column("info_publication", sa.Text, nullable=False, server_default=""),
        sa.Column("year_publication", sa.Integer, nullable=False),
        sa.Column("impact_factor", sa.Float, nullable=True),
        sa.Column("quartile", sa.String(2), nullable=False, server_default=""),
        sa.Column("doi", sa.String(255), nullable=False, server_default=""),
        sa.Column("url", sa.String(1000), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_publications_title", "publications", ["title"])
    op.create_index("ix_publications_type", "publications", ["type"])
    op.create_index("ix_publications_year_publication", "publications", ["year_publication"])
    op.create_index("ix_publications_quartile", "publications", ["quartile"])
    op.create_index("ix_publications_updated_at", "publications", ["updated_at"])

    # ── teaching_classes ──────────────────────────────────────────────────
    # teaching_language is added by revision 002
    op.create_table(
        "teaching_classes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("academic_year", sa.String(9), nullable=False),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("course", sa.String(8), nullable=False, server_default="1"),
        sa.Column("type", sa.String(8), nullable=False, server_default="theory"),
        sa.Column("degree", sa.String(300), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("semester", sa.String(5), nullable=False, server_default=""),
        sa.Column("category", sa.String(16), nullable=False, server_default="titular"),
        *_timestamps(),
    )
    op.create_index("ix_teaching_classes_academic_year", "teaching_classes", ["academic_year"])
    op.create_index("ix_teaching_classes_subject", "teaching_classes", ["subject"])
    op.create_index("ix_teaching_classes_course", "teaching_classes", ["course"])
    op.create_index("ix_teaching_classes_type", "teaching_classes", ["type"])
    op.create_index("ix_teaching_classes_updated_at", "teaching_classes", ["updated_at"])

    # ── projects ──────────────────────────────────────────────────────────
    op.create_table(
        "projects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("reference", sa.String(100), nullable=True),
        sa.Column("funding_agency", sa.String(200), nullable=False),
        sa.Column("principal_investigator", sa.String(200), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("budget", sa.Float, nullable=True),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("url", sa.String(1000), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_title", "projects", ["title"])
    op.create_index("ix_projects_start_date", "projects", ["start_date"])
    op.create_index("ix_projects_updated_at", "projects", ["updated_at"])

    # ── teaching_innovations ──────────────────────────────────────────────
    op.create_table(
        "teaching_innovations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("call", sa.String(200), nullable=False),
        sa.Column("principal_researcher", sa.String(200), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("reference", sa.String(100), nullable=True),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("url", sa.String(1000), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_teaching_innovations_title", "teaching_innovations", ["title"])
    op.create_index(
        "ix_teaching_innovations_principal_researcher", "teaching_innovations", ["principal_researcher"]
    )
    op.create_index("ix_teaching_innovations_start_date", "teaching_innovations", ["start_date"])
    op.create_index("ix_teaching_innovations_updated_at", "teaching_innovations", ["updated_at"])

    # ── final_works ───────────────────────────────────────────────────────
    op.create_table(
        "final_works",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("author", sa.String(200), nullable=False),
        sa.Column("type", sa.String(6), nullable=False),
        sa.Column("degree", sa.String(200), nullable=True),
        sa.Column("defense_date", sa.Date, nullable=False),
        sa.Column("grade", sa.String(100), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_final_works_title", "final_works", ["title"])
    op.create_index("ix_final_works_author", "final_works", ["author"])
    op.create_index("ix_final_works_type", "final_works", ["type"])
    op.create_index("ix_final_works_defense_date", "final_works", ["defense_date"])
    op.create_index("ix_final_works_updated_at", "final_works", ["updated_at"])


def downgrade() -> None:
    op.drop_table("final_works")
    op.drop_table("teaching_innovations")
    op.drop_table("projects")
    op.drop_table("teaching_classes")
    op.drop_table("publications")
    op.drop_table("users")
