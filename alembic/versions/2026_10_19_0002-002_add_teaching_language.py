"""add teaching_language to teaching_classes

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Classes recorded before the language field existed are backfilled as
taught in Spanish ("castellano") before the column becomes NOT NULL.
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "teaching_classes",
        sa.Column("teaching_language", sa.String(length=10), nullable=True),
    )
    op.execute(
        "UPDATE teaching_classes SET teaching_language = 'castellano' "
        "WHERE teaching_language IS NULL OR teaching_language = ''"
    )
    with op.batch_alter_table("teaching_classes") as batch_op:
        batch_op.alter_column(
            "teaching_language",
            existing_type=sa.String(length=10),
            nullable=False,
            server_default="castellano",
        )


def downgrade() -> None:
    with op.batch_alter_table("teaching_classes") as batch_op:
        batch_op.drop_column("teaching_language")
