"""add timetables

Revision ID: 0002_add_timetables
Revises: 0001_initial_schema
Create Date: 2026-10-19 15:00:00.000000

Weekly lesson slots per class.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002_add_timetables"
down_revision: str | Sequence[str] | None = "0001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "timetables",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("class_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("subject_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("room", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["class_id"], ["classes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_timetables_day_of_week"),
        sa.CheckConstraint("end_time > start_time", name="ck_timetables_time_order"),
    )
    op.create_index(op.f("ix_timetables_class_id"), "timetables", ["class_id"], unique=False)
    op.create_index(op.f("ix_timetables_teacher_id"), "timetables", ["teacher_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_timetables_teacher_id"), table_name="timetables")
    op.drop_index(op.f("ix_timetables_class_id"), table_name="timetables")
    op.drop_table("timetables")
