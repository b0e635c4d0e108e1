"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates every table of the platform: users and school tenants with their
memberships, one-time credentials, the system log, academics, students and
teachers, attendance, grades, fees, messaging, announcements and parent links.

Enum types store the member names (uppercase), matching how SQLAlchemy
persists Python enums.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUMS = {
    "user_role": (
        "SUPER_ADMIN",
        "SUPPORT_ADMIN",
        "SALES_ADMIN",
        "CONTENT_ADMIN",
        "FINANCE_ADMIN",
        "SCHOOL_ADMIN",
        "PRINCIPAL",
        "TEACHER",
        "STAFF",
        "STUDENT",
        "PARENT",
        "GUEST",
    ),
    "school_status": ("ACTIVE", "SUSPENDED", "DEACTIVATED"),
    "school_type": ("NURSERY", "PRIMARY", "SECONDARY", "TERTIARY", "MIXED"),
    "subscription_plan": ("FREE", "BASIC", "PRO", "PREMIUM"),
    "otp_channel": ("EMAIL", "SMS"),
    "otp_purpose": ("LOGIN", "VERIFY", "RESET"),
    "auth_token_type": ("PASSWORD_RESET", "MAGIC_LINK"),
    "gender": ("MALE", "FEMALE", "OTHER"),
    "student_status": ("ACTIVE", "INACTIVE", "GRADUATED", "TRANSFERRED"),
    "teacher_status": ("ACTIVE", "ON_LEAVE", "INACTIVE"),
    "attendance_status": ("PRESENT", "ABSENT", "LATE", "EXCUSED"),
    "assessment_type": ("TEST", "EXAM", "ASSIGNMENT", "PROJECT", "CONTINUOUS_ASSESSMENT"),
    "payment_method": ("CASH", "BANK_TRANSFER", "CARD", "MOBILE_MONEY", "SMARTSAVE"),
    "payment_status": ("COMPLETED", "PENDING", "FAILED", "REFUNDED"),
    "message_type": ("DIRECT", "BROADCAST", "NOTIFICATION"),
    "target_audience": ("ALL", "STUDENTS", "TEACHERS", "PARENTS", "STAFF"),
    "announcement_priority": ("LOW", "NORMAL", "HIGH", "URGENT"),
    "event_type": ("EXAM", "HOLIDAY", "MEETING", "SPORTS", "CULTURAL", "ACADEMIC", "OTHER"),
    "parent_link_status": ("PENDING", "PENDING_APPROVAL", "APPROVED", "REJECTED"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=False), **kwargs)


def _base_columns() -> list[sa.Column]:
    """Primary key and timestamps shared by every table."""
    return [
        _uuid("id", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _fk(column: str, target: str, ondelete: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint([column], [f"{target}.id"], ondelete=ondelete)


def _index(table: str, *columns: str, unique: bool = False) -> None:
    op.create_index(op.f(f"ix_{table}_{'_'.join(columns)}"), table, list(columns), unique=unique)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # ============================================
    # Identity and tenants
    # ============================================
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("users", "email", unique=True)
    _index("users", "phone", unique=True)

    op.create_table(
        "schools",
        *_base_columns(),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("school_type", _enum("school_type"), nullable=False),
        sa.Column("motto", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("subscription_plan", _enum("subscription_plan"), nullable=False, server_default="FREE"),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "settings",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("status", _enum("school_status"), nullable=False, server_default="ACTIVE"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    _index("schools", "code", unique=True)
    _index("schools", "name")

    op.create_table(
        "school_users",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column(
            "permissions",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("user_id", "users", "CASCADE"),
        sa.UniqueConstraint("school_id", "user_id", name="uq_school_users_school_user"),
    )
    _index("school_users", "school_id")
    _index("school_users", "user_id")

    # ============================================
    # One-time credentials and audit
    # ============================================
    op.create_table(
        "otp_codes",
        *_base_columns(),
        _uuid("user_id", nullable=False),
        sa.Column("channel", _enum("otp_channel"), nullable=False),
        sa.Column("destination", sa.String(length=255), nullable=False),
        sa.Column("code_hash", sa.String(length=64), nullable=False),
        sa.Column("purpose", _enum("otp_purpose"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        _fk("user_id", "users", "CASCADE"),
    )
    _index("otp_codes", "user_id")

    op.create_table(
        "auth_tokens",
        *_base_columns(),
        _uuid("user_id", nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("token_type", _enum("auth_token_type"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("context", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("user_id", "users", "CASCADE"),
    )
    _index("auth_tokens", "user_id")
    _index("auth_tokens", "token_hash", unique=True)

    op.create_table(
        "system_logs",
        *_base_columns(),
        _uuid("user_id", nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("old_values", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("new_values", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("details", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("user_id", "users", "SET NULL"),
    )
    _index("system_logs", "user_id")
    _index("system_logs", "action")
    _index("system_logs", "entity_type")

    # ============================================
    # Academics
    # ============================================
    op.create_table(
        "academic_terms",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default="false"),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
    )
    _index("academic_terms", "school_id")

    op.create_table(
        "subjects",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("is_core", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        sa.UniqueConstraint("school_id", "code", name="uq_subjects_school_code"),
    )
    _index("subjects", "school_id")

    op.create_table(
        "classes",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("level", sa.String(length=50), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        _uuid("class_teacher_id", nullable=True),
        _uuid("academic_term_id", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("class_teacher_id", "users", "SET NULL"),
        _fk("academic_term_id", "academic_terms", "SET NULL"),
    )
    _index("classes", "school_id")

    # ============================================
    # People
    # ============================================
    op.create_table(
        "students",
        *_base_columns(),
        _uuid("user_id", nullable=False),
        _uuid("school_id", nullable=False),
        sa.Column("student_number", sa.String(length=50), nullable=False),
        _uuid("class_id", nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", _enum("gender"), nullable=True),
        sa.Column("blood_group", sa.String(length=5), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("guardian_name", sa.String(length=200), nullable=True),
        sa.Column("guardian_phone", sa.String(length=20), nullable=True),
        sa.Column("guardian_email", sa.String(length=255), nullable=True),
        sa.Column("medical_conditions", sa.Text(), nullable=True),
        sa.Column("admission_date", sa.Date(), nullable=True),
        sa.Column("status", _enum("student_status"), nullable=False, server_default="ACTIVE"),
        sa.PrimaryKeyConstraint("id"),
        _fk("user_id", "users", "CASCADE"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("class_id", "classes", "SET NULL"),
        sa.UniqueConstraint("school_id", "student_number", name="uq_students_school_number"),
    )
    _index("students", "user_id")
    _index("students", "school_id")
    _index("students", "class_id")

    op.create_table(
        "teachers",
        *_base_columns(),
        _uuid("user_id", nullable=False),
        _uuid("school_id", nullable=False),
        sa.Column("employee_id", sa.String(length=50), nullable=False),
        sa.Column("qualification", sa.String(length=200), nullable=True),
        sa.Column("specialization", sa.String(length=200), nullable=True),
        sa.Column("salary", sa.Numeric(12, 2), nullable=True),
        sa.Column("hire_date", sa.Date(), nullable=True),
        sa.Column("status", _enum("teacher_status"), nullable=False, server_default="ACTIVE"),
        sa.PrimaryKeyConstraint("id"),
        _fk("user_id", "users", "CASCADE"),
        _fk("school_id", "schools", "CASCADE"),
        sa.UniqueConstraint("school_id", "employee_id", name="uq_teachers_school_employee"),
    )
    _index("teachers", "user_id")
    _index("teachers", "school_id")

    # ============================================
    # Attendance and grades
    # ============================================
    op.create_table(
        "attendance",
        *_base_columns(),
        _uuid("student_id", nullable=False),
        _uuid("class_id", nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", _enum("attendance_status"), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        _uuid("marked_by", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("student_id", "students", "CASCADE"),
        _fk("class_id", "classes", "CASCADE"),
        _fk("marked_by", "users", "SET NULL"),
        sa.UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
    )
    _index("attendance", "student_id")
    _index("attendance", "class_id")
    _index("attendance", "date")

    op.create_table(
        "grades",
        *_base_columns(),
        _uuid("student_id", nullable=False),
        _uuid("subject_id", nullable=False),
        _uuid("academic_term_id", nullable=False),
        sa.Column("assessment_type", _enum("assessment_type"), nullable=False),
        sa.Column("score", sa.Numeric(6, 2), nullable=False),
        sa.Column("max_score", sa.Numeric(6, 2), nullable=False, server_default="100"),
        sa.Column("grade", sa.String(length=5), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        _uuid("recorded_by", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("student_id", "students", "CASCADE"),
        _fk("subject_id", "subjects", "CASCADE"),
        _fk("academic_term_id", "academic_terms", "CASCADE"),
        _fk("recorded_by", "users", "SET NULL"),
    )
    _index("grades", "student_id")
    _index("grades", "subject_id")
    _index("grades", "academic_term_id")

    # ============================================
    # Fees
    # ============================================
    op.create_table(
        "fee_structures",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        _uuid("class_id", nullable=True),
        _uuid("academic_term_id", nullable=False),
        sa.Column("fee_type", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("class_id", "classes", "CASCADE"),
        _fk("academic_term_id", "academic_terms", "CASCADE"),
    )
    _index("fee_structures", "school_id")
    _index("fee_structures", "class_id")
    _index("fee_structures", "academic_term_id")

    op.create_table(
        "fee_payments",
        *_base_columns(),
        _uuid("student_id", nullable=False),
        _uuid("fee_structure_id", nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", _enum("payment_method"), nullable=False),
        sa.Column("payment_reference", sa.String(length=100), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("status", _enum("payment_status"), nullable=False, server_default="COMPLETED"),
        _uuid("recorded_by", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("student_id", "students", "CASCADE"),
        _fk("fee_structure_id", "fee_structures", "CASCADE"),
        _fk("recorded_by", "users", "SET NULL"),
    )
    _index("fee_payments", "student_id")
    _index("fee_payments", "fee_structure_id")

    # ============================================
    # Communication
    # ============================================
    op.create_table(
        "messages",
        *_base_columns(),
        _uuid("school_id", nullable=True),
        _uuid("sender_id", nullable=False),
        _uuid("recipient_id", nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("message_type", _enum("message_type"), nullable=False, server_default="DIRECT"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("sender_id", "users", "CASCADE"),
        _fk("recipient_id", "users", "CASCADE"),
    )
    _index("messages", "school_id")
    _index("messages", "sender_id")
    _index("messages", "recipient_id")

    op.create_table(
        "notifications",
        *_base_columns(),
        _uuid("user_id", nullable=False),
        _uuid("school_id", nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False, server_default="info"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.PrimaryKeyConstraint("id"),
        _fk("user_id", "users", "CASCADE"),
        _fk("school_id", "schools", "CASCADE"),
    )
    _index("notifications", "user_id")

    op.create_table(
        "announcements",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("target_audience", _enum("target_audience"), nullable=False, server_default="ALL"),
        sa.Column("priority", _enum("announcement_priority"), nullable=False, server_default="NORMAL"),
        sa.Column("publish_date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default="true"),
        _uuid("created_by", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("created_by", "users", "SET NULL"),
    )
    _index("announcements", "school_id")

    op.create_table(
        "events",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", _enum("event_type"), nullable=False, server_default="OTHER"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("target_audience", _enum("target_audience"), nullable=False, server_default="ALL"),
        _uuid("created_by", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("created_by", "users", "SET NULL"),
    )
    _index("events", "school_id")
    _index("events", "start_date")

    # ============================================
    # Parent links
    # ============================================
    op.create_table(
        "parent_links",
        *_base_columns(),
        _uuid("school_id", nullable=False),
        _uuid("student_id", nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False),
        sa.Column("status", _enum("parent_link_status"), nullable=False, server_default="PENDING"),
        _uuid("parent_id", nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _uuid("created_by", nullable=True),
        _uuid("reviewed_by", nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _fk("school_id", "schools", "CASCADE"),
        _fk("student_id", "students", "CASCADE"),
        _fk("parent_id", "users", "CASCADE"),
        _fk("created_by", "users", "SET NULL"),
        _fk("reviewed_by", "users", "SET NULL"),
    )
    _index("parent_links", "school_id")
    _index("parent_links", "student_id")
    _index("parent_links", "code", unique=True)

    op.create_table(
        "parent_students",
        *_base_columns(),
        _uuid("parent_id", nullable=False),
        _uuid("student_id", nullable=False),
        sa.Column("relationship_type", sa.String(length=50), nullable=False, server_default="parent"),
        sa.PrimaryKeyConstraint("id"),
        _fk("parent_id", "users", "CASCADE"),
        _fk("student_id", "students", "CASCADE"),
        sa.UniqueConstraint("parent_id", "student_id", name="uq_parent_students_pair"),
    )
    _index("parent_students", "parent_id")
    _index("parent_students", "student_id")


TABLES = (
    "parent_students",
    "parent_links",
    "events",
    "announcements",
    "notifications",
    "messages",
    "fee_payments",
    "fee_structures",
    "grades",
    "attendance",
    "teachers",
    "students",
    "classes",
    "subjects",
    "academic_terms",
    "system_logs",
    "auth_tokens",
    "otp_codes",
    "school_users",
    "schools",
    "users",
)


def downgrade() -> None:
    """Drop every table, then the enum types."""
    for table in TABLES:
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(ENUMS):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
