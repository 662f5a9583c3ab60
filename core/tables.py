"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

from .enums import notification_log_status_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. COURSES
# =====================================================
# Checkpoint calendar and form bindings live inline on the course row:
#   week_dates = {"pre": "2026-02-10", "0": "2026-02-17", "2": "", ...}
#   week_forms = {"0": "<form_id>", "2": "<form_id>", ...}
courses = Table(
    "courses",
    metadata,
    Column(
        "course_id",
        Text,
        primary_key=True,
        server_default=text("gen_random_uuid()::text"),
    ),
    Column("title", Text, nullable=False),
    Column("end_date", Date),
    Column("week_dates", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    Column("week_forms", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    Column("registration_key", Text),
    Column("finished", Boolean, nullable=False, server_default="false"),
    Column("finished_at", TIMESTAMP(timezone=True)),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_courses_finished", "finished"),
)


# =====================================================
# 2. REGISTRATIONS
# =====================================================
# user_id is the trainee's LINE user ID (also the push recipient ID)
# display_name is the LINE profile name captured at registration
registrations = Table(
    "registrations",
    metadata,
    Column("registration_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Text, nullable=False),
    Column("course_id", Text, nullable=False),
    Column("display_name", Text),
    Column("registered_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_registrations_course_id", "course_id"),
    UniqueConstraint(
        "user_id", "course_id", name="uq_registrations_user_id_course_id"
    ),
)


# =====================================================
# 3. FORM TEMPLATES
# =====================================================
# questions = [{"text": "...", "type": "rating", "options": [...]}, ...]
form_templates = Table(
    "form_templates",
    metadata,
    Column(
        "form_id",
        Text,
        primary_key=True,
        server_default=text("gen_random_uuid()::text"),
    ),
    Column("title", Text, nullable=False),
    Column("questions", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
)


# =====================================================
# 4. RESPONSES
# =====================================================
# answers are positional, aligned with form_templates.questions at submit time
responses = Table(
    "responses",
    metadata,
    Column("response_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Text, nullable=False),
    Column("course_id", Text, nullable=False),
    Column("form_id", Text, nullable=False),
    Column("checkpoint", Text, nullable=False),
    Column("answers", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    Column("submitted_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_responses_course_id", "course_id"),
    Index("idx_responses_user_course", "user_id", "course_id"),
)


# =====================================================
# 5. NOTIFICATION LOG
# =====================================================
# One row per (course, checkpoint, day). The unique constraint turns the
# "already notified today?" check into an atomic claim.
notification_log = Table(
    "notification_log",
    metadata,
    Column("log_id", Integer, primary_key=True, autoincrement=True),
    Column("course_id", Text, nullable=False),
    Column("checkpoint", Text, nullable=False),
    Column("scheduled_date", Date, nullable=False),
    Column("status", notification_log_status_enum, nullable=False),
    Column("recipient_count", Integer),
    Column("error_message", Text),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    UniqueConstraint(
        "course_id",
        "checkpoint",
        "scheduled_date",
        name="uq_notification_log_course_checkpoint_date",
    ),
)
