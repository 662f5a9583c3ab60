"""Initial schema: courses, registrations, forms, responses, notification log.

Revision ID: 001
Revises:
Create Date: 2026-03-01

Checkpoint calendars (week_dates) and form bindings (week_forms) live as
JSONB maps on the course row. The two unique constraints back the
registration and daily-notification dedup.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        "CREATE TYPE notification_log_status AS ENUM ('pending', 'sent', 'failed')"
    )

    op.create_table(
        "courses",
        sa.Column(
            "course_id",
            sa.Text(),
            server_default=sa.text("gen_random_uuid()::text"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column(
            "week_dates",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "week_forms",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("registration_key", sa.Text(), nullable=True),
        sa.Column(
            "finished", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("finished_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("course_id", name=op.f("pk_courses")),
    )
    op.create_index("idx_courses_finished", "courses", ["finished"], unique=False)

    op.create_table(
        "registrations",
        sa.Column("registration_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("course_id", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column(
            "registered_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("registration_id", name=op.f("pk_registrations")),
        sa.UniqueConstraint(
            "user_id", "course_id", name="uq_registrations_user_id_course_id"
        ),
    )
    op.create_index(
        "idx_registrations_course_id", "registrations", ["course_id"], unique=False
    )

    op.create_table(
        "form_templates",
        sa.Column(
            "form_id",
            sa.Text(),
            server_default=sa.text("gen_random_uuid()::text"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column(
            "questions",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("form_id", name=op.f("pk_form_templates")),
    )

    op.create_table(
        "responses",
        sa.Column("response_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("course_id", sa.Text(), nullable=False),
        sa.Column("form_id", sa.Text(), nullable=False),
        sa.Column("checkpoint", sa.Text(), nullable=False),
        sa.Column(
            "answers",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "submitted_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("response_id", name=op.f("pk_responses")),
    )
    op.create_index("idx_responses_course_id", "responses", ["course_id"], unique=False)
    op.create_index(
        "idx_responses_user_course", "responses", ["user_id", "course_id"], unique=False
    )

    op.create_table(
        "notification_log",
        sa.Column("log_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.Text(), nullable=False),
        sa.Column("checkpoint", sa.Text(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(
                "pending",
                "sent",
                "failed",
                name="notification_log_status",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("recipient_count", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("log_id", name=op.f("pk_notification_log")),
        sa.UniqueConstraint(
            "course_id",
            "checkpoint",
            "scheduled_date",
            name="uq_notification_log_course_checkpoint_date",
        ),
    )


def downgrade() -> None:
    op.drop_table("notification_log")
    op.drop_index("idx_responses_user_course", table_name="responses")
    op.drop_index("idx_responses_course_id", table_name="responses")
    op.drop_table("responses")
    op.drop_table("form_templates")
    op.drop_index("idx_registrations_course_id", table_name="registrations")
    op.drop_table("registrations")
    op.drop_index("idx_courses_finished", table_name="courses")
    op.drop_table("courses")
    op.execute("DROP TYPE notification_log_status")
