"""Enum definitions for the checkpoint schedule and the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class Checkpoint(str, enum.Enum):
    """
    Checkpoint keys on a course's post-completion timeline.

    Values match the keys stored in courses.week_dates / courses.week_forms
    and in responses.checkpoint.
    """

    pre = "pre"
    week_0 = "0"
    week_2 = "2"
    week_4 = "4"
    week_6 = "6"
    week_8 = "8"

    @property
    def week_number(self) -> int | None:
        """Week offset from course end, or None for the pre-course checkpoint."""
        if self is Checkpoint.pre:
            return None
        return int(self.value)

    def to_json(self) -> int | str:
        """API representation: week checkpoints as ints, "pre" as a string."""
        week = self.week_number
        return self.value if week is None else week


class NotificationStatus(str, enum.Enum):
    sent = "sent"
    failed = "failed"
    skipped = "skipped"


class NotificationLogStatus(str, enum.Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class RegistrationResult(str, enum.Enum):
    registered = "registered"
    already_registered = "already_registered"


# =====================================================
# SQLAlchemy Enum Types
# These reference existing PostgreSQL types (create_type=False)
# =====================================================

notification_log_status_enum = SQLEnum(
    NotificationLogStatus,
    name="notification_log_status",
    create_type=False,
    native_enum=True,
)
