# core/types.py
"""Domain types for courses, registrations, responses and notification outcomes.

Rows come out of the database as dicts; the from_row constructors turn them
into these dataclasses and raise ValueError on malformed data so callers can
skip a bad record instead of failing a whole scan.

Checkpoint calendar values are ISO "YYYY-MM-DD" strings. An empty string or
None means "not scheduled" and is dropped on load.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .enums import Checkpoint, NotificationStatus


def _parse_checkpoint_map(raw: Any, field_name: str) -> dict[Checkpoint, str]:
    """Normalize a week_dates/week_forms mapping, dropping empty entries."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{field_name} must be a mapping, got {type(raw).__name__}")

    parsed: dict[Checkpoint, str] = {}
    for key, value in raw.items():
        try:
            checkpoint = Checkpoint(str(key))
        except ValueError:
            continue  # Unknown keys are not part of the schedule
        if value is None or value == "":
            continue
        if isinstance(value, date):
            value = value.isoformat()
        if not isinstance(value, str):
            raise ValueError(
                f"{field_name}[{key}] must be a string, got {type(value).__name__}"
            )
        parsed[checkpoint] = value
    return parsed


@dataclass
class Course:
    """A course with its checkpoint calendar and form bindings."""

    course_id: str
    title: str
    finished: bool = False
    week_dates: dict[Checkpoint, str] = field(default_factory=dict)
    week_forms: dict[Checkpoint, str] = field(default_factory=dict)
    registration_key: str | None = None
    end_date: date | None = None
    finished_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Course":
        if not row.get("course_id"):
            raise ValueError("course row has no course_id")
        return cls(
            course_id=str(row["course_id"]),
            title=row.get("title") or "",
            finished=bool(row.get("finished")),
            week_dates=_parse_checkpoint_map(row.get("week_dates"), "week_dates"),
            week_forms=_parse_checkpoint_map(row.get("week_forms"), "week_forms"),
            registration_key=row.get("registration_key") or None,
            end_date=row.get("end_date"),
            finished_at=row.get("finished_at"),
        )

    def date_for(self, checkpoint: Checkpoint) -> str | None:
        return self.week_dates.get(checkpoint)

    def form_for(self, checkpoint: Checkpoint) -> str | None:
        return self.week_forms.get(checkpoint)

    def is_deliverable(self, checkpoint: Checkpoint) -> bool:
        """A checkpoint is deliverable only when it has both a date and a form."""
        return bool(self.date_for(checkpoint)) and bool(self.form_for(checkpoint))


@dataclass
class Registration:
    """A trainee's enrollment in a course."""

    user_id: str
    course_id: str
    registered_at: datetime | None = None
    display_name: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Registration":
        return cls(
            user_id=row["user_id"],
            course_id=row["course_id"],
            registered_at=row.get("registered_at"),
            display_name=row.get("display_name") or None,
        )


@dataclass
class Response:
    """A submitted assessment. Answers are positional (see answers_by_question)."""

    user_id: str
    course_id: str
    form_id: str
    checkpoint: str
    answers: list[Any] = field(default_factory=list)
    submitted_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Response":
        return cls(
            user_id=row["user_id"],
            course_id=row["course_id"],
            form_id=row.get("form_id") or "",
            checkpoint=str(row["checkpoint"]),
            answers=list(row.get("answers") or []),
            submitted_at=row.get("submitted_at"),
        )


@dataclass
class Question:
    text: str
    type: str
    options: list[str] = field(default_factory=list)


@dataclass
class FormTemplate:
    """An assessment form. Read-only from the notification/reporting side."""

    form_id: str
    title: str
    questions: list[Question] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "FormTemplate":
        questions = [
            Question(
                text=q.get("text", ""),
                type=q.get("type", "text"),
                options=list(q.get("options") or []),
            )
            for q in (row.get("questions") or [])
        ]
        return cls(form_id=row["form_id"], title=row.get("title") or "", questions=questions)


@dataclass(frozen=True)
class DuePair:
    """A (course, checkpoint) whose scheduled date is today."""

    course_id: str
    course_title: str
    checkpoint: Checkpoint


@dataclass
class NotificationOutcome:
    """Result of dispatching one (course, checkpoint). Not persisted."""

    course_id: str
    course_title: str
    checkpoint: Checkpoint
    status: NotificationStatus
    sent_to: int = 0
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "course": self.course_title,
            "courseId": self.course_id,
            "checkpoint": self.checkpoint.to_json(),
            "status": self.status.value,
        }
        if self.status != NotificationStatus.skipped:
            result["sentTo"] = self.sent_to
        if self.reason:
            result["reason"] = self.reason
        return result
