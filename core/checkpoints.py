"""
Checkpoint calendar helpers.

Parsing of checkpoint keys from API input, calendar auto-fill from a course
end date, and the trainee/admin views over a course's schedule.
"""

from datetime import date, timedelta
from typing import Any, Iterable

from .constants import CHECKPOINT_ORDER, PRE_CHECKPOINT_OFFSET_DAYS
from .enums import Checkpoint
from .types import Course


class InvalidCheckpointError(ValueError):
    """Raised when a checkpoint key is malformed or not allowed here."""

    pass


def parse_checkpoint(
    value: Any, allowed: Iterable[Checkpoint] | None = None
) -> Checkpoint:
    """
    Parse a checkpoint key from API input.

    Accepts ints (4), numeric strings ("4") and "pre". Booleans are rejected
    even though they are ints in Python.

    Raises:
        InvalidCheckpointError: If the key is unknown or not in `allowed`
    """
    if value is None or isinstance(value, bool):
        raise InvalidCheckpointError(f"Invalid checkpoint: {value!r}")

    if isinstance(value, str):
        value = value.strip().lower()

    try:
        checkpoint = Checkpoint(str(value))
    except ValueError:
        raise InvalidCheckpointError(f"Invalid checkpoint: {value!r}") from None

    if allowed is not None:
        allowed = tuple(allowed)
        if checkpoint not in allowed:
            allowed_str = ", ".join(str(c.to_json()) for c in allowed)
            raise InvalidCheckpointError(
                f"Invalid checkpoint: {value!r}. Must be one of: {allowed_str}"
            )

    return checkpoint


def build_checkpoint_calendar(end_date: date) -> dict[str, str]:
    """
    Auto-fill checkpoint dates from the course end date.

    pre is one week before the end date; week N is N weeks after it.

    Returns:
        Dict in the week_dates storage format, e.g. {"pre": "2026-02-10", "0": "2026-02-17", ...}
    """
    calendar = {}
    for checkpoint in CHECKPOINT_ORDER:
        week = checkpoint.week_number
        if week is None:
            offset = timedelta(days=PRE_CHECKPOINT_OFFSET_DAYS)
        else:
            offset = timedelta(weeks=week)
        calendar[checkpoint.value] = (end_date + offset).isoformat()
    return calendar


def deliverable_checkpoints(course: Course) -> list[Checkpoint]:
    """Checkpoints with both a date and a form binding, in timeline order."""
    return [c for c in CHECKPOINT_ORDER if course.is_deliverable(c)]


def available_checkpoints(
    course: Course,
    today: date,
    submitted: Iterable[str] = (),
) -> list[Checkpoint]:
    """
    Checkpoints a trainee can answer today.

    A checkpoint is open once it is deliverable and its date has arrived;
    checkpoints the trainee already submitted are left out.
    """
    submitted_keys = {str(s) for s in submitted}
    today_str = today.isoformat()
    return [
        c
        for c in deliverable_checkpoints(course)
        if course.date_for(c) <= today_str and c.value not in submitted_keys
    ]


def upcoming_checkpoint_events(
    courses: Iterable[Course],
    today: date,
    days: int = 7,
) -> list[dict[str, Any]]:
    """
    Group scheduled checkpoints of the next `days` days (today inclusive) by date.

    Returns:
        [{"date": "2026-03-10", "isToday": True, "events": [{courseId, courseTitle, checkpoint, formId, finished}]}]
    """
    window = {
        (today + timedelta(days=i)).isoformat(): i == 0 for i in range(days + 1)
    }
    by_date: dict[str, list[dict[str, Any]]] = {}

    for course in courses:
        for checkpoint in CHECKPOINT_ORDER:
            scheduled = course.date_for(checkpoint)
            if scheduled not in window:
                continue
            by_date.setdefault(scheduled, []).append(
                {
                    "courseId": course.course_id,
                    "courseTitle": course.title,
                    "checkpoint": checkpoint.to_json(),
                    "formId": course.form_for(checkpoint),
                    "finished": course.finished,
                }
            )

    return [
        {"date": day, "isToday": window[day], "events": by_date[day]}
        for day in sorted(by_date)
    ]
