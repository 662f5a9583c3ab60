"""
Completion aggregator - trainee x checkpoint completion matrix for a course.

Pure functions over already-loaded registrations and responses, so reporting
surfaces can load data however they like and tests need no database.

Known trainees are the union of registered users and users who responded
(legacy responses can predate a registration row). Duplicate registration
rows and duplicate responses collapse by user ID.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

from .constants import COMPLETION_CHECKPOINTS
from .enums import Checkpoint
from .types import Registration, Response

CompletionFilter = Literal["all", "complete", "incomplete"]
SortKey = Literal["user_id", "display_name", "percentage"]

COMPLETION_FILTERS = ("all", "complete", "incomplete")
SORT_KEYS = ("user_id", "display_name", "percentage")


def completion_percentage(completed: int, total: int) -> int:
    """completed / total as a whole percent, rounding halves up."""
    if total <= 0:
        raise ValueError("total must be positive")
    return (completed * 200 + total) // (2 * total)


@dataclass
class CompletionRow:
    """One trainee's row in the completion matrix."""

    user_id: str
    display_name: str | None
    registered: bool
    checkpoints: dict[Checkpoint, bool]
    completed_count: int
    percentage: int

    @property
    def complete(self) -> bool:
        return self.percentage == 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "displayName": self.display_name,
            "registered": self.registered,
            "checkpoints": {str(c.to_json()): done for c, done in self.checkpoints.items()},
            "completedCount": self.completed_count,
            "percentage": self.percentage,
            "complete": self.complete,
        }


@dataclass
class CompletionSummary:
    total_trainees: int = 0
    registered_trainees: int = 0
    responded_trainees: int = 0
    complete_trainees: int = 0
    average_percentage: int = 0
    checkpoint_counts: dict[Checkpoint, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTrainees": self.total_trainees,
            "registeredTrainees": self.registered_trainees,
            "respondedTrainees": self.responded_trainees,
            "completeTrainees": self.complete_trainees,
            "averagePercentage": self.average_percentage,
            "checkpointCounts": {
                str(c.to_json()): n for c, n in self.checkpoint_counts.items()
            },
        }


@dataclass
class CompletionReport:
    course_id: str
    checkpoints: tuple[Checkpoint, ...]
    rows: list[CompletionRow]
    summary: CompletionSummary

    def to_dict(self, rows: list[CompletionRow] | None = None) -> dict[str, Any]:
        return {
            "courseId": self.course_id,
            "checkpoints": [c.to_json() for c in self.checkpoints],
            "summary": self.summary.to_dict(),
            "rows": [r.to_dict() for r in (self.rows if rows is None else rows)],
        }


def build_completion_report(
    course_id: str,
    registrations: Iterable[Registration],
    responses: Iterable[Response],
    checkpoints: Iterable[Checkpoint] = COMPLETION_CHECKPOINTS,
    display_names: dict[str, str] | None = None,
) -> CompletionReport:
    """
    Join registrations and responses into a completion matrix.

    Records for other courses are ignored, as are responses to checkpoints
    outside `checkpoints` (e.g. pre).

    Example:
        Trainee with responses for weeks 0 and 2 of (0, 2, 4, 6, 8) -> 40%
    """
    checkpoints = tuple(checkpoints)
    if not checkpoints:
        raise ValueError("checkpoints must not be empty")
    column_keys = {c.value: c for c in checkpoints}
    display_names = display_names or {}

    registered_ids = {
        r.user_id for r in registrations if r.course_id == course_id and r.user_id
    }

    responded_ids: set[str] = set()
    answered: dict[str, set[Checkpoint]] = {}
    for response in responses:
        if response.course_id != course_id or not response.user_id:
            continue
        responded_ids.add(response.user_id)
        checkpoint = column_keys.get(str(response.checkpoint))
        if checkpoint is not None:
            answered.setdefault(response.user_id, set()).add(checkpoint)

    rows = []
    for user_id in sorted(registered_ids | responded_ids):
        done = answered.get(user_id, set())
        completed = len(done)
        rows.append(
            CompletionRow(
                user_id=user_id,
                display_name=display_names.get(user_id),
                registered=user_id in registered_ids,
                checkpoints={c: c in done for c in checkpoints},
                completed_count=completed,
                percentage=completion_percentage(completed, len(checkpoints)),
            )
        )

    summary = CompletionSummary(
        total_trainees=len(rows),
        registered_trainees=len(registered_ids),
        responded_trainees=len(responded_ids),
        complete_trainees=sum(1 for r in rows if r.complete),
        average_percentage=(
            completion_percentage(sum(r.percentage for r in rows), 100 * len(rows))
            if rows
            else 0
        ),
        checkpoint_counts={
            c: sum(1 for r in rows if r.checkpoints[c]) for c in checkpoints
        },
    )
    return CompletionReport(
        course_id=course_id, checkpoints=checkpoints, rows=rows, summary=summary
    )


def filter_completion_rows(
    rows: Iterable[CompletionRow],
    search: str | None = None,
    completion: CompletionFilter = "all",
    sort_by: SortKey = "user_id",
    descending: bool = False,
) -> list[CompletionRow]:
    """
    Filter and sort completion rows for display.

    Args:
        search: Case-insensitive substring of user ID or display name
        completion: "all", "complete" (100%) or "incomplete"
        sort_by: "user_id", "display_name" or "percentage"
        descending: Reverse the sort order

    Raises:
        ValueError: On an unknown completion filter or sort key
    """
    if completion not in COMPLETION_FILTERS:
        raise ValueError(f"Unknown completion filter: {completion!r}")
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by!r}")

    needle = (search or "").strip().lower()
    selected = []
    for row in rows:
        if needle and needle not in row.user_id.lower():
            if needle not in (row.display_name or "").lower():
                continue
        if completion == "complete" and not row.complete:
            continue
        if completion == "incomplete" and row.complete:
            continue
        selected.append(row)

    if sort_by == "percentage":
        key = lambda r: (r.percentage, r.user_id)  # noqa: E731
    elif sort_by == "display_name":
        key = lambda r: ((r.display_name or r.user_id).lower(), r.user_id)  # noqa: E731
    else:
        key = lambda r: r.user_id  # noqa: E731
    return sorted(selected, key=key, reverse=descending)
