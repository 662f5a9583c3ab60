"""
Checkpoint matcher - decides which (course, checkpoint) pairs are due today.

Only finished courses are considered, and only the follow-up checkpoints in
AUTO_SCAN_CHECKPOINTS. Week 0 is sent by the "mark finished" trigger; pre is
never notified.
"""

import logging
from datetime import date
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncConnection

from .constants import AUTO_SCAN_CHECKPOINTS
from .queries.courses import get_finished_courses
from .types import Course, DuePair

logger = logging.getLogger(__name__)


def find_due_checkpoints(courses: Iterable[Course], today: date) -> list[DuePair]:
    """
    Pure matching step.

    A pair is due when the course is finished and week_dates[checkpoint]
    equals today's ISO date string. A pathological schedule with two
    checkpoints on the same day yields one pair per checkpoint.
    """
    today_str = today.isoformat()
    due = []
    for course in courses:
        if not course.finished:
            continue
        for checkpoint in AUTO_SCAN_CHECKPOINTS:
            if course.date_for(checkpoint) == today_str:
                due.append(
                    DuePair(
                        course_id=course.course_id,
                        course_title=course.title,
                        checkpoint=checkpoint,
                    )
                )
    return due


def parse_course_rows(rows: Iterable[dict]) -> list[Course]:
    """Parse course rows, skipping (and logging) any that are malformed."""
    parsed = []
    for row in rows:
        try:
            parsed.append(Course.from_row(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                f"Skipping unreadable course {row.get('course_id')!r}: {e}"
            )
    return parsed


async def scan_due_checkpoints(conn: AsyncConnection, today: date) -> list[DuePair]:
    """Load finished courses and return the pairs due on `today`."""
    rows = await get_finished_courses(conn)
    due = find_due_checkpoints(parse_course_rows(rows), today)

    for pair in due:
        logger.info(
            f"Checkpoint due: {pair.course_title} ({pair.course_id}) - week {pair.checkpoint.value}"
        )
    logger.info(f"Scanned {len(rows)} finished courses for {today}: {len(due)} due")
    return due
