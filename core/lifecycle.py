"""
Course lifecycle operations.

Marking a course finished is the only lifecycle transition with a side
effect: it sends the week 0 (course completion) notification. The flag
flips with a conditional update, so a repeated "finish" call is a no-op
and never re-sends week 0. Operators resend through the ad-hoc endpoint.
"""

import logging
from typing import Any

from .database import get_connection, get_transaction
from .enums import Checkpoint
from .notifications.channels.line import require_gateway_configured
from .notifications.dispatcher import dispatch_checkpoint
from .queries.courses import get_course_by_id, mark_finished_if_open
from .registration import CourseNotFoundError

logger = logging.getLogger(__name__)


async def mark_course_finished(
    course_id: str,
    course_title: str | None = None,
) -> dict[str, Any]:
    """
    Mark a course finished and send the week 0 notification.

    Args:
        course_id: Course to finish
        course_title: Title for the message (defaults to the stored title)

    Returns:
        {"status": "finished", "notification": {...}} on the first call,
        {"status": "already_finished"} afterwards

    Raises:
        GatewayNotConfiguredError: If push credentials are missing (nothing is changed)
        CourseNotFoundError: If the course does not exist
    """
    require_gateway_configured()

    async with get_transaction() as conn:
        row = await mark_finished_if_open(conn, course_id)

    if row is None:
        async with get_connection() as conn:
            existing = await get_course_by_id(conn, course_id)
        if existing is None:
            raise CourseNotFoundError(f"Course {course_id} not found")
        logger.info(f"Course {course_id} already finished, not re-sending week 0")
        return {"status": "already_finished", "finishedAt": existing.get("finished_at")}

    title = course_title or row["title"]
    logger.info(f"Course {title} ({course_id}) marked finished, sending week 0")

    outcome = await dispatch_checkpoint(course_id, title, Checkpoint.week_0)
    return {
        "status": "finished",
        "finishedAt": row.get("finished_at"),
        "notification": outcome.to_dict(),
    }
