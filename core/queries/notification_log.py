"""Notification log queries: per-day claim for (course, checkpoint) sends."""

from datetime import date, datetime, timezone

from sqlalchemy import and_, or_, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..constants import CLAIM_STALE_AFTER
from ..enums import NotificationLogStatus
from ..tables import notification_log


async def claim_notification(
    conn: AsyncConnection,
    course_id: str,
    checkpoint: str,
    scheduled_date: date,
) -> int | None:
    """
    Atomically claim the right to send (course, checkpoint) for a date.

    Inserts a pending row, or re-claims a row whose previous attempt failed
    or whose pending claim is older than CLAIM_STALE_AFTER (the claiming
    process died before recording a result). Returns the log_id on success,
    None if another run already claimed it (pending or sent).
    """
    now = datetime.now(timezone.utc)
    stmt = insert(notification_log).values(
        course_id=course_id,
        checkpoint=checkpoint,
        scheduled_date=scheduled_date,
        status=NotificationLogStatus.pending,
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_notification_log_course_checkpoint_date",
        set_={
            "status": NotificationLogStatus.pending,
            "error_message": None,
            "updated_at": now,
        },
        where=or_(
            notification_log.c.status == NotificationLogStatus.failed,
            and_(
                notification_log.c.status == NotificationLogStatus.pending,
                notification_log.c.updated_at < now - CLAIM_STALE_AFTER,
            ),
        ),
    ).returning(notification_log.c.log_id)

    result = await conn.execute(stmt)
    row = result.first()
    return row.log_id if row else None


async def record_notification_result(
    conn: AsyncConnection,
    log_id: int,
    status: NotificationLogStatus,
    recipient_count: int = 0,
    error_message: str | None = None,
) -> None:
    """Store the final status of a claimed send."""
    await conn.execute(
        update(notification_log)
        .where(notification_log.c.log_id == log_id)
        .values(
            status=status,
            recipient_count=recipient_count,
            error_message=error_message,
            updated_at=datetime.now(timezone.utc),
        )
    )
