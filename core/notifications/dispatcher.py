"""
Notification dispatcher - fans out checkpoint messages to registered trainees.

One multicast per (course, checkpoint). Failures are captured per pair and
never abort sibling pairs; nothing is retried automatically.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any

import httpx
import sentry_sdk

from core.config import get_notify_max_concurrency, get_notify_timeout_seconds
from core.constants import (
    ALREADY_NOTIFIED_REASON,
    NO_RECIPIENTS_REASON,
    TIMED_OUT_REASON,
)
from core.database import get_connection, get_transaction
from core.enums import Checkpoint, NotificationLogStatus, NotificationStatus
from core.matcher import scan_due_checkpoints
from core.notifications.channels.line import (
    GatewayNotConfiguredError,
    require_gateway_configured,
    send_multicast,
)
from core.notifications.messages import build_checkpoint_message
from core.queries.notification_log import (
    claim_notification,
    record_notification_result,
)
from core.queries.registrations import get_registered_user_ids
from core.timezone import today_in_checkpoint_timezone
from core.types import DuePair, NotificationOutcome

logger = logging.getLogger(__name__)


async def dispatch_checkpoint(
    course_id: str,
    course_title: str,
    checkpoint: Checkpoint,
    *,
    liff_id: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> NotificationOutcome:
    """
    Send one checkpoint message to every trainee registered for a course.

    Returns an outcome instead of raising for per-pair problems: no
    recipients -> skipped, lookup or gateway error -> failed.

    Raises:
        GatewayNotConfiguredError: If push credentials are missing
    """

    def outcome(status: NotificationStatus, sent_to: int = 0, reason: str | None = None):
        return NotificationOutcome(
            course_id=course_id,
            course_title=course_title,
            checkpoint=checkpoint,
            status=status,
            sent_to=sent_to,
            reason=reason,
        )

    try:
        async with get_connection() as conn:
            user_ids = await get_registered_user_ids(conn, course_id)
    except Exception as e:
        logger.error(
            f"Recipient lookup failed for {course_title} ({course_id}) "
            f"week {checkpoint.value}: {e}"
        )
        sentry_sdk.capture_exception(e)
        return outcome(NotificationStatus.failed, reason=f"recipient lookup failed: {e}")

    if not user_ids:
        logger.info(
            f"No registered users for {course_title} ({course_id}), "
            f"skipping week {checkpoint.value}"
        )
        return outcome(NotificationStatus.skipped, reason=NO_RECIPIENTS_REASON)

    # pre has no week number; it shares the completion message
    week_number = checkpoint.week_number or 0
    message = build_checkpoint_message(course_title, course_id, week_number, liff_id)

    try:
        success = await send_multicast(user_ids, [message], client=client)
    except GatewayNotConfiguredError:
        raise
    except Exception as e:
        logger.error(
            f"Multicast raised for {course_title} ({course_id}) week {checkpoint.value}: {e}"
        )
        sentry_sdk.capture_exception(e)
        return outcome(
            NotificationStatus.failed, sent_to=len(user_ids), reason=f"gateway error: {e}"
        )

    if success:
        logger.info(
            f"Sent week {checkpoint.value} notification for {course_title} "
            f"({course_id}) to {len(user_ids)} users"
        )
        return outcome(NotificationStatus.sent, sent_to=len(user_ids))

    logger.error(
        f"Gateway rejected week {checkpoint.value} notification for "
        f"{course_title} ({course_id}), {len(user_ids)} recipients"
    )
    return outcome(
        NotificationStatus.failed, sent_to=len(user_ids), reason="gateway rejected request"
    )


async def _record_outcome(log_id: int, result: NotificationOutcome) -> None:
    """Persist the final status of a claimed send. Skips count as retryable."""
    status = (
        NotificationLogStatus.sent
        if result.status == NotificationStatus.sent
        else NotificationLogStatus.failed
    )
    try:
        async with get_transaction() as conn:
            await record_notification_result(
                conn,
                log_id,
                status,
                recipient_count=result.sent_to,
                error_message=result.reason,
            )
    except Exception as e:
        logger.error(f"Failed to record notification log {log_id}: {e}")
        sentry_sdk.capture_exception(e)


async def dispatch_claimed_checkpoint(
    pair: DuePair,
    today: date,
    *,
    client: httpx.AsyncClient | None = None,
) -> NotificationOutcome:
    """
    Claim (course, checkpoint, today) in the notification log, then dispatch.

    A pair that another run already sent (or is sending) today is skipped.
    """
    try:
        async with get_transaction() as conn:
            log_id = await claim_notification(
                conn, pair.course_id, pair.checkpoint.value, today
            )
    except Exception as e:
        logger.error(
            f"Could not claim week {pair.checkpoint.value} for {pair.course_title} "
            f"({pair.course_id}): {e}"
        )
        sentry_sdk.capture_exception(e)
        return NotificationOutcome(
            course_id=pair.course_id,
            course_title=pair.course_title,
            checkpoint=pair.checkpoint,
            status=NotificationStatus.failed,
            reason=f"notification log unavailable: {e}",
        )

    if log_id is None:
        logger.info(
            f"Week {pair.checkpoint.value} for {pair.course_title} ({pair.course_id}) "
            f"already notified on {today}"
        )
        return NotificationOutcome(
            course_id=pair.course_id,
            course_title=pair.course_title,
            checkpoint=pair.checkpoint,
            status=NotificationStatus.skipped,
            reason=ALREADY_NOTIFIED_REASON,
        )

    try:
        result = await dispatch_checkpoint(
            pair.course_id, pair.course_title, pair.checkpoint, client=client
        )
    except asyncio.CancelledError:
        # Run timed out mid-send: release the claim so a later run can retry
        timed_out = NotificationOutcome(
            course_id=pair.course_id,
            course_title=pair.course_title,
            checkpoint=pair.checkpoint,
            status=NotificationStatus.failed,
            reason=TIMED_OUT_REASON,
        )
        await asyncio.shield(_record_outcome(log_id, timed_out))
        raise
    await _record_outcome(log_id, result)
    return result


async def dispatch_due_checkpoints(
    pairs: list[DuePair],
    today: date,
    *,
    max_concurrency: int | None = None,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[NotificationOutcome]:
    """
    Dispatch every due pair concurrently (bounded) and collect all outcomes.

    Outcomes come back in the order of `pairs`. If `timeout` runs out, pairs
    still in flight are cancelled and reported as failed; finished pairs keep
    their real outcome.
    """
    if not pairs:
        return []

    semaphore = asyncio.Semaphore(max_concurrency or get_notify_max_concurrency())

    async def run(pair: DuePair) -> NotificationOutcome:
        async with semaphore:
            return await dispatch_claimed_checkpoint(pair, today, client=client)

    tasks = [asyncio.create_task(run(pair)) for pair in pairs]
    _, pending = await asyncio.wait(tasks, timeout=timeout)

    if pending:
        logger.warning(f"Daily run timed out with {len(pending)} pairs unfinished")
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    outcomes = []
    for pair, task in zip(pairs, tasks):
        if task in pending or task.cancelled():
            outcomes.append(
                NotificationOutcome(
                    course_id=pair.course_id,
                    course_title=pair.course_title,
                    checkpoint=pair.checkpoint,
                    status=NotificationStatus.failed,
                    reason=TIMED_OUT_REASON,
                )
            )
        elif task.exception() is not None:
            error = task.exception()
            logger.error(
                f"Dispatch crashed for {pair.course_title} ({pair.course_id}) "
                f"week {pair.checkpoint.value}: {error}"
            )
            sentry_sdk.capture_exception(error)
            outcomes.append(
                NotificationOutcome(
                    course_id=pair.course_id,
                    course_title=pair.course_title,
                    checkpoint=pair.checkpoint,
                    status=NotificationStatus.failed,
                    reason=str(error),
                )
            )
        else:
            outcomes.append(task.result())
    return outcomes


def build_run_summary(today: date, outcomes: list[NotificationOutcome]) -> dict[str, Any]:
    """JSON summary returned by the daily trigger."""
    return {
        "success": True,
        "date": today.isoformat(),
        "notificationsSent": sum(
            1 for o in outcomes if o.status == NotificationStatus.sent
        ),
        "results": [o.to_dict() for o in outcomes],
    }


async def run_daily_notifications(
    now: datetime | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Daily check: find due follow-up checkpoints and notify their trainees.

    Raises:
        GatewayNotConfiguredError: Before any work if push credentials are missing
    """
    require_gateway_configured()

    today = today_in_checkpoint_timezone(now)
    logger.info(f"Running checkpoint notification check for {today}")

    async with get_connection() as conn:
        due = await scan_due_checkpoints(conn, today)

    outcomes = await dispatch_due_checkpoints(
        due, today, timeout=get_notify_timeout_seconds(), client=client
    )
    summary = build_run_summary(today, outcomes)
    logger.info(
        f"Checkpoint notification check for {today} done: "
        f"{summary['notificationsSent']}/{len(outcomes)} sent"
    )
    return summary
