"""
Checkpoint notification API routes.

Endpoints:
- GET|POST /api/cron/notify - Daily check, called by an external scheduler
- POST /api/notify/checkpoint - Send one checkpoint message now (admin tool)
"""

import hmac
import logging
import sys
from pathlib import Path
from typing import Any

import sentry_sdk
from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.checkpoints import InvalidCheckpointError, parse_checkpoint
from core.config import get_cron_secret, is_dev_mode
from core.constants import AD_HOC_CHECKPOINTS
from core.enums import NotificationStatus
from core.notifications.channels.line import (
    GatewayNotConfiguredError,
    require_gateway_configured,
)
from core.notifications.dispatcher import dispatch_checkpoint, run_daily_notifications

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


class CheckpointNotifyRequest(BaseModel):
    """Request body for an ad-hoc checkpoint send.

    Every field is optional at the schema level so missing fields come back
    as 400 with a readable message instead of a validation 422.
    """

    courseId: str | None = None
    checkpointKey: Any = None
    courseTitle: str | None = None


def _check_cron_authorization(authorization: str | None) -> JSONResponse | None:
    """Return an error response if the caller may not trigger the daily run."""
    secret = get_cron_secret()
    if not secret:
        if is_dev_mode():
            logger.warning("CRON_SECRET not set, allowing daily trigger in dev mode")
            return None
        logger.error("CRON_SECRET not set, refusing daily trigger")
        return JSONResponse(
            status_code=500, content={"error": "CRON_SECRET is not configured"}
        )

    if not hmac.compare_digest(authorization or "", f"Bearer {secret}"):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})
    return None


@router.api_route("/api/cron/notify", methods=["GET", "POST"])
async def cron_notify(authorization: str | None = Header(None)):
    """
    Run the daily checkpoint notification check.

    Requires `Authorization: Bearer <CRON_SECRET>`.

    Returns:
        {success, date, notificationsSent, results: [{course, courseId, checkpoint, status, sentTo?, reason?}]}
    """
    denied = _check_cron_authorization(authorization)
    if denied is not None:
        return denied

    try:
        return await run_daily_notifications()
    except GatewayNotConfiguredError as e:
        logger.error(f"Daily trigger aborted: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception as e:
        logger.error(f"Daily trigger failed: {e}")
        sentry_sdk.capture_exception(e)
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/api/notify/checkpoint")
async def notify_checkpoint(request: CheckpointNotifyRequest):
    """
    Send one checkpoint message to every trainee of a course, right now.

    Bypasses the daily notification log, so repeated calls send again.
    Week 0 through 8 only; pre has no notification.
    """
    missing = [
        name
        for name in ("courseId", "checkpointKey", "courseTitle")
        if getattr(request, name) in (None, "")
    ]
    if missing:
        raise HTTPException(
            status_code=400, detail=f"Missing required fields: {', '.join(missing)}"
        )

    try:
        checkpoint = parse_checkpoint(request.checkpointKey, allowed=AD_HOC_CHECKPOINTS)
    except InvalidCheckpointError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        require_gateway_configured()
        outcome = await dispatch_checkpoint(
            request.courseId, request.courseTitle, checkpoint
        )
    except GatewayNotConfiguredError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if outcome.status == NotificationStatus.failed:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to send notification: {outcome.reason}",
        )

    return {"success": outcome.status == NotificationStatus.sent, **outcome.to_dict()}
