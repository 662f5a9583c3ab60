# web_api/routes/courses.py
"""
Course API routes.

Endpoints:
- POST /api/courses/{course_id}/finish - Mark finished and send week 0
- POST /api/courses/{course_id}/registration-key - Regenerate the enrollment key
- POST /api/courses/{course_id}/register - Self-service enrollment
- GET /api/courses/{course_id}/completion - Completion matrix
- GET /api/courses/{course_id}/checkpoints/available - Checkpoints a trainee can answer
- POST /api/courses/{course_id}/responses - Submit assessment answers
- GET /api/courses/{course_id}/responses - Responses to one checkpoint
"""

import sys
from pathlib import Path
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.checkpoints import InvalidCheckpointError
from core.completion import build_completion_report, filter_completion_rows
from core.database import get_connection, get_transaction
from core.enums import NotificationStatus
from core.lifecycle import mark_course_finished
from core.notifications.channels.line import GatewayNotConfiguredError
from core.queries.courses import get_course_by_id
from core.queries.registrations import get_course_registrations
from core.queries.responses import get_course_responses
from core.registration import (
    CourseNotFoundError,
    InvalidRegistrationKeyError,
    enroll,
    regenerate_registration_key,
)
from core.responses import (
    ResponseRejectedError,
    get_checkpoint_responses,
    get_open_checkpoints,
    submit_response,
)
from core.timezone import today_in_checkpoint_timezone
from core.types import Registration, Response

router = APIRouter(prefix="/api/courses", tags=["courses"])


class FinishCourseRequest(BaseModel):
    courseTitle: str | None = None


class RegisterRequest(BaseModel):
    userId: str
    registrationKey: str | None = None
    displayName: str | None = None


class SubmitResponseRequest(BaseModel):
    """Answers are positional, aligned with the form's question order."""

    userId: str
    checkpointKey: Any
    formId: str
    answers: list[Any]


@router.post("/{course_id}/finish")
async def finish_course(course_id: str, request: FinishCourseRequest | None = None):
    """
    Mark a course finished. Only the first call sends the week 0 message.

    A failed week 0 send comes back as 502 with the full result; the course
    stays finished, so resend through POST /api/notify/checkpoint.
    """
    try:
        result = await mark_course_finished(
            course_id, request.courseTitle if request else None
        )
    except GatewayNotConfiguredError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")

    notification = result.get("notification") or {}
    if notification.get("status") == NotificationStatus.failed.value:
        return JSONResponse(status_code=502, content=jsonable_encoder(result))
    return result


@router.post("/{course_id}/registration-key")
async def regenerate_key(course_id: str):
    """Replace the course's registration key; old keys stop working immediately."""
    async with get_transaction() as conn:
        key = await regenerate_registration_key(conn, course_id)
    if key is None:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")
    return {"registrationKey": key}


@router.post("/{course_id}/register")
async def register_for_course(course_id: str, request: RegisterRequest):
    """
    Enroll a trainee, checking the course's registration key if it has one.

    Returns:
        {"status": "registered"} or {"status": "already_registered"}
    """
    try:
        async with get_transaction() as conn:
            result = await enroll(
                conn,
                request.userId,
                course_id,
                request.registrationKey,
                display_name=request.displayName,
            )
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")
    except InvalidRegistrationKeyError as e:
        raise HTTPException(status_code=403, detail=str(e))

    return {"status": result.value}


@router.get("/{course_id}/completion")
async def get_completion(
    course_id: str,
    search: str | None = Query(None, description="Filter by user ID or display name"),
    completion: str = Query("all", description="all | complete | incomplete"),
    sort: str = Query("user_id", description="user_id | display_name | percentage"),
    desc: bool = Query(False),
):
    """
    Trainee x checkpoint completion matrix with summary counts.

    Display names come from registrations; trainees who only have responses
    are listed, searched and sorted by user ID.
    """
    async with get_connection() as conn:
        course = await get_course_by_id(conn, course_id)
        if not course:
            raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")
        registration_rows = await get_course_registrations(conn, course_id)
        response_rows = await get_course_responses(conn, course_id)

    registrations = [Registration.from_row(r) for r in registration_rows]
    report = build_completion_report(
        course_id,
        registrations,
        [Response.from_row(r) for r in response_rows],
        display_names={r.user_id: r.display_name for r in registrations if r.display_name},
    )
    try:
        rows = filter_completion_rows(
            report.rows,
            search=search,
            completion=completion,
            sort_by=sort,
            descending=desc,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"courseTitle": course["title"], **report.to_dict(rows)}


@router.get("/{course_id}/checkpoints/available")
async def get_available_checkpoints(
    course_id: str,
    userId: str = Query(..., description="Trainee user ID"),
):
    """Checkpoints whose date has arrived and that the trainee has not answered."""
    today = today_in_checkpoint_timezone()
    try:
        async with get_connection() as conn:
            checkpoints = await get_open_checkpoints(conn, course_id, userId, today)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")

    return {"date": today.isoformat(), "checkpoints": checkpoints}


@router.post("/{course_id}/responses", status_code=201)
async def create_course_response(course_id: str, request: SubmitResponseRequest):
    """Store a trainee's answers for an open checkpoint."""
    today = today_in_checkpoint_timezone()
    try:
        async with get_transaction() as conn:
            created = await submit_response(
                conn,
                request.userId,
                course_id,
                request.checkpointKey,
                request.formId,
                request.answers,
                today,
            )
    except InvalidCheckpointError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")
    except ResponseRejectedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "responseId": created["response_id"],
        "checkpoint": created["checkpoint"],
        "submittedAt": created.get("submitted_at"),
    }


@router.get("/{course_id}/responses")
async def list_checkpoint_responses(
    course_id: str,
    checkpoint: str = Query(..., description="Checkpoint key: pre, 0, 2, 4, 6 or 8"),
):
    """Responses to one checkpoint with answers paired to their questions."""
    try:
        async with get_connection() as conn:
            responses = await get_checkpoint_responses(conn, course_id, checkpoint)
    except InvalidCheckpointError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")

    return {"checkpoint": checkpoint, "responses": responses}
