"""
Assessment response submission and answer alignment.

Answers are stored as a positional list aligned with the form template's
question order at submission time. Editing a template's question order
later misaligns older answers; answers_by_question does not try to repair
that.
"""

import logging
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncConnection

from .checkpoints import available_checkpoints, parse_checkpoint
from .queries.courses import get_course_by_id
from .queries.responses import (
    create_response,
    get_course_responses,
    get_form_template,
    get_submitted_checkpoints,
)
from .registration import CourseNotFoundError
from .types import Course, FormTemplate, Response

logger = logging.getLogger(__name__)


class ResponseRejectedError(Exception):
    """Raised when a response targets a checkpoint that is not open."""

    pass


def answers_by_question(
    template: FormTemplate,
    answers: list[Any],
) -> list[dict[str, Any]]:
    """
    Pair each question with the answer at the same position.

    Missing trailing answers come back as None; extra answers are kept with
    question None so nothing is silently dropped from exports.
    """
    paired = []
    for index in range(max(len(template.questions), len(answers))):
        question = template.questions[index] if index < len(template.questions) else None
        paired.append(
            {
                "question": question.text if question else None,
                "type": question.type if question else None,
                "answer": answers[index] if index < len(answers) else None,
            }
        )
    return paired


async def get_open_checkpoints(
    conn: AsyncConnection,
    course_id: str,
    user_id: str,
    today: date,
) -> list[dict[str, Any]]:
    """
    Checkpoints a trainee can answer today, with their bound form IDs.

    Raises:
        CourseNotFoundError: If the course does not exist
    """
    row = await get_course_by_id(conn, course_id)
    if not row:
        raise CourseNotFoundError(f"Course {course_id} not found")
    course = Course.from_row(row)

    submitted = await get_submitted_checkpoints(conn, user_id, course_id)
    return [
        {
            "checkpoint": c.to_json(),
            "date": course.date_for(c),
            "formId": course.form_for(c),
        }
        for c in available_checkpoints(course, today, submitted)
    ]


async def submit_response(
    conn: AsyncConnection,
    user_id: str,
    course_id: str,
    checkpoint_key: Any,
    form_id: str,
    answers: list[Any],
    today: date,
) -> dict[str, Any]:
    """
    Store a trainee's answers for a checkpoint.

    The checkpoint must be deliverable, its date must have arrived, and the
    form must be the one bound to it. Re-submission is not blocked here.

    Raises:
        InvalidCheckpointError: If the checkpoint key is malformed
        CourseNotFoundError: If the course does not exist
        ResponseRejectedError: If the checkpoint is not open or the form does not match
    """
    checkpoint = parse_checkpoint(checkpoint_key)

    row = await get_course_by_id(conn, course_id)
    if not row:
        raise CourseNotFoundError(f"Course {course_id} not found")
    course = Course.from_row(row)

    if not course.is_deliverable(checkpoint):
        raise ResponseRejectedError(
            f"Checkpoint {checkpoint.value} has no scheduled date or form"
        )
    if course.date_for(checkpoint) > today.isoformat():
        raise ResponseRejectedError(
            f"Checkpoint {checkpoint.value} opens on {course.date_for(checkpoint)}"
        )
    if course.form_for(checkpoint) != form_id:
        raise ResponseRejectedError(
            f"Form {form_id} is not bound to checkpoint {checkpoint.value}"
        )

    created = await create_response(
        conn, user_id, course_id, form_id, checkpoint.value, list(answers)
    )
    logger.info(
        f"Response stored for user {user_id}, course {course_id}, week {checkpoint.value}"
    )
    return created


async def get_checkpoint_responses(
    conn: AsyncConnection,
    course_id: str,
    checkpoint_key: Any,
) -> list[dict[str, Any]]:
    """
    Every response to one checkpoint of a course, in submission order.

    Answers are paired with the questions of the form each response was
    submitted against. A deleted form leaves its answers with question None.

    Raises:
        InvalidCheckpointError: If the checkpoint key is malformed
        CourseNotFoundError: If the course does not exist
    """
    checkpoint = parse_checkpoint(checkpoint_key)

    if not await get_course_by_id(conn, course_id):
        raise CourseNotFoundError(f"Course {course_id} not found")

    templates: dict[str, FormTemplate] = {}
    results = []
    for row in await get_course_responses(conn, course_id):
        response = Response.from_row(row)
        if response.checkpoint != checkpoint.value:
            continue

        if response.form_id not in templates:
            template_row = await get_form_template(conn, response.form_id)
            templates[response.form_id] = (
                FormTemplate.from_row(template_row)
                if template_row
                else FormTemplate(form_id=response.form_id, title="")
            )

        results.append(
            {
                "userId": response.user_id,
                "formId": response.form_id,
                "submittedAt": response.submitted_at,
                "answers": answers_by_question(
                    templates[response.form_id], response.answers
                ),
            }
        )
    return results
