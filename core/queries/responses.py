"""Response and form template queries."""

from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import form_templates, responses


async def get_course_responses(
    conn: AsyncConnection,
    course_id: str,
) -> list[dict[str, Any]]:
    """All responses submitted for a course."""
    result = await conn.execute(
        select(responses)
        .where(responses.c.course_id == course_id)
        .order_by(responses.c.submitted_at)
    )
    return [dict(row) for row in result.mappings()]


async def get_submitted_checkpoints(
    conn: AsyncConnection,
    user_id: str,
    course_id: str,
) -> list[str]:
    """Checkpoint keys a trainee has submitted for a course."""
    result = await conn.execute(
        select(responses.c.checkpoint)
        .where(responses.c.user_id == user_id)
        .where(responses.c.course_id == course_id)
    )
    return list(dict.fromkeys(row.checkpoint for row in result))


async def create_response(
    conn: AsyncConnection,
    user_id: str,
    course_id: str,
    form_id: str,
    checkpoint: str,
    answers: list[Any],
) -> dict[str, Any]:
    """Insert a response and return the created record."""
    result = await conn.execute(
        insert(responses)
        .values(
            user_id=user_id,
            course_id=course_id,
            form_id=form_id,
            checkpoint=checkpoint,
            answers=answers,
        )
        .returning(responses)
    )
    return dict(result.mappings().first())


async def get_form_template(
    conn: AsyncConnection,
    form_id: str,
) -> dict[str, Any] | None:
    """Get a form template by ID."""
    result = await conn.execute(
        select(form_templates).where(form_templates.c.form_id == form_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None
