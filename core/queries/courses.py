"""Course-related database queries using SQLAlchemy Core."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import courses


async def get_course_by_id(
    conn: AsyncConnection,
    course_id: str,
) -> dict[str, Any] | None:
    """Get a course by ID."""
    result = await conn.execute(select(courses).where(courses.c.course_id == course_id))
    row = result.mappings().first()
    return dict(row) if row else None


async def get_finished_courses(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get raw rows for every course marked finished."""
    result = await conn.execute(
        select(courses)
        .where(courses.c.finished.is_(True))
        .order_by(courses.c.course_id)
    )
    return [dict(row) for row in result.mappings()]


async def get_all_courses(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get raw rows for every course, newest first."""
    result = await conn.execute(select(courses).order_by(courses.c.created_at.desc()))
    return [dict(row) for row in result.mappings()]


async def mark_finished_if_open(
    conn: AsyncConnection,
    course_id: str,
) -> dict[str, Any] | None:
    """
    Flip finished false -> true.

    Conditional update, so only the first caller gets a row back. Returns None
    when the course does not exist or is already finished.
    """
    now = datetime.now(timezone.utc)
    result = await conn.execute(
        update(courses)
        .where(courses.c.course_id == course_id)
        .where(courses.c.finished.is_(False))
        .values(finished=True, finished_at=now, updated_at=now)
        .returning(courses)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def set_registration_key(
    conn: AsyncConnection,
    course_id: str,
    registration_key: str,
) -> bool:
    """Replace a course's registration key. Returns False if the course does not exist."""
    result = await conn.execute(
        update(courses)
        .where(courses.c.course_id == course_id)
        .values(
            registration_key=registration_key,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(courses.c.course_id)
    )
    return result.first() is not None
