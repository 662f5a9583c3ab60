"""Registration queries: enrollment rows and recipient resolution."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import registrations


async def get_registered_user_ids(
    conn: AsyncConnection,
    course_id: str,
) -> list[str]:
    """
    Distinct trainee IDs registered for a course.

    Deduplicates in Python so legacy duplicate rows never produce duplicate
    recipients. Order follows registration time.
    """
    result = await conn.execute(
        select(registrations.c.user_id)
        .where(registrations.c.course_id == course_id)
        .order_by(registrations.c.registered_at, registrations.c.registration_id)
    )
    return list(dict.fromkeys(row.user_id for row in result if row.user_id))


async def get_course_registrations(
    conn: AsyncConnection,
    course_id: str,
) -> list[dict[str, Any]]:
    """All registration rows for a course (duplicates included)."""
    result = await conn.execute(
        select(registrations).where(registrations.c.course_id == course_id)
    )
    return [dict(row) for row in result.mappings()]


async def insert_registration_if_absent(
    conn: AsyncConnection,
    user_id: str,
    course_id: str,
    display_name: str | None = None,
) -> bool:
    """
    Insert a registration unless the (user, course) pair exists.

    Single statement against the unique constraint, so concurrent requests
    cannot both insert. Returns True if a row was inserted.
    """
    result = await conn.execute(
        insert(registrations)
        .values(user_id=user_id, course_id=course_id, display_name=display_name)
        .on_conflict_do_nothing(constraint="uq_registrations_user_id_course_id")
        .returning(registrations.c.registration_id)
    )
    return result.first() is not None
