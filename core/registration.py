"""
Registration and enrollment guard.

Self-service enrollment is gated by an optional per-course registration
key. Registration itself is a single conditional insert against the unique
(user_id, course_id) constraint, so a repeated or concurrent request reports
"already registered" instead of creating a second row.
"""

import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncConnection

from .constants import REGISTRATION_KEY_ALPHABET, REGISTRATION_KEY_LENGTH
from .enums import RegistrationResult
from .queries.courses import get_course_by_id, set_registration_key
from .queries.registrations import insert_registration_if_absent
from .types import Course

logger = logging.getLogger(__name__)


class CourseNotFoundError(Exception):
    """Raised when a course ID does not exist."""

    pass


class InvalidRegistrationKeyError(Exception):
    """Raised when the supplied registration key does not match the course."""

    pass


def validate_key(course: Course, supplied_key: str | None) -> bool:
    """
    Check a supplied registration key.

    Courses without a key are open (legacy behaviour). Otherwise the supplied
    key is trimmed and upper-cased before an exact comparison.
    """
    if not course.registration_key:
        return True
    return (supplied_key or "").strip().upper() == course.registration_key


def generate_registration_key(length: int = REGISTRATION_KEY_LENGTH) -> str:
    """Random key drawn uniformly from an alphabet without 0/O and 1/I."""
    return "".join(secrets.choice(REGISTRATION_KEY_ALPHABET) for _ in range(length))


async def regenerate_registration_key(
    conn: AsyncConnection,
    course_id: str,
) -> str | None:
    """
    Replace a course's registration key with a fresh one.

    Returns the new key, or None if the course does not exist.
    """
    key = generate_registration_key()
    if not await set_registration_key(conn, course_id, key):
        return None
    logger.info(f"Registration key regenerated for course {course_id}")
    return key


async def register(
    conn: AsyncConnection,
    user_id: str,
    course_id: str,
    display_name: str | None = None,
) -> RegistrationResult:
    """Register a trainee for a course. Idempotent per (user, course)."""
    inserted = await insert_registration_if_absent(
        conn, user_id, course_id, display_name
    )
    if inserted:
        logger.info(f"User {user_id} registered for course {course_id}")
        return RegistrationResult.registered
    return RegistrationResult.already_registered


async def enroll(
    conn: AsyncConnection,
    user_id: str,
    course_id: str,
    supplied_key: str | None = None,
    display_name: str | None = None,
) -> RegistrationResult:
    """
    Self-service enrollment: validate the course key, then register.

    Raises:
        CourseNotFoundError: If the course does not exist
        InvalidRegistrationKeyError: If the key does not match
    """
    row = await get_course_by_id(conn, course_id)
    if not row:
        raise CourseNotFoundError(f"Course {course_id} not found")

    course = Course.from_row(row)
    if not validate_key(course, supplied_key):
        logger.info(f"Rejected registration key for user {user_id} on course {course_id}")
        raise InvalidRegistrationKeyError("Invalid registration key")

    return await register(conn, user_id, course_id, display_name)
