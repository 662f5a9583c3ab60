"""Query layer for database operations using SQLAlchemy Core."""

from .courses import get_course_by_id, get_finished_courses, mark_finished_if_open
from .notification_log import claim_notification, record_notification_result
from .registrations import get_registered_user_ids, insert_registration_if_absent
from .responses import create_response, get_course_responses

__all__ = [
    # Courses
    "get_course_by_id",
    "get_finished_courses",
    "mark_finished_if_open",
    # Registrations
    "get_registered_user_ids",
    "insert_registration_if_absent",
    # Responses
    "get_course_responses",
    "create_response",
    # Notification log
    "claim_notification",
    "record_notification_result",
]
