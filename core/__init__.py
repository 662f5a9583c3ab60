"""
Core business logic - platform-agnostic.
Can be used by the web API, the scheduler, or any other interface.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured

# Checkpoint schedule
from .enums import Checkpoint, NotificationStatus, RegistrationResult
from .checkpoints import (
    InvalidCheckpointError, parse_checkpoint, build_checkpoint_calendar,
    deliverable_checkpoints, available_checkpoints, upcoming_checkpoint_events,
)
from .types import Course, Registration, Response, FormTemplate, DuePair, NotificationOutcome

# Timezone utilities
from .timezone import today_in_checkpoint_timezone

# Due-checkpoint matching
from .matcher import find_due_checkpoints, scan_due_checkpoints

# Registration guard (async functions - must be awaited)
from .registration import (
    CourseNotFoundError, InvalidRegistrationKeyError,
    validate_key, generate_registration_key, regenerate_registration_key,
    register, enroll,
)

# Completion aggregator
from .completion import build_completion_report, filter_completion_rows

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured',
    # Checkpoints
    'Checkpoint', 'NotificationStatus', 'RegistrationResult',
    'InvalidCheckpointError', 'parse_checkpoint', 'build_checkpoint_calendar',
    'deliverable_checkpoints', 'available_checkpoints', 'upcoming_checkpoint_events',
    'Course', 'Registration', 'Response', 'FormTemplate', 'DuePair', 'NotificationOutcome',
    # Timezone
    'today_in_checkpoint_timezone',
    # Matcher
    'find_due_checkpoints', 'scan_due_checkpoints',
    # Registration
    'CourseNotFoundError', 'InvalidRegistrationKeyError',
    'validate_key', 'generate_registration_key', 'regenerate_registration_key',
    'register', 'enroll',
    # Completion
    'build_completion_report', 'filter_completion_rows',
]
