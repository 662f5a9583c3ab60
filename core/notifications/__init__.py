"""
Checkpoint notification system (LINE push messages).

Public API:
    dispatch_checkpoint(course_id, course_title, checkpoint) - Send one checkpoint now
    dispatch_due_checkpoints(pairs, today) - Send a batch with per-day dedup
    run_daily_notifications(now) - Matcher + dispatcher, returns the run summary

Scheduling:
    init_scheduler() / shutdown_scheduler() - Daily in-process trigger
"""

from .dispatcher import (
    dispatch_checkpoint,
    dispatch_due_checkpoints,
    run_daily_notifications,
)
from .scheduler import init_scheduler, shutdown_scheduler, schedule_daily_check

__all__ = [
    "dispatch_checkpoint",
    "dispatch_due_checkpoints",
    "run_daily_notifications",
    "init_scheduler",
    "shutdown_scheduler",
    "schedule_daily_check",
]
