"""
Shared constants used across the platform.

The checkpoint sets are business rules; change them here rather than inline.
"""

from datetime import timedelta

from .enums import Checkpoint

# Full checkpoint timeline, in display order
CHECKPOINT_ORDER = [
    Checkpoint.pre,
    Checkpoint.week_0,
    Checkpoint.week_2,
    Checkpoint.week_4,
    Checkpoint.week_6,
    Checkpoint.week_8,
]

# Checkpoints the daily scan may send. Week 0 is sent by the "mark finished"
# trigger only; pre is never notified.
AUTO_SCAN_CHECKPOINTS = (
    Checkpoint.week_2,
    Checkpoint.week_4,
    Checkpoint.week_6,
    Checkpoint.week_8,
)

# Checkpoints an admin may resend through the ad-hoc endpoint
AD_HOC_CHECKPOINTS = (
    Checkpoint.week_0,
    Checkpoint.week_2,
    Checkpoint.week_4,
    Checkpoint.week_6,
    Checkpoint.week_8,
)

# Columns of the completion matrix (pre is not part of completion)
COMPLETION_CHECKPOINTS = (
    Checkpoint.week_0,
    Checkpoint.week_2,
    Checkpoint.week_4,
    Checkpoint.week_6,
    Checkpoint.week_8,
)

# Calendar auto-fill: pre sits one week before the course end date
PRE_CHECKPOINT_OFFSET_DAYS = -7

# Follow-up message accent colours
BASE_COLOR = "#6366f1"  # indigo
CHECKPOINT_COLORS = {
    2: "#10b981",  # emerald
    4: "#3b82f6",  # blue
    6: "#f59e0b",  # amber
    8: "#8b5cf6",  # purple
}

# Registration keys exclude 0/O and 1/I
REGISTRATION_KEY_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REGISTRATION_KEY_LENGTH = 6

# LINE multicast accepts at most 500 recipients per call
MULTICAST_MAX_RECIPIENTS = 500

NO_RECIPIENTS_REASON = "no registered users"
ALREADY_NOTIFIED_REASON = "already notified"
TIMED_OUT_REASON = "timed out"

# A pending notification claim older than this belongs to a run that died
CLAIM_STALE_AFTER = timedelta(minutes=30)
