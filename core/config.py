"""
Centralized configuration for the Course Flow platform.

All settings come from environment variables (loaded from .env / .env.local
by main.py and the test conftest). Functions are read at call time so tests
can patch os.environ.
"""

import os


def is_dev_mode() -> bool:
    """Check if running in development mode (--dev flag or DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def is_production() -> bool:
    """Check if running in a deployed environment."""
    return bool(os.environ.get("RAILWAY_ENVIRONMENT"))


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_line_channel_access_token() -> str | None:
    """LINE Messaging API channel access token (push gateway credential)."""
    return os.environ.get("LINE_CHANNEL_ACCESS_TOKEN") or None


def get_liff_id() -> str:
    """LIFF app ID used as the base of notification deep links."""
    return os.environ.get("LIFF_ID", "")


def get_cron_secret() -> str | None:
    """Shared secret expected in the Authorization header of the daily trigger."""
    return os.environ.get("CRON_SECRET") or None


def get_checkpoint_utc_offset_hours() -> int:
    """Fixed UTC offset (hours) in which checkpoint dates are interpreted."""
    return int(os.getenv("CHECKPOINT_UTC_OFFSET_HOURS", "7"))


def get_notify_max_concurrency() -> int:
    """Upper bound on concurrent multicast calls during a daily run."""
    return max(1, int(os.getenv("NOTIFY_MAX_CONCURRENCY", "4")))


def get_notify_timeout_seconds() -> float | None:
    """
    Overall time budget for a daily run.

    Unset or 0 means no limit. When the budget runs out, pairs that already
    finished are still reported.
    """
    value = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "0") or 0)
    return value if value > 0 else None


def get_daily_notify_hour_utc() -> int:
    """UTC hour at which the in-process scheduler runs the daily check (1 = 08:00 UTC+7)."""
    return int(os.getenv("DAILY_NOTIFY_HOUR_UTC", "1"))


def is_scheduler_enabled() -> bool:
    """Whether main.py should start the in-process daily scheduler."""
    return os.getenv("ENABLE_SCHEDULER", "true").lower() in ("true", "1", "yes")


# Required environment variables for production
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("LINE_CHANNEL_ACCESS_TOKEN", "LINE Messaging API channel access token", False),
    ("LIFF_ID", "LIFF app ID for notification deep links", False),
    ("CRON_SECRET", "Shared secret for the daily notification trigger", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production():
                errors.append(f"  ✗ {name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
