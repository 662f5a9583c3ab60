"""URL builder utilities for notification deep links."""

from core.config import get_liff_id


LIFF_BASE_URL = "https://liff.line.me"


def build_course_liff_url(course_id: str, liff_id: str | None = None) -> str:
    """
    Build the LIFF deep link that opens a course's assessment page.

    Args:
        course_id: Course to open
        liff_id: LIFF app ID (uses LIFF_ID env var if not provided)
    """
    lid = liff_id if liff_id is not None else get_liff_id()
    return f"{LIFF_BASE_URL}/{lid}/liff/course/{course_id}"
