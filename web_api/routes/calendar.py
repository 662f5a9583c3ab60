"""
Checkpoint calendar API routes.

Endpoints:
- GET /api/calendar/upcoming - Checkpoints scheduled in the next N days
- GET /api/calendar/autofill - Default checkpoint dates for a course end date
"""

import sys
from datetime import date
from pathlib import Path

from fastapi import APIRouter, Query

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.checkpoints import build_checkpoint_calendar, upcoming_checkpoint_events
from core.database import get_connection
from core.matcher import parse_course_rows
from core.queries.courses import get_all_courses
from core.timezone import today_in_checkpoint_timezone

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("/upcoming")
async def get_upcoming(days: int = Query(7, ge=0, le=90)):
    """Scheduled checkpoints from today through `days` days ahead, grouped by date."""
    today = today_in_checkpoint_timezone()
    async with get_connection() as conn:
        rows = await get_all_courses(conn)

    return {
        "today": today.isoformat(),
        "days": upcoming_checkpoint_events(parse_course_rows(rows), today, days),
    }


@router.get("/autofill")
async def get_autofill(endDate: date = Query(..., description="Course end date")):
    """pre one week before the end date, week N exactly N weeks after it."""
    return {"weekDates": build_checkpoint_calendar(endDate)}
