"""Tests for calendar endpoints and the app health check."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from web_api.routes.calendar import router

ROUTES = "web_api.routes.calendar"


@pytest.fixture
def client():
    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


class TestUpcoming:
    def test_groups_events_by_date(self, client):
        rows = [
            {
                "course_id": "C1",
                "title": "Course One",
                "finished": True,
                "week_dates": {"4": "2026-03-12"},
                "week_forms": {"4": "F4"},
            },
            {"course_id": "broken", "title": "Broken", "week_dates": "oops"},
        ]
        with (
            patch(f"{ROUTES}.get_connection") as mock_get_conn,
            patch(f"{ROUTES}.get_all_courses", AsyncMock(return_value=rows)),
            patch(
                f"{ROUTES}.today_in_checkpoint_timezone", return_value=date(2026, 3, 10)
            ),
        ):
            mock_get_conn.return_value.__aenter__.return_value = AsyncMock()
            response = client.get("/api/calendar/upcoming")

        assert response.status_code == 200
        assert response.json() == {
            "today": "2026-03-10",
            "days": [
                {
                    "date": "2026-03-12",
                    "isToday": False,
                    "events": [
                        {
                            "courseId": "C1",
                            "courseTitle": "Course One",
                            "checkpoint": 4,
                            "formId": "F4",
                            "finished": True,
                        }
                    ],
                }
            ],
        }

    def test_days_out_of_range_is_422(self, client):
        response = client.get("/api/calendar/upcoming?days=-1")
        assert response.status_code == 422


class TestAutofill:
    def test_builds_week_dates(self, client):
        response = client.get("/api/calendar/autofill?endDate=2026-02-17")

        assert response.status_code == 200
        assert response.json()["weekDates"]["pre"] == "2026-02-10"
        assert response.json()["weekDates"]["8"] == "2026-04-14"


class TestHealth:
    def test_health(self, monkeypatch):
        monkeypatch.setenv("ENABLE_SCHEDULER", "false")
        from main import app

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
