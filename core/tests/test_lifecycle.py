"""Tests for marking a course finished (week 0 trigger)."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from core.enums import Checkpoint, NotificationStatus
from core.registration import CourseNotFoundError
from core.types import NotificationOutcome

FINISHED_AT = datetime(2026, 2, 17, 9, 0, tzinfo=timezone.utc)


def _mock_db(mock_get_conn, mock_get_tx):
    mock_conn = AsyncMock()
    for mock in (mock_get_conn, mock_get_tx):
        mock.return_value.__aenter__.return_value = mock_conn
        mock.return_value.__aexit__.return_value = None
    return mock_conn


class TestMarkCourseFinished:
    @pytest.mark.asyncio
    async def test_first_call_sends_week_zero(self, line_env):
        from core.lifecycle import mark_course_finished

        outcome = NotificationOutcome(
            "C1", "Course One", Checkpoint.week_0, NotificationStatus.sent, sent_to=3
        )
        mock_dispatch = AsyncMock(return_value=outcome)
        with (
            patch("core.lifecycle.get_connection") as mock_get_conn,
            patch("core.lifecycle.get_transaction") as mock_get_tx,
            patch(
                "core.lifecycle.mark_finished_if_open",
                AsyncMock(return_value={"title": "Course One", "finished_at": FINISHED_AT}),
            ),
            patch("core.lifecycle.dispatch_checkpoint", mock_dispatch),
        ):
            _mock_db(mock_get_conn, mock_get_tx)
            result = await mark_course_finished("C1")

        mock_dispatch.assert_awaited_once_with("C1", "Course One", Checkpoint.week_0)
        assert result["status"] == "finished"
        assert result["notification"]["sentTo"] == 3
        assert result["notification"]["checkpoint"] == 0

    @pytest.mark.asyncio
    async def test_title_override(self, line_env):
        from core.lifecycle import mark_course_finished

        mock_dispatch = AsyncMock(
            return_value=NotificationOutcome(
                "C1", "Renamed", Checkpoint.week_0, NotificationStatus.skipped,
                reason="no registered users",
            )
        )
        with (
            patch("core.lifecycle.get_connection") as mock_get_conn,
            patch("core.lifecycle.get_transaction") as mock_get_tx,
            patch(
                "core.lifecycle.mark_finished_if_open",
                AsyncMock(return_value={"title": "Course One", "finished_at": FINISHED_AT}),
            ),
            patch("core.lifecycle.dispatch_checkpoint", mock_dispatch),
        ):
            _mock_db(mock_get_conn, mock_get_tx)
            await mark_course_finished("C1", "Renamed")

        assert mock_dispatch.await_args.args[1] == "Renamed"

    @pytest.mark.asyncio
    async def test_second_call_is_a_no_op(self, line_env):
        from core.lifecycle import mark_course_finished

        mock_dispatch = AsyncMock()
        with (
            patch("core.lifecycle.get_connection") as mock_get_conn,
            patch("core.lifecycle.get_transaction") as mock_get_tx,
            patch("core.lifecycle.mark_finished_if_open", AsyncMock(return_value=None)),
            patch(
                "core.lifecycle.get_course_by_id",
                AsyncMock(return_value={"course_id": "C1", "finished": True,
                                        "finished_at": FINISHED_AT}),
            ),
            patch("core.lifecycle.dispatch_checkpoint", mock_dispatch),
        ):
            _mock_db(mock_get_conn, mock_get_tx)
            result = await mark_course_finished("C1")

        assert result["status"] == "already_finished"
        mock_dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_course(self, line_env):
        from core.lifecycle import mark_course_finished

        with (
            patch("core.lifecycle.get_connection") as mock_get_conn,
            patch("core.lifecycle.get_transaction") as mock_get_tx,
            patch("core.lifecycle.mark_finished_if_open", AsyncMock(return_value=None)),
            patch("core.lifecycle.get_course_by_id", AsyncMock(return_value=None)),
        ):
            _mock_db(mock_get_conn, mock_get_tx)
            with pytest.raises(CourseNotFoundError):
                await mark_course_finished("missing")

    @pytest.mark.asyncio
    async def test_missing_gateway_leaves_course_unchanged(self, no_line_env):
        from core.lifecycle import mark_course_finished
        from core.notifications.channels.line import GatewayNotConfiguredError

        mock_mark = AsyncMock()
        with patch("core.lifecycle.mark_finished_if_open", mock_mark):
            with pytest.raises(GatewayNotConfiguredError):
                await mark_course_finished("C1")

        mock_mark.assert_not_awaited()
