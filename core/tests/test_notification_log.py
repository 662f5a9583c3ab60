"""Tests for the notification log claim query."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from core.queries.notification_log import claim_notification


def _claim_sql(conn) -> str:
    stmt = conn.execute.await_args.args[0]
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestClaimNotification:
    @pytest.mark.asyncio
    async def test_returns_log_id_when_claimed(self):
        conn = AsyncMock()
        result = MagicMock()
        result.first.return_value = MagicMock(log_id=5)
        conn.execute.return_value = result

        assert await claim_notification(conn, "C1", "4", date(2026, 3, 10)) == 5

    @pytest.mark.asyncio
    async def test_returns_none_when_already_claimed(self):
        conn = AsyncMock()
        result = MagicMock()
        result.first.return_value = None
        conn.execute.return_value = result

        assert await claim_notification(conn, "C1", "4", date(2026, 3, 10)) is None

    @pytest.mark.asyncio
    async def test_reclaims_failed_and_stale_pending_rows(self):
        conn = AsyncMock()
        conn.execute.return_value = MagicMock()

        await claim_notification(conn, "C1", "4", date(2026, 3, 10))

        sql = _claim_sql(conn)
        assert "ON CONFLICT ON CONSTRAINT uq_notification_log_course_checkpoint_date" in sql
        assert "notification_log.status = " in sql
        assert "notification_log.updated_at < " in sql
