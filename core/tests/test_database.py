"""Tests for DATABASE_URL handling."""

import pytest

from core.database import get_async_database_url, get_sync_database_url, is_configured


class TestDatabaseUrls:
    @pytest.mark.parametrize(
        "raw",
        [
            "postgresql://u:p@db:5432/app",
            "postgres://u:p@db:5432/app",
            "postgresql+asyncpg://u:p@db:5432/app",
        ],
    )
    def test_async_and_sync_variants(self, monkeypatch, raw):
        monkeypatch.setenv("DATABASE_URL", raw)

        assert get_async_database_url() == "postgresql+asyncpg://u:p@db:5432/app"
        assert get_sync_database_url() == "postgresql://u:p@db:5432/app"
        assert is_configured() is True

    def test_unset(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        assert is_configured() is False
        assert get_sync_database_url(required=False) == ""
        with pytest.raises(ValueError):
            get_sync_database_url()
        with pytest.raises(ValueError):
            get_async_database_url()


class TestJobStoreUrl:
    def test_adds_connect_timeout(self, monkeypatch):
        from core.notifications.scheduler import _get_job_store_url

        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/app")
        assert _get_job_store_url() == "postgresql://u:p@db/app?connect_timeout=5"

        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/app?sslmode=require")
        assert _get_job_store_url() == (
            "postgresql://u:p@db/app?sslmode=require&connect_timeout=5"
        )

    def test_empty_without_database(self, monkeypatch):
        from core.notifications.scheduler import _get_job_store_url

        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert _get_job_store_url() == ""
