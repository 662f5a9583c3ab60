"""Root pytest configuration."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)


@pytest.fixture
def line_env(monkeypatch):
    """Configure the push gateway and deep links with test credentials."""
    monkeypatch.setenv("LINE_CHANNEL_ACCESS_TOKEN", "test-channel-token")
    monkeypatch.setenv("LIFF_ID", "1234567890-test")
    monkeypatch.setenv("CHECKPOINT_UTC_OFFSET_HOURS", "7")


@pytest.fixture
def no_line_env(monkeypatch):
    """Push gateway not configured."""
    monkeypatch.delenv("LINE_CHANNEL_ACCESS_TOKEN", raising=False)
