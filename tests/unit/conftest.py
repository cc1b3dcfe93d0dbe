"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would cause 5-30s timeout per test)
- Environment variable isolation (prevents credential leakage)

These fixtures apply automatically to ALL tests in tests/unit/.
"""

import os
from datetime import datetime, timezone

import pytest
from unittest.mock import patch, MagicMock

# Set test environment BEFORE any imports so Config does not load real values
os.environ["ENVIRONMENT"] = "development"
os.environ["AI_PROVIDER"] = ""


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    MongoClient("") defaults to localhost:27017, causing 5-30s timeout per test.
    """
    with patch("interview_gateway.repositories.mongo.MongoClient") as mock_client:
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find_one = MagicMock(return_value=None)
        mock_collection.find = MagicMock(return_value=[])

        mock_client.return_value = mock_instance
        yield mock_client


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    Vendor keys are replaced by mock values so an accidental real call
    fails authentication instead of spending money.
    """
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-mock-key")
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test-mock-key")
    monkeypatch.setenv("ELEVENLABS_API_KEY", "el-test-mock-key")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.delenv("REDIS_URL", raising=False)


class FakeClock:
    """Manually advanced clock for the limiter and ledgers."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Settable UTC wall clock."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wall_clock():
    return FakeWallClock(datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc))
