"""Shared test fixtures.

settings requires JWT_SECRET; set it before anything imports config.settings.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402

from tests.fakes import FakeClock, FakeSession  # noqa: E402

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def db() -> FakeSession:
    return FakeSession()
