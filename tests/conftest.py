"""Pytest configuration and fixtures shared across all test modules.

Environment variables must be set before anything imports
``getip.core.config``, because settings are resolved at import time.
"""

import os
from unittest.mock import Mock

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "60")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_SECONDS", "60")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from getip.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter  # noqa: E402
from getip.core.app_factory import create_app  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Frozen clock at the start of a 60s window (1020 = 17 * 60)."""
    return Mock(return_value=1020.0)


@pytest.fixture
def limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(limit=60, window_seconds=60, clock=clock)


@pytest.fixture
def client(limiter: InMemoryFixedWindowRateLimiter) -> TestClient:
    """TestClient over a fresh app whose limiter uses the frozen clock."""
    return TestClient(create_app(rate_limiter=limiter))
