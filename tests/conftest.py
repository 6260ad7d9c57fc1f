"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``app`` import so that settings
are built from them instead of a local .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.app_factory import create_app

START_MS = 1_700_000_000_000


@pytest.fixture
def clock() -> Mock:
    """Controllable epoch-millisecond clock; set ``return_value`` to move time."""
    return Mock(return_value=START_MS)


@pytest.fixture
def limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock)


@pytest.fixture
def app(limiter: InMemoryFixedWindowRateLimiter) -> FastAPI:
    return create_app(rate_limiter=limiter)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}


@pytest.fixture
def package_payload() -> dict:
    return {
        "name": "Paket Sunset 190K",
        "price_idr": 190_000,
        "pax_min": 2,
        "pax_max": 10,
        "duration_hours": 4,
        "facilities": ["Tiket masuk", "Pemandu", "Snack"],
        "notes": "Berangkat pukul 15.00",
        "dp_percent": 50,
        "published": True,
        "sort_order": 1,
    }
