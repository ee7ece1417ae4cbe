from __future__ import annotations

import os
from typing import Any

import pytest

from manifold.errors import TransportError


class FakeTransport:
    """Page transport replaying canned responses and recording every call.

    Each response is either a JSON value to return or an exception to raise.
    """

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, list[tuple[str, str]]]] = []

    def __call__(self, path: str, params: list[tuple[str, str]]) -> Any:
        self.calls.append((path, list(params)))
        if not self.responses:
            raise AssertionError(f"Unexpected extra page request: {path} {params}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def cursors(self) -> list[str | None]:
        return [dict(params).get("before") for _, params in self.calls]


def make_page(start: int, size: int) -> list[dict[str, Any]]:
    return [{"id": f"item-{i}", "n": i} for i in range(start, start + size)]


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def transport_error():
    return TransportError("HTTP 503 from https://example.test/markets", status_code=503)


@pytest.fixture
def clean_env(monkeypatch):
    """Clean environment fixture to isolate tests."""
    for key in ["MANIFOLD_API_KEY", "MANIFOLD_API_URL", "MANIFOLD_TIMEOUT", "CUSTOM_KEY"]:
        if key in os.environ:
            monkeypatch.delenv(key, raising=False)
    # Keep a stray .env in the working directory from leaking into tests.
    monkeypatch.setattr("manifold.client.load_env_file_if_present", lambda *a, **k: {})
    monkeypatch.setattr("manifold.auth.load_env_file_if_present", lambda *a, **k: {})
    yield


@pytest.fixture
def sample_market_data():
    """Sample /markets item matching the Manifold API structure."""
    return {
        "id": "EvIhzcJXwhL0HavaszD7",
        "creatorId": "igi2zGXsfxYPgB0DJTXVJVmwCOr2",
        "creatorUsername": "ManifoldMarkets",
        "creatorName": "Manifold Markets",
        "createdTime": 1680000000000,
        "creatorAvatarUrl": "https://example.test/avatar.png",
        "closeTime": 1900000000000,
        "question": "Will it rain tomorrow?",
        "url": "https://manifold.markets/ManifoldMarkets/will-it-rain-tomorrow",
        "outcomeType": "BINARY",
        "mechanism": "cpmm-1",
        "probability": 0.62,
        "pool": {"NO": 120.5, "YES": 75.25},
        "volume": 1532.0,
        "volume24Hours": 40.0,
        "isResolved": False,
        "lastUpdatedTime": 1680000500000,
    }


@pytest.fixture
def sample_user_data():
    """Sample /users item matching the Manifold API structure."""
    return {
        "id": "igi2zGXsfxYPgB0DJTXVJVmwCOr2",
        "createdTime": 1639000000000,
        "name": "Manifold Markets",
        "username": "ManifoldMarkets",
        "url": "https://manifold.markets/ManifoldMarkets",
        "avatarUrl": "https://example.test/avatar.png",
        "balance": 1234.5,
        "totalDeposits": 2000,
        "profitCached": {"allTime": 150.0, "daily": 1.5, "weekly": 10.0, "monthly": 42.0},
    }


@pytest.fixture
def sample_bet_data():
    return {
        "id": "bet-1",
        "userId": "user-1",
        "contractId": "EvIhzcJXwhL0HavaszD7",
        "createdTime": 1680000100000,
        "amount": 10,
        "shares": 15.2,
        "outcome": "YES",
        "probBefore": 0.6,
        "probAfter": 0.62,
        "fees": {"creatorFee": 0, "platformFee": 0},
    }


@pytest.fixture
def page_factory():
    return make_page
