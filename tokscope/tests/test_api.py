"""Tests for the HTTP boundary (scraper mocked)."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tokscope.api import STATUS_BY_KIND, create_app, status_for
from tokscope.errors import (
    SUGGESTIONS,
    BotDetectionSuspected,
    ConnectionTimedOut,
    ErrorKind,
    GenericNetworkError,
    ProfileNotFound,
    ProfilePrivate,
    ScrapeExhausted,
    TunnelConnectionFailed,
)
from tokscope.models import AccountSnapshot

_SNAPSHOT = AccountSnapshot(
    username="alice",
    display_name="Alice",
    followers=15000,
    likes=200000,
    video_count=42,
    hashtags=["#fitness"],
    scraped_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
)


def _client(result: object) -> tuple[TestClient, MagicMock]:
    scraper = MagicMock()
    if isinstance(result, Exception):
        scraper.scrape = AsyncMock(side_effect=result)
    else:
        scraper.scrape = AsyncMock(return_value=result)
    return TestClient(create_app(scraper)), scraper


def test_status_table_is_exhaustive() -> None:
    assert set(STATUS_BY_KIND) == set(ErrorKind)


def test_health() -> None:
    client, _ = _client(_SNAPSHOT)
    assert client.get("/health").json() == {"status": "ok"}


class TestScrapeEndpoint:
    def test_success(self) -> None:
        client, scraper = _client(_SNAPSHOT)

        resp = client.post("/api/scrape", json={"username": "@alice", "user_id": "u-1"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        trend = body["trend"]
        assert trend["user_id"] == "u-1"
        assert trend["followers"] == 15000
        assert trend["hashtags"] == ["#fitness"]
        assert trend["id"].startswith("alice_")
        assert trend["id"].split("_", 1)[1].isdigit()
        assert "created_at" in trend
        scraper.scrape.assert_awaited_once_with("alice")

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "alice"},
            {"user_id": "u-1"},
            {"username": "  ", "user_id": "u-1"},
            {"username": "@", "user_id": "u-1"},
            {},
        ],
    )
    def test_missing_fields(self, payload: dict) -> None:
        client, scraper = _client(_SNAPSHOT)

        resp = client.post("/api/scrape", json=payload)

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Username and userId are required"
        scraper.scrape.assert_not_awaited()

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ProfileNotFound("Profile not found: @ghost does not exist"), 404),
            (ProfilePrivate("Profile @alice is private"), 403),
            (TunnelConnectionFailed("Proxy tunnel connection failed"), 502),
            (GenericNetworkError("Network error (NAME_NOT_RESOLVED)"), 503),
            (BotDetectionSuspected("verification page"), 429),
        ],
    )
    def test_error_status(self, error: Exception, status: int) -> None:
        client, _ = _client(error)

        resp = client.post("/api/scrape", json={"username": "alice", "user_id": "u-1"})

        assert resp.status_code == status
        body = resp.json()
        assert body["error"] == str(error)
        assert body["kind"] == error.kind.value
        assert body["suggestion"] == SUGGESTIONS[error.kind]

    def test_exhausted_uses_cause_status(self) -> None:
        error = ScrapeExhausted("alice", 3, ConnectionTimedOut("Connection timed out."))
        client, _ = _client(error)

        resp = client.post("/api/scrape", json={"username": "alice", "user_id": "u-1"})

        assert resp.status_code == 504
        body = resp.json()
        assert body["kind"] == "scrape_exhausted"
        assert body["suggestion"] == SUGGESTIONS[ErrorKind.CONNECTION_TIMED_OUT]


class TestStatusFor:
    def test_exhausted_without_classified_cause(self) -> None:
        assert status_for(ScrapeExhausted("alice", 3, RuntimeError("boom"))) == 500
