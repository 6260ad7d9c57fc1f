"""Tests for client IP derivation and 429 handling on package mutations."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from app.adapters.rate_limit import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.core.rate_limit import UNKNOWN_CLIENT_IP, build_identifier, get_client_ip

# Matches the clock fixture in conftest.py
START_MS = 1_700_000_000_000


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestGetClientIp:
    def test_prefers_first_forwarded_for_entry(self) -> None:
        request = _request(
            {"X-Forwarded-For": " 203.0.113.7 , 10.0.0.1", "X-Real-IP": "198.51.100.2"}
        )
        assert get_client_ip(request) == "203.0.113.7"

    def test_falls_back_to_real_ip(self) -> None:
        assert get_client_ip(_request({"X-Real-IP": "198.51.100.2"})) == "198.51.100.2"

    def test_returns_sentinel_without_headers(self) -> None:
        assert get_client_ip(_request({})) == UNKNOWN_CLIENT_IP

    def test_empty_forwarded_entry_falls_through(self) -> None:
        request = _request({"X-Forwarded-For": " ,10.0.0.1", "X-Real-IP": "198.51.100.2"})
        assert get_client_ip(request) == "198.51.100.2"


def test_build_identifier() -> None:
    assert build_identifier("api-patch", "203.0.113.7") == "api-patch-203.0.113.7"


@pytest.fixture
def package_id(client: TestClient, admin_headers: dict, package_payload: dict) -> str:
    resp = client.post("/api/packages", json=package_payload, headers=admin_headers)
    assert resp.status_code == 201
    return resp.json()["id"]


def test_update_is_rate_limited_per_ip(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 2)
    headers = {**admin_headers, "X-Forwarded-For": "203.0.113.7"}

    for _ in range(2):
        ok = client.patch(f"/api/packages/{package_id}", json={"sort_order": 3}, headers=headers)
        assert ok.status_code == 200

    blocked = client.patch(f"/api/packages/{package_id}", json={"sort_order": 3}, headers=headers)

    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == "60"
    assert blocked.headers["X-RateLimit-Limit"] == "2"
    assert blocked.headers["X-RateLimit-Remaining"] == "0"
    assert blocked.headers["X-RateLimit-Reset"] == str((START_MS + 60_000) // 1000)
    body = blocked.json()
    assert body["error"]["code"] == "rate_limit_exceeded"
    assert body["error"]["details"]["retry_after"] == 60


def test_other_ip_is_not_affected(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)
    url = f"/api/packages/{package_id}"

    client.patch(url, json={"sort_order": 1}, headers={**admin_headers, "X-Real-IP": "10.0.0.1"})
    blocked = client.patch(url, json={"sort_order": 1}, headers={**admin_headers, "X-Real-IP": "10.0.0.1"})
    other = client.patch(url, json={"sort_order": 1}, headers={**admin_headers, "X-Real-IP": "10.0.0.2"})

    assert blocked.status_code == 429
    assert other.status_code == 200


def test_update_and_delete_have_separate_budgets(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)
    url = f"/api/packages/{package_id}"

    client.patch(url, json={"sort_order": 1}, headers=admin_headers)
    assert client.patch(url, json={"sort_order": 1}, headers=admin_headers).status_code == 429

    assert client.delete(url, headers=admin_headers).status_code == 200


def test_retry_after_counts_down_with_clock(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    clock: Mock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)
    url = f"/api/packages/{package_id}"

    client.patch(url, json={"sort_order": 1}, headers=admin_headers)
    clock.return_value = START_MS + 45_500
    blocked = client.patch(url, json={"sort_order": 1}, headers=admin_headers)

    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == "15"


def test_window_expiry_allows_requests_again(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    clock: Mock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)
    url = f"/api/packages/{package_id}"

    client.patch(url, json={"sort_order": 1}, headers=admin_headers)
    assert client.patch(url, json={"sort_order": 1}, headers=admin_headers).status_code == 429

    clock.return_value = START_MS + 61_000
    assert client.patch(url, json={"sort_order": 1}, headers=admin_headers).status_code == 200


def test_rate_limit_checked_before_validation(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)
    url = f"/api/packages/{package_id}"

    first = client.patch(url, json={"price_idr": -5}, headers=admin_headers)
    second = client.patch(url, json={"price_idr": -5}, headers=admin_headers)

    assert first.status_code == 400
    assert second.status_code == 429


def test_rate_limit_headers_can_be_disabled(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_delete_max", 1)
    monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)
    url = f"/api/packages/{package_id}"

    client.delete(url, headers=admin_headers)
    blocked = client.delete(url, headers=admin_headers)

    assert blocked.status_code == 429
    assert "Retry-After" in blocked.headers
    assert "X-RateLimit-Limit" not in blocked.headers


def test_disabled_rate_limit_skips_limiter(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    limiter: InMemoryFixedWindowRateLimiter,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_enabled", False)
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)

    for _ in range(3):
        resp = client.patch(f"/api/packages/{package_id}", json={"sort_order": 2}, headers=admin_headers)
        assert resp.status_code == 200

    assert len(limiter) == 0


def test_identifier_uses_scope_and_ip(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    limiter: InMemoryFixedWindowRateLimiter,
) -> None:
    client.patch(
        f"/api/packages/{package_id}",
        json={"sort_order": 2},
        headers={**admin_headers, "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
    )
    client.delete(f"/api/packages/{package_id}", headers=admin_headers)

    assert limiter.get_entry("api-patch-203.0.113.9").count == 1
    assert limiter.get_entry("api-delete-unknown").count == 1


def test_malformed_json_counts_against_update_limit(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
    limiter: InMemoryFixedWindowRateLimiter,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_update_max", 1)
    url = f"/api/packages/{package_id}"
    headers = {**admin_headers, "Content-Type": "application/json"}

    codes = [client.patch(url, content=b"{not json", headers=headers).status_code for _ in range(3)]

    assert codes == [400, 429, 429]
    assert limiter.get_entry("api-patch-unknown").count == 3


def test_malformed_json_reports_validation_failed(
    client: TestClient,
    admin_headers: dict,
    package_id: str,
) -> None:
    resp = client.patch(
        f"/api/packages/{package_id}",
        content=b"{not json",
        headers={**admin_headers, "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "validation_failed"
    assert error["details"]["issues"][0]["type"] == "json_invalid"
    assert error["details"]["issues"][0]["loc"] == ["body"]
