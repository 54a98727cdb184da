"""Tests for retrying provider requests."""
from __future__ import annotations

import pytest
import requests

from zonetracker.services.http_client import (
    RATE_LIMIT_BACKOFF_SECONDS,
    ProviderAuthError,
    ProviderError,
    request_with_retries,
)

from fakes import FakeResponse, FakeSession


@pytest.fixture()
def sleeps() -> list[float]:
    return []


def test_success_on_first_attempt(sleeps):
    session = FakeSession(FakeResponse(200, {"data": []}))

    response = request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert response.status_code == 200
    assert len(session.calls) == 1
    assert session.calls[0][2]["timeout"] == 30.0
    assert sleeps == []


def test_server_errors_are_retried(sleeps):
    session = FakeSession(FakeResponse(503), FakeResponse(502), FakeResponse(200))

    response = request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert response.status_code == 200
    assert len(sleeps) == 2
    assert 1.0 <= sleeps[0] <= 1.5
    assert 2.0 <= sleeps[1] <= 2.5


def test_rate_limit_honours_retry_after(sleeps):
    session = FakeSession(FakeResponse(429, headers={"Retry-After": "7"}), FakeResponse(200))

    request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert sleeps == [7.0]


def test_rate_limit_without_header_backs_off(sleeps):
    session = FakeSession(FakeResponse(429), FakeResponse(429), FakeResponse(200))

    request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert sleeps == [RATE_LIMIT_BACKOFF_SECONDS, RATE_LIMIT_BACKOFF_SECONDS * 2]


def test_gives_up_after_max_retries(sleeps):
    session = FakeSession(FakeResponse(500), FakeResponse(500))

    with pytest.raises(ProviderError) as excinfo:
        request_with_retries("GET", "https://api.example/x", session=session, max_retries=2, sleep=sleeps.append)

    assert excinfo.value.status_code == 500
    assert len(session.calls) == 2
    assert len(sleeps) == 1


def test_unauthorized_is_not_retried(sleeps):
    session = FakeSession(FakeResponse(401))

    with pytest.raises(ProviderAuthError) as excinfo:
        request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert excinfo.value.status_code == 401
    assert sleeps == []


def test_client_errors_raise_with_body_snippet(sleeps):
    session = FakeSession(FakeResponse(404, text="no such collection"))

    with pytest.raises(ProviderError, match="no such collection") as excinfo:
        request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert excinfo.value.status_code == 404
    assert not isinstance(excinfo.value, ProviderAuthError)


def test_connection_errors_are_retried(sleeps):
    session = FakeSession(requests.exceptions.ConnectionError("reset"), FakeResponse(200))

    response = request_with_retries("GET", "https://api.example/x", session=session, sleep=sleeps.append)

    assert response.status_code == 200
    assert len(sleeps) == 1


def test_timeouts_exhaust_into_provider_error(sleeps):
    session = FakeSession(requests.exceptions.Timeout("slow"), requests.exceptions.Timeout("slow"))

    with pytest.raises(ProviderError):
        request_with_retries("GET", "https://api.example/x", session=session, max_retries=2, sleep=sleeps.append)
