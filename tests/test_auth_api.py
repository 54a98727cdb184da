"""Integration tests for the OAuth endpoints."""
from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from zonetracker.database import session_scope
from zonetracker.main import app
from zonetracker.services import oauth
from zonetracker.services.token_store import TokenStore


@pytest.fixture()
def client() -> TestClient:
    """Fresh client per test so OAuth cookies do not leak between tests."""

    return TestClient(app, follow_redirects=False)


@pytest.fixture()
def fake_exchange(monkeypatch):
    calls = []

    def exchange(provider, code, redirect_uri=None, code_verifier=None, settings=None):
        calls.append({"provider": provider.name, "code": code, "redirect_uri": redirect_uri, "code_verifier": code_verifier})
        return oauth.TokenResponse("fresh-access", "fresh-refresh", 86400)

    monkeypatch.setattr(oauth, "exchange_code", exchange)
    return calls


def test_start_redirects_with_state_and_verifier_cookies(client: TestClient):
    response = client.get("/api/auth/whoop")

    assert response.status_code == 302
    location = response.headers["location"]
    assert location.startswith("https://api.prod.whoop.com/oauth/oauth2/auth?")
    params = parse_qs(urlparse(location).query)
    assert params["state"][0] == response.cookies["whoop_oauth_state"]
    assert params["redirect_uri"][0] == "http://testserver/api/auth/whoop/callback"
    assert params["code_challenge"][0] == oauth.code_challenge(response.cookies["whoop_pkce_verifier"])


def test_oura_start_sets_only_state(client: TestClient):
    response = client.get("/api/auth/oura")

    assert response.status_code == 302
    assert "oura_oauth_state" in response.cookies
    assert "oura_pkce_verifier" not in response.cookies


def test_unknown_provider(client: TestClient):
    assert client.get("/api/auth/fitbit").status_code == 404
    assert client.get("/api/auth/fitbit/callback", params={"code": "x"}).status_code == 404


def test_callback_with_provider_error(client: TestClient):
    response = client.get("/api/auth/oura/callback", params={"error": "access_denied"})

    assert response.status_code == 302
    assert response.headers["location"] == "/?error=access_denied"


def test_callback_without_code(client: TestClient):
    response = client.get("/api/auth/oura/callback", params={"state": "s"})

    assert response.headers["location"] == "/?error=no_code"


def test_callback_state_mismatch(client: TestClient, fake_exchange):
    client.cookies.set("oura_oauth_state", "expected")

    response = client.get("/api/auth/oura/callback", params={"code": "abc", "state": "forged"})

    assert response.headers["location"] == "/?error=state_mismatch"
    assert fake_exchange == []


def test_callback_without_state_cookie(client: TestClient, fake_exchange):
    response = client.get("/api/auth/oura/callback", params={"code": "abc", "state": "anything"})

    assert response.headers["location"] == "/?error=state_mismatch"


def test_callback_stores_tokens(client: TestClient, fake_exchange):
    client.cookies.set("whoop_oauth_state", "s-123")
    client.cookies.set("whoop_pkce_verifier", "verifier-xyz")

    response = client.get("/api/auth/whoop/callback", params={"code": "abc", "state": "s-123"})

    assert response.status_code == 200
    assert "Whoop authorization succeeded" in response.text
    assert fake_exchange == [
        {"provider": "whoop", "code": "abc", "redirect_uri": None, "code_verifier": "verifier-xyz"}
    ]
    with session_scope() as db:
        token = TokenStore(db).get_token("whoop")
        assert token.access_token == "fresh-access"
        assert token.refresh_token == "fresh-refresh"
        assert token.expires_at is not None


def test_callback_exchange_failure(client: TestClient, monkeypatch):
    def failing(*args, **kwargs):
        raise oauth.OAuthError("invalid_grant", status_code=400)

    monkeypatch.setattr(oauth, "exchange_code", failing)
    client.cookies.set("oura_oauth_state", "s-1")

    response = client.get("/api/auth/oura/callback", params={"code": "abc", "state": "s-1"})

    assert response.headers["location"] == "/?error=token_failed"


def test_post_exchange(client: TestClient, fake_exchange):
    response = client.post("/api/auth/oura", json={"code": "native-code", "redirect_uri": "app://cb"})

    assert response.status_code == 200
    assert response.json() == {
        "access_token": "fresh-access",
        "refresh_token": "fresh-refresh",
        "expires_in": 86400,
    }
    assert fake_exchange[0]["redirect_uri"] == "app://cb"


def test_post_exchange_failure(client: TestClient, monkeypatch):
    def failing(*args, **kwargs):
        raise oauth.OAuthError("invalid_grant", status_code=400)

    monkeypatch.setattr(oauth, "exchange_code", failing)

    response = client.post("/api/auth/whoop", json={"code": "bad"})

    assert response.status_code == 400
    assert "invalid_grant" in response.json()["detail"]


def test_post_exchange_requires_code(client: TestClient):
    assert client.post("/api/auth/whoop", json={"code": ""}).status_code == 422
