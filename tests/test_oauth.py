"""Tests for the OAuth authorization-code helpers."""
from __future__ import annotations

import base64
import hashlib
from urllib.parse import parse_qs, urlparse

import pytest

from zonetracker.config import Settings
from zonetracker.services import oauth

from fakes import FakeResponse


def make_settings(**overrides) -> Settings:
    values = {
        "oura_client_id": "oura-id",
        "oura_client_secret": "oura-secret",
        "whoop_client_id": "whoop-id",
        "whoop_client_secret": "whoop-secret",
        "public_base_url": "https://tracker.example/",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def query_of(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items()}


def test_get_provider():
    assert oauth.get_provider("WHOOP").name == "whoop"
    with pytest.raises(oauth.UnknownProviderError):
        oauth.get_provider("fitbit")


def test_code_challenge_is_unpadded_s256():
    verifier = oauth.generate_code_verifier()
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).rstrip(b"=").decode()

    assert 43 <= len(verifier) <= 128
    assert oauth.code_challenge(verifier) == expected
    assert len(expected) == 43
    assert "=" not in expected


def test_redirect_uri_uses_public_base_url():
    settings = make_settings()

    assert oauth.redirect_uri_for(oauth.get_provider("oura"), settings) == "https://tracker.example/api/auth/oura/callback"


def test_whoop_authorization_request_carries_pkce():
    settings = make_settings()

    request = oauth.build_authorization_request(oauth.get_provider("whoop"), settings)
    params = query_of(request.url)

    assert request.url.startswith("https://api.prod.whoop.com/oauth/oauth2/auth?")
    assert params["client_id"] == "whoop-id"
    assert params["response_type"] == "code"
    assert params["state"] == request.state
    assert params["redirect_uri"] == "https://tracker.example/api/auth/whoop/callback"
    assert params["code_challenge_method"] == "S256"
    assert params["code_challenge"] == oauth.code_challenge(request.code_verifier)
    assert "read:recovery" in params["scope"]


def test_pkce_can_be_disabled():
    request = oauth.build_authorization_request(oauth.get_provider("whoop"), make_settings(oauth_use_pkce=False))

    assert request.code_verifier is None
    assert "code_challenge" not in query_of(request.url)


def test_oura_authorization_request_has_no_pkce():
    request = oauth.build_authorization_request(oauth.get_provider("oura"), make_settings())

    assert request.code_verifier is None
    assert "code_challenge" not in query_of(request.url)
    assert request.url.startswith("https://cloud.ouraring.com/oauth/authorize?")


def test_states_are_unique():
    provider = oauth.get_provider("oura")
    settings = make_settings()

    states = {oauth.build_authorization_request(provider, settings).state for _ in range(5)}

    assert len(states) == 5


def test_missing_client_id_is_an_error():
    with pytest.raises(oauth.OAuthError):
        oauth.build_authorization_request(oauth.get_provider("oura"), make_settings(oura_client_id=None))


def test_exchange_code_posts_form_with_verifier(monkeypatch):
    captured = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        captured.update(url=url, data=data, headers=headers)
        return FakeResponse(200, {"access_token": "acc", "refresh_token": "ref", "expires_in": 3600})

    monkeypatch.setattr(oauth.requests, "post", fake_post)

    tokens = oauth.exchange_code(oauth.get_provider("whoop"), "the-code", code_verifier="v" * 50, settings=make_settings())

    assert tokens == oauth.TokenResponse("acc", "ref", 3600)
    assert captured["url"] == "https://api.prod.whoop.com/oauth/oauth2/token"
    assert captured["data"]["grant_type"] == "authorization_code"
    assert captured["data"]["code"] == "the-code"
    assert captured["data"]["code_verifier"] == "v" * 50
    assert captured["data"]["redirect_uri"] == "https://tracker.example/api/auth/whoop/callback"
    assert captured["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


def test_exchange_code_rejection(monkeypatch):
    monkeypatch.setattr(
        oauth.requests,
        "post",
        lambda *args, **kwargs: FakeResponse(400, text='{"error": "invalid_grant"}'),
    )

    with pytest.raises(oauth.OAuthError) as excinfo:
        oauth.exchange_code(oauth.get_provider("oura"), "bad", settings=make_settings())

    assert excinfo.value.status_code == 400
    assert "invalid_grant" in str(excinfo.value)


def test_response_without_access_token_is_rejected(monkeypatch):
    monkeypatch.setattr(oauth.requests, "post", lambda *args, **kwargs: FakeResponse(200, {"token_type": "bearer"}))

    with pytest.raises(oauth.OAuthError):
        oauth.refresh_access_token(oauth.get_provider("oura"), "ref", make_settings())


def test_refresh_grant(monkeypatch):
    captured = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        captured.update(data=data)
        return FakeResponse(200, {"access_token": "new", "expires_in": 86400})

    monkeypatch.setattr(oauth.requests, "post", fake_post)

    tokens = oauth.refresh_access_token(oauth.get_provider("oura"), "old-refresh", make_settings())

    assert tokens.access_token == "new"
    assert tokens.refresh_token is None
    assert captured["data"] == {
        "grant_type": "refresh_token",
        "refresh_token": "old-refresh",
        "client_id": "oura-id",
        "client_secret": "oura-secret",
    }


def test_refresh_needs_credentials():
    with pytest.raises(oauth.OAuthError):
        oauth.refresh_access_token(oauth.get_provider("whoop"), "r", make_settings(whoop_client_secret=None))
