"""OAuth2 authorization-code flow for the ring and band providers."""
from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import requests

from zonetracker.config import Settings, get_settings
from zonetracker.logging_config import token_fingerprint


logger = logging.getLogger(__name__)


class OAuthError(RuntimeError):
    """Token exchange or refresh was rejected by the provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownProviderError(KeyError):
    """Raised for a provider name outside the registry."""


@dataclass(frozen=True)
class OAuthProvider:
    name: str
    authorize_url: str
    token_url: str
    scope: str
    supports_pkce: bool

    def state_cookie(self) -> str:
        return f"{self.name}_oauth_state"

    def verifier_cookie(self) -> str:
        return f"{self.name}_pkce_verifier"


PROVIDERS: dict[str, OAuthProvider] = {
    "oura": OAuthProvider(
        name="oura",
        authorize_url="https://cloud.ouraring.com/oauth/authorize",
        token_url="https://api.ouraring.com/oauth/token",
        scope="daily readiness heartrate workout tag session sleep",
        supports_pkce=False,
    ),
    "whoop": OAuthProvider(
        name="whoop",
        authorize_url="https://api.prod.whoop.com/oauth/oauth2/auth",
        token_url="https://api.prod.whoop.com/oauth/oauth2/token",
        scope="read:recovery read:cycles read:sleep read:workout read:profile read:body_measurement",
        supports_pkce=True,
    ),
}


@dataclass(frozen=True)
class TokenResponse:
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
        }


@dataclass(frozen=True)
class AuthorizationRequest:
    url: str
    state: str
    code_verifier: str | None = None


def get_provider(name: str) -> OAuthProvider:
    try:
        return PROVIDERS[name.lower()]
    except KeyError:
        raise UnknownProviderError(name) from None


def client_credentials(provider: OAuthProvider, settings: Settings | None = None) -> tuple[str | None, str | None]:
    settings = settings or get_settings()
    return (
        getattr(settings, f"{provider.name}_client_id"),
        getattr(settings, f"{provider.name}_client_secret"),
    )


def redirect_uri_for(provider: OAuthProvider, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    return f"{settings.public_base_url}/api/auth/{provider.name}/callback"


def uses_pkce(provider: OAuthProvider, settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return provider.supports_pkce and settings.oauth_use_pkce


def generate_code_verifier() -> str:
    """43-128 char URL-safe verifier (RFC 7636)."""
    return secrets.token_urlsafe(64)[:96]


def code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def build_authorization_request(provider: OAuthProvider, settings: Settings | None = None) -> AuthorizationRequest:
    """Authorize URL with a fresh ``state`` and, when enabled, a PKCE challenge."""

    settings = settings or get_settings()
    client_id, _ = client_credentials(provider, settings)
    if not client_id:
        raise OAuthError(f"{provider.name} client ID not configured")

    state = secrets.token_urlsafe(24)
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri_for(provider, settings),
        "response_type": "code",
        "scope": provider.scope,
        "state": state,
    }

    verifier = None
    if uses_pkce(provider, settings):
        verifier = generate_code_verifier()
        params["code_challenge"] = code_challenge(verifier)
        params["code_challenge_method"] = "S256"

    return AuthorizationRequest(
        url=f"{provider.authorize_url}?{urlencode(params)}",
        state=state,
        code_verifier=verifier,
    )


def _post_token(provider: OAuthProvider, data: dict[str, str], settings: Settings) -> TokenResponse:
    try:
        response = requests.post(
            provider.token_url,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=settings.http_timeout_seconds,
        )
    except requests.exceptions.RequestException as exc:
        raise OAuthError(f"{provider.name} token endpoint unreachable: {exc}") from exc

    if not response.ok:
        logger.error(
            "%s token request (%s) failed with HTTP %s",
            provider.name,
            data.get("grant_type"),
            response.status_code,
        )
        raise OAuthError(
            f"{provider.name} token request failed: {(response.text or '').strip()[:300]}",
            status_code=response.status_code,
        )

    body = response.json()
    if not body.get("access_token"):
        raise OAuthError(f"{provider.name} token response did not include an access token")

    tokens = TokenResponse(
        access_token=body["access_token"],
        refresh_token=body.get("refresh_token"),
        expires_in=body.get("expires_in"),
    )
    logger.info(
        "%s token issued via %s (fingerprint=%s, expires_in=%s)",
        provider.name,
        data.get("grant_type"),
        token_fingerprint(tokens.access_token),
        tokens.expires_in,
    )
    return tokens


def exchange_code(
    provider: OAuthProvider,
    code: str,
    redirect_uri: str | None = None,
    code_verifier: str | None = None,
    settings: Settings | None = None,
) -> TokenResponse:
    """Trade an authorization code for tokens."""

    settings = settings or get_settings()
    client_id, client_secret = client_credentials(provider, settings)
    if not client_id or not client_secret:
        raise OAuthError(f"{provider.name} OAuth not configured")

    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri or redirect_uri_for(provider, settings),
        "client_id": client_id,
        "client_secret": client_secret,
    }
    if code_verifier and uses_pkce(provider, settings):
        data["code_verifier"] = code_verifier
    return _post_token(provider, data, settings)


def refresh_access_token(
    provider: OAuthProvider,
    refresh_token: str,
    settings: Settings | None = None,
) -> TokenResponse:
    """Run the refresh-token grant."""

    settings = settings or get_settings()
    client_id, client_secret = client_credentials(provider, settings)
    if not client_id or not client_secret:
        raise OAuthError(f"{provider.name} OAuth credentials not configured")

    data = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": client_id,
        "client_secret": client_secret,
    }
    return _post_token(provider, data, settings)
