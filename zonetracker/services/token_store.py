"""Database-backed OAuth token storage with transparent refresh."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from zonetracker.config import Settings, get_settings
from zonetracker.logging_config import token_fingerprint
from zonetracker.models.database_models import OAuthToken
from zonetracker.services import oauth


logger = logging.getLogger(__name__)


class TokenStore:
    """Keep one token row per provider and hand out access tokens that are still valid."""

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self._now = clock

    def get_token(self, provider: str) -> OAuthToken | None:
        return self.db.execute(
            select(OAuthToken).where(OAuthToken.provider == provider)
        ).scalar_one_or_none()

    def save_token(
        self,
        provider: str,
        access_token: str,
        refresh_token: str | None = None,
        expires_in: int | None = None,
    ) -> OAuthToken:
        """Upsert the provider's token; a missing refresh token keeps the stored one."""

        expires_at = self._now() + timedelta(seconds=expires_in) if expires_in else None
        token = self.get_token(provider)
        if token is None:
            token = OAuthToken(provider=provider, access_token=access_token)
            self.db.add(token)

        token.access_token = access_token
        if refresh_token:
            token.refresh_token = refresh_token
        token.expires_at = expires_at
        token.updated_at = self._now()
        self.db.flush()

        logger.info(
            "Stored %s token (fingerprint=%s, expires_at=%s)",
            provider,
            token_fingerprint(access_token),
            expires_at.isoformat() if expires_at else "unknown",
        )
        return token

    def delete_token(self, provider: str) -> bool:
        token = self.get_token(provider)
        if token is None:
            return False
        self.db.delete(token)
        self.db.flush()
        logger.info("Deleted stored %s token", provider)
        return True

    def is_expired(self, token: OAuthToken) -> bool:
        """True when the token expires within the refresh buffer; unknown expiry counts as valid."""

        if token.expires_at is None:
            return False
        buffer = timedelta(seconds=self.settings.token_refresh_buffer_seconds)
        return self._now() + buffer > token.expires_at

    def _bootstrap_from_env(self, provider: str) -> str | None:
        access_token = getattr(self.settings, f"{provider}_access_token", None)
        if not access_token:
            return None
        refresh_token = getattr(self.settings, f"{provider}_refresh_token", None)
        self.save_token(provider, access_token, refresh_token)
        logger.info("Bootstrapped %s token from environment", provider)
        return access_token

    def refresh(self, provider: str) -> str | None:
        """Force a refresh-token grant; None when it cannot be done."""

        token = self.get_token(provider)
        if token is None or not token.refresh_token:
            logger.error("%s token cannot be refreshed: no refresh token stored", provider)
            return None

        logger.info("Refreshing %s token (fingerprint=%s)", provider, token_fingerprint(token.access_token))
        try:
            fresh = oauth.refresh_access_token(oauth.get_provider(provider), token.refresh_token, self.settings)
        except oauth.OAuthError:
            logger.exception("%s token refresh failed; re-authorization required", provider)
            return None

        self.save_token(provider, fresh.access_token, fresh.refresh_token, fresh.expires_in)
        return fresh.access_token

    def get_valid_access_token(self, provider: str) -> str | None:
        """
        Return a usable access token for ``provider``.

        Falls back to tokens configured in the environment on first use and
        refreshes tokens that are about to expire. Returns None when the
        provider is not connected or the refresh failed.
        """
        oauth.get_provider(provider)

        token = self.get_token(provider)
        if token is None:
            return self._bootstrap_from_env(provider)

        if self.is_expired(token):
            logger.info("%s token expired or expiring soon", provider)
            return self.refresh(provider)

        return token.access_token

    def refresh_all(self) -> dict[str, str]:
        """Ensure every provider has a valid token; report per-provider status."""

        results: dict[str, str] = {}
        for provider in oauth.PROVIDERS:
            try:
                results[provider] = "ok" if self.get_valid_access_token(provider) else "no_token"
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error refreshing %s token", provider)
                results[provider] = f"error: {exc}"
        return results
