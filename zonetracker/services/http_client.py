"""Shared HTTP plumbing for the provider clients."""
from __future__ import annotations

import logging
import random
import time
from typing import Any

import requests


logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}
BACKOFF_FACTOR = 1.0
BACKOFF_JITTER_MAX = 0.5
RATE_LIMIT_BACKOFF_SECONDS = 30.0


class ProviderError(RuntimeError):
    """A provider API call failed after retries or with a non-retryable status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """The provider rejected the access token (HTTP 401)."""


def _snippet(response: requests.Response, limit: int = 300) -> str:
    text = (response.text or "").strip()
    return text if len(text) <= limit else text[:limit] + "..."


def request_with_retries(
    method: str,
    url: str,
    *,
    session: requests.Session | None = None,
    max_retries: int = 4,
    timeout: float = 30.0,
    sleep=time.sleep,
    **kwargs: Any,
) -> requests.Response:
    """
    Make an HTTP request with retry and exponential backoff.

    Retries on 429, 5xx, timeouts and connection errors. A 401 raises
    ProviderAuthError straight away; any other 4xx raises ProviderError.
    """
    sender = session or requests
    attempts = 0

    while True:
        attempts += 1
        try:
            response = sender.request(method, url, timeout=timeout, **kwargs)
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
            if attempts >= max_retries:
                logger.error("%s %s failed after %d attempts: %s", method, url, attempts, exc)
                raise ProviderError(f"{method} {url} failed: {exc}") from exc
            delay = BACKOFF_FACTOR * (2 ** (attempts - 1)) + random.uniform(0, BACKOFF_JITTER_MAX)
            logger.warning("Retrying %s %s after %s (attempt %d/%d)", method, url, exc, attempts, max_retries)
            sleep(delay)
            continue

        status = response.status_code
        if status == 401:
            raise ProviderAuthError(f"Unauthorized for {method} {url}", status_code=status)

        if status in RETRY_STATUSES:
            if attempts >= max_retries:
                logger.error("%s %s failed after %d attempts (status=%s)", method, url, attempts, status)
                raise ProviderError(
                    f"HTTP {status} for {method} {url} after {attempts} attempts",
                    status_code=status,
                )
            if status == 429:
                retry_after = response.headers.get("Retry-After")
                delay = float(retry_after) if retry_after and retry_after.isdigit() else RATE_LIMIT_BACKOFF_SECONDS * attempts
                logger.warning("Rate limited by %s; waiting %.0fs (attempt %d/%d)", url, delay, attempts, max_retries)
            else:
                delay = BACKOFF_FACTOR * (2 ** (attempts - 1)) + random.uniform(0, BACKOFF_JITTER_MAX)
                logger.warning("Retrying %s %s (status=%s, attempt %d/%d)", method, url, status, attempts, max_retries)
            sleep(delay)
            continue

        if status >= 400:
            raise ProviderError(
                f"HTTP {status} for {method} {url}: {_snippet(response)}",
                status_code=status,
            )

        return response
