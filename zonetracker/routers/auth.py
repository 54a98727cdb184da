"""OAuth authorization endpoints for the ring and band providers."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from zonetracker.database import get_db
from zonetracker.logging_config import token_fingerprint
from zonetracker.models.schemas import TokenExchangeRequest, TokenExchangeResponse
from zonetracker.services import oauth
from zonetracker.services.token_store import TokenStore
from zonetracker.templating import templates


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

COOKIE_MAX_AGE = 600


def _provider_or_404(name: str) -> oauth.OAuthProvider:
    try:
        return oauth.get_provider(name)
    except oauth.UnknownProviderError:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {name}")


def _error_redirect(reason: str) -> RedirectResponse:
    return RedirectResponse(url=f"/?error={reason}", status_code=302)


@router.get("/{provider}")
def start_authorization(provider: str, request: Request) -> RedirectResponse:
    """Redirect to the provider's consent page, remembering state (and PKCE verifier) in cookies."""

    spec = _provider_or_404(provider)
    try:
        auth_request = oauth.build_authorization_request(spec)
    except oauth.OAuthError as err:
        logger.error("Cannot start %s authorization: %s", spec.name, err)
        raise HTTPException(status_code=500, detail=str(err))

    secure = request.url.scheme == "https"
    response = RedirectResponse(url=auth_request.url, status_code=302)
    response.set_cookie(
        spec.state_cookie(),
        auth_request.state,
        max_age=COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=secure,
    )
    if auth_request.code_verifier:
        response.set_cookie(
            spec.verifier_cookie(),
            auth_request.code_verifier,
            max_age=COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
            secure=secure,
        )
    logger.info("Starting %s authorization (pkce=%s)", spec.name, bool(auth_request.code_verifier))
    return response


@router.get("/{provider}/callback", response_class=HTMLResponse)
def authorization_callback(
    provider: str,
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    """Validate state, exchange the code and store the resulting tokens."""

    spec = _provider_or_404(provider)

    if error:
        logger.warning("%s authorization denied: %s", spec.name, error)
        return _error_redirect(error)
    if not code:
        return _error_redirect("no_code")

    expected_state = request.cookies.get(spec.state_cookie())
    if not state or not expected_state or state != expected_state:
        logger.warning("%s callback state mismatch", spec.name)
        return _error_redirect("state_mismatch")

    try:
        tokens = oauth.exchange_code(
            spec,
            code,
            code_verifier=request.cookies.get(spec.verifier_cookie()),
        )
    except oauth.OAuthError:
        logger.exception("%s token exchange failed", spec.name)
        return _error_redirect("token_failed")

    TokenStore(db).save_token(spec.name, tokens.access_token, tokens.refresh_token, tokens.expires_in)

    response = templates.TemplateResponse(
        "oauth_result.html",
        {
            "request": request,
            "provider": spec.name,
            "fingerprint": token_fingerprint(tokens.access_token),
            "expires_in": tokens.expires_in,
            "has_refresh_token": bool(tokens.refresh_token),
        },
    )
    response.delete_cookie(spec.state_cookie())
    response.delete_cookie(spec.verifier_cookie())
    return response


@router.post("/{provider}", response_model=TokenExchangeResponse)
def exchange_token(provider: str, payload: TokenExchangeRequest) -> TokenExchangeResponse:
    """Exchange an authorization code obtained elsewhere (e.g. a native client)."""

    spec = _provider_or_404(provider)
    try:
        tokens = oauth.exchange_code(spec, payload.code, redirect_uri=payload.redirect_uri)
    except oauth.OAuthError as err:
        logger.exception("%s code exchange failed", spec.name)
        raise HTTPException(status_code=err.status_code or 500, detail=f"Token exchange failed: {err}")

    return TokenExchangeResponse(**tokens.to_dict())
