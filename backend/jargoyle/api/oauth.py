"""OAuth2 / OIDC login flow: authorization redirect, provider callback, browser logout."""

import logging
from typing import Optional

from authlib.common.errors import AuthlibBaseError
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from jargoyle.config import settings
from jargoyle.core.logging_config import get_logger
from jargoyle.dependencies import get_identity_bridge, get_oauth_registry
from jargoyle.services.identity import (
    AuthenticationRejected,
    AuthorizationRequestCustomizer,
    IdentityBridge,
    OIDCRegistry,
    SessionPrincipal,
    get_authorization_customizer,
    normalize_claims,
)
from jargoyle.utils.logging_utils import redact_subject

logger = logging.getLogger(__name__)
audit_logger = get_logger("jargoyle.audit")

router = APIRouter()

# Profile claims kept in the session cookie alongside provider and subject
SESSION_CLAIMS = ("name", "email", "email_verified", "picture")


def _login_failed() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Authentication failed"},
    )


def _client_or_404(registry: OIDCRegistry, provider: str):
    client = registry.client(provider)
    if client is None:
        raise HTTPException(status_code=404, detail="Unknown identity provider")
    return client


@router.get("/oauth2/authorization/{provider}")
async def authorize(
    provider: str,
    request: Request,
    registry: OIDCRegistry = Depends(get_oauth_registry),
    customizer: Optional[AuthorizationRequestCustomizer] = Depends(get_authorization_customizer),
):
    """Send the browser to the provider's authorization endpoint."""
    client = _client_or_404(registry, provider)

    params: dict[str, str] = {}
    if customizer is not None:
        params = customizer.customize(provider, params)

    redirect_uri = str(request.url_for("oauth_callback", provider=provider))
    return await client.authorize_redirect(request, redirect_uri, **params)


@router.get("/login/oauth2/code/{provider}", name="oauth_callback")
async def callback(
    provider: str,
    request: Request,
    registry: OIDCRegistry = Depends(get_oauth_registry),
    bridge: IdentityBridge = Depends(get_identity_bridge),
):
    """
    Finish the authorization-code flow and start a session.

    The provider's ID token is verified by Authlib; its subject and profile
    claims are handed to the identity bridge exactly once. Any failure answers
    401 and leaves the session untouched.
    """
    client = _client_or_404(registry, provider)

    try:
        token = await client.authorize_access_token(request)
        userinfo = token.get("userinfo")
        if userinfo is None:
            userinfo = await client.userinfo(token=token)
    except AuthlibBaseError as exc:
        logger.warning("OIDC callback failed for %s: %s", provider, exc)
        return _login_failed()

    claims = normalize_claims(userinfo)
    subject = claims.get("sub", "")

    try:
        user = await bridge.resolve(provider, subject, claims)
    except AuthenticationRejected as exc:
        logger.warning(
            "Login rejected for %s subject=%s: %s", provider, redact_subject(subject), exc
        )
        audit_logger.info("login_rejected", provider=provider, reason=type(exc).__name__)
        return _login_failed()

    # Fresh session for the new login (drops the OAuth state and any old principal)
    request.session.clear()
    principal = SessionPrincipal(
        provider=provider,
        subject=subject,
        claims={k: claims[k] for k in SESSION_CLAIMS if k in claims},
    )
    request.session[SessionPrincipal.SESSION_KEY] = principal.to_session()
    audit_logger.info("login_succeeded", provider=provider, user_id=str(user.id))

    # Always land on the configured page, not the originally requested one
    return RedirectResponse(settings.OAUTH_SUCCESS_URL, status_code=302)


@router.post("/logout")
async def browser_logout(request: Request):
    """Form-based logout for browser navigation (CSRF-protected)."""
    principal = SessionPrincipal.from_session(request.session)
    if principal is not None:
        audit_logger.info("logout", provider=principal.provider)
    request.session.clear()
    return RedirectResponse("/", status_code=302)
