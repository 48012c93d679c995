"""Request-level access policy for session-authenticated routes."""

import enum
import logging
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from jargoyle.config import settings
from jargoyle.services.identity.base import SessionPrincipal

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
AUTHORIZATION_PREFIX = "/oauth2/authorization/"
CALLBACK_PREFIX = "/login/oauth2/code/"


class PathClass(str, enum.Enum):
    """How a path behaves for an unauthenticated caller."""

    PUBLIC = "public"
    PROTECTED_API = "protected_api"     # 401, no body, no redirect
    PROTECTED_OTHER = "protected_other"  # redirect to the login entry point


# Exact-match public paths. Must not use startswith: "/" would match everything.
# /api/auth/me is public so the SPA gets a 401 from the endpoint itself
# instead of the policy. /api/auth/logout answers 204 with or without a session.
PUBLIC_EXACT: frozenset[str] = frozenset(
    {"/", "/error", "/health", "/logout", "/api/auth/me", "/api/auth/logout"}
)

PUBLIC_PREFIXES = (
    "/css/",
    "/js/",
    AUTHORIZATION_PREFIX,
    CALLBACK_PREFIX,
)

DOCS_PATHS: frozenset[str] = frozenset({"/docs", "/redoc", "/openapi.json"})


def classify_path(path: str, debug: bool = False) -> PathClass:
    """Put a request path into exactly one access class."""
    if path in PUBLIC_EXACT or any(path.startswith(p) for p in PUBLIC_PREFIXES):
        return PathClass.PUBLIC
    if debug and path in DOCS_PATHS:
        return PathClass.PUBLIC
    if path.startswith(API_PREFIX) or path == API_PREFIX.rstrip("/"):
        return PathClass.PROTECTED_API
    return PathClass.PROTECTED_OTHER


def login_entry_point(provider_name: str) -> str:
    return f"{AUTHORIZATION_PREFIX}{provider_name}"


class AccessPolicyMiddleware(BaseHTTPMiddleware):
    """
    Rejects unauthenticated requests to protected paths.

    Must run inside SessionMiddleware. A request counts as authenticated when
    its session carries a principal with a provider and a subject; whether that
    principal still maps to a local user is checked by the endpoints.

    Unauthenticated callers get:
    - Protected-API paths (/api/**): 401 with an empty body
    - everything else that is not public: 302 to /oauth2/authorization/{provider}
    """

    def __init__(self, app: ASGIApp, login_provider: Optional[str] = None):
        super().__init__(app)
        self.login_provider = login_provider or settings.login_provider

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        path_class = classify_path(path, debug=settings.DEBUG)

        if path_class is PathClass.PUBLIC:
            return await call_next(request)

        principal = SessionPrincipal.from_session(request.session)
        if principal is not None:
            request.state.principal = principal
            return await call_next(request)

        if path_class is PathClass.PROTECTED_API:
            logger.debug("Unauthenticated API request rejected: %s %s", request.method, path)
            return Response(status_code=401)

        logger.debug("Unauthenticated request redirected to login: %s %s", request.method, path)
        return RedirectResponse(login_entry_point(self.login_provider), status_code=302)
