"""FastAPI main application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.middleware.sessions import SessionMiddleware

from jargoyle.api import auth, documents, oauth
from jargoyle.config import settings
from jargoyle.core.database import close_db, init_db
from jargoyle.core.logging_config import setup_logging
from jargoyle.dependencies import NotAuthenticated
from jargoyle.middleware.access_policy import AccessPolicyMiddleware
from jargoyle.middleware.csrf_protection import CSRFProtectionMiddleware
from jargoyle.middleware.error_handler import ErrorHandlerMiddleware
from jargoyle.middleware.request_logging import RequestLoggingMiddleware
from jargoyle.services.identity import get_authorization_customizer, get_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info("Starting %s %s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)

    await init_db()

    registry = get_registry()
    logger.info(
        "OIDC providers: %s (login entry point: %s, account chooser: %s)",
        registry.providers,
        settings.login_provider,
        get_authorization_customizer() is not None,
    )

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    await close_db()


# Disable interactive API docs in production to reduce attack surface
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# Middleware added last runs first. Request order:
# CORS -> hosts/HTTPS -> errors -> logging -> session -> CSRF -> access policy -> route

# Access policy reads the session, so it must sit inside SessionMiddleware
app.add_middleware(AccessPolicyMiddleware)

# CSRF protection for non-API state-changing requests
app.add_middleware(CSRFProtectionMiddleware)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=not settings.DEBUG,
)

# Request logging - method, path, status, timing
app.add_middleware(RequestLoggingMiddleware)

# Error handler - Catch uncaught exceptions
app.add_middleware(ErrorHandlerMiddleware)

# Security middleware (production only)
if not settings.DEBUG:
    app.add_middleware(HTTPSRedirectMiddleware)
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request, exc):
    # Same answer as the access policy gives an anonymous API caller
    return Response(status_code=status.HTTP_401_UNAUTHORIZED)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    logger.debug("Validation error on %s: %s", request.url, exc.errors())
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(oauth.router, tags=["Login"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(documents.router, prefix="/api/documents", tags=["Documents"])
