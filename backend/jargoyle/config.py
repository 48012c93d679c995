"""Application configuration using Pydantic settings."""

import os
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Jargoyle"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production, test

    # Database
    DATABASE_URL: str
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Sessions (signed cookie, see SessionMiddleware)
    SECRET_KEY: str
    SESSION_COOKIE_NAME: str = "jargoyle_session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 8

    # OAuth2 / OIDC login
    # Where the browser lands after a successful login. In dev this points at the
    # Vite dev server (http://localhost:5173); in production the backend serves the SPA.
    OAUTH_SUCCESS_URL: str = "/"
    # Registrations to enable, in order. The first one is the login entry point
    # unless DEFAULT_OAUTH_PROVIDER says otherwise.
    OAUTH_PROVIDERS: list[str] = ["google"]
    DEFAULT_OAUTH_PROVIDER: Optional[str] = None

    OIDC_GOOGLE_CLIENT_ID: str = ""
    OIDC_GOOGLE_CLIENT_SECRET: str = ""

    OIDC_KEYCLOAK_ISSUER: str = ""  # e.g. https://sso.example.com/realms/jargoyle
    OIDC_KEYCLOAK_CLIENT_ID: str = ""
    OIDC_KEYCLOAK_CLIENT_SECRET: str = ""

    OIDC_OKTA_ISSUER: str = ""  # e.g. https://dev-123456.okta.com/oauth2/default
    OIDC_OKTA_CLIENT_ID: str = ""
    OIDC_OKTA_CLIENT_SECRET: str = ""

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Trusted hosts for production (prevents host header attacks)
    ALLOWED_HOSTS: list[str] = ["*"]

    # Only the test suite sets this; the CSRF middleware checks it explicitly.
    SKIP_CSRF_IN_TESTS: bool = False

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Monitoring
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # 'text' or 'json' (json for production)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate SECRET_KEY is not using insecure defaults in production."""
        insecure_defaults = [
            "dev-secret-key-change-in-production",
            "your-secret-key-here",
            "change-me",
            "secret",
        ]

        # Read ENVIRONMENT directly, Settings is not fully initialized yet
        environment = os.getenv("ENVIRONMENT", "development")

        if environment == "production" and (v in insecure_defaults or len(v) < 32):
            raise ValueError(
                "Insecure SECRET_KEY detected in production! "
                "Generate a secure key with: openssl rand -hex 32"
            )

        return v

    @field_validator("ALLOWED_HOSTS")
    @classmethod
    def validate_allowed_hosts(cls, v: list[str]) -> list[str]:
        """Validate ALLOWED_HOSTS is configured for production."""
        environment = os.getenv("ENVIRONMENT", "development")

        if environment == "production" and "*" in v:
            raise ValueError(
                "ALLOWED_HOSTS=['*'] is insecure in production! "
                "Set specific domains like ['jargoyle.example.com']"
            )

        return v

    @property
    def login_provider(self) -> str:
        """Registration the browser is sent to when a protected page needs a login."""
        if self.DEFAULT_OAUTH_PROVIDER:
            return self.DEFAULT_OAUTH_PROVIDER.strip().lower()
        if self.OAUTH_PROVIDERS:
            return self.OAUTH_PROVIDERS[0].strip().lower()
        return "google"

    @property
    def uses_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
