"""OIDC provider registrations and the optional authorization-request customizer.

The authorization-code flow itself (redirect, state, token exchange, ID token
verification against the provider's JWKS) is delegated to Authlib.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from authlib.integrations.starlette_client import OAuth

from jargoyle.config import settings

logger = logging.getLogger(__name__)

# Module-level singleton (built lazily on first request)
_registry: Optional["OIDCRegistry"] = None


@dataclass
class OIDCProviderConfig:
    """Configuration for one OIDC registration."""

    provider_name: str  # registration key, stored as User.oauth_provider
    issuer: str         # discovery document lives under {issuer}/.well-known/
    client_id: str
    client_secret: str
    scope: str = "openid email profile"

    @property
    def server_metadata_url(self) -> str:
        return f"{self.issuer.rstrip('/')}/.well-known/openid-configuration"


class OIDCRegistry:
    """The enabled OIDC registrations, keyed by provider name."""

    def __init__(self, configs: list[OIDCProviderConfig]) -> None:
        self._oauth = OAuth()
        self._configs = {c.provider_name: c for c in configs}
        for config in configs:
            self._oauth.register(
                name=config.provider_name,
                client_id=config.client_id,
                client_secret=config.client_secret,
                server_metadata_url=config.server_metadata_url,
                client_kwargs={"scope": config.scope},
            )

    @property
    def providers(self) -> list[str]:
        return list(self._configs)

    def client(self, provider_name: str) -> Optional[Any]:
        """Authlib client for a registration, or None if it is not enabled."""
        if provider_name not in self._configs:
            return None
        return self._oauth.create_client(provider_name)


def build_registry() -> OIDCRegistry:
    """Construct the registrations from application settings."""
    configs: list[OIDCProviderConfig] = []

    for name in settings.OAUTH_PROVIDERS:
        name = name.strip().lower()

        if name == "google":
            if not settings.OIDC_GOOGLE_CLIENT_ID:
                logger.warning(
                    "OIDC: 'google' requested but OIDC_GOOGLE_CLIENT_ID not set, skipping"
                )
                continue
            configs.append(
                OIDCProviderConfig(
                    provider_name="google",
                    issuer="https://accounts.google.com",
                    client_id=settings.OIDC_GOOGLE_CLIENT_ID,
                    client_secret=settings.OIDC_GOOGLE_CLIENT_SECRET,
                )
            )
            logger.info("OIDC: registered Google")

        elif name == "keycloak":
            if not settings.OIDC_KEYCLOAK_ISSUER or not settings.OIDC_KEYCLOAK_CLIENT_ID:
                logger.warning("OIDC: 'keycloak' requested but config not set, skipping")
                continue
            configs.append(
                OIDCProviderConfig(
                    provider_name="keycloak",
                    issuer=settings.OIDC_KEYCLOAK_ISSUER,
                    client_id=settings.OIDC_KEYCLOAK_CLIENT_ID,
                    client_secret=settings.OIDC_KEYCLOAK_CLIENT_SECRET,
                )
            )
            logger.info("OIDC: registered Keycloak iss=%s", settings.OIDC_KEYCLOAK_ISSUER)

        elif name == "okta":
            if not settings.OIDC_OKTA_ISSUER or not settings.OIDC_OKTA_CLIENT_ID:
                logger.warning("OIDC: 'okta' requested but config not set, skipping")
                continue
            configs.append(
                OIDCProviderConfig(
                    provider_name="okta",
                    issuer=settings.OIDC_OKTA_ISSUER,
                    client_id=settings.OIDC_OKTA_CLIENT_ID,
                    client_secret=settings.OIDC_OKTA_CLIENT_SECRET,
                )
            )
            logger.info("OIDC: registered Okta iss=%s", settings.OIDC_OKTA_ISSUER)

        else:
            logger.warning("OIDC: unknown provider %r, skipping", name)

    if not configs:
        logger.warning("OIDC: no providers configured, every login will fail")

    return OIDCRegistry(configs)


def get_registry() -> OIDCRegistry:
    """Return the singleton registry, building it on first call."""
    global _registry
    if _registry is None:
        _registry = build_registry()
    return _registry


def reset_registry() -> None:
    """Reset the singleton registry (used in tests to re-read config)."""
    global _registry
    _registry = None


# ----------------------------------------------------------------------
# Authorization request customization
# ----------------------------------------------------------------------


class AuthorizationRequestCustomizer(Protocol):
    """Adds or changes parameters of the outgoing authorization request."""

    def customize(self, provider_name: str, params: dict[str, str]) -> dict[str, str]:
        ...


class AccountChooserCustomizer:
    """Always show the provider's account chooser (``prompt=select_account``).

    Without it Google skips the chooser when only one account session is
    active, which makes switching test accounts during development awkward.
    """

    def customize(self, provider_name: str, params: dict[str, str]) -> dict[str, str]:
        return {**params, "prompt": "select_account"}


def get_authorization_customizer() -> Optional[AuthorizationRequestCustomizer]:
    """Customizer for this environment; only development has one."""
    if settings.ENVIRONMENT == "development":
        return AccountChooserCustomizer()
    return None
