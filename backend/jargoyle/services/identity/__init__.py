"""Identity package: OIDC registrations and the local-account bridge."""

from jargoyle.services.identity.base import (
    AuthenticationRejected,
    IdentityStoreFailure,
    MalformedIdentityAssertion,
    SessionPrincipal,
    normalize_claims,
)
from jargoyle.services.identity.bridge import IdentityBridge
from jargoyle.services.identity.oidc import (
    AccountChooserCustomizer,
    AuthorizationRequestCustomizer,
    OIDCProviderConfig,
    OIDCRegistry,
    build_registry,
    get_authorization_customizer,
    get_registry,
    reset_registry,
)

__all__ = [
    "AuthenticationRejected",
    "IdentityStoreFailure",
    "MalformedIdentityAssertion",
    "SessionPrincipal",
    "normalize_claims",
    "IdentityBridge",
    "AccountChooserCustomizer",
    "AuthorizationRequestCustomizer",
    "OIDCProviderConfig",
    "OIDCRegistry",
    "build_registry",
    "get_authorization_customizer",
    "get_registry",
    "reset_registry",
]
