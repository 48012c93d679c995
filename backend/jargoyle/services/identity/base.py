"""Identity types shared by the bridge, the OIDC flow and the session surface."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


class AuthenticationRejected(Exception):
    """A login attempt failed and no session may be established.

    Raised by the identity bridge; the OIDC callback turns it into a login
    failure response, never a 500.
    """


class MalformedIdentityAssertion(AuthenticationRejected):
    """The verified assertion is missing its provider or subject."""


class IdentityStoreFailure(AuthenticationRejected):
    """The user record could not be read or written during login."""


@dataclass(frozen=True)
class SessionPrincipal:
    """The external identity an authenticated session carries.

    Only the provider-issued identity is kept in the session. The local user is
    looked up again on every request, so a deleted user simply stops resolving.
    """

    provider: str
    subject: str
    claims: dict[str, str] = field(default_factory=dict)

    SESSION_KEY = "principal"

    def to_session(self) -> dict[str, Any]:
        return {"provider": self.provider, "subject": self.subject, "claims": dict(self.claims)}

    @classmethod
    def from_session(cls, session: Mapping[str, Any]) -> Optional["SessionPrincipal"]:
        """Read the principal from a session, or None if absent or unusable."""
        raw = session.get(cls.SESSION_KEY)
        if not isinstance(raw, dict):
            return None

        provider = raw.get("provider")
        subject = raw.get("subject")
        if not isinstance(provider, str) or not isinstance(subject, str):
            return None
        if not provider.strip() or not subject.strip():
            return None

        claims = raw.get("claims")
        return cls(provider=provider, subject=subject, claims=claims if isinstance(claims, dict) else {})


def normalize_claims(raw: Mapping[str, Any]) -> dict[str, str]:
    """Flatten provider claims to the string map the bridge works with.

    Lists, nested objects and missing values are dropped; scalars are
    stringified.
    """
    claims: dict[str, str] = {}
    for key, value in raw.items():
        if value is None or isinstance(value, (dict, list, tuple)):
            continue
        if isinstance(value, bool):
            claims[key] = "true" if value else "false"
        else:
            claims[key] = str(value)
    return claims
