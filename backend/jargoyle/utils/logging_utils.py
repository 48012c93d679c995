"""Logging helpers for keeping PII out of log lines."""

import hashlib
from typing import Optional


def redact_email(email: Optional[str]) -> str:
    """
    Redact an email address for logging while keeping it distinguishable.

    Examples:
        >>> redact_email("user@example.com")
        'u***@example.com'
        >>> redact_email(None)
        'N/A'
    """
    if not email or email == "notset":
        return "N/A"

    try:
        local, domain = email.split("@", 1)

        # Too short to show a prefix without giving the whole thing away
        if len(local) < 3:
            email_hash = hashlib.sha256(email.encode()).hexdigest()[:6]
            return f"hash:{email_hash}@{domain}"

        return f"{local[0]}***@{domain}"

    except ValueError:
        email_hash = hashlib.sha256(str(email).encode()).hexdigest()[:6]
        return f"hash:{email_hash}"


def redact_subject(subject: Optional[str]) -> str:
    """Short stable fingerprint of a provider subject identifier."""
    if not subject:
        return "N/A"
    return "sub:" + hashlib.sha256(subject.encode()).hexdigest()[:10]
