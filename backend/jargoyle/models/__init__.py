"""Database models."""

from jargoyle.models.document import Document, DocumentStatus, DocumentSummary
from jargoyle.models.user import User

__all__ = [
    "User",
    "Document",
    "DocumentStatus",
    "DocumentSummary",
]
