"""User model: the local account behind an external OIDC identity."""

import uuid

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship

from jargoyle.core.database import Base
from jargoyle.core.db_types import UUID
from jargoyle.utils.datetime_utils import utc_now


class User(Base):
    """Local account keyed to one (provider, subject) pair.

    ``oauth_provider`` is the registration key the login came through
    (``google``, ``keycloak``, ...) and ``oauth_subject`` the provider's stable
    ``sub`` claim. Rows are created on first login and only ``last_login_at``
    changes afterwards.
    """

    __tablename__ = "users"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, default="notset")
    display_name = Column(String(255), nullable=False, default="Unknown")
    oauth_provider = Column(String(50), nullable=False)
    oauth_subject = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=utc_now, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    documents = relationship(
        "Document", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint(
            "oauth_provider",
            "oauth_subject",
            name="uq_users_oauth_provider_subject",
        ),
    )

    def __repr__(self) -> str:
        return f"<User provider={self.oauth_provider!r} id={self.id}>"
