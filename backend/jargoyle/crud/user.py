"""CRUD operations for users."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jargoyle.models.user import User


class UserCRUD:
    """CRUD operations for User model."""

    @staticmethod
    async def get_by_provider_subject(
        db: AsyncSession, oauth_provider: str, oauth_subject: str
    ) -> Optional[User]:
        """Get the user linked to an external (provider, subject) identity."""
        result = await db.execute(
            select(User).where(
                User.oauth_provider == oauth_provider,
                User.oauth_subject == oauth_subject,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        oauth_provider: str,
        oauth_subject: str,
        email: str,
        display_name: str,
        logged_in_at: datetime,
    ) -> User:
        """Insert a new user whose first login happened at ``logged_in_at``.

        Raises ``IntegrityError`` if the identity already exists; the caller
        decides what that means.
        """
        user = User(
            oauth_provider=oauth_provider,
            oauth_subject=oauth_subject,
            email=email,
            display_name=display_name,
            created_at=logged_in_at,
            last_login_at=logged_in_at,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def set_last_login(db: AsyncSession, user: User, logged_in_at: datetime) -> User:
        """Persist a new last-login timestamp."""
        user.last_login_at = logged_in_at
        await db.commit()
        return user


# Create singleton instances
user_crud = UserCRUD()
