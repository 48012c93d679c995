"""Identity bridge: maps a verified external identity to exactly one local user."""

import logging
from typing import Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jargoyle.crud.user import user_crud
from jargoyle.models.user import User
from jargoyle.services.identity.base import IdentityStoreFailure, MalformedIdentityAssertion
from jargoyle.utils.datetime_utils import utc_now, utc_now_after
from jargoyle.utils.logging_utils import redact_email, redact_subject

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Unknown"
DEFAULT_EMAIL = "notset"


def _claim(claims: Mapping[str, str], name: str, default: str) -> str:
    value = claims.get(name)
    if value is None or not str(value).strip():
        return default
    return str(value)


class IdentityBridge:
    """Resolves ``(provider, subject, claims)`` to a :class:`User`.

    The first login for an identity creates the user; every later login only
    moves ``last_login_at`` forward. Profile claims from later logins are
    ignored.

    Uniqueness of ``(oauth_provider, oauth_subject)`` is backed by the
    ``uq_users_oauth_provider_subject`` constraint. When two first logins race,
    the loser's insert fails on that constraint and it records its login on
    the winner's row instead, so both callers get the same user.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve(self, provider_name: str, subject: str, claims: Mapping[str, str]) -> User:
        """Return the local user for a verified identity, creating it if needed.

        Raises:
            MalformedIdentityAssertion: provider or subject is blank.
            IdentityStoreFailure: the user could not be read or persisted.
        """
        if not provider_name or not provider_name.strip():
            raise MalformedIdentityAssertion("Provider not specified.")
        if not subject or not subject.strip():
            raise MalformedIdentityAssertion("Subject not specified.")

        try:
            user = await user_crud.get_by_provider_subject(self.db, provider_name, subject)
        except SQLAlchemyError as exc:
            raise IdentityStoreFailure(f"User lookup failed: {exc}") from exc

        if user is not None:
            return await self._record_login(user)

        return await self._provision(provider_name, subject, claims)

    async def _record_login(self, user: User) -> User:
        try:
            user = await user_crud.set_last_login(
                self.db, user, utc_now_after(user.last_login_at)
            )
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise IdentityStoreFailure(f"Could not record login: {exc}") from exc

        logger.info(
            "User logged in: user_id=%s provider=%s", user.id, user.oauth_provider
        )
        return user

    async def _provision(self, provider_name: str, subject: str, claims: Mapping[str, str]) -> User:
        email = _claim(claims, "email", DEFAULT_EMAIL)
        try:
            user = await user_crud.create(
                self.db,
                oauth_provider=provider_name,
                oauth_subject=subject,
                email=email,
                display_name=_claim(claims, "name", DEFAULT_DISPLAY_NAME),
                logged_in_at=utc_now(),
            )
        except IntegrityError:
            # A concurrent first login created this identity after our lookup
            await self.db.rollback()
            logger.info(
                "Identity created concurrently, reusing it: provider=%s subject=%s",
                provider_name,
                redact_subject(subject),
            )
            return await self._resolve_after_conflict(provider_name, subject)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise IdentityStoreFailure(f"Could not create user: {exc}") from exc

        logger.info(
            "Provisioned user from %s: user_id=%s email=%s",
            provider_name,
            user.id,
            redact_email(email),
        )
        return user

    async def _resolve_after_conflict(self, provider_name: str, subject: str) -> User:
        try:
            user = await user_crud.get_by_provider_subject(self.db, provider_name, subject)
        except SQLAlchemyError as exc:
            raise IdentityStoreFailure(f"User lookup failed: {exc}") from exc

        if user is None:
            # The conflicting row vanished again; nothing sane to log in to
            raise IdentityStoreFailure("User creation conflicted but no user was found.")

        return await self._record_login(user)
