"""FastAPI dependencies for session authentication."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from jargoyle.core.database import get_db
from jargoyle.crud.user import user_crud
from jargoyle.models.user import User
from jargoyle.services.identity import (
    IdentityBridge,
    OIDCRegistry,
    SessionPrincipal,
    get_registry,
)


class NotAuthenticated(Exception):
    """No usable session. Rendered as a bare 401 by the handler in main.py."""


def get_session_principal(request: Request) -> Optional[SessionPrincipal]:
    """External identity stored in the session, or None if not logged in."""
    return SessionPrincipal.from_session(request.session)


async def get_current_user(
    principal: Optional[SessionPrincipal] = Depends(get_session_principal),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the session's external identity to the local user.

    Raises:
        NotAuthenticated: there is no session or its identity no longer maps
            to a user
    """
    if principal is None:
        raise NotAuthenticated()

    user = await user_crud.get_by_provider_subject(db, principal.provider, principal.subject)
    if user is None:
        raise NotAuthenticated()

    return user


def get_identity_bridge(db: AsyncSession = Depends(get_db)) -> IdentityBridge:
    return IdentityBridge(db)


def get_oauth_registry() -> OIDCRegistry:
    return get_registry()
