"""Session endpoints: who am I, and logout."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from jargoyle.core.database import get_db
from jargoyle.crud.user import user_crud
from jargoyle.dependencies import get_session_principal
from jargoyle.schemas.user import UserPublic
from jargoyle.services.identity import SessionPrincipal

router = APIRouter()


@router.get(
    "/me",
    response_model=UserPublic,
    responses={401: {"description": "Not authenticated"}},
)
async def me(
    principal: Optional[SessionPrincipal] = Depends(get_session_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Return the logged-in user's public profile, or 401 if not logged in.

    The provider comes from the session rather than being hardcoded, so this
    works for every configured registration. A session whose identity no
    longer resolves to a user is treated as not logged in.
    """
    if principal is None:
        return Response(status_code=status.HTTP_401_UNAUTHORIZED)

    user = await user_crud.get_by_provider_subject(db, principal.provider, principal.subject)
    if user is None:
        return Response(status_code=status.HTTP_401_UNAUTHORIZED)

    return UserPublic.model_validate(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def logout(request: Request) -> Response:
    """End the current session. Succeeds whether or not one existed."""
    request.session.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
