"""User Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class UserPublic(BaseModel):
    """Public profile returned by /api/auth/me.

    Leaves out the provider subject and the timestamps.
    """

    id: UUID
    email: str
    display_name: str = Field(serialization_alias="displayName")
    oauth_provider: str = Field(serialization_alias="oauthProvider")

    class Config:
        from_attributes = True
