from datetime import datetime
from pydantic import BaseModel


class ProfileResponse(BaseModel):
    id: str
    email: str
    display_name: str | None
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class IdentityCreatedEvent(BaseModel):
    """Payload the identity provider posts when a new identity signs up."""
    id: str
    email: str
    display_name: str | None = None


class TokenPayload(BaseModel):
    sub: str  # identity id
    email: str | None = None
    exp: int
    type: str = "access"
