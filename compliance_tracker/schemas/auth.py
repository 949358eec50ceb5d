"""Auth schemas: CurrentUser and profile."""

from pydantic import BaseModel

from compliance_tracker.models.enums import UserRole


class CurrentUser(BaseModel):
    """Lightweight caller context extracted from the bearer token + DB lookup."""

    user_id: int
    role: UserRole
    email: str
    name: str


class UserProfileResponse(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    capabilities: list[str]
