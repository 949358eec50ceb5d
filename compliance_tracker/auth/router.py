"""Auth API router: caller profile and capabilities."""

from fastapi import APIRouter, Depends

from compliance_tracker.auth.dependencies import get_current_user
from compliance_tracker.auth.rbac import get_capabilities_for_role
from compliance_tracker.schemas.auth import CurrentUser, UserProfileResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Return the caller's profile with the capabilities granted to their role."""
    return UserProfileResponse(
        id=current_user.user_id,
        name=current_user.name,
        email=current_user.email,
        role=current_user.role,
        capabilities=get_capabilities_for_role(current_user.role),
    )
