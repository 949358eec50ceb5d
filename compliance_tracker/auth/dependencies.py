"""FastAPI auth dependencies: get_store, get_current_user, get_guard."""

from datetime import datetime

import sentry_sdk
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.auth.tokens import verify_token
from compliance_tracker.core.database import get_db
from compliance_tracker.core.periods import get_now
from compliance_tracker.schemas.auth import CurrentUser
from compliance_tracker.store import ComplianceStore

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=True)


async def get_store(db: AsyncSession = Depends(get_db)) -> ComplianceStore:
    return ComplianceStore(db)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: ComplianceStore = Depends(get_store),
) -> CurrentUser:
    """
    Verify the bearer token and resolve the tracker user.

    Decodes JWT -> reads the `sub` claim (internal user id) ->
    loads the user from the store. Inactive users are rejected.
    """
    try:
        payload = verify_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (JWTError, ValueError) as e:
        logger.warning("jwt_verification_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user = await store.get_user(user_id)
    if user is None or not user.is_active:
        logger.warning("user_not_found_for_token", user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    sentry_sdk.set_user({"id": str(user.id)})
    sentry_sdk.set_tag("user_role", user.role.value)

    return CurrentUser(user_id=user.id, role=user.role, email=user.email, name=user.name)


async def get_guard(
    current_user: CurrentUser = Depends(get_current_user),
    store: ComplianceStore = Depends(get_store),
    now: datetime = Depends(get_now),
) -> AccessGuard:
    return AccessGuard(store, current_user, now)
