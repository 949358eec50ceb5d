"""Bearer token verification.

Tokens are issued by the login service and signed with the shared
``SECRET_KEY``; this service only verifies them.
"""

from typing import Any

from jose import JWTError, jwt

from compliance_tracker.core.config import settings


def verify_token(token: str) -> dict[str, Any]:
    """Decode and verify a bearer token; raises ``JWTError`` when invalid or expired."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if not payload.get("sub"):
        raise JWTError("Token missing subject claim")
    return payload
