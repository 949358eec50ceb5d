"""Auth package: token verification, capability table, access guard."""

from compliance_tracker.auth.dependencies import get_current_user, get_guard, get_store
from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.auth.rbac import Capability, has_capability

__all__ = [
    "AccessGuard",
    "Capability",
    "get_current_user",
    "get_guard",
    "get_store",
    "has_capability",
]
