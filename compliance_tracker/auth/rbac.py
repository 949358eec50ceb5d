"""Role capability table and checker.

Roles form a closed enumeration; every role check in the service goes through
``has_capability``. Capabilities are granted per role as plain sets.
"""

import enum

from compliance_tracker.models.enums import UserRole


class Capability(str, enum.Enum):
    VIEW_ALL_CLIENTS = "view_all_clients"
    FILTER_BY_MANAGER = "filter_by_manager"
    EDIT_PAST_PERIODS = "edit_past_periods"
    MANAGE_DEFINITIONS = "manage_definitions"
    MANAGE_TEMPORARY_DEFINITIONS = "manage_temporary_definitions"
    MANAGE_OVERRIDES = "manage_overrides"
    MANAGE_EXTENSIONS = "manage_extensions"
    UNLOCK_PERIODS = "unlock_periods"


# ── Per-role capability sets ──────────────────────────────────────────────

_MANAGER_CAPS: frozenset[Capability] = frozenset({
    Capability.MANAGE_TEMPORARY_DEFINITIONS,
    Capability.MANAGE_OVERRIDES,
})

_PARTNER_CAPS: frozenset[Capability] = _MANAGER_CAPS | {
    Capability.VIEW_ALL_CLIENTS,
    Capability.MANAGE_DEFINITIONS,
}

_ADMIN_CAPS: frozenset[Capability] = _PARTNER_CAPS | {
    Capability.FILTER_BY_MANAGER,
    Capability.EDIT_PAST_PERIODS,
    Capability.MANAGE_EXTENSIONS,
    Capability.UNLOCK_PERIODS,
}

CAPABILITY_MATRIX: dict[UserRole, frozenset[Capability]] = {
    UserRole.TEAM_MEMBER: frozenset(),
    UserRole.MANAGER: _MANAGER_CAPS,
    UserRole.ASSOCIATE_PARTNER: _PARTNER_CAPS,
    UserRole.PARTNER: _PARTNER_CAPS,
    UserRole.ADMIN: _ADMIN_CAPS,
}


# ── Public API ────────────────────────────────────────────────────────────


def has_capability(role: UserRole, capability: Capability) -> bool:
    caps = CAPABILITY_MATRIX.get(role)
    if caps is None:
        return False
    return capability in caps


def get_capabilities_for_role(role: UserRole) -> list[str]:
    """Sorted capability names (for API responses)."""
    return sorted(c.value for c in CAPABILITY_MATRIX.get(role, frozenset()))
