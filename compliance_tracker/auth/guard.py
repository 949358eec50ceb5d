"""Access Control Guard: client visibility and past-period edit locking.

The guard is the only place that consults the capability table. It is built
per request from the caller, the store and the request clock.
"""

from datetime import date, datetime

import structlog

from compliance_tracker.auth.rbac import Capability, has_capability
from compliance_tracker.core.errors import AuthorizationError, NotFoundError
from compliance_tracker.core.periods import Period
from compliance_tracker.schemas.auth import CurrentUser
from compliance_tracker.store import ComplianceStore
from compliance_tracker.store.records import ClientRecord

logger = structlog.get_logger()


class AccessGuard:
    def __init__(self, store: ComplianceStore, user: CurrentUser, now: datetime) -> None:
        self.store = store
        self.user = user
        self.now = now

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def current_period(self) -> Period:
        return Period.of(self.today)

    def can(self, capability: Capability) -> bool:
        return has_capability(self.user.role, capability)

    def require(self, capability: Capability, message: str) -> None:
        if not self.can(capability):
            logger.info(
                "access.denied",
                user_id=self.user.user_id,
                role=self.user.role.value,
                capability=capability.value,
            )
            raise AuthorizationError(message)

    # ── client visibility ─────────────────────────────────────────────────

    async def visible_clients(self, manager_id: int | None = None) -> list[ClientRecord]:
        """Active clients the caller may see, ordered by name.

        ``manager_id`` narrows the set to that user's assignments, but only for
        callers allowed to filter by manager; everyone else has it ignored.
        """
        if self.can(Capability.VIEW_ALL_CLIENTS):
            if manager_id is not None and self.can(Capability.FILTER_BY_MANAGER):
                manager = await self.store.get_user(manager_id)
                if manager is None:
                    raise NotFoundError("Manager not found", detail={"manager_id": manager_id})
                return await self.store.list_active_clients(
                    await self.store.assigned_client_ids(manager_id)
                )
            return await self.store.list_active_clients()
        return await self.store.list_active_clients(
            await self.store.assigned_client_ids(self.user.user_id)
        )

    async def ensure_client_access(self, client_id: int) -> None:
        """Same rule as ``visible_clients``: inactive clients are never reachable by assignment."""
        if self.can(Capability.VIEW_ALL_CLIENTS):
            return
        client = await self.store.get_client(client_id)
        if (
            client is None
            or not client.is_active
            or not await self.store.has_assignment(self.user.user_id, client_id)
        ):
            logger.info("access.denied", user_id=self.user.user_id, client_id=client_id)
            raise AuthorizationError("You do not have access to this client")

    # ── period locking ────────────────────────────────────────────────────

    def is_past(self, period: Period) -> bool:
        return period < self.current_period

    async def is_unlocked(self, period: Period) -> bool:
        unlock = await self.store.get_unlock(period)
        return unlock is not None and unlock.is_active(self.now)

    async def can_edit_period(self, period: Period) -> bool:
        if self.can(Capability.EDIT_PAST_PERIODS) or not self.is_past(period):
            return True
        return await self.is_unlocked(period)

    async def ensure_period_editable(self, period: Period) -> None:
        if not await self.can_edit_period(period):
            logger.info(
                "access.period_locked",
                user_id=self.user.user_id,
                year=period.year,
                month=period.month,
            )
            raise AuthorizationError("Cannot edit past periods", detail=period.as_dict())
