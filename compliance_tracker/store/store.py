"""Compliance store: the only component that talks to the database.

One ``ComplianceStore`` wraps one ``AsyncSession`` (one per request). It never
commits; the session owner (``get_db`` or a test fixture) decides when the
unit of work ends. Every read returns typed records from ``store.records``.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_tracker.core.periods import Period
from compliance_tracker.models.compliance import (
    Compliance,
    ComplianceExtension,
    ComplianceOverride,
    ComplianceStatusEntry,
    MonthUnlock,
)
from compliance_tracker.models.core import (
    Client,
    ClientLawGroupAssignment,
    ClientMonthlyLink,
    LawGroup,
    User,
    UserClientAssignment,
)
from compliance_tracker.models.enums import ComplianceStatus
from compliance_tracker.store.records import (
    ClientLinkRecord,
    ClientRecord,
    ComplianceDefinition,
    DefaultExtension,
    LawGroupRecord,
    MonthlyOverride,
    MonthUnlockRecord,
    StatusRecord,
    UserRecord,
)

logger = structlog.get_logger()

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ComplianceStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ── low-level helpers ─────────────────────────────────────────────────

    def _insert(self, model: type) -> Any:
        """Dialect-specific INSERT supporting ``on_conflict_do_update``."""
        dialect = self._session.get_bind().dialect.name
        try:
            factory = _UPSERT_DIALECTS[dialect]
        except KeyError:
            raise NotImplementedError(f"Upsert not supported on dialect {dialect!r}") from None
        return factory(model)

    async def _upsert(
        self,
        model: type,
        values: dict[str, Any],
        conflict: list[str],
        update_cols: list[str],
    ) -> None:
        """Single-statement insert-or-replace keyed by a unique constraint."""
        stmt = self._insert(model).values(**values)
        set_ = {col: stmt.excluded[col] for col in update_cols}
        set_["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=conflict, set_=set_)
        await self._session.execute(stmt)
        # Core statements bypass the identity map; later selects must see the new row.
        for obj in list(self._session.identity_map.values()):
            if isinstance(obj, model):
                self._session.expire(obj)

    # ── users & clients ───────────────────────────────────────────────────

    async def get_user(self, user_id: int) -> UserRecord | None:
        user = await self._session.get(User, user_id)
        return UserRecord.model_validate(user) if user else None

    async def get_client(self, client_id: int) -> ClientRecord | None:
        client = await self._session.get(Client, client_id)
        return ClientRecord.model_validate(client) if client else None

    async def list_active_clients(
        self, client_ids: Collection[int] | None = None
    ) -> list[ClientRecord]:
        """Active clients ordered by name, optionally restricted to ``client_ids``."""
        if client_ids is not None and not client_ids:
            return []
        stmt = select(Client).where(Client.is_active.is_(True))
        if client_ids is not None:
            stmt = stmt.where(Client.id.in_(list(client_ids)))
        stmt = stmt.order_by(Client.name, Client.id)
        result = await self._session.execute(stmt)
        return [ClientRecord.model_validate(c) for c in result.scalars().all()]

    async def assigned_client_ids(self, user_id: int) -> set[int]:
        result = await self._session.execute(
            select(UserClientAssignment.client_id).where(UserClientAssignment.user_id == user_id)
        )
        return set(result.scalars().all())

    async def has_assignment(self, user_id: int, client_id: int) -> bool:
        result = await self._session.execute(
            select(UserClientAssignment.id).where(
                UserClientAssignment.user_id == user_id,
                UserClientAssignment.client_id == client_id,
            )
        )
        return result.first() is not None

    async def has_law_group_access(self, user_id: int, law_group_id: int) -> bool:
        """Whether any client assigned to ``user_id`` is subscribed to the law group."""
        result = await self._session.execute(
            select(UserClientAssignment.id)
            .join(
                ClientLawGroupAssignment,
                ClientLawGroupAssignment.client_id == UserClientAssignment.client_id,
            )
            .where(
                UserClientAssignment.user_id == user_id,
                ClientLawGroupAssignment.law_group_id == law_group_id,
            )
            .limit(1)
        )
        return result.first() is not None

    # ── law groups & definitions ──────────────────────────────────────────

    async def list_law_groups(self) -> list[LawGroupRecord]:
        result = await self._session.execute(
            select(LawGroup).order_by(LawGroup.display_order, LawGroup.name, LawGroup.id)
        )
        return [LawGroupRecord.model_validate(lg) for lg in result.scalars().all()]

    async def get_law_group(self, law_group_id: int) -> LawGroupRecord | None:
        law_group = await self._session.get(LawGroup, law_group_id)
        return LawGroupRecord.model_validate(law_group) if law_group else None

    async def list_active_definitions(
        self, law_group_id: int | None = None
    ) -> list[ComplianceDefinition]:
        stmt = select(Compliance).where(Compliance.is_active.is_(True))
        if law_group_id is not None:
            stmt = stmt.where(Compliance.law_group_id == law_group_id)
        stmt = stmt.order_by(Compliance.display_order, Compliance.name, Compliance.id)
        result = await self._session.execute(stmt)
        return [ComplianceDefinition.model_validate(c) for c in result.scalars().all()]

    async def get_definition(self, task_id: int) -> ComplianceDefinition | None:
        compliance = await self._session.get(Compliance, task_id)
        return ComplianceDefinition.model_validate(compliance) if compliance else None

    async def create_definition(self, values: dict[str, Any]) -> ComplianceDefinition:
        compliance = Compliance(**values)
        self._session.add(compliance)
        await self._session.flush()
        await self._session.refresh(compliance)
        logger.info("compliance.created", compliance_id=compliance.id, name=compliance.name)
        return ComplianceDefinition.model_validate(compliance)

    async def update_definition(
        self, task_id: int, values: dict[str, Any]
    ) -> ComplianceDefinition | None:
        compliance = await self._session.get(Compliance, task_id)
        if compliance is None:
            return None
        for field, value in values.items():
            setattr(compliance, field, value)
        await self._session.flush()
        await self._session.refresh(compliance)
        return ComplianceDefinition.model_validate(compliance)

    async def deactivate_definition(self, task_id: int) -> bool:
        result = await self._session.execute(
            update(Compliance).where(Compliance.id == task_id).values(is_active=False)
        )
        return result.rowcount > 0

    # ── deadline cascade ──────────────────────────────────────────────────

    async def get_extensions(self) -> dict[int, int]:
        """task_id → extension_day for every default extension."""
        result = await self._session.execute(select(ComplianceExtension))
        records = [DefaultExtension.model_validate(e) for e in result.scalars().all()]
        return {r.task_id: r.extension_day for r in records}

    async def set_extension(self, task_id: int, extension_day: int) -> None:
        await self._upsert(
            ComplianceExtension,
            {"compliance_id": task_id, "extension_day": extension_day},
            conflict=["compliance_id"],
            update_cols=["extension_day"],
        )

    async def remove_extension(self, task_id: int) -> bool:
        result = await self._session.execute(
            delete(ComplianceExtension).where(ComplianceExtension.compliance_id == task_id)
        )
        return result.rowcount > 0

    async def list_overrides(self, period: Period) -> list[MonthlyOverride]:
        result = await self._session.execute(
            select(ComplianceOverride)
            .where(
                ComplianceOverride.period_year == period.year,
                ComplianceOverride.period_month == period.month,
            )
            .order_by(ComplianceOverride.compliance_id)
        )
        return [MonthlyOverride.model_validate(o) for o in result.scalars().all()]

    async def get_overrides(self, period: Period) -> dict[int, int | None]:
        """task_id → custom_deadline_day for the period (value may be None)."""
        return {o.task_id: o.custom_deadline_day for o in await self.list_overrides(period)}

    async def set_override(self, task_id: int, period: Period, day: int | None) -> None:
        await self._upsert(
            ComplianceOverride,
            {
                "compliance_id": task_id,
                "period_year": period.year,
                "period_month": period.month,
                "custom_deadline_day": day,
            },
            conflict=["compliance_id", "period_year", "period_month"],
            update_cols=["custom_deadline_day"],
        )

    async def remove_override(self, task_id: int, period: Period) -> bool:
        result = await self._session.execute(
            delete(ComplianceOverride).where(
                ComplianceOverride.compliance_id == task_id,
                ComplianceOverride.period_year == period.year,
                ComplianceOverride.period_month == period.month,
            )
        )
        return result.rowcount > 0

    # ── status records ────────────────────────────────────────────────────

    async def list_statuses(
        self, period: Period, client_ids: Collection[int] | None = None
    ) -> list[StatusRecord]:
        stmt = select(ComplianceStatusEntry).where(
            ComplianceStatusEntry.period_year == period.year,
            ComplianceStatusEntry.period_month == period.month,
        )
        if client_ids is not None:
            if not client_ids:
                return []
            stmt = stmt.where(ComplianceStatusEntry.client_id.in_(list(client_ids)))
        result = await self._session.execute(stmt)
        return [StatusRecord.model_validate(s) for s in result.scalars().all()]

    async def status_map(
        self, period: Period, client_ids: Collection[int] | None = None
    ) -> dict[tuple[int, int], StatusRecord]:
        """(client_id, task_id) → record; missing keys mean implicit pending."""
        return {
            (s.client_id, s.task_id): s for s in await self.list_statuses(period, client_ids)
        }

    async def upsert_status(
        self,
        *,
        client_id: int,
        task_id: int,
        period: Period,
        status: ComplianceStatus,
        notes: str | None,
        updated_by: int,
    ) -> None:
        """Replace the record for the natural tuple in one atomic statement."""
        await self._upsert(
            ComplianceStatusEntry,
            {
                "client_id": client_id,
                "compliance_id": task_id,
                "period_year": period.year,
                "period_month": period.month,
                "status": status,
                "notes": notes,
                "updated_by": updated_by,
            },
            conflict=["client_id", "compliance_id", "period_year", "period_month"],
            update_cols=["status", "notes", "updated_by"],
        )

    # ── client period links ───────────────────────────────────────────────

    async def get_client_links(self, period: Period) -> dict[int, str]:
        result = await self._session.execute(
            select(ClientMonthlyLink).where(
                ClientMonthlyLink.period_year == period.year,
                ClientMonthlyLink.period_month == period.month,
            )
        )
        records = [ClientLinkRecord.model_validate(r) for r in result.scalars().all()]
        return {r.client_id: r.link for r in records}

    async def client_link_history(self, client_id: int) -> list[ClientLinkRecord]:
        result = await self._session.execute(
            select(ClientMonthlyLink)
            .where(ClientMonthlyLink.client_id == client_id)
            .order_by(ClientMonthlyLink.period_year.desc(), ClientMonthlyLink.period_month.desc())
        )
        return [ClientLinkRecord.model_validate(r) for r in result.scalars().all()]

    async def set_client_link(self, client_id: int, period: Period, link: str) -> None:
        await self._upsert(
            ClientMonthlyLink,
            {
                "client_id": client_id,
                "period_year": period.year,
                "period_month": period.month,
                "link": link,
            },
            conflict=["client_id", "period_year", "period_month"],
            update_cols=["link"],
        )

    async def remove_client_link(self, client_id: int, period: Period) -> bool:
        result = await self._session.execute(
            delete(ClientMonthlyLink).where(
                ClientMonthlyLink.client_id == client_id,
                ClientMonthlyLink.period_year == period.year,
                ClientMonthlyLink.period_month == period.month,
            )
        )
        return result.rowcount > 0

    # ── month unlocks ─────────────────────────────────────────────────────

    async def get_unlock(self, period: Period) -> MonthUnlockRecord | None:
        result = await self._session.execute(
            select(MonthUnlock).where(
                MonthUnlock.period_year == period.year,
                MonthUnlock.period_month == period.month,
            )
        )
        unlock = result.scalar_one_or_none()
        return MonthUnlockRecord.model_validate(unlock) if unlock else None

    async def set_unlock(self, period: Period, until: datetime, unlocked_by: int) -> None:
        await self._upsert(
            MonthUnlock,
            {
                "period_year": period.year,
                "period_month": period.month,
                "unlocked_until": until.astimezone(timezone.utc),
                "unlocked_by": unlocked_by,
            },
            conflict=["period_year", "period_month"],
            update_cols=["unlocked_until", "unlocked_by"],
        )
