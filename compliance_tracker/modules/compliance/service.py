"""Compliance definitions service: CRUD, monthly overrides, default extensions."""

from __future__ import annotations

from typing import Any

import structlog

from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.auth.rbac import Capability
from compliance_tracker.core.errors import AuthorizationError, NotFoundError, ValidationError
from compliance_tracker.core.periods import MAX_YEAR, MIN_YEAR, Period, resolve_period
from compliance_tracker.models.enums import Frequency
from compliance_tracker.modules.compliance.schemas import (
    ComplianceCreate,
    ComplianceUpdate,
    ExtensionItem,
    OverrideResponse,
    OverrideSet,
)
from compliance_tracker.store import ComplianceStore
from compliance_tracker.store.records import ComplianceDefinition

logger = structlog.get_logger()


# ── Helpers ───────────────────────────────────────────────────────────────────


def _check_temporary(is_temporary: bool, temp_month: int | None, temp_year: int | None) -> None:
    if not is_temporary:
        return
    if temp_month is None or temp_year is None:
        raise ValidationError("Temporary compliances require temp_month and temp_year")
    if not MIN_YEAR <= temp_year <= MAX_YEAR:
        raise ValidationError(
            f"temp_year must be between {MIN_YEAR} and {MAX_YEAR}", detail={"temp_year": temp_year}
        )


def _check_yearly(frequency: Frequency, deadline_month: int | None) -> None:
    if frequency is Frequency.YEARLY and deadline_month is None:
        raise ValidationError("Yearly compliances require deadline_month")


async def _check_law_group(store: ComplianceStore, law_group_id: int | None) -> None:
    if law_group_id is not None and await store.get_law_group(law_group_id) is None:
        raise NotFoundError("Law group not found", detail={"law_group_id": law_group_id})


async def _require_definition_rights(
    guard: AccessGuard, is_temporary: bool, law_group_ids: tuple[int | None, ...], message: str
) -> None:
    """Full managers of definitions may touch anything.

    Callers limited to temporary definitions must also reach each named law
    group through one of their assigned clients.
    """
    if guard.can(Capability.MANAGE_DEFINITIONS):
        return
    if not guard.can(Capability.MANAGE_TEMPORARY_DEFINITIONS):
        raise AuthorizationError("You are not allowed to manage compliances")
    if not is_temporary:
        raise AuthorizationError("Managers can only manage temporary compliances")
    for law_group_id in law_group_ids:
        if law_group_id is None:
            continue
        if not await guard.store.has_law_group_access(guard.user.user_id, law_group_id):
            logger.info(
                "access.denied", user_id=guard.user.user_id, law_group_id=law_group_id
            )
            raise AuthorizationError(message, detail={"law_group_id": law_group_id})


async def get_definition(store: ComplianceStore, compliance_id: int) -> ComplianceDefinition:
    definition = await store.get_definition(compliance_id)
    if definition is None:
        raise NotFoundError("Compliance not found", detail={"compliance_id": compliance_id})
    return definition


# ── Definitions ───────────────────────────────────────────────────────────────


async def list_definitions(
    store: ComplianceStore, law_group_id: int | None = None
) -> list[ComplianceDefinition]:
    return await store.list_active_definitions(law_group_id)


async def create_definition(
    store: ComplianceStore, guard: AccessGuard, body: ComplianceCreate
) -> ComplianceDefinition:
    await _require_definition_rights(
        guard, body.is_temporary, (body.law_group_id,), "You do not have access to this law group"
    )
    _check_temporary(body.is_temporary, body.temp_month, body.temp_year)
    _check_yearly(body.frequency, body.deadline_month)
    await _check_law_group(store, body.law_group_id)

    values = body.model_dump()
    if not body.is_temporary:
        values["temp_month"] = None
        values["temp_year"] = None
    definition = await store.create_definition(values)
    logger.info(
        "compliance.definition_created",
        compliance_id=definition.id,
        temporary=definition.is_temporary,
        user_id=guard.user.user_id,
    )
    return definition


async def update_definition(
    store: ComplianceStore,
    guard: AccessGuard,
    compliance_id: int,
    body: ComplianceUpdate,
) -> ComplianceDefinition:
    existing = await get_definition(store, compliance_id)
    updates: dict[str, Any] = body.model_dump(exclude_unset=True)
    await _require_definition_rights(
        guard,
        existing.is_temporary,
        (existing.law_group_id, updates.get("law_group_id")),
        "You do not have access to this compliance",
    )

    for required in ("name", "frequency"):
        if required in updates and updates[required] is None:
            raise ValidationError(f"{required} cannot be cleared")
    _check_yearly(
        updates.get("frequency", existing.frequency),
        updates.get("deadline_month", existing.deadline_month),
    )
    if "law_group_id" in updates:
        await _check_law_group(store, updates["law_group_id"])

    updated = await store.update_definition(compliance_id, updates)
    if updated is None:
        raise NotFoundError("Compliance not found", detail={"compliance_id": compliance_id})
    logger.info(
        "compliance.definition_updated",
        compliance_id=compliance_id,
        fields=sorted(updates),
        user_id=guard.user.user_id,
    )
    return updated


async def deactivate_definition(
    store: ComplianceStore, guard: AccessGuard, compliance_id: int
) -> None:
    """Soft delete: the definition disappears from every view, history stays."""
    existing = await get_definition(store, compliance_id)
    await _require_definition_rights(
        guard,
        existing.is_temporary,
        (existing.law_group_id,),
        "You do not have access to this compliance",
    )
    await store.deactivate_definition(compliance_id)
    logger.info(
        "compliance.definition_deactivated",
        compliance_id=compliance_id,
        user_id=guard.user.user_id,
    )


# ── Monthly overrides ─────────────────────────────────────────────────────────


async def list_overrides(
    store: ComplianceStore, guard: AccessGuard, year: int, month: int
) -> list[OverrideResponse]:
    period = resolve_period(year, month, guard.today)
    overrides = await store.list_overrides(period)
    if not overrides:
        return []
    groups = {lg.id: lg.name for lg in await store.list_law_groups()}
    items: list[OverrideResponse] = []
    for override in overrides:
        definition = await store.get_definition(override.task_id)
        if definition is None:
            continue
        items.append(
            OverrideResponse(
                compliance_id=definition.id,
                compliance_name=definition.name,
                law_group_name=groups.get(definition.law_group_id),
                period_year=override.year,
                period_month=override.month,
                custom_deadline_day=override.custom_deadline_day,
                default_deadline_day=definition.deadline_day,
            )
        )
    return items


async def set_override(store: ComplianceStore, guard: AccessGuard, body: OverrideSet) -> bool:
    """Upsert an override; a zero or missing day removes it. Returns True when set."""
    guard.require(Capability.MANAGE_OVERRIDES, "You are not allowed to manage deadline overrides")
    period = resolve_period(body.period_year, body.period_month, guard.today)
    await get_definition(store, body.compliance_id)

    if not body.custom_deadline_day:
        await store.remove_override(body.compliance_id, period)
        logger.info(
            "compliance.override_removed",
            compliance_id=body.compliance_id,
            year=period.year,
            month=period.month,
        )
        return False

    await store.set_override(body.compliance_id, period, body.custom_deadline_day)
    logger.info(
        "compliance.override_set",
        compliance_id=body.compliance_id,
        year=period.year,
        month=period.month,
        day=body.custom_deadline_day,
        user_id=guard.user.user_id,
    )
    return True


async def remove_override(
    store: ComplianceStore, guard: AccessGuard, compliance_id: int, period: Period
) -> None:
    guard.require(Capability.MANAGE_OVERRIDES, "You are not allowed to manage deadline overrides")
    if not await store.remove_override(compliance_id, period):
        raise NotFoundError(
            "Override not found",
            detail={"compliance_id": compliance_id, **period.as_dict()},
        )
    logger.info(
        "compliance.override_removed",
        compliance_id=compliance_id,
        year=period.year,
        month=period.month,
    )


# ── Default extensions ────────────────────────────────────────────────────────


async def list_extensions(store: ComplianceStore, guard: AccessGuard) -> list[ExtensionItem]:
    """Every active definition with its standing extension day, if any."""
    guard.require(Capability.MANAGE_EXTENSIONS, "Only admins can manage deadline extensions")
    groups = {lg.id: lg.name for lg in await store.list_law_groups()}
    extensions = await store.get_extensions()
    return [
        ExtensionItem(
            id=d.id,
            name=d.name,
            law_group_name=groups.get(d.law_group_id),
            is_temporary=d.is_temporary,
            deadline_day=d.deadline_day,
            extension_day=extensions.get(d.id),
        )
        for d in await store.list_active_definitions()
    ]


async def set_extension(
    store: ComplianceStore, guard: AccessGuard, compliance_id: int, extension_day: int | None
) -> bool:
    """Upsert a default extension; zero or missing removes it. Returns True when set."""
    guard.require(Capability.MANAGE_EXTENSIONS, "Only admins can manage deadline extensions")
    await get_definition(store, compliance_id)

    if not extension_day:
        await store.remove_extension(compliance_id)
        logger.info("compliance.extension_removed", compliance_id=compliance_id)
        return False

    await store.set_extension(compliance_id, extension_day)
    logger.info(
        "compliance.extension_set",
        compliance_id=compliance_id,
        day=extension_day,
        user_id=guard.user.user_id,
    )
    return True
