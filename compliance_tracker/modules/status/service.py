"""Status service: status mutation, deadline feed, calendar, summary and period controls."""

from __future__ import annotations

from datetime import datetime, timedelta

import structlog

from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.auth.rbac import Capability
from compliance_tracker.core.config import settings
from compliance_tracker.core.errors import NotFoundError, ValidationError
from compliance_tracker.core.periods import Period, resolve_period
from compliance_tracker.models.enums import ComplianceStatus
from compliance_tracker.modules.compliance.applicability import deadline_view, in_effect
from compliance_tracker.modules.compliance.deadlines import resolve_deadlines
from compliance_tracker.modules.status import urgency
from compliance_tracker.modules.status.schemas import (
    CalendarResponse,
    CalendarTask,
    ClientLinkOut,
    ClientLinkResponse,
    DeadlineItem,
    MonthLockResponse,
    PeriodOut,
    StatusUpdateRequest,
    SummaryResponse,
)
from compliance_tracker.store.records import ClientRecord

logger = structlog.get_logger()

# Calendar bucket for definitions with no deadline day at all.
UNSET_DEADLINE_BUCKET = 1


# ── Status mutation ───────────────────────────────────────────────────────────


def _parse_status(value: str | None) -> ComplianceStatus:
    try:
        return ComplianceStatus(value)
    except ValueError:
        raise ValidationError(
            "Status must be done, pending, or na", detail={"status": value}
        ) from None


async def update_status(guard: AccessGuard, body: StatusUpdateRequest) -> Period:
    """Validate, authorize, then upsert one status record. Returns the target period.

    Checks run in a fixed order and the first failure wins: required fields,
    client access, then the past-period lock. Nothing is written on failure.
    """
    if not body.client_id or not body.task_id or not body.status:
        raise ValidationError("Client ID, compliance ID, and status are required")
    status = _parse_status(body.status)
    period = resolve_period(body.year, body.month, guard.today)

    await guard.ensure_client_access(body.client_id)
    await guard.ensure_period_editable(period)

    store = guard.store
    client = await store.get_client(body.client_id)
    if client is None or not client.is_active:
        raise NotFoundError("Client not found", detail={"client_id": body.client_id})
    if await store.get_definition(body.task_id) is None:
        raise NotFoundError("Compliance not found", detail={"compliance_id": body.task_id})

    await store.upsert_status(
        client_id=body.client_id,
        task_id=body.task_id,
        period=period,
        status=status,
        notes=body.notes or None,
        updated_by=guard.user.user_id,
    )
    logger.info(
        "status.updated",
        client_id=body.client_id,
        compliance_id=body.task_id,
        year=period.year,
        month=period.month,
        status=status.value,
        user_id=guard.user.user_id,
    )
    return period


# ── Deadline feed ─────────────────────────────────────────────────────────────


async def list_deadlines(guard: AccessGuard) -> list[DeadlineItem]:
    """Pending items of the current period, most urgent first."""
    store = guard.store
    period = guard.current_period
    clients = await guard.visible_clients()
    definitions = deadline_view(await store.list_active_definitions(), period)
    if not clients or not definitions:
        return []

    deadlines = await resolve_deadlines(store, definitions, period)
    statuses = await store.status_map(period, [c.id for c in clients])
    law_groups = await store.list_law_groups()
    group_names = {lg.id: lg.name for lg in law_groups}
    group_order = {lg.id: i for i, lg in enumerate(law_groups)}
    # Base order: client name, then law group order, then task order.
    definitions = sorted(
        definitions,
        key=lambda d: group_order.get(d.law_group_id, len(group_order)),
    )

    items: list[DeadlineItem] = []
    for client in clients:
        for definition in definitions:
            record = statuses.get((client.id, definition.id))
            if record is not None and record.status is not ComplianceStatus.PENDING:
                continue
            deadline_day = deadlines[definition.id]
            days = urgency.days_until(deadline_day, guard.today)
            items.append(
                DeadlineItem(
                    client_id=client.id,
                    client_name=client.name,
                    compliance_id=definition.id,
                    compliance_name=definition.name,
                    law_group_name=group_names.get(definition.law_group_id),
                    deadline_day=deadline_day,
                    days_until_deadline=days,
                    urgency=urgency.classify(days),
                )
            )
    return urgency.sort_by_urgency(items)


# ── Calendar ──────────────────────────────────────────────────────────────────


async def _calendar_clients(guard: AccessGuard, client_id: int | None) -> list[ClientRecord]:
    if client_id is None:
        return await guard.visible_clients()
    client = await guard.store.get_client(client_id)
    if client is None or not client.is_active:
        raise NotFoundError("Client not found", detail={"client_id": client_id})
    await guard.ensure_client_access(client_id)
    return [client]


async def build_calendar(
    guard: AccessGuard,
    year: int | None = None,
    month: int | None = None,
    client_id: int | None = None,
) -> CalendarResponse:
    store = guard.store
    period = resolve_period(year, month, guard.today)
    clients = await _calendar_clients(guard, client_id)
    definitions = deadline_view(await store.list_active_definitions(), period)
    deadlines = await resolve_deadlines(store, definitions, period)
    statuses = await store.status_map(period, [c.id for c in clients])
    group_names = {lg.id: lg.name for lg in await store.list_law_groups()}

    tasks_by_day: dict[int, list[CalendarTask]] = {}
    for definition in definitions:
        deadline_day = deadlines[definition.id]
        pending = sum(
            1
            for c in clients
            if (record := statuses.get((c.id, definition.id))) is None
            or record.status is ComplianceStatus.PENDING
        )
        day = deadline_day if deadline_day is not None else UNSET_DEADLINE_BUCKET
        tasks_by_day.setdefault(day, []).append(
            CalendarTask(
                id=definition.id,
                name=definition.name,
                law_group_name=group_names.get(definition.law_group_id),
                frequency=definition.frequency,
                deadline_day=deadline_day,
                pending_clients=pending,
                total_clients=len(clients),
                status=ComplianceStatus.PENDING if pending else ComplianceStatus.DONE,
            )
        )

    return CalendarResponse(
        period=PeriodOut(**period.as_dict()),
        client_id=client_id,
        tasks_by_day=dict(sorted(tasks_by_day.items())),
    )


# ── Summary ───────────────────────────────────────────────────────────────────


async def summarize(
    guard: AccessGuard, year: int | None = None, month: int | None = None
) -> SummaryResponse:
    """Status counts over visible clients × in-effect definitions; absent rows count as pending."""
    store = guard.store
    period = resolve_period(year, month, guard.today)
    clients = await guard.visible_clients()
    definitions = in_effect(await store.list_active_definitions(), period)
    statuses = await store.status_map(period, [c.id for c in clients])

    counts = {status: 0 for status in ComplianceStatus}
    for client in clients:
        for definition in definitions:
            record = statuses.get((client.id, definition.id))
            counts[record.status if record else ComplianceStatus.PENDING] += 1

    return SummaryResponse(
        period=PeriodOut(**period.as_dict()),
        total_clients=len(clients),
        total_compliances=len(definitions),
        done_count=counts[ComplianceStatus.DONE],
        pending_count=counts[ComplianceStatus.PENDING],
        na_count=counts[ComplianceStatus.NA],
    )


# ── Client links ──────────────────────────────────────────────────────────────


async def _ensure_client(guard: AccessGuard, client_id: int) -> None:
    client = await guard.store.get_client(client_id)
    if client is None or not client.is_active:
        raise NotFoundError("Client not found", detail={"client_id": client_id})
    await guard.ensure_client_access(client_id)


async def get_client_link(
    guard: AccessGuard,
    client_id: int,
    year: int | None = None,
    month: int | None = None,
    history: bool = False,
) -> ClientLinkResponse:
    period = resolve_period(year, month, guard.today)
    await _ensure_client(guard, client_id)

    links = await guard.store.get_client_links(period)
    response = ClientLinkResponse(
        client_id=client_id,
        period=PeriodOut(**period.as_dict()),
        link=links.get(client_id),
    )
    if history:
        response.links = [
            ClientLinkOut(
                client_id=r.client_id, period_year=r.year, period_month=r.month, link=r.link
            )
            for r in await guard.store.client_link_history(client_id)
        ]
    return response


async def set_client_link(
    guard: AccessGuard,
    client_id: int,
    link: str | None,
    year: int | None = None,
    month: int | None = None,
) -> bool:
    """Store the link for (client, period); an empty link removes it. Returns True when set."""
    period = resolve_period(year, month, guard.today)
    await _ensure_client(guard, client_id)

    link = (link or "").strip()
    if not link:
        await guard.store.remove_client_link(client_id, period)
        logger.info(
            "client_link.removed", client_id=client_id, year=period.year, month=period.month
        )
        return False

    await guard.store.set_client_link(client_id, period, link)
    logger.info(
        "client_link.set",
        client_id=client_id,
        year=period.year,
        month=period.month,
        user_id=guard.user.user_id,
    )
    return True


# ── Month locking ─────────────────────────────────────────────────────────────


async def month_lock_status(
    guard: AccessGuard, year: int | None = None, month: int | None = None
) -> MonthLockResponse:
    period = resolve_period(year, month, guard.today)
    unlock = await guard.store.get_unlock(period)
    active_until = unlock.unlocked_until if unlock and unlock.is_active(guard.now) else None
    return MonthLockResponse(
        period=PeriodOut(**period.as_dict()),
        is_past=guard.is_past(period),
        locked=not await guard.can_edit_period(period),
        unlocked_until=active_until,
        can_unlock=guard.can(Capability.UNLOCK_PERIODS),
    )


async def unlock_month(
    guard: AccessGuard, year: int, month: int, duration_hours: int
) -> datetime:
    """Open a past period to every role for ``duration_hours``. Returns the expiry."""
    guard.require(Capability.UNLOCK_PERIODS, "Only admins can unlock months")
    period = resolve_period(year, month, guard.today)
    if not 1 <= duration_hours <= settings.MAX_UNLOCK_HOURS:
        raise ValidationError(
            f"Duration must be between 1 and {settings.MAX_UNLOCK_HOURS} hours",
            detail={"duration_hours": duration_hours},
        )
    if not guard.is_past(period):
        raise ValidationError("Only past months can be unlocked", detail=period.as_dict())

    until = guard.now + timedelta(hours=duration_hours)
    await guard.store.set_unlock(period, until, guard.user.user_id)
    logger.info(
        "period.unlocked",
        year=period.year,
        month=period.month,
        until=until.isoformat(),
        user_id=guard.user.user_id,
    )
    return until
