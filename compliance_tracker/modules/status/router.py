"""Compliance status API router: matrix, updates, deadlines, calendar and period controls."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from compliance_tracker.auth.dependencies import get_guard, get_store
from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.core.periods import resolve_period
from compliance_tracker.modules.compliance import service as compliance_service
from compliance_tracker.modules.compliance.schemas import (
    ExtensionListResponse,
    ExtensionSet,
)
from compliance_tracker.modules.status import service
from compliance_tracker.modules.status.matrix import assemble_matrix
from compliance_tracker.modules.status.schemas import (
    CalendarResponse,
    ClientLinkRequest,
    ClientLinkResponse,
    DeadlineItem,
    MatrixResponse,
    MessageResponse,
    MonthLockResponse,
    StatusUpdateRequest,
    SummaryResponse,
    UnlockMonthRequest,
)
from compliance_tracker.schemas.common import MAX_ID
from compliance_tracker.store import ComplianceStore

router = APIRouter(prefix="/status", tags=["status"])


@router.get("/matrix", response_model=MatrixResponse)
async def get_matrix(
    year: int | None = Query(None),
    month: int | None = Query(None),
    manager_id: int | None = Query(None, ge=1, le=MAX_ID),
    guard: AccessGuard = Depends(get_guard),
):
    """Client × compliance grid for a period (defaults to the current month)."""
    period = resolve_period(year, month, guard.today)
    return await assemble_matrix(guard, period, manager_id)


@router.post("/update", response_model=MessageResponse)
async def update_status(
    body: StatusUpdateRequest,
    guard: AccessGuard = Depends(get_guard),
):
    await service.update_status(guard, body)
    return MessageResponse(message="Status updated successfully")


@router.get("/deadlines", response_model=list[DeadlineItem])
async def get_deadlines(guard: AccessGuard = Depends(get_guard)):
    """Pending items for the current month ordered by urgency."""
    return await service.list_deadlines(guard)


@router.get("/calendar", response_model=CalendarResponse)
async def get_calendar(
    year: int | None = Query(None),
    month: int | None = Query(None),
    client_id: int | None = Query(None, ge=1, le=MAX_ID),
    guard: AccessGuard = Depends(get_guard),
):
    return await service.build_calendar(guard, year, month, client_id)


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    year: int | None = Query(None),
    month: int | None = Query(None),
    guard: AccessGuard = Depends(get_guard),
):
    return await service.summarize(guard, year, month)


# ── Default extensions ────────────────────────────────────────────────────────


@router.get("/extensions", response_model=ExtensionListResponse)
async def list_extensions(
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    return ExtensionListResponse(
        compliances=await compliance_service.list_extensions(store, guard)
    )


@router.post("/extensions", response_model=MessageResponse)
async def set_extension(
    body: ExtensionSet,
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    if await compliance_service.set_extension(
        store, guard, body.compliance_id, body.extension_day
    ):
        return MessageResponse(message="Extension saved")
    return MessageResponse(message="Extension removed")


# ── Client links ──────────────────────────────────────────────────────────────


@router.get("/client-link", response_model=ClientLinkResponse)
async def get_client_link(
    client_id: int = Query(ge=1, le=MAX_ID),
    year: int | None = Query(None),
    month: int | None = Query(None),
    history: bool = Query(False),
    guard: AccessGuard = Depends(get_guard),
):
    return await service.get_client_link(guard, client_id, year, month, history)


@router.post("/client-link", response_model=MessageResponse)
async def set_client_link(
    body: ClientLinkRequest,
    guard: AccessGuard = Depends(get_guard),
):
    if await service.set_client_link(guard, body.client_id, body.link, body.year, body.month):
        return MessageResponse(message="Link saved")
    return MessageResponse(message="Link removed")


# ── Month locking ─────────────────────────────────────────────────────────────


@router.get("/month-lock", response_model=MonthLockResponse)
async def get_month_lock(
    year: int | None = Query(None),
    month: int | None = Query(None),
    guard: AccessGuard = Depends(get_guard),
):
    return await service.month_lock_status(guard, year, month)


@router.post("/unlock-month", response_model=MessageResponse)
async def unlock_month(
    body: UnlockMonthRequest,
    guard: AccessGuard = Depends(get_guard),
):
    until = await service.unlock_month(guard, body.year, body.month, body.duration_hours)
    return MessageResponse(message=f"Month unlocked until {until.isoformat()}")
