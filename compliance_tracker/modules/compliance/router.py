"""Compliance definitions API router: definitions and monthly deadline overrides."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from compliance_tracker.auth.dependencies import get_guard, get_store
from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.core.periods import resolve_period
from compliance_tracker.modules.compliance import service
from compliance_tracker.modules.compliance.schemas import (
    ComplianceCreate,
    ComplianceResponse,
    ComplianceUpdate,
    MessageResponse,
    OverrideResponse,
    OverrideSet,
)
from compliance_tracker.schemas.common import MAX_ID
from compliance_tracker.store import ComplianceStore

router = APIRouter(prefix="/compliances", tags=["compliances"])


@router.get("", response_model=list[ComplianceResponse])
async def list_compliances(
    law_group_id: int | None = Query(None, ge=1, le=MAX_ID),
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    return await service.list_definitions(store, law_group_id)


@router.post("", response_model=ComplianceResponse, status_code=status.HTTP_201_CREATED)
async def create_compliance(
    body: ComplianceCreate,
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    return await service.create_definition(store, guard, body)


# Override routes are declared before /{compliance_id} so "overrides" is never
# parsed as an id.


@router.get("/overrides/{year}/{month}", response_model=list[OverrideResponse])
async def list_overrides(
    year: int,
    month: int,
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    return await service.list_overrides(store, guard, year, month)


@router.post("/overrides", response_model=MessageResponse)
async def set_override(
    body: OverrideSet,
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    if await service.set_override(store, guard, body):
        return MessageResponse(message="Override saved")
    return MessageResponse(message="Override removed")


@router.delete(
    "/overrides/{compliance_id}/{year}/{month}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_override(
    compliance_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    year: int,
    month: int,
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    period = resolve_period(year, month, guard.today)
    await service.remove_override(store, guard, compliance_id, period)


@router.get("/{compliance_id}", response_model=ComplianceResponse)
async def get_compliance(
    compliance_id: int = Path(ge=1, le=MAX_ID),
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    return await service.get_definition(store, compliance_id)


@router.put("/{compliance_id}", response_model=ComplianceResponse)
async def update_compliance(
    compliance_id: Annotated[int, Path(ge=1, le=MAX_ID)],
    body: ComplianceUpdate,
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    return await service.update_definition(store, guard, compliance_id, body)


@router.delete("/{compliance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_compliance(
    compliance_id: int = Path(ge=1, le=MAX_ID),
    guard: AccessGuard = Depends(get_guard),
    store: ComplianceStore = Depends(get_store),
):
    await service.deactivate_definition(store, guard, compliance_id)
