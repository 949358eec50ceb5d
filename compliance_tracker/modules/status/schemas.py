"""Status matrix, deadline, calendar and period-control Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from compliance_tracker.models.enums import ComplianceStatus, Frequency, Urgency
from compliance_tracker.schemas.common import MAX_ID, RecordId


class PeriodOut(BaseModel):
    year: int
    month: int


# ── Matrix ────────────────────────────────────────────────────────────────────


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    industry: str | None = None


class TaskOut(BaseModel):
    id: int
    law_group_id: int | None
    name: str
    description: str | None = None
    frequency: Frequency
    deadline_day: int | None
    deadline_month: int | None = None
    display_order: int
    is_temporary: bool
    manager_only: bool
    instruction_text: str | None = None
    instruction_video_url: str | None = None


class LawGroupOut(BaseModel):
    id: int | None
    name: str
    description: str | None = None
    display_order: int = 0
    manager_only: bool = False
    tasks: list[TaskOut]


class StatusCell(BaseModel):
    status: ComplianceStatus = ComplianceStatus.PENDING
    notes: str | None = None


class MatrixRow(BaseModel):
    client: ClientOut
    link: str | None = None
    statuses: dict[int, StatusCell]


class MatrixResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    period: PeriodOut
    editable: bool
    law_groups: list[LawGroupOut] = Field(serialization_alias="lawGroups")
    matrix: list[MatrixRow]


# ── Status mutation ───────────────────────────────────────────────────────────


class StatusUpdateRequest(BaseModel):
    """Fields are optional here so missing ones surface as a 400 from the service."""

    client_id: int | None = Field(default=None, le=MAX_ID)
    task_id: int | None = Field(
        default=None, le=MAX_ID, validation_alias=AliasChoices("compliance_id", "task_id")
    )
    year: int | None = None
    month: int | None = None
    status: str | None = None
    notes: str | None = None


class MessageResponse(BaseModel):
    message: str


# ── Deadlines & calendar ──────────────────────────────────────────────────────


class DeadlineItem(BaseModel):
    client_id: int
    client_name: str
    compliance_id: int
    compliance_name: str
    law_group_name: str | None
    deadline_day: int | None
    status: ComplianceStatus = ComplianceStatus.PENDING
    days_until_deadline: int | None
    urgency: Urgency


class CalendarTask(BaseModel):
    id: int
    name: str
    law_group_name: str | None
    frequency: Frequency
    deadline_day: int | None
    pending_clients: int
    total_clients: int
    status: ComplianceStatus


class CalendarResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    period: PeriodOut
    client_id: int | None = None
    tasks_by_day: dict[int, list[CalendarTask]] = Field(serialization_alias="tasksByDay")


# ── Summary ───────────────────────────────────────────────────────────────────


class SummaryResponse(BaseModel):
    period: PeriodOut
    total_clients: int
    total_compliances: int
    done_count: int
    pending_count: int
    na_count: int


# ── Client links ──────────────────────────────────────────────────────────────


class ClientLinkOut(BaseModel):
    client_id: int
    period_year: int
    period_month: int
    link: str


class ClientLinkResponse(BaseModel):
    client_id: int
    period: PeriodOut
    link: str | None
    links: list[ClientLinkOut] | None = None


class ClientLinkRequest(BaseModel):
    client_id: RecordId
    year: int | None = None
    month: int | None = None
    link: str | None = Field(default=None, max_length=2048)  # empty removes


# ── Month locking ─────────────────────────────────────────────────────────────


class MonthLockResponse(BaseModel):
    period: PeriodOut
    is_past: bool
    locked: bool
    unlocked_until: datetime | None = None
    can_unlock: bool


class UnlockMonthRequest(BaseModel):
    year: int
    month: int
    duration_hours: int = 24
