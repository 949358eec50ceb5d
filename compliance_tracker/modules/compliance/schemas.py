"""Compliance definition, override and extension Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from compliance_tracker.models.enums import Frequency
from compliance_tracker.schemas.common import RecordId


class ComplianceCreate(BaseModel):
    law_group_id: RecordId | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    frequency: Frequency
    deadline_day: int | None = Field(default=None, ge=1, le=31)
    deadline_month: int | None = Field(default=None, ge=1, le=12)  # yearly only
    display_order: int = 0
    manager_only: bool = False
    is_temporary: bool = False
    temp_month: int | None = Field(default=None, ge=1, le=12)
    temp_year: int | None = None
    instruction_text: str | None = None
    instruction_video_url: str | None = None


class ComplianceUpdate(BaseModel):
    law_group_id: RecordId | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    frequency: Frequency | None = None
    deadline_day: int | None = Field(default=None, ge=1, le=31)
    deadline_month: int | None = Field(default=None, ge=1, le=12)
    display_order: int | None = None
    manager_only: bool | None = None
    is_active: bool | None = None
    instruction_text: str | None = None
    instruction_video_url: str | None = None


class ComplianceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    law_group_id: int | None
    name: str
    description: str | None
    frequency: Frequency
    deadline_day: int | None
    deadline_month: int | None
    display_order: int
    manager_only: bool
    is_temporary: bool
    temp_month: int | None
    temp_year: int | None
    is_active: bool
    instruction_text: str | None
    instruction_video_url: str | None


class OverrideSet(BaseModel):
    compliance_id: RecordId
    period_year: int
    period_month: int = Field(ge=1, le=12)
    custom_deadline_day: int | None = Field(default=None, ge=0, le=31)  # 0/None removes


class OverrideResponse(BaseModel):
    compliance_id: int
    compliance_name: str
    law_group_name: str | None
    period_year: int
    period_month: int
    custom_deadline_day: int | None
    default_deadline_day: int | None


class ExtensionSet(BaseModel):
    compliance_id: RecordId
    extension_day: int | None = Field(default=None, ge=0, le=31)  # 0/None removes


class ExtensionItem(BaseModel):
    id: int
    name: str
    law_group_name: str | None
    is_temporary: bool
    deadline_day: int | None
    extension_day: int | None


class ExtensionListResponse(BaseModel):
    compliances: list[ExtensionItem]


class MessageResponse(BaseModel):
    message: str
