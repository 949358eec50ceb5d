"""Typed records returned by the store.

Rows are validated here on their way out of the database, so the
resolver, filter, guard and assembler only ever see checked data.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from compliance_tracker.core.periods import Period
from compliance_tracker.models.enums import ComplianceStatus, Frequency, UserRole


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True, populate_by_name=True)


class UserRecord(_Record):
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool = True


class ClientRecord(_Record):
    id: int
    name: str
    industry: str | None = None
    is_active: bool = True


class LawGroupRecord(_Record):
    id: int
    name: str
    description: str | None = None
    display_order: int = 0
    manager_only: bool = False


class ComplianceDefinition(_Record):
    id: int
    law_group_id: int | None = None
    name: str
    description: str | None = None
    frequency: Frequency
    deadline_day: int | None = Field(default=None, ge=1, le=31)
    deadline_month: int | None = Field(default=None, ge=1, le=12)
    display_order: int = 0
    is_temporary: bool = False
    temp_month: int | None = Field(default=None, ge=1, le=12)
    temp_year: int | None = None
    manager_only: bool = False
    is_active: bool = True
    instruction_text: str | None = None
    instruction_video_url: str | None = None

    @model_validator(mode="after")
    def _temporary_needs_period(self) -> ComplianceDefinition:
        if self.is_temporary and (self.temp_month is None or self.temp_year is None):
            raise ValueError("temporary compliance requires temp_month and temp_year")
        return self

    @model_validator(mode="after")
    def _yearly_needs_month(self) -> ComplianceDefinition:
        if self.frequency is Frequency.YEARLY and self.deadline_month is None:
            raise ValueError("yearly compliance requires deadline_month")
        return self

    @property
    def temp_period(self) -> Period | None:
        if not self.is_temporary:
            return None
        return Period(self.temp_year, self.temp_month)  # type: ignore[arg-type]


class DefaultExtension(_Record):
    task_id: int = Field(validation_alias="compliance_id")
    extension_day: int = Field(ge=1, le=31)


class MonthlyOverride(_Record):
    task_id: int = Field(validation_alias="compliance_id")
    year: int = Field(validation_alias="period_year")
    month: int = Field(validation_alias="period_month", ge=1, le=12)
    custom_deadline_day: int | None = Field(default=None, ge=1, le=31)


class StatusRecord(_Record):
    client_id: int
    task_id: int = Field(validation_alias="compliance_id")
    year: int = Field(validation_alias="period_year")
    month: int = Field(validation_alias="period_month", ge=1, le=12)
    status: ComplianceStatus
    notes: str | None = None
    updated_by: int | None = None


class ClientLinkRecord(_Record):
    client_id: int
    year: int = Field(validation_alias="period_year")
    month: int = Field(validation_alias="period_month")
    link: str


class MonthUnlockRecord(_Record):
    year: int = Field(validation_alias="period_year")
    month: int = Field(validation_alias="period_month")
    unlocked_until: datetime
    unlocked_by: int | None = None

    @field_validator("unlocked_until")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; they were written as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_active(self, now: datetime) -> bool:
        return self.unlocked_until > now
