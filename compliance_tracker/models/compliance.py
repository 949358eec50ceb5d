"""Compliance definitions, deadline overrides, status records and month unlocks."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    false,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from compliance_tracker.models.base import BaseModel
from compliance_tracker.models.enums import ComplianceStatus, Frequency


class Compliance(BaseModel):
    """Recurring (or one-off temporary) compliance obligation template."""

    __tablename__ = "compliances"
    __table_args__ = (
        Index("ix_compliances_law_group", "law_group_id"),
        Index("ix_compliances_temp_period", "is_temporary", "temp_year", "temp_month"),
    )

    law_group_id: Mapped[int | None] = mapped_column(
        ForeignKey("law_groups.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    frequency: Mapped[Frequency] = mapped_column(nullable=False, default=Frequency.MONTHLY)

    # Scheduling
    deadline_day: Mapped[int | None] = mapped_column()
    deadline_month: Mapped[int | None] = mapped_column()  # yearly only
    display_order: Mapped[int] = mapped_column(default=0, server_default="0", nullable=False)

    # Temporary definitions exist for exactly one period
    is_temporary: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    temp_month: Mapped[int | None] = mapped_column()
    temp_year: Mapped[int | None] = mapped_column()

    manager_only: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False)

    # Instruction manual
    instruction_text: Mapped[str | None] = mapped_column(Text)
    instruction_video_url: Mapped[str | None] = mapped_column(String(2048))


class ComplianceExtension(BaseModel):
    """Default extension: replaces deadline_day for every period until removed."""

    __tablename__ = "default_compliance_extensions"

    compliance_id: Mapped[int] = mapped_column(
        ForeignKey("compliances.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    extension_day: Mapped[int] = mapped_column(nullable=False)


class ComplianceOverride(BaseModel):
    """Period-specific deadline; wins over extensions and the definition's day."""

    __tablename__ = "monthly_compliance_overrides"
    __table_args__ = (
        UniqueConstraint(
            "compliance_id", "period_year", "period_month", name="uq_monthly_compliance_override"
        ),
    )

    compliance_id: Mapped[int] = mapped_column(
        ForeignKey("compliances.id", ondelete="CASCADE"), nullable=False
    )
    period_year: Mapped[int] = mapped_column(nullable=False)
    period_month: Mapped[int] = mapped_column(nullable=False)
    custom_deadline_day: Mapped[int | None] = mapped_column()


class ComplianceStatusEntry(BaseModel):
    """Tri-state status for one client, compliance and period. Absent row = pending."""

    __tablename__ = "client_compliance_status"
    __table_args__ = (
        UniqueConstraint(
            "client_id",
            "compliance_id",
            "period_year",
            "period_month",
            name="uq_client_compliance_status",
        ),
        Index("ix_client_compliance_status_period", "period_year", "period_month"),
    )

    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    compliance_id: Mapped[int] = mapped_column(
        ForeignKey("compliances.id", ondelete="CASCADE"), nullable=False
    )
    period_year: Mapped[int] = mapped_column(nullable=False)
    period_month: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[ComplianceStatus] = mapped_column(nullable=False, default=ComplianceStatus.PENDING)
    notes: Mapped[str | None] = mapped_column(Text)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))


class MonthUnlock(BaseModel):
    """Temporary lift of the past-period lock, granted by an admin."""

    __tablename__ = "month_unlocks"
    __table_args__ = (
        UniqueConstraint("period_year", "period_month", name="uq_month_unlock_period"),
    )

    period_year: Mapped[int] = mapped_column(nullable=False)
    period_month: Mapped[int] = mapped_column(nullable=False)
    unlocked_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    unlocked_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
