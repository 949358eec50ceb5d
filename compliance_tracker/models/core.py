"""Core models: User, Client, LawGroup, assignments and period links."""

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint, false, true
from sqlalchemy.orm import Mapped, mapped_column

from compliance_tracker.models.base import BaseModel
from compliance_tracker.models.enums import UserRole


class User(BaseModel):
    """Staff member. Credentials live with the external auth service."""

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
        Index("ix_users_role", "role"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[UserRole] = mapped_column(nullable=False, default=UserRole.TEAM_MEMBER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role.value})>"


class Client(BaseModel):
    __tablename__ = "clients"
    __table_args__ = (Index("ix_clients_active_name", "is_active", "name"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False)


class LawGroup(BaseModel):
    """Named grouping of compliance definitions, rendered as matrix column groups."""

    __tablename__ = "law_groups"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(default=0, server_default="0", nullable=False)
    manager_only: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)


class UserClientAssignment(BaseModel):
    """Which clients a non-privileged user may see and edit."""

    __tablename__ = "user_client_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "client_id", name="uq_user_client_assignment"),
        Index("ix_user_client_assignments_client", "client_id"),
    )

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)


class ClientMonthlyLink(BaseModel):
    """External resource link (e.g. a shared document folder) for one client and period."""

    __tablename__ = "client_monthly_links"
    __table_args__ = (
        UniqueConstraint(
            "client_id", "period_year", "period_month", name="uq_client_monthly_link"
        ),
    )

    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    period_year: Mapped[int] = mapped_column(nullable=False)
    period_month: Mapped[int] = mapped_column(nullable=False)
    link: Mapped[str] = mapped_column(String(2048), nullable=False)


class ClientLawGroupAssignment(BaseModel):
    """Law groups a client is subscribed to; scopes managers' temporary definitions."""

    __tablename__ = "client_law_group_assignments"
    __table_args__ = (
        UniqueConstraint("client_id", "law_group_id", name="uq_client_law_group_assignment"),
        Index("ix_client_law_group_assignments_law_group", "law_group_id"),
    )

    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    law_group_id: Mapped[int] = mapped_column(
        ForeignKey("law_groups.id", ondelete="CASCADE"), nullable=False
    )
