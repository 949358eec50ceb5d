"""SQLAlchemy models; importing the package registers every table on Base.metadata."""

from compliance_tracker.models.base import BaseModel
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
from compliance_tracker.models.enums import ComplianceStatus, Frequency, Urgency, UserRole

__all__ = [
    "BaseModel",
    "Client",
    "ClientLawGroupAssignment",
    "ClientMonthlyLink",
    "Compliance",
    "ComplianceExtension",
    "ComplianceOverride",
    "ComplianceStatus",
    "ComplianceStatusEntry",
    "Frequency",
    "LawGroup",
    "MonthUnlock",
    "Urgency",
    "User",
    "UserClientAssignment",
    "UserRole",
]
