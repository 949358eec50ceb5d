"""Enumerations shared by models, records and API schemas."""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PARTNER = "partner"
    ASSOCIATE_PARTNER = "associate_partner"
    MANAGER = "manager"
    TEAM_MEMBER = "team_member"


class Frequency(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half_yearly"
    YEARLY = "yearly"


class ComplianceStatus(str, enum.Enum):
    PENDING = "pending"
    DONE = "done"
    NA = "na"


class Urgency(str, enum.Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    WARNING = "warning"
    UPCOMING = "upcoming"
    NORMAL = "normal"

    @property
    def rank(self) -> int:
        return _URGENCY_RANK[self]


_URGENCY_RANK: dict[Urgency, int] = {
    Urgency.OVERDUE: 0,
    Urgency.TODAY: 1,
    Urgency.WARNING: 2,
    Urgency.UPCOMING: 3,
    Urgency.NORMAL: 4,
}
