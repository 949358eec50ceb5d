"""Tracking periods and the request clock.

A period is one (year, month) tracking cycle. "Now" is injected through the
``get_now`` dependency so every temporal rule can be pinned in tests.
"""

from datetime import date, datetime
from typing import NamedTuple
from zoneinfo import ZoneInfo

from compliance_tracker.core.config import settings
from compliance_tracker.core.errors import ValidationError

MIN_YEAR = 2000
MAX_YEAR = 2100


class Period(NamedTuple):
    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "Period":
        return cls(day.year, day.month)

    def as_dict(self) -> dict[str, int]:
        return {"year": self.year, "month": self.month}


def resolve_period(year: int | None, month: int | None, today: date) -> Period:
    """Fill missing year/month from today and reject out-of-range values."""
    year = year or today.year
    month = month or today.month
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", detail={"month": month})
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(
            f"Year must be between {MIN_YEAR} and {MAX_YEAR}", detail={"year": year}
        )
    return Period(year, month)


def get_now() -> datetime:
    """Timezone-aware current time in the configured tracking zone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))
