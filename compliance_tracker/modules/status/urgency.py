"""Urgency Classifier: bucket pending items by days left until their deadline."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Protocol, TypeVar

from compliance_tracker.models.enums import Urgency

WARNING_DAYS = 2
UPCOMING_DAYS = 7


def days_until(deadline_day: int | None, today: date) -> int | None:
    if deadline_day is None:
        return None
    return deadline_day - today.day


def classify(days: int | None) -> Urgency:
    """Map days-until-deadline to an urgency bucket. No deadline is ``normal``."""
    if days is None:
        return Urgency.NORMAL
    if days < 0:
        return Urgency.OVERDUE
    if days == 0:
        return Urgency.TODAY
    if days <= WARNING_DAYS:
        return Urgency.WARNING
    if days <= UPCOMING_DAYS:
        return Urgency.UPCOMING
    return Urgency.NORMAL


class _HasUrgency(Protocol):
    urgency: Urgency


T = TypeVar("T", bound=_HasUrgency)


def sort_by_urgency(items: Iterable[T]) -> list[T]:
    """Stable sort: items of equal urgency keep their incoming order."""
    return sorted(items, key=lambda item: item.urgency.rank)
