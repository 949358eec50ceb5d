"""Compliance Instance Filter.

Two views of the same definitions:

* ``in_effect`` is what the status matrix tracks: every active definition,
  every month, except temporary ones outside their single period.
* ``deadline_view`` is narrower and feeds the deadline and calendar views:
  monthly definitions, plus yearly ones whose deadline_month is the target
  month. Quarterly and half-yearly definitions never appear there.
"""

from __future__ import annotations

from collections.abc import Iterable

from compliance_tracker.core.periods import Period
from compliance_tracker.models.enums import Frequency
from compliance_tracker.store.records import ComplianceDefinition


def is_in_effect(definition: ComplianceDefinition, period: Period) -> bool:
    if definition.is_temporary:
        return definition.temp_period == period
    return True


def in_effect(
    definitions: Iterable[ComplianceDefinition], period: Period
) -> list[ComplianceDefinition]:
    return [d for d in definitions if is_in_effect(d, period)]


def applies_to_deadline_view(definition: ComplianceDefinition, period: Period) -> bool:
    if definition.frequency is Frequency.MONTHLY:
        return True
    if definition.frequency is Frequency.YEARLY:
        return definition.deadline_month == period.month
    return False


def deadline_view(
    definitions: Iterable[ComplianceDefinition], period: Period
) -> list[ComplianceDefinition]:
    """In-effect definitions that carry a deadline in this period."""
    return [
        d for d in in_effect(definitions, period) if applies_to_deadline_view(d, period)
    ]
