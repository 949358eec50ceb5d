"""Deadline Resolver: effective deadline day through the override cascade.

Precedence, highest first:
  1. monthly override for (task, year, month), when its day is set
  2. default extension for the task
  3. the definition's own deadline_day (may be None)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from compliance_tracker.core.periods import Period
from compliance_tracker.store import ComplianceStore
from compliance_tracker.store.records import ComplianceDefinition


def resolve_deadline(
    definition: ComplianceDefinition,
    overrides: Mapping[int, int | None],
    extensions: Mapping[int, int],
) -> int | None:
    """Resolve one definition against a period's overrides and all extensions.

    ``overrides`` must already be scoped to the target period.
    """
    override = overrides.get(definition.id)
    if override is not None:
        return override
    extension = extensions.get(definition.id)
    if extension is not None:
        return extension
    return definition.deadline_day


async def resolve_deadlines(
    store: ComplianceStore,
    definitions: Iterable[ComplianceDefinition],
    period: Period,
) -> dict[int, int | None]:
    """task_id → effective deadline day, loading the cascade tables once."""
    overrides = await store.get_overrides(period)
    extensions = await store.get_extensions()
    return {d.id: resolve_deadline(d, overrides, extensions) for d in definitions}


async def resolve_one(
    store: ComplianceStore, definition: ComplianceDefinition, period: Period
) -> int | None:
    return (await resolve_deadlines(store, [definition], period))[definition.id]
