"""Matrix Assembler: the per-period client × compliance status grid.

Every call recomputes from current store state; there is no caching, so two
calls with no mutation in between return identical output.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import structlog

from compliance_tracker.auth.guard import AccessGuard
from compliance_tracker.core.periods import Period
from compliance_tracker.modules.compliance.applicability import in_effect
from compliance_tracker.modules.compliance.deadlines import resolve_deadlines
from compliance_tracker.modules.status.schemas import (
    ClientOut,
    LawGroupOut,
    MatrixResponse,
    MatrixRow,
    PeriodOut,
    StatusCell,
    TaskOut,
)
from compliance_tracker.store.records import (
    ClientRecord,
    ComplianceDefinition,
    LawGroupRecord,
    StatusRecord,
)

logger = structlog.get_logger()

UNGROUPED_NAME = "Ungrouped"


def _task_out(definition: ComplianceDefinition, deadline_day: int | None) -> TaskOut:
    return TaskOut(
        **definition.model_dump(
            include=set(TaskOut.model_fields) - {"deadline_day"},
        ),
        deadline_day=deadline_day,
    )


def group_tasks(
    law_groups: Sequence[LawGroupRecord],
    definitions: Sequence[ComplianceDefinition],
    deadlines: Mapping[int, int | None],
) -> list[LawGroupOut]:
    """Law groups in their given order, each with its tasks in their given order.

    Definitions without a law group land in a trailing "Ungrouped" group that
    is only emitted when it has tasks.
    """
    by_group: dict[int | None, list[TaskOut]] = {}
    for definition in definitions:
        by_group.setdefault(definition.law_group_id, []).append(
            _task_out(definition, deadlines.get(definition.id))
        )

    known_ids = {lg.id for lg in law_groups}
    groups = [
        LawGroupOut(
            id=lg.id,
            name=lg.name,
            description=lg.description,
            display_order=lg.display_order,
            manager_only=lg.manager_only,
            tasks=by_group.get(lg.id, []),
        )
        for lg in law_groups
    ]
    orphans = [
        task
        for group_id, tasks in by_group.items()
        if group_id is None or group_id not in known_ids
        for task in tasks
    ]
    if orphans:
        groups.append(LawGroupOut(id=None, name=UNGROUPED_NAME, tasks=orphans))
    return groups


def build_rows(
    clients: Sequence[ClientRecord],
    definitions: Sequence[ComplianceDefinition],
    statuses: Mapping[tuple[int, int], StatusRecord],
    links: Mapping[int, str],
) -> list[MatrixRow]:
    rows: list[MatrixRow] = []
    for client in clients:
        cells: dict[int, StatusCell] = {}
        for definition in definitions:
            record = statuses.get((client.id, definition.id))
            cells[definition.id] = (
                StatusCell(status=record.status, notes=record.notes) if record else StatusCell()
            )
        rows.append(
            MatrixRow(
                client=ClientOut.model_validate(client),
                link=links.get(client.id),
                statuses=cells,
            )
        )
    return rows


async def assemble_matrix(
    guard: AccessGuard, period: Period, manager_id: int | None = None
) -> MatrixResponse:
    store = guard.store
    clients = await guard.visible_clients(manager_id)
    law_groups = await store.list_law_groups()
    definitions = in_effect(await store.list_active_definitions(), period)
    deadlines = await resolve_deadlines(store, definitions, period)
    statuses = await store.status_map(period, [c.id for c in clients])
    links = await store.get_client_links(period)

    groups = group_tasks(law_groups, definitions, deadlines)

    logger.info(
        "matrix.assembled",
        user_id=guard.user.user_id,
        year=period.year,
        month=period.month,
        clients=len(clients),
        tasks=len(definitions),
    )
    return MatrixResponse(
        period=PeriodOut(**period.as_dict()),
        editable=await guard.can_edit_period(period),
        law_groups=groups,
        matrix=build_rows(clients, definitions, statuses, links),
    )
