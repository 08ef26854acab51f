"""Order an HRIS batch so managers come before their reports."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from app.models.hris import ExternalEmployee


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class ManagerOrder(NamedTuple):
    employees: list[ExternalEmployee]
    # Provider ids of each manager cycle found, in input order.
    cycles: list[list[str]]


def sort_by_manager(employees: list[ExternalEmployee]) -> ManagerOrder:
    """Topologically sort ``employees`` along their manager references.

    Every employee whose manager is in the same batch is emitted after that
    manager. Managers outside the batch are ignored here. Each employee has
    at most one manager, so the walk simply climbs the manager chain.

    Members of a manager cycle are emitted together in input order; the
    cycle is reported in ``ManagerOrder.cycles``.

    Later duplicates of a provider id are dropped.
    """
    by_id: dict[str, ExternalEmployee] = {}
    position: dict[str, int] = {}
    for idx, employee in enumerate(employees):
        # First occurrence of a duplicated provider id wins.
        by_id.setdefault(employee.id, employee)
        position.setdefault(employee.id, idx)
    marks = {e.id: _Mark.UNVISITED for e in employees}

    ordered: list[ExternalEmployee] = []
    cycles: list[list[str]] = []

    for start in employees:
        if marks[start.id] is not _Mark.UNVISITED:
            continue

        chain: list[ExternalEmployee] = []
        node: ExternalEmployee | None = start
        while node is not None and marks[node.id] is _Mark.UNVISITED:
            marks[node.id] = _Mark.IN_PROGRESS
            chain.append(node)
            node = by_id.get(node.manager) if node.manager else None

        if node is not None and marks[node.id] is _Mark.IN_PROGRESS:
            cut = next(idx for idx, e in enumerate(chain) if e.id == node.id)
            members = sorted(chain[cut:], key=lambda e: position[e.id])
            for member in members:
                marks[member.id] = _Mark.DONE
                ordered.append(member)
            cycles.append([m.id for m in members])
            chain = chain[:cut]

        for employee in reversed(chain):
            marks[employee.id] = _Mark.DONE
            ordered.append(employee)

    return ManagerOrder(ordered, cycles)
