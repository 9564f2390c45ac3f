"""Owner-calendar leaf scheduling, bottom-up group propagation and cost statistics."""

from __future__ import annotations

import logging
from collections import deque
from datetime import date

import networkx as nx

from mdplanner.hierarchy import TreeStructureError
from mdplanner.models import HalfDayDuration, OwnerStat, ProjectStat, Task
from mdplanner.workdays import WorkCalendar

logger = logging.getLogger(__name__)


class UnresolvedGroupsError(TreeStructureError):
    """Raised when some group tasks never had all of their children scheduled."""

    def __init__(self, task_ids: list[int]):
        self.task_ids = task_ids
        super().__init__(f"Could not compute span for group task(s): {', '.join(map(str, task_ids))}")


# ---------------------------------------------------------------------------
# Leaf scheduling
# ---------------------------------------------------------------------------


def group_leaves_by_owner(tasks: list[Task]) -> dict[str, list[Task]]:
    """Leaf tasks per owner, each list in input order.

    A missing owner is filed under ``""``; whitespace-only owners keep their own key.
    """
    by_owner: dict[str, list[Task]] = {}
    for task in tasks:
        if task.is_group:
            continue
        by_owner.setdefault(task.owner or "", []).append(task)
    return by_owner


def schedule_leaves(
    tasks: list[Task],
    calendar: WorkCalendar,
    project_start: date,
    today: date,
) -> None:
    """Lay each owner's leaves back to back on that owner's calendar, in place.

    Offsets are global half-day indices from *project_start*; every owner has
    an independent cursor starting at 0. ``used_cost`` is the working time
    between the task start and the earlier of *today* and the task end.
    """
    for owner, owner_tasks in group_leaves_by_owner(tasks).items():
        last_offset = 0
        for task in owner_tasks:
            task.start_offset = last_offset
            if task.cost == 0:
                # Marker: holds its start slot so the next task begins right after it.
                task.end_offset = last_offset
                task.used_cost = 0
            else:
                start = HalfDayDuration(last_offset).add_to(project_start)
                step = calendar.advance(owner, start.date, task.cost)
                task.end_offset = last_offset + step.elapsed_cost - 1

                end = HalfDayDuration(task.end_offset).add_to(project_start)
                task.used_cost = calendar.actual_cost_between(owner, start.date, min(today, end.date))

            last_offset = task.end_offset + 1

        logger.debug("Scheduled %d task(s) for owner %r up to offset %d", len(owner_tasks), owner, last_offset)


# ---------------------------------------------------------------------------
# Group propagation
# ---------------------------------------------------------------------------


def propagate_groups(G: nx.DiGraph) -> None:
    """Derive every group's span and used cost from its children, bottom-up.

    *G* is the parent -> child graph from ``build_task_graph``; leaves must
    already be scheduled. A group is computed as soon as its last pending
    child is, so each group is visited exactly once.
    """
    pending: dict[int, int] = {}
    ready: deque[int] = deque()

    for tid in G.nodes:
        task: Task = G.nodes[tid]["task"]
        if task.is_group and not task.is_scheduled:
            pending[tid] = sum(1 for c in G.successors(tid) if not G.nodes[c]["task"].is_scheduled)
            if pending[tid] == 0:
                ready.append(tid)

    while ready:
        tid = ready.popleft()
        task = G.nodes[tid]["task"]
        children = [G.nodes[c]["task"] for c in G.successors(tid)]
        if children:
            task.start_offset = min(c.start_offset for c in children)
            task.end_offset = max(c.end_offset for c in children)
            task.used_cost = sum(c.used_cost for c in children)
        else:
            task.start_offset = 0
            task.end_offset = 0
            task.used_cost = 0
        _child_resolved(G, tid, pending, ready)

    unresolved = sorted(tid for tid in pending if not G.nodes[tid]["task"].is_scheduled)
    if unresolved:
        logger.error("Group tasks left without a span: %s", unresolved)
        raise UnresolvedGroupsError(unresolved)


def _child_resolved(G: nx.DiGraph, tid: int, pending: dict[int, int], ready: deque[int]) -> None:
    for parent in G.predecessors(tid):
        if parent not in pending:
            continue
        pending[parent] -= 1
        if pending[parent] == 0:
            ready.append(parent)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def aggregate_stats(tasks: list[Task]) -> ProjectStat:
    """Fold leaf costs into per-owner and overall tallies."""
    stat = ProjectStat()
    for task in tasks:
        if task.is_group:
            continue
        owner = task.owner or ""
        stat.owners.setdefault(owner, OwnerStat(owner=owner)).add(task.cost, task.finished_cost)
        stat.total.add(task.cost, task.finished_cost)
    return stat
