"""Turn a flat list of path-tagged leaf tasks into a parent/child task tree."""

from __future__ import annotations

import logging
from typing import Iterable

import networkx as nx

from mdplanner.models import NO_PARENT, ROOT_ID, Group, Task

logger = logging.getLogger(__name__)


class TreeStructureError(Exception):
    """Raised when the task tree breaks its invariants (root, parents, cycles)."""


def build_tree(tasks: Iterable[Task], project_name: str | None = None) -> list[Task]:
    """Return a new task list: a root group, one group per path prefix, and the leaves.

    Only leaves of *tasks* are consumed; existing group tasks are dropped and
    rebuilt, so running this on its own output reproduces the same ids and
    parent links. Input tasks are copied, never mutated.

    Ids are handed out in discovery order. Every leaf's cost and finished cost
    are added to the owner-cost map of each group from the root down to the
    leaf's own section.
    """
    root_tally = Group()
    root = Task(name=project_name or "", payload=root_tally, id=ROOT_ID, parent_id=NO_PARENT)

    groups: dict[tuple[str, ...], Task] = {(): root}
    tallies: dict[tuple[str, ...], Group] = {(): root_tally}
    result: list[Task] = [root]
    next_id = ROOT_ID

    for source in tasks:
        if source.is_group:
            continue
        leaf = source.unscheduled_copy()
        path = leaf.path

        for i in range(1, len(path) + 1):
            prefix = path[:i]
            if prefix in groups:
                continue
            next_id += 1
            tallies[prefix] = Group()
            group = Task(
                name=prefix[-1],
                payload=tallies[prefix],
                path=prefix,
                id=next_id,
                parent_id=groups[prefix[:-1]].id,
            )
            groups[prefix] = group
            result.append(group)
            logger.debug("Created group %d %r under %d", group.id, group.name, group.parent_id)

        next_id += 1
        leaf.id = next_id
        leaf.parent_id = groups[path].id
        result.append(leaf)

        for i in range(len(path) + 1):
            tallies[path[:i]].add_owner_cost(leaf.owner or "", leaf.cost, leaf.finished_cost)

    logger.debug("Built tree with %d groups and %d tasks in total", len(groups), len(result))
    return result


def has_root(tasks: Iterable[Task]) -> bool:
    return any(t.is_root for t in tasks)


def build_task_graph(tasks: list[Task]) -> nx.DiGraph:
    """Construct the parent -> child graph. Raises TreeStructureError on a malformed tree."""
    G = nx.DiGraph()
    for task in tasks:
        if task.id is None:
            raise TreeStructureError(f"Task {task.name!r} has no id")
        if task.id in G:
            raise TreeStructureError(f"Duplicate task id {task.id}")
        G.add_node(task.id, task=task)

    roots = [t for t in tasks if t.is_root]
    if len(roots) != 1:
        raise TreeStructureError(f"Expected exactly one root task, found {len(roots)}")
    if roots[0].parent_id != NO_PARENT:
        raise TreeStructureError(f"Root task has parent {roots[0].parent_id}")

    for task in tasks:
        if task.is_root:
            continue
        if task.parent_id not in G:
            raise TreeStructureError(f"Task {task.id} refers to non-existent parent {task.parent_id}")
        if not G.nodes[task.parent_id]["task"].is_group:
            raise TreeStructureError(f"Task {task.id} has leaf task {task.parent_id} as parent")
        G.add_edge(task.parent_id, task.id)

    if not nx.is_arborescence(G):
        raise TreeStructureError("Task hierarchy is not a tree rooted at the project")
    return G
