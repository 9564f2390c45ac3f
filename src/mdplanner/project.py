"""The scheduled project: tree, offsets, statistics and derived queries."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable

import networkx as nx

from mdplanner.hierarchy import TreeStructureError, build_task_graph, build_tree, has_root
from mdplanner.models import (
    ROOT_ID,
    HalfDayDate,
    HalfDayDuration,
    OwnerStat,
    ProjectConfig,
    ProjectStat,
    Task,
    Vacation,
)
from mdplanner.scheduler import aggregate_stats, propagate_groups, schedule_leaves
from mdplanner.workdays import WorkCalendar

logger = logging.getLogger(__name__)


class Project:
    """A fully scheduled snapshot of a plan.

    Construction copies *tasks*, builds the section tree when the list does
    not carry one yet, schedules leaves on their owners' calendars, derives
    group spans and collects statistics. The instance is never patched
    afterwards; the filtering methods return new projects.
    """

    def __init__(
        self,
        start_date: date,
        tasks: Iterable[Task],
        vacations: Iterable[Vacation] = (),
        name: str | None = None,
        today: date | None = None,
    ):
        self.name = name
        self.start_date = start_date
        self.vacations: tuple[Vacation, ...] = tuple(vacations)
        self.today = today if today is not None else date.today()
        self.calendar = WorkCalendar(self.vacations)

        tasks = list(tasks)
        if has_root(tasks):
            self.tasks = [_fresh_copy(t) for t in tasks]
        else:
            self.tasks = build_tree(tasks, name)

        self._graph = build_task_graph(self.tasks)
        schedule_leaves(self.tasks, self.calendar, self.start_date, self.today)
        propagate_groups(self._graph)
        self.stat: ProjectStat = aggregate_stats(self.tasks)
        logger.debug(
            "Project %r: %d task(s), %d owner(s), ends %s",
            name, len(self.tasks), len(self.owners), self.project_end_date,
        )

    @classmethod
    def from_config(
        cls,
        config: ProjectConfig,
        tasks: Iterable[Task],
        vacations: Iterable[Vacation] = (),
        today: date | None = None,
    ) -> Project:
        return cls(config.start_date, tasks, vacations, name=config.name, today=today)

    # -- tree ---------------------------------------------------------------

    @property
    def root_task(self) -> Task:
        for task in self.tasks:
            if task.is_root:
                return task
        raise TreeStructureError("Project has no root task")

    def get_task(self, task_id: int) -> Task:
        if task_id not in self._graph:
            raise KeyError(task_id)
        return self._graph.nodes[task_id]["task"]

    def children(self, task_id: int) -> list[Task]:
        return [self._graph.nodes[c]["task"] for c in self._graph.successors(task_id)]

    def depth(self, task: Task) -> int:
        """Number of ancestors between *task* and the root (the root itself is 0)."""
        return nx.shortest_path_length(self._graph, ROOT_ID, task.id)

    @property
    def leaves(self) -> list[Task]:
        return [t for t in self.tasks if not t.is_group]

    @property
    def groups(self) -> list[Task]:
        return [t for t in self.tasks if t.is_group]

    # -- calendar -----------------------------------------------------------

    def is_weekend(self, day: date) -> bool:
        return self.calendar.is_weekend(day)

    def is_in_vacation(self, owner: str, day: date) -> bool:
        return self.calendar.is_in_vacation(owner, day)

    def skip(self, owner: str, day: date) -> bool:
        """Whether *day* is not an effective working day for *owner*."""
        return self.calendar.skip(owner, day)

    def start_date_of(self, task: Task) -> HalfDayDate:
        return HalfDayDuration(task.start_offset).add_to(self.start_date)

    def end_date_of(self, task: Task) -> HalfDayDate:
        return HalfDayDuration(task.end_offset).add_to(self.start_date)

    @property
    def project_end_date(self) -> date | None:
        ends = [self.end_date_of(t) for t in self.leaves]
        return max(ends).date if ends else None

    # -- statistics ---------------------------------------------------------

    @property
    def owners(self) -> list[str]:
        seen: list[str] = []
        for task in self.leaves:
            if task.owner and task.owner.strip() and task.owner not in seen:
                seen.append(task.owner)
        return seen

    @property
    def total_cost(self) -> int:
        return self.stat.total.total_cost

    @property
    def finished_cost(self) -> float:
        return self.stat.total.finished_cost

    @property
    def progress(self) -> float:
        return self.stat.progress

    def owner_stat(self, owner: str) -> OwnerStat:
        return self.stat.owner_stat(owner)

    @property
    def total_stat(self) -> OwnerStat:
        return self.stat.total

    # -- filtering ----------------------------------------------------------

    def _derive(self, keep: Callable[[Task], bool]) -> Project:
        return Project(
            self.start_date,
            [t.unscheduled_copy() for t in self.leaves if keep(t)],
            self.vacations,
            name=self.name,
            today=self.today,
        )

    def hide_completed(self) -> Project:
        return self._derive(lambda t: not t.is_completed)

    def hide_not_completed(self) -> Project:
        return self._derive(lambda t: t.is_completed)

    def only_owner(self, owner: str) -> Project:
        return self._derive(lambda t: t.owner == owner)

    def filter_keyword(self, keyword: str, reverse: bool = False) -> Project:
        return self.filter_keywords([keyword], reverse)

    def filter_keywords(self, keywords: list[str], reverse: bool = False) -> Project:
        """Keep tasks whose name contains any keyword (case-insensitive); with *reverse*, keep the rest."""
        lowered = [k.lower() for k in keywords]

        def matches(task: Task) -> bool:
            hit = any(k in task.name.lower() for k in lowered) if lowered else True
            return hit != reverse

        return self._derive(matches)


def _fresh_copy(task: Task) -> Task:
    """Copy of an already tree-shaped task, keeping ids but dropping computed state."""
    copy = task.unscheduled_copy()
    if task.is_group:
        copy.payload = replace(task.payload, owner_costs={
            owner: replace(s) for owner, s in task.payload.owner_costs.items()
        })
    return replace(copy, id=task.id, parent_id=task.parent_id)
