"""JSON plan file loading: project config, leaf tasks and vacations."""

from __future__ import annotations

import json
from pathlib import Path

from mdplanner.models import ProjectConfig, Task, Vacation

DEFAULT_PLAN_FILE = "plan.json"


class PlanFileError(Exception):
    """Raised when the plan file cannot be read or an entry is malformed."""


def task_from_dict(d: dict) -> Task:
    return Task.leaf(
        name=d["name"],
        owner=d.get("owner", ""),
        cost=int(d["cost"]),
        progress=int(d.get("progress", 0)),
        path=d.get("path", []),
        line=d.get("line"),
    )


class Store:
    """Reads the plan file (JSON). Computed schedules are never written back."""

    def __init__(self, plan_path: str | Path = DEFAULT_PLAN_FILE):
        self.plan_path = Path(plan_path)

    def load(self) -> tuple[ProjectConfig | None, list[Task], list[Vacation]]:
        """Return (config_or_None, leaf tasks in document order, vacations)."""
        if not self.plan_path.exists():
            return None, [], []

        try:
            raw = json.loads(self.plan_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PlanFileError(f"{self.plan_path}: invalid JSON ({e})") from e
        if not isinstance(raw, dict):
            raise PlanFileError(f"{self.plan_path}: expected an object at top level")

        config = None
        if "config" in raw:
            try:
                config = ProjectConfig.from_dict(raw["config"])
            except (KeyError, TypeError, ValueError) as e:
                raise PlanFileError(f"{self.plan_path}: bad config ({e})") from e

        tasks: list[Task] = []
        for i, tdata in enumerate(raw.get("tasks", [])):
            try:
                tasks.append(task_from_dict(tdata))
            except (KeyError, TypeError, ValueError) as e:
                raise PlanFileError(f"{self.plan_path}: tasks[{i}] is invalid ({e})") from e

        vacations: list[Vacation] = []
        for i, vdata in enumerate(raw.get("vacations", [])):
            try:
                vacations.append(Vacation.from_dict(vdata))
            except (KeyError, TypeError, ValueError) as e:
                raise PlanFileError(f"{self.plan_path}: vacations[{i}] is invalid ({e})") from e

        return config, tasks, vacations
