"""Task, calendar unit and statistics definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta


ROOT_ID = 0
NO_PARENT = -1


# ---------------------------------------------------------------------------
# Half-day calendar units
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class HalfDayDate:
    """A calendar date with AM/PM precision."""

    date: date
    pm: bool = False

    @classmethod
    def from_offset(cls, origin: date, offset: int) -> HalfDayDate:
        return cls(origin + timedelta(days=offset // 2), offset % 2 == 1)

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {'PM' if self.pm else 'AM'}"


@dataclass(frozen=True)
class HalfDayDuration:
    """A span of half-day units; two of them make one man-day.

    Finished cost can be fractional; only whole half-days are added to dates.
    """

    half_days: float

    def __post_init__(self) -> None:
        if self.half_days < 0:
            raise ValueError(f"Duration cannot be negative: {self.half_days}")

    @property
    def man_days(self) -> float:
        return self.half_days / 2

    def add_to(self, origin: date) -> HalfDayDate:
        return HalfDayDate.from_offset(origin, self.half_days)


@dataclass(frozen=True)
class Vacation:
    """An inclusive range of days during which *owner* does not work."""

    owner: str
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Vacation for {self.owner!r} ends ({self.end}) before it starts ({self.start})")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def from_dict(cls, d: dict) -> Vacation:
        return cls(
            owner=d["owner"],
            start=date.fromisoformat(d["start"]),
            end=date.fromisoformat(d["end"]),
        )


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


@dataclass
class OwnerStat:
    """Cost tally for one owner (or for everyone, when owner is None)."""

    owner: str | None = None
    total_cost: int = 0
    finished_cost: float = 0.0

    def add(self, cost: int, finished_cost: float) -> None:
        self.total_cost += cost
        self.finished_cost += finished_cost

    @property
    def progress(self) -> float:
        # Empty tallies report 0% rather than dividing by zero.
        if self.total_cost == 0:
            return 0.0
        return self.finished_cost * 100 / self.total_cost


@dataclass
class ProjectStat:
    """Per-owner tallies plus the overall total."""

    owners: dict[str, OwnerStat] = field(default_factory=dict)
    total: OwnerStat = field(default_factory=OwnerStat)

    def owner_stat(self, owner: str) -> OwnerStat:
        return self.owners.get(owner, OwnerStat(owner=owner))

    @property
    def progress(self) -> float:
        return self.total.progress


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@dataclass
class Leaf:
    """Payload of an unsplittable unit of work."""

    owner: str
    cost: int
    progress: int = 0
    line: int | None = None  # position in the source document, if known

    def __post_init__(self) -> None:
        if self.cost < 0:
            raise ValueError(f"Task cost cannot be negative: {self.cost}")
        if not 0 <= self.progress <= 100:
            raise ValueError(f"Task progress must be within 0..100: {self.progress}")

    @property
    def finished_cost(self) -> float:
        return self.cost * self.progress / 100


@dataclass
class Group:
    """Payload of a synthetic section node; owner costs accumulate from leaves."""

    owner_costs: dict[str, OwnerStat] = field(default_factory=dict)

    def add_owner_cost(self, owner: str, cost: int, finished_cost: float) -> None:
        self.owner_costs.setdefault(owner, OwnerStat(owner=owner)).add(cost, finished_cost)

    @property
    def cost(self) -> int:
        return sum(s.total_cost for s in self.owner_costs.values())

    @property
    def finished_cost(self) -> float:
        return sum(s.finished_cost for s in self.owner_costs.values())


@dataclass
class Task:
    """A node of the project tree: shared record plus a leaf or group payload.

    Offsets count half-days from the project start date. ``end_offset`` is
    ``None`` until the scheduler has computed the task.
    """

    name: str
    payload: Leaf | Group
    path: tuple[str, ...] = ()
    id: int | None = None
    parent_id: int | None = None
    start_offset: int | None = None
    end_offset: int | None = None
    used_cost: int = 0

    @classmethod
    def leaf(
        cls,
        name: str,
        owner: str,
        cost: int,
        progress: int = 0,
        path: tuple[str, ...] | list[str] = (),
        line: int | None = None,
    ) -> Task:
        return cls(name=name, payload=Leaf(owner, cost, progress, line), path=tuple(path))

    @property
    def is_group(self) -> bool:
        return isinstance(self.payload, Group)

    @property
    def is_root(self) -> bool:
        return self.is_group and self.id == ROOT_ID

    @property
    def is_scheduled(self) -> bool:
        return self.end_offset is not None

    @property
    def owner(self) -> str | None:
        return None if isinstance(self.payload, Group) else self.payload.owner

    @property
    def cost(self) -> int:
        return self.payload.cost

    @property
    def finished_cost(self) -> float:
        return self.payload.finished_cost

    @property
    def progress(self) -> float:
        if isinstance(self.payload, Leaf):
            return self.payload.progress
        cost = self.payload.cost
        return self.payload.finished_cost * 100 / cost if cost else 0.0

    @property
    def is_completed(self) -> bool:
        return self.progress >= 100

    @property
    def is_started(self) -> bool:
        return self.progress > 0

    @property
    def expected_progress(self) -> float:
        """Progress the task should have reached by now, judging by used cost."""
        if self.cost == 0:
            return 0.0
        return min(100.0, self.used_cost * 100 / self.cost)

    @property
    def is_delayed(self) -> bool:
        return self.progress < self.expected_progress

    def unscheduled_copy(self) -> Task:
        """Detached copy with ids, offsets and group tallies cleared."""
        if isinstance(self.payload, Group):
            payload: Leaf | Group = Group()
        else:
            payload = Leaf(self.payload.owner, self.payload.cost, self.payload.progress, self.payload.line)
        return Task(name=self.name, payload=payload, path=self.path)


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------


@dataclass
class ProjectConfig:
    """Project-level settings stored alongside tasks."""

    start_date: date
    name: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> ProjectConfig:
        return cls(
            start_date=date.fromisoformat(d["start_date"]),
            name=d.get("name"),
        )
