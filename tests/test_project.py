from datetime import date

from mdplanner.models import HalfDayDate, ProjectConfig, Task, Vacation
from mdplanner.project import Project

MON = date(2024, 1, 1)
WED = date(2024, 1, 3)
THU = date(2024, 1, 4)


def _leaves():
    return [
        Task.leaf("Endpoints", "alice", cost=4, progress=50, path=["Backend", "API"]),
        Task.leaf("Schema", "bob", cost=2, path=["Backend", "DB"]),
        Task.leaf("Pages", "alice", cost=2, progress=100, path=["Frontend"]),
        Task.leaf("Cleanup", "", cost=2, path=["Frontend"]),
    ]


def _project(leaves=None):
    return Project(
        MON,
        _leaves() if leaves is None else leaves,
        [Vacation("alice", WED, WED)],
        name="Launch",
        today=WED,
    )


def _by_name(project):
    return {t.name: t for t in project.tasks}


def test_pipeline_schedules_leaves_and_groups():
    project = _project()
    tasks = _by_name(project)

    assert (tasks["Endpoints"].start_offset, tasks["Endpoints"].end_offset) == (0, 3)
    assert (tasks["Pages"].start_offset, tasks["Pages"].end_offset) == (4, 7)
    assert (tasks["Schema"].start_offset, tasks["Schema"].end_offset) == (0, 1)
    assert (tasks["Cleanup"].start_offset, tasks["Cleanup"].end_offset) == (0, 1)
    assert (tasks["Frontend"].start_offset, tasks["Frontend"].end_offset) == (0, 7)
    assert (project.root_task.start_offset, project.root_task.end_offset) == (0, 7)

    assert tasks["Endpoints"].used_cost == 4
    assert tasks["Pages"].used_cost == 0
    assert tasks["Endpoints"].is_delayed
    assert all(t.is_scheduled for t in project.tasks)


def test_dates_and_calendar_queries():
    project = _project()
    pages = _by_name(project)["Pages"]
    assert str(project.start_date_of(pages)) == "2024-01-03 AM"
    assert project.end_date_of(pages) == HalfDayDate(THU, pm=True)
    assert project.project_end_date == THU

    assert project.skip("alice", WED)
    assert not project.skip("bob", WED)
    assert project.is_in_vacation("alice", WED)
    assert project.is_weekend(date(2024, 1, 6))


def test_statistics_and_owners():
    project = _project()
    assert project.owners == ["alice", "bob"]
    assert project.total_cost == 10
    assert project.finished_cost == 4.0
    assert project.progress == 40.0
    assert project.owner_stat("alice").total_cost == 6
    assert project.owner_stat("alice").progress == 4.0 * 100 / 6
    assert project.owner_stat("").total_cost == 2
    assert project.total_stat.total_cost == 10


def test_tree_queries():
    project = _project()
    root = project.root_task
    assert (root.id, root.parent_id, root.name) == (0, -1, "Launch")
    assert [t.name for t in project.children(0)] == ["Backend", "Frontend"]
    endpoints = _by_name(project)["Endpoints"]
    assert project.depth(endpoints) == 3
    assert project.get_task(endpoints.id) is endpoints
    assert len(project.leaves) == 4
    assert [g.name for g in project.groups] == ["Launch", "Backend", "API", "DB", "Frontend"]


def test_empty_project_is_well_defined():
    project = Project(MON, [], name="Empty", today=WED)
    assert project.progress == 0.0
    assert project.total_cost == 0
    assert project.project_end_date is None
    assert project.owners == []
    assert project.root_task.end_offset == 0


def test_tree_shaped_input_is_copied_not_shared():
    first = _project()
    second = Project(first.start_date, first.tasks, first.vacations, name=first.name, today=first.today)
    assert [(t.id, t.parent_id, t.start_offset, t.end_offset) for t in first.tasks] == [
        (t.id, t.parent_id, t.start_offset, t.end_offset) for t in second.tasks
    ]
    assert not any(a is b for a, b in zip(first.tasks, second.tasks))


def test_hide_completed_returns_a_new_project():
    project = _project()
    remaining = project.hide_completed()
    assert remaining is not project
    assert [t.name for t in remaining.leaves] == ["Endpoints", "Schema", "Cleanup"]
    assert len(project.leaves) == 4
    assert _by_name(project)["Pages"].end_offset == 7


def test_hide_not_completed_reschedules_from_scratch():
    done = _project().hide_not_completed()
    pages = _by_name(done)["Pages"]
    assert [t.name for t in done.leaves] == ["Pages"]
    assert (pages.start_offset, pages.end_offset) == (0, 1)
    assert done.progress == 100.0


def test_only_owner():
    bob = _project().only_owner("bob")
    assert bob.owners == ["bob"]
    assert [t.name for t in bob.tasks] == ["Launch", "Backend", "DB", "Schema"]


def test_filter_keywords():
    project = _project()
    assert [t.name for t in project.filter_keyword("SCH").leaves] == ["Schema"]
    assert [t.name for t in project.filter_keyword("sch", reverse=True).leaves] == [
        "Endpoints",
        "Pages",
        "Cleanup",
    ]
    assert [t.name for t in project.filter_keywords(["end", "page"]).leaves] == ["Endpoints", "Pages"]
    assert len(project.filter_keywords([]).leaves) == 4


def test_from_config():
    config = ProjectConfig(start_date=MON, name="Launch")
    project = Project.from_config(config, _leaves(), today=WED)
    assert project.name == "Launch"
    assert project.root_task.name == "Launch"
