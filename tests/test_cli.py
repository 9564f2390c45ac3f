import json

from typer.testing import CliRunner

from mdplanner.cli import app, progress_text, stat_row, status_style
from mdplanner.models import OwnerStat, Task

runner = CliRunner()

PLAN = {
    "config": {"start_date": "2024-01-01", "name": "Launch"},
    "tasks": [
        {"name": "Endpoints", "owner": "alice", "cost": 4, "progress": 50, "path": ["Backend"]},
        {"name": "Schema", "owner": "bob", "cost": 2, "path": ["Backend"]},
        {"name": "Pages", "owner": "alice", "cost": 2, "progress": 100, "path": ["Frontend"]},
    ],
    "vacations": [{"owner": "alice", "start": "2024-01-03", "end": "2024-01-03"}],
}


def _plan_file(tmp_path, data=PLAN):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_status_shows_owner_totals(tmp_path):
    result = runner.invoke(app, ["--file", _plan_file(tmp_path), "--today", "2024-01-10", "status"])
    assert result.exit_code == 0, result.stdout
    assert "alice" in result.stdout
    assert "bob" in result.stdout
    assert "Total" in result.stdout
    assert "2024-01-04" in result.stdout


def test_schedule_lists_tree(tmp_path):
    result = runner.invoke(app, ["--file", _plan_file(tmp_path), "--today", "2024-01-10", "schedule"])
    assert result.exit_code == 0, result.stdout
    for name in ("Launch", "Backend", "Endpoints", "Schema", "Frontend", "Pages"):
        assert name in result.stdout


def test_schedule_filters(tmp_path):
    plan = _plan_file(tmp_path)
    result = runner.invoke(app, ["--file", plan, "schedule", "--owner", "bob"])
    assert result.exit_code == 0, result.stdout
    assert "Schema" in result.stdout
    assert "Endpoints" not in result.stdout

    result = runner.invoke(app, ["--file", plan, "schedule", "--hide-completed"])
    assert "Pages" not in result.stdout

    result = runner.invoke(app, ["--file", plan, "schedule", "-k", "pages", "--exclude"])
    assert "Pages" not in result.stdout
    assert "Schema" in result.stdout


def test_owners_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("MDPLANNER_FILE", _plan_file(tmp_path))
    result = runner.invoke(app, ["owners"])
    assert result.exit_code == 0, result.stdout
    assert result.stdout.split() == ["alice", "bob"]


def test_missing_config_exits_with_error(tmp_path):
    result = runner.invoke(app, ["--file", _plan_file(tmp_path, {"tasks": []}), "status"])
    assert result.exit_code == 1
    assert "No project config" in result.stdout


def test_bad_plan_exits_with_error(tmp_path):
    bad = dict(PLAN, tasks=[{"name": "Broken", "cost": -1}])
    result = runner.invoke(app, ["--file", _plan_file(tmp_path, bad), "status"])
    assert result.exit_code == 1
    assert "Error" in result.stdout


def test_progress_text_and_style():
    task = Task.leaf("Endpoints", "alice", cost=4, progress=50)
    task.used_cost = 4
    assert progress_text(task) == "50% (expected 100%)"
    assert status_style(task) == "yellow"

    task = Task.leaf("Todo", "alice", cost=4)
    assert status_style(task) == "dim"
    task.used_cost = 2
    assert status_style(task) == "red"

    assert status_style(Task.leaf("Done", "alice", cost=2, progress=100)) == "green"


def test_status_rows_add_up_with_unassigned_tasks(tmp_path):
    plan = dict(PLAN, tasks=PLAN["tasks"] + [{"name": "Triage", "owner": "", "cost": 2}])
    result = runner.invoke(app, ["--file", _plan_file(tmp_path, plan), "--today", "2024-01-10", "status"])
    assert result.exit_code == 0, result.stdout
    assert "(unassigned)" in result.stdout

    result = runner.invoke(app, ["--file", _plan_file(tmp_path), "status"])
    assert "(unassigned)" not in result.stdout


def test_stat_row_reports_man_days():
    stat = OwnerStat(owner="alice", total_cost=6, finished_cost=3.0)
    assert stat_row("alice", stat) == ("alice", "3.0", "1.5", "50%")
