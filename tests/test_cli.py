import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dealmap.cli import app

runner = CliRunner()


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_workspace_add_and_duplicate(workdir: Path) -> None:
    result = runner.invoke(app, ["workspace", "add", "AI Labs", "--domain", "ailabs.com"])
    assert result.exit_code == 0, result.output
    assert "Workspace created: ai-labs" in result.output
    assert (workdir / "workspaces" / "ai-labs" / "workspace.yaml").exists()
    assert (workdir / "workspaces" / ".current").read_text().strip() == "ai-labs"

    again = runner.invoke(app, ["workspace", "add", "AI Labs"])
    assert again.exit_code == 1
    assert "already exists" in again.output

    blank = runner.invoke(app, ["workspace", "add", "  "])
    assert blank.exit_code == 1
    assert "Company name is required" in blank.output

    symbols = runner.invoke(app, ["workspace", "add", "!!!"])
    assert symbols.exit_code == 1
    assert "letters or digits" in symbols.output
    assert not (workdir / "workspaces" / "workspace.yaml").exists()


def test_stakeholder_activity_and_reports(workdir: Path) -> None:
    runner.invoke(app, ["workspace", "add", "AI Labs"])
    result = runner.invoke(
        app,
        ["stakeholder", "add", "Priya Raman", "--role", "Champion", "--priority", "P0",
         "--email", "priya@ailabs.com", "--key-priority", "Cost"],
    )
    assert result.exit_code == 0, result.output
    assert "Created stakeholder: s1" in result.output

    logged = runner.invoke(
        app, ["activity", "log", "--type", "Call", "--with", "s1", "--date", "2026-02-01", "--summary", "Intro"]
    )
    assert logged.exit_code == 0, logged.output
    assert "Logged activity: a1" in logged.output

    listed = runner.invoke(app, ["stakeholder", "list", "--json"])
    people = json.loads(listed.output)
    assert people[0]["last_contact_date"] == "2026-02-01"
    assert people[0]["key_priorities"] == ["Cost"]

    health = runner.invoke(app, ["health", "--json"])
    assert health.exit_code == 0, health.output
    assert 0 <= json.loads(health.output)["score"] <= 100

    gaps = runner.invoke(app, ["gaps", "--json"])
    assert json.loads(gaps.output)[0]["stakeholder_id"] == "s1"

    events = (workdir / "workspaces" / "ai-labs" / "events.ndjson").read_text().splitlines()
    assert len(events) == 2

    history = runner.invoke(app, ["events", "--entity", "s1", "--json"])
    assert [row["event_type"] for row in json.loads(history.output)] == ["created"]


def test_errors_map_to_exit_codes(workdir: Path) -> None:
    runner.invoke(app, ["workspace", "add", "AI Labs"])

    missing = runner.invoke(app, ["activity", "log", "--type", "Call", "--with", "s9"])
    assert missing.exit_code == 1
    assert "Stakeholder not found" in missing.output

    bad_role = runner.invoke(app, ["stakeholder", "add", "Dana Wu", "--role", "Sponsor"])
    assert bad_role.exit_code == 1

    not_connected = runner.invoke(app, ["sync", "gmail"])
    assert not_connected.exit_code == 2
    assert "Not connected to Google" in not_connected.output

    status = runner.invoke(app, ["sync", "status"])
    assert status.exit_code == 0
    assert "Google connected: no" in status.output
    assert "email: never (stale)" in status.output


def test_import_confirm_from_review_file(workdir: Path) -> None:
    runner.invoke(app, ["workspace", "add", "AI Labs"])
    payload = {
        "stakeholders": [{"name": "Miguel Ortiz", "role": "Blocker", "matchStatus": "new"}],
        "activity": {"date": "2026-02-27", "type": "Meeting", "summary": "Security review"},
    }
    review = workdir / "review.json"
    review.write_text(json.dumps(payload))

    result = runner.invoke(app, ["import", "confirm", str(review)])
    assert result.exit_code == 0, result.output
    assert "Created stakeholders: 1" in result.output
    assert "Logged activity: a1" in result.output

    again = runner.invoke(app, ["import", "confirm", str(review)])
    assert "Skipped duplicate activity: a1" in again.output
