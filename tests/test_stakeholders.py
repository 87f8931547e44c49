from datetime import date
from pathlib import Path

import pytest

from dealmap.domain.models import Workspace
from dealmap.domain.rules import ValidationError
from dealmap.services import activities, stakeholders
from dealmap.services.events import EventLogger
from dealmap.store.sqlite import NotFoundError, SqliteStore

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "resources" / "schema" / "canonical.yaml"


def _store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(tmp_path / "test.sqlite")
    store.apply_schema(SCHEMA_PATH)
    store.create_workspace(Workspace(id="ai-labs", name="AI Labs"))
    return store


def test_add_and_filter(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman", team="Security", role="Champion")
    stakeholders.add_stakeholder(store, "ai-labs", name="Dana Wu", team="Finance", priority="P0")

    assert [s.name for s in stakeholders.list_stakeholders(store, "ai-labs", team="Security")] == [
        "Priya Raman"
    ]
    assert [s.id for s in stakeholders.list_stakeholders(store, "ai-labs", priority="P0")] == ["s2"]
    with pytest.raises(ValidationError):
        stakeholders.list_stakeholders(store, "ai-labs", role="Buyer")


def test_invalid_enum_and_blank_name(tmp_path: Path) -> None:
    store = _store(tmp_path)
    with pytest.raises(ValidationError):
        stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman", role="Sponsor")
    with pytest.raises(ValidationError):
        stakeholders.add_stakeholder(store, "ai-labs", name="  ")
    assert store.load_stakeholders("ai-labs") == []


def test_email_is_unique_per_workspace(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman", email="priya@ailabs.com")
    other = stakeholders.add_stakeholder(store, "ai-labs", name="Dana Wu")

    with pytest.raises(ValidationError):
        stakeholders.add_stakeholder(store, "ai-labs", name="P. Raman", email="PRIYA@ailabs.com")
    with pytest.raises(ValidationError):
        stakeholders.update_stakeholder(store, "ai-labs", other.id, {"email": "priya@AILABS.com"})


def test_update_logs_changed_fields(tmp_path: Path) -> None:
    store = _store(tmp_path)
    logger = EventLogger(path=tmp_path / "events.ndjson", workspace="ai-labs")
    created = stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman")
    updated = stakeholders.update_stakeholder(
        store,
        "ai-labs",
        created.id,
        {"relationship_strength": "Strong", "key_priorities": ["Cost", "Cost", " Latency "]},
        logger=logger,
    )
    assert updated.key_priorities == ("Cost", "Latency")
    lines = (tmp_path / "events.ndjson").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert '"relationship_strength"' in lines[0]

    with pytest.raises(ValidationError):
        stakeholders.update_stakeholder(store, "ai-labs", created.id, {"id": "s9"})
    with pytest.raises(NotFoundError):
        stakeholders.update_stakeholder(store, "ai-labs", "s9", {"title": "CTO"})


def test_log_activity_touches_past_contacts_only(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman")
    stakeholders.add_stakeholder(store, "ai-labs", name="Dana Wu")

    activity = activities.log_activity(
        store, "ai-labs", date(2026, 2, 1), "Call", ["s1", "s2", "s1"], "Pricing"
    )
    assert activity.id == "a1"
    assert activity.stakeholder_ids == ("s1", "s2")
    activities.log_activity(store, "ai-labs", date(2999, 1, 1), "Meeting", ["s1"], "Future QBR")

    priya = stakeholders.get_stakeholder(store, "ai-labs", "s1")
    assert priya.last_contact_date == date(2026, 2, 1)
    listed = activities.list_activities(store, "ai-labs", stakeholder_id="s2")
    assert [a.id for a in listed] == ["a1"]
    assert [a.id for a in activities.list_activities(store, "ai-labs", limit=1)] == ["a2"]


def test_log_activity_rejects_bad_input(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman")
    with pytest.raises(ValidationError):
        activities.log_activity(store, "ai-labs", date(2026, 2, 1), "Call", [], "")
    with pytest.raises(ValidationError):
        activities.log_activity(store, "ai-labs", date(2026, 2, 1), "Fax", ["s1"], "")
    with pytest.raises(NotFoundError):
        activities.log_activity(store, "ai-labs", date(2026, 2, 1), "Call", ["s1", "s7"], "")
    assert store.load_activities("ai-labs") == []
    assert stakeholders.get_stakeholder(store, "ai-labs", "s1").last_contact_date is None
