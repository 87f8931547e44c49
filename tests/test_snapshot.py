from datetime import date
from pathlib import Path

import pytest

from dealmap.domain.models import Activity, Stakeholder, Workspace
from dealmap.services import stakeholders
from dealmap.services.snapshot import WorkspaceSnapshot, reconciliation_pass
from dealmap.services.stakeholders import create_in_snapshot
from dealmap.store.sqlite import SqliteStore

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "resources" / "schema" / "canonical.yaml"


def _store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(tmp_path / "test.sqlite")
    store.apply_schema(SCHEMA_PATH)
    store.create_workspace(Workspace(id="ai-labs", name="AI Labs"))
    return store


def test_counters_seed_from_existing_ids() -> None:
    snapshot = WorkspaceSnapshot(
        workspace_id="ai-labs",
        stakeholders=[Stakeholder(id="s7", name="A"), Stakeholder(id="s3", name="B")],
        activities=[Activity(id="a4", date=date(2026, 1, 1), type="Call", stakeholder_ids=("s7",))],
        counters={"s": 2},
    )
    assert snapshot.next_stakeholder_id() == "s8"
    assert snapshot.next_activity_id() == "a5"


def test_delete_cascades_participants(tmp_path: Path) -> None:
    store = _store(tmp_path)
    with reconciliation_pass(store, "ai-labs") as snapshot:
        first = create_in_snapshot(snapshot, name="Priya Raman")
        second = create_in_snapshot(snapshot, name="Dana Wu")
        snapshot.add_activity(
            Activity(id="", date=date(2026, 2, 1), type="Meeting", stakeholder_ids=(first.id, second.id))
        )
        snapshot.add_activity(
            Activity(id="", date=date(2026, 2, 2), type="Email", stakeholder_ids=(second.id,))
        )

    dropped = stakeholders.delete_stakeholder(store, "ai-labs", "s2")

    assert dropped == ["a2"]
    remaining = store.load_activities("ai-labs")
    assert [a.id for a in remaining] == ["a1"]
    assert remaining[0].stakeholder_ids == ("s1",)


def test_ids_never_reused_after_delete(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman")
    stakeholders.add_stakeholder(store, "ai-labs", name="Dana Wu")
    stakeholders.delete_stakeholder(store, "ai-labs", "s2")
    created = stakeholders.add_stakeholder(store, "ai-labs", name="Omar Haddad")
    assert created.id == "s3"


def test_failed_pass_rolls_back(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stakeholders.add_stakeholder(store, "ai-labs", name="Priya Raman")

    with pytest.raises(RuntimeError):
        with reconciliation_pass(store, "ai-labs") as snapshot:
            create_in_snapshot(snapshot, name="Dana Wu")
            snapshot.delete_stakeholder("s1")
            raise RuntimeError("upstream failed")

    assert [s.name for s in store.load_stakeholders("ai-labs")] == ["Priya Raman"]
    assert stakeholders.add_stakeholder(store, "ai-labs", name="Dana Wu").id == "s2"
