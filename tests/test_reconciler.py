from datetime import date

from dealmap.domain.models import Activity
from dealmap.services.reconciler import find_duplicate, reconcile, record_activity
from dealmap.services.snapshot import WorkspaceSnapshot


def _existing() -> list[Activity]:
    return [
        Activity(id="a1", date=date(2026, 2, 10), type="Meeting", stakeholder_ids=("s1", "s2")),
        Activity(id="a2", date=date(2026, 2, 11), type="Email", stakeholder_ids=("s3",)),
    ]


def test_overlapping_participant_is_duplicate() -> None:
    decision = reconcile(date(2026, 2, 10), "Meeting", ["s2", "s9"], "sync", _existing())
    assert not decision.should_create
    assert decision.duplicate_of == "a1"
    assert decision.reason == "duplicate"


def test_different_type_or_date_is_not_duplicate() -> None:
    assert reconcile(date(2026, 2, 10), "Call", ["s1"], "", _existing()).should_create
    assert reconcile(date(2026, 2, 12), "Meeting", ["s1"], "", _existing()).should_create
    assert find_duplicate(date(2026, 2, 10), "Meeting", ["s5"], _existing()) is None


def test_empty_participants_never_create() -> None:
    decision = reconcile(date(2026, 2, 10), "Meeting", [], "", [])
    assert not decision.should_create
    assert decision.reason == "no_participants"


def test_record_activity_is_idempotent() -> None:
    snapshot = WorkspaceSnapshot(workspace_id="ai-labs", stakeholders=[], activities=_existing())
    decision, created = record_activity(
        snapshot, date(2026, 2, 20), "Call", ["s1", "s1", "s4"], "Pricing call"
    )
    assert decision.should_create
    assert created is not None
    assert created.id == "a3"
    assert created.stakeholder_ids == ("s1", "s4")

    decision, again = record_activity(snapshot, date(2026, 2, 20), "Call", ["s4"], "Pricing call")
    assert again is None
    assert decision.duplicate_of == "a3"
    assert len(snapshot.activities) == 3
