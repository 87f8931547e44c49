from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from dealmap.domain.models import Activity
from dealmap.services.snapshot import WorkspaceSnapshot


@dataclass(frozen=True)
class ReconcileDecision:
    should_create: bool
    duplicate_of: str | None = None
    reason: str | None = None


def find_duplicate(
    activity_date: date,
    activity_type: str,
    participant_ids: Iterable[str],
    existing: Sequence[Activity],
) -> Activity | None:
    participants = set(participant_ids)
    for activity in existing:
        if activity.date != activity_date or activity.type != activity_type:
            continue
        if participants.intersection(activity.stakeholder_ids):
            return activity
    return None


def reconcile(
    activity_date: date,
    activity_type: str,
    participant_ids: Iterable[str],
    summary: str,
    existing: Sequence[Activity],
) -> ReconcileDecision:
    # Summary is carried for callers' logging only; an existing entry is never rewritten.
    participants = list(participant_ids)
    if not participants:
        return ReconcileDecision(should_create=False, reason="no_participants")
    duplicate = find_duplicate(activity_date, activity_type, participants, existing)
    if duplicate is not None:
        return ReconcileDecision(should_create=False, duplicate_of=duplicate.id, reason="duplicate")
    return ReconcileDecision(should_create=True)


def record_activity(
    snapshot: WorkspaceSnapshot,
    activity_date: date,
    activity_type: str,
    participant_ids: Iterable[str],
    summary: str,
) -> tuple[ReconcileDecision, Activity | None]:
    participants = list(dict.fromkeys(participant_ids))
    decision = reconcile(activity_date, activity_type, participants, summary, snapshot.activities)
    if not decision.should_create:
        return decision, None
    activity = snapshot.add_activity(
        Activity(
            id=snapshot.next_activity_id(),
            date=activity_date,
            type=activity_type,
            stakeholder_ids=tuple(participants),
            summary=summary,
        )
    )
    return decision, activity
