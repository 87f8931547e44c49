from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from dealmap.domain import rules
from dealmap.domain.models import Activity
from dealmap.domain.stages import ActivityType
from dealmap.services.events import EventLogger
from dealmap.services.merge import StakeholderUpdate, merge
from dealmap.services.snapshot import reconciliation_pass
from dealmap.store.sqlite import SqliteStore


def log_activity(
    store: SqliteStore,
    workspace_id: str,
    activity_date: date,
    activity_type: str,
    stakeholder_ids: Sequence[str],
    summary: str,
    touch_contacts: bool = True,
    logger: EventLogger | None = None,
) -> Activity:
    rules.validate_enum(activity_type, [t.value for t in ActivityType], "type")
    participants = list(dict.fromkeys(sid.strip() for sid in stakeholder_ids if sid.strip()))
    if not participants:
        raise rules.ValidationError("At least one stakeholder is required.")

    with reconciliation_pass(store, workspace_id) as snapshot:
        for stakeholder_id in participants:
            existing = snapshot.get_stakeholder(stakeholder_id)
            if touch_contacts and activity_date <= date.today():
                snapshot.replace_stakeholder(
                    merge(existing, StakeholderUpdate(last_contact_date=activity_date))
                )
        activity = snapshot.add_activity(
            Activity(
                id=snapshot.next_activity_id(),
                date=activity_date,
                type=activity_type,
                stakeholder_ids=tuple(participants),
                summary=summary.strip(),
            )
        )

    if logger is not None:
        logger.log(event_type="created", entity_type="activity", entity_id=activity.id, source="manual")
    return activity


def list_activities(
    store: SqliteStore,
    workspace_id: str,
    stakeholder_id: str | None = None,
    limit: int | None = None,
) -> list[Activity]:
    activities = [
        a
        for a in store.load_activities(workspace_id)
        if stakeholder_id is None or stakeholder_id in a.stakeholder_ids
    ]
    activities.sort(key=lambda a: a.date, reverse=True)
    return activities[:limit] if limit else activities
