from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from dealmap.domain.models import Activity, Stakeholder
from dealmap.domain.rules import days_since
from dealmap.domain.stages import ActivityType, Priority

MEETING_GAP_DAYS = 14
HIGH_PRIORITIES = (Priority.P0.value, Priority.P1.value)


@dataclass(frozen=True)
class MeetingGap:
    stakeholder: Stakeholder
    days_since_last_meeting: int | None
    last_meeting_date: date | None


def last_meeting_dates(activities: Sequence[Activity]) -> dict[str, date]:
    latest: dict[str, date] = {}
    for activity in activities:
        if activity.type != ActivityType.MEETING.value:
            continue
        for stakeholder_id in activity.stakeholder_ids:
            current = latest.get(stakeholder_id)
            if current is None or activity.date > current:
                latest[stakeholder_id] = activity.date
    return latest


def detect_meeting_gaps(
    stakeholders: Sequence[Stakeholder],
    activities: Sequence[Activity],
    today: date | None = None,
) -> list[MeetingGap]:
    today = today or date.today()
    latest = last_meeting_dates(activities)
    gaps: list[MeetingGap] = []
    for s in stakeholders:
        if s.priority not in HIGH_PRIORITIES:
            continue
        last = latest.get(s.id)
        elapsed = days_since(last, today)
        if elapsed is None or elapsed > MEETING_GAP_DAYS:
            gaps.append(MeetingGap(s, elapsed, last))
    # Never met sorts ahead of any numeric gap; ties keep collection order.
    gaps.sort(key=lambda g: (g.days_since_last_meeting is not None, -(g.days_since_last_meeting or 0)))
    return gaps
