from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import date
from pathlib import Path

from dealmap.config import SyncConfig
from dealmap.domain.models import Stakeholder
from dealmap.domain.stages import ActivityType, SyncSource
from dealmap.services.events import EventLogger
from dealmap.services.merge import StakeholderUpdate, changed_fields, merge
from dealmap.services.reconciler import record_activity
from dealmap.services.resolver import is_internal_email, resolve
from dealmap.services.snapshot import WorkspaceSnapshot, reconciliation_pass
from dealmap.services.stakeholders import create_in_snapshot
from dealmap.services.sync_state import record_sync
from dealmap.services.utils import utc_now_iso
from dealmap.store.sqlite import SqliteStore

logger = logging.getLogger(__name__)

GMAIL_PREFIX = "[Auto-logged from Gmail]"
CALENDAR_PREFIX = "[Auto-logged from Calendar]"
RESOURCE_MARKER = "resource.calendar"


@dataclass(frozen=True)
class Candidate:
    name: str
    email: str | None
    date: date
    type: str
    summary: str
    thread_key: str = ""
    title: str = ""
    location: str = ""


@dataclass
class SyncResult:
    new_contacts: int = 0
    new_activities: int = 0
    updated_stakeholders: int = 0
    skipped_activities: int = 0
    details: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass
class _Contact:
    name: str
    email: str
    last_date: date
    titles: list[str] = field(default_factory=list)
    threads: set[str] = field(default_factory=set)
    messages: int = 0

    @property
    def thread_count(self) -> int:
        return len(self.threads) if self.threads else self.messages


def sync_email(
    store: SqliteStore,
    workspace_id: str,
    candidates: Sequence[Candidate],
    config: SyncConfig,
    state_dir: Path | None = None,
    events: EventLogger | None = None,
) -> SyncResult:
    result = SyncResult()
    contacts = _group_contacts(candidates)

    with reconciliation_pass(store, workspace_id) as snapshot:
        for contact in contacts.values():
            match = resolve(contact.name, contact.email, snapshot.stakeholders)
            if match is not None:
                _touch(
                    snapshot,
                    match.id,
                    contact.email,
                    contact.last_date,
                    result,
                    source=SyncSource.EMAIL.value,
                    events=events,
                )
                continue
            if not is_internal_email(contact.email, config.internal_domains):
                logger.debug("Ignoring external sender %s", contact.email)
                continue
            if contact.thread_count < config.min_threads:
                logger.debug("Sender %s below thread threshold", contact.email)
                continue
            subjects = "; ".join(contact.titles[:3])
            created = create_in_snapshot(
                snapshot,
                name=contact.name,
                title="Unknown",
                team="Unknown",
                last_contact_date=contact.last_date,
                notes=(
                    f"Auto-detected from Gmail. {contact.thread_count} email threads found. "
                    f"Subjects: {subjects}"
                ),
                email=contact.email,
            )
            result.new_contacts += 1
            result.details.append(f"New contact detected: {created.name} ({created.email})")
            _log(events, "created", "stakeholder", created.id, SyncSource.EMAIL.value)

        for candidate in candidates:
            match = resolve(candidate.name, candidate.email, snapshot.stakeholders)
            if match is None:
                continue
            stakeholder = snapshot.get_stakeholder(match.id)
            decision, activity = record_activity(
                snapshot,
                candidate.date,
                candidate.type,
                [match.id],
                f"{GMAIL_PREFIX} {candidate.summary}",
            )
            if activity is None:
                result.skipped_activities += 1
                _log(events, "skipped", "activity", decision.duplicate_of or "", SyncSource.EMAIL.value)
                continue
            result.new_activities += 1
            kind = "meeting from invite" if candidate.type == ActivityType.MEETING.value else "email"
            result.details.append(f'Logged {kind}: "{candidate.title}" with {stakeholder.name}')
            _log(events, "created", "activity", activity.id, SyncSource.EMAIL.value)

    if state_dir is not None:
        record_sync(state_dir, SyncSource.EMAIL.value, utc_now_iso(), result.as_dict())
    return result


def sync_calendar(
    store: SqliteStore,
    workspace_id: str,
    candidates: Sequence[Candidate],
    config: SyncConfig,
    today: date | None = None,
    state_dir: Path | None = None,
    events: EventLogger | None = None,
) -> SyncResult:
    today = today or date.today()
    result = SyncResult()

    with reconciliation_pass(store, workspace_id) as snapshot:
        for attendees in _group_events(candidates).values():
            event = attendees[0]
            is_past = event.date <= today
            matched: list[str] = []

            for attendee in attendees:
                if not attendee.email or RESOURCE_MARKER in attendee.email:
                    continue
                match = resolve(attendee.name, attendee.email, snapshot.stakeholders)
                if match is not None:
                    stakeholder_id = match.id
                elif is_internal_email(attendee.email, config.internal_domains):
                    created = create_in_snapshot(
                        snapshot,
                        name=attendee.name,
                        title="Unknown",
                        team="Unknown",
                        last_contact_date=event.date if is_past else None,
                        notes=f'Auto-detected from Google Calendar. First seen in meeting: "{event.title}"',
                        email=attendee.email,
                    )
                    stakeholder_id = created.id
                    result.new_contacts += 1
                    result.details.append(
                        f'New attendee detected: {created.name} ({created.email}) from "{event.title}"'
                    )
                    _log(events, "created", "stakeholder", created.id, SyncSource.CALENDAR.value)
                else:
                    continue

                if stakeholder_id in matched:
                    continue
                matched.append(stakeholder_id)
                if is_past and match is not None:
                    _touch(
                        snapshot,
                        stakeholder_id,
                        attendee.email,
                        event.date,
                        result,
                        source=SyncSource.CALENDAR.value,
                        events=events,
                    )

            if not is_past or not matched:
                continue
            names = ", ".join(snapshot.get_stakeholder(sid).name for sid in matched)
            summary = f"{CALENDAR_PREFIX} {event.title or event.summary} with {names}"
            if event.location:
                summary += f" at {event.location}"
            decision, activity = record_activity(
                snapshot, event.date, ActivityType.MEETING.value, matched, summary
            )
            if activity is None:
                result.skipped_activities += 1
                _log(events, "skipped", "activity", decision.duplicate_of or "", SyncSource.CALENDAR.value)
                continue
            result.new_activities += 1
            result.details.append(
                f'Logged meeting: "{event.title}" on {event.date.isoformat()} with {len(matched)} stakeholders'
            )
            _log(events, "created", "activity", activity.id, SyncSource.CALENDAR.value)

    if state_dir is not None:
        record_sync(state_dir, SyncSource.CALENDAR.value, utc_now_iso(), result.as_dict())
    return result


def _group_contacts(candidates: Sequence[Candidate]) -> dict[str, _Contact]:
    contacts: dict[str, _Contact] = {}
    for candidate in candidates:
        if not candidate.email:
            continue
        key = candidate.email.strip().lower()
        contact = contacts.get(key)
        if contact is None:
            contact = _Contact(name=candidate.name, email=key, last_date=candidate.date)
            contacts[key] = contact
        elif candidate.date > contact.last_date:
            contact.last_date = candidate.date
        contact.titles.append(candidate.title or candidate.summary)
        contact.messages += 1
        if candidate.thread_key:
            contact.threads.add(candidate.thread_key)
    return contacts


def _group_events(candidates: Sequence[Candidate]) -> dict[str, list[Candidate]]:
    events: dict[str, list[Candidate]] = {}
    for index, candidate in enumerate(candidates):
        key = candidate.thread_key or f"{candidate.date.isoformat()}:{candidate.title}:{index}"
        events.setdefault(key, []).append(candidate)
    return events


def _touch(
    snapshot: WorkspaceSnapshot,
    stakeholder_id: str,
    email: str | None,
    contact_date: date,
    result: SyncResult,
    *,
    source: str,
    events: EventLogger | None,
) -> Stakeholder:
    existing = snapshot.get_stakeholder(stakeholder_id)
    updated = merge(existing, StakeholderUpdate(email=email, last_contact_date=contact_date))
    fields = changed_fields(existing, updated)
    if not fields:
        return existing
    snapshot.replace_stakeholder(updated)
    result.updated_stakeholders += 1
    parts = []
    if "email" in fields:
        parts.append("added email")
    if "last_contact_date" in fields:
        parts.append("updated last contact")
    result.details.append(f"Updated {existing.name}: {', '.join(parts)}")
    _log(events, "updated", "stakeholder", stakeholder_id, source, fields)
    return updated


def _log(
    events: EventLogger | None,
    event_type: str,
    entity_type: str,
    entity_id: str,
    source: str,
    changed: list[str] | None = None,
) -> None:
    if events is not None:
        events.log(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            source=source,
            changed_fields=changed,
        )
