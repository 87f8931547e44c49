from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date

from dealmap.domain.models import Stakeholder, unique_tags

SMART_IMPORT_TAG = "Smart Import"

OVERWRITE_FIELDS = ("name", "title", "team", "role", "priority", "relationship_strength")


@dataclass(frozen=True)
class StakeholderUpdate:
    name: str | None = None
    title: str | None = None
    team: str | None = None
    role: str | None = None
    priority: str | None = None
    last_contact_date: date | None = None
    relationship_strength: str | None = None
    key_priorities: tuple[str, ...] = ()
    notes: str | None = None
    email: str | None = None


def merge(
    existing: Stakeholder,
    update: StakeholderUpdate,
    note_tag: str = SMART_IMPORT_TAG,
    note_date: date | None = None,
) -> Stakeholder:
    changes: dict[str, object] = {}

    for name in OVERWRITE_FIELDS:
        value = getattr(update, name)
        if value:
            changes[name] = value

    incoming = update.last_contact_date
    if incoming is not None and (
        existing.last_contact_date is None or incoming > existing.last_contact_date
    ):
        changes["last_contact_date"] = incoming

    if update.key_priorities:
        changes["key_priorities"] = unique_tags(existing.key_priorities + tuple(update.key_priorities))

    if update.notes and update.notes.strip():
        text = update.notes.strip()
        if existing.notes:
            stamp = note_date or update.last_contact_date
            tag = f"[{note_tag} {stamp.isoformat()}]" if stamp else f"[{note_tag}]"
            changes["notes"] = f"{existing.notes}\n\n{tag} {text}"
        else:
            changes["notes"] = text

    if update.email and not existing.email:
        changes["email"] = update.email.strip().lower()

    if not changes:
        return existing
    return replace(existing, **changes)


def changed_fields(before: Stakeholder, after: Stakeholder) -> list[str]:
    return [
        item.name
        for item in fields(Stakeholder)
        if getattr(before, item.name) != getattr(after, item.name)
    ]
