from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any

from dealmap.domain.stages import (
    DEFAULT_TEAMS,
    DealRole,
    Priority,
    RelationshipStrength,
)


@dataclass(frozen=True)
class Stakeholder:
    id: str
    name: str
    title: str = ""
    team: str = ""
    role: str = DealRole.INFLUENCER.value
    priority: str = Priority.P2.value
    last_contact_date: date | None = None
    relationship_strength: str = RelationshipStrength.UNKNOWN.value
    key_priorities: tuple[str, ...] = ()
    notes: str = ""
    email: str | None = None


@dataclass(frozen=True)
class Activity:
    id: str
    date: date
    type: str
    stakeholder_ids: tuple[str, ...]
    summary: str = ""


@dataclass(frozen=True)
class Workspace:
    id: str
    name: str
    description: str = ""
    deal_context: str = ""
    deal_summary: str = ""
    renewal_info: str = ""
    teams: tuple[str, ...] = field(default_factory=lambda: tuple(DEFAULT_TEAMS))
    color: str = "emerald"


def to_dict(record: Stakeholder | Activity | Workspace) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for item in fields(record):
        value = getattr(record, item.name)
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        payload[item.name] = value
    return payload


def unique_tags(values: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        cleaned = value.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        result.append(cleaned)
    return tuple(result)
