from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import date

from dealmap.domain import rules
from dealmap.domain.models import Stakeholder, unique_tags
from dealmap.domain.stages import DealRole, Priority, RelationshipStrength
from dealmap.services.events import EventLogger
from dealmap.services.merge import changed_fields
from dealmap.services.snapshot import WorkspaceSnapshot, reconciliation_pass
from dealmap.store.sqlite import NotFoundError, SqliteStore

EDITABLE_FIELDS = {
    "name",
    "title",
    "team",
    "role",
    "priority",
    "last_contact_date",
    "relationship_strength",
    "key_priorities",
    "notes",
    "email",
}


def validate_fields(
    *,
    role: str | None = None,
    priority: str | None = None,
    relationship_strength: str | None = None,
) -> None:
    rules.validate_enum(role, [r.value for r in DealRole], "role")
    rules.validate_enum(priority, [p.value for p in Priority], "priority")
    rules.validate_enum(
        relationship_strength, [s.value for s in RelationshipStrength], "relationship_strength"
    )


def ensure_unique_email(
    stakeholders: Sequence[Stakeholder], email: str | None, exclude_id: str | None = None
) -> None:
    if not email:
        return
    wanted = email.strip().lower()
    for s in stakeholders:
        if s.id != exclude_id and s.email and s.email.strip().lower() == wanted:
            raise rules.ValidationError(f"email {wanted} already belongs to {s.name} ({s.id}).")


def create_in_snapshot(
    snapshot: WorkspaceSnapshot,
    *,
    name: str,
    title: str = "",
    team: str = "",
    role: str = DealRole.INFLUENCER.value,
    priority: str = Priority.P2.value,
    last_contact_date: date | None = None,
    relationship_strength: str = RelationshipStrength.UNKNOWN.value,
    key_priorities: Sequence[str] = (),
    notes: str = "",
    email: str | None = None,
) -> Stakeholder:
    rules.require(name, "name")
    validate_fields(role=role, priority=priority, relationship_strength=relationship_strength)
    email = email.strip().lower() if email and email.strip() else None
    ensure_unique_email(snapshot.stakeholders, email)
    return snapshot.add_stakeholder(
        Stakeholder(
            id=snapshot.next_stakeholder_id(),
            name=name.strip(),
            title=title or "",
            team=team or "",
            role=role,
            priority=priority,
            last_contact_date=last_contact_date,
            relationship_strength=relationship_strength,
            key_priorities=unique_tags(tuple(key_priorities)),
            notes=notes or "",
            email=email,
        )
    )


def add_stakeholder(
    store: SqliteStore,
    workspace_id: str,
    logger: EventLogger | None = None,
    **values,
) -> Stakeholder:
    with reconciliation_pass(store, workspace_id) as snapshot:
        created = create_in_snapshot(snapshot, **values)
    if logger is not None:
        logger.log(event_type="created", entity_type="stakeholder", entity_id=created.id, source="manual")
    return created


def update_stakeholder(
    store: SqliteStore,
    workspace_id: str,
    stakeholder_id: str,
    changes: dict[str, object],
    logger: EventLogger | None = None,
) -> Stakeholder:
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise rules.ValidationError(f"Unknown stakeholder fields: {', '.join(sorted(unknown))}")
    if "name" in changes:
        rules.require(changes["name"], "name")
    validate_fields(
        role=changes.get("role"),
        priority=changes.get("priority"),
        relationship_strength=changes.get("relationship_strength"),
    )
    if "key_priorities" in changes:
        changes = {**changes, "key_priorities": unique_tags(tuple(changes["key_priorities"] or ()))}
    if "email" in changes:
        email = changes["email"]
        changes = {**changes, "email": email.strip().lower() if email else None}

    with reconciliation_pass(store, workspace_id) as snapshot:
        existing = snapshot.get_stakeholder(stakeholder_id)
        ensure_unique_email(snapshot.stakeholders, changes.get("email"), exclude_id=stakeholder_id)
        updated = snapshot.replace_stakeholder(replace(existing, **changes))
    if logger is not None:
        logger.log(
            event_type="updated",
            entity_type="stakeholder",
            entity_id=stakeholder_id,
            source="manual",
            changed_fields=changed_fields(existing, updated),
        )
    return updated


def delete_stakeholder(
    store: SqliteStore,
    workspace_id: str,
    stakeholder_id: str,
    logger: EventLogger | None = None,
) -> list[str]:
    with reconciliation_pass(store, workspace_id) as snapshot:
        dropped = snapshot.delete_stakeholder(stakeholder_id)
    if logger is not None:
        logger.log(event_type="deleted", entity_type="stakeholder", entity_id=stakeholder_id, source="manual")
        for activity_id in dropped:
            logger.log(
                event_type="deleted",
                entity_type="activity",
                entity_id=activity_id,
                source="cascade",
            )
    return dropped


def get_stakeholder(store: SqliteStore, workspace_id: str, stakeholder_id: str) -> Stakeholder:
    for s in store.load_stakeholders(workspace_id):
        if s.id == stakeholder_id:
            return s
    raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")


def list_stakeholders(
    store: SqliteStore,
    workspace_id: str,
    team: str | None = None,
    role: str | None = None,
    priority: str | None = None,
) -> list[Stakeholder]:
    validate_fields(role=role, priority=priority)
    rows = store.load_stakeholders(workspace_id)
    return [
        s
        for s in rows
        if (team is None or s.team == team)
        and (role is None or s.role == role)
        and (priority is None or s.priority == priority)
    ]
