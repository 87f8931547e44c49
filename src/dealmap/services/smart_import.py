from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol

from dealmap.domain import rules
from dealmap.domain.extraction import (
    ExtractedStakeholder,
    ExtractionResult,
    ImportPayload,
    ImportStakeholderUpdate,
    parse_extraction,
)
from dealmap.domain.models import Activity, Stakeholder
from dealmap.domain.stages import ActivityType, DealRole, Priority, RelationshipStrength
from dealmap.services.events import EventLogger
from dealmap.services.merge import SMART_IMPORT_TAG, StakeholderUpdate, merge
from dealmap.services.reconciler import ReconcileDecision, record_activity
from dealmap.services.resolver import EMAIL_EXACT, NAME_EXACT, resolve
from dealmap.services.snapshot import reconciliation_pass
from dealmap.services.stakeholders import create_in_snapshot
from dealmap.store.sqlite import SqliteStore

IMPORT_PREFIX = "[Smart Import]"
SOURCE = "smart_import"


class Oracle(Protocol):
    def complete(self, prompt: str) -> str: ...


@dataclass
class ImportResult:
    created_stakeholders: list[Stakeholder] = field(default_factory=list)
    updated_stakeholders: list[Stakeholder] = field(default_factory=list)
    activity: Activity | None = None
    decision: ReconcileDecision | None = None


def build_extraction_prompt(
    transcript: str,
    source_type: str,
    stakeholders: Sequence[Stakeholder],
    teams: Sequence[str],
) -> str:
    known = "\n".join(
        f"- {s.name} ({s.title}, {s.team}) | Role: {s.role} | Email: {s.email or 'unknown'}"
        for s in stakeholders
    ) or "- none yet"
    return f"""You are an expert enterprise sales analyst. Extract structured deal intelligence from the {source_type.lower()} content below.

KNOWN STAKEHOLDERS:
{known}

VALID TEAMS: {", ".join(teams)}
VALID ROLES: {", ".join(r.value for r in DealRole)}
VALID PRIORITIES: {", ".join(p.value for p in Priority)}
VALID RELATIONSHIP STRENGTHS: {", ".join(s.value for s in RelationshipStrength)}

CONTENT:
{transcript.strip()}

Generate a JSON response with this exact structure:
{{
  "stakeholders": [
    {{
      "name": "<full name>",
      "title": "<job title if mentioned>",
      "team": "<one of the valid teams>",
      "role": "<one of the valid roles>",
      "priority": "<one of the valid priorities>",
      "relationshipStrength": "<one of the valid relationship strengths>",
      "keyPriorities": ["<what this person cares about>"],
      "notes": "<what they said or signalled>",
      "email": "<email if present>"
    }}
  ],
  "actionItems": [
    {{"description": "<task>", "owner": "<who>", "deadline": "<YYYY-MM-DD or null>"}}
  ],
  "sentimentSignals": [
    {{"stakeholderName": "<name>", "sentiment": "positive" | "neutral" | "negative", "signal": "<evidence>"}}
  ],
  "proposedActivity": {{
    "date": "<YYYY-MM-DD>",
    "type": "{source_type}",
    "summary": "<2-3 sentence summary>",
    "stakeholderNames": ["<names of participants>"]
  }}
}}

Use the exact names of known stakeholders when they appear. Respond with ONLY the JSON, no markdown code blocks."""


def analyze_transcript(
    oracle: Oracle,
    transcript: str,
    source_type: str,
    stakeholders: Sequence[Stakeholder],
    teams: Sequence[str],
) -> ExtractionResult:
    if not transcript or not transcript.strip():
        raise rules.ValidationError("Please provide a transcript or email content to analyze.")
    if not source_type:
        raise rules.ValidationError("Please select a source type.")
    rules.validate_enum(source_type, [t.value for t in ActivityType], "source_type")

    result = parse_extraction(
        oracle.complete(build_extraction_prompt(transcript, source_type, stakeholders, teams))
    )
    by_id = {s.id: s for s in stakeholders}
    enriched = []
    for extracted in result.stakeholders:
        match = resolve(extracted.name, extracted.email, stakeholders)
        if match is None:
            enriched.append(extracted.model_copy(update={"match_status": "new"}))
            continue
        enriched.append(
            extracted.model_copy(
                update={
                    "name": by_id[match.id].name,
                    "match_status": "existing",
                    "matched_stakeholder_id": match.id,
                    "match_confidence": match.confidence,
                }
            )
        )
    return result.model_copy(update={"stakeholders": enriched})


def update_from_match(selected: ExtractedStakeholder, activity_date: str | None) -> ImportStakeholderUpdate:
    return ImportStakeholderUpdate(
        id=selected.matched_stakeholder_id or "",
        last_contact_date=activity_date,
        key_priorities=list(selected.key_priorities),
        relationship_strength=selected.relationship_strength,
        notes=selected.notes,
    )


def review_payload(result: ExtractionResult) -> dict[str, Any]:
    """Editable confirm payload: stakeholders, updates for existing matches, and the activity."""
    data = result.model_dump(by_alias=True)
    data["activity"] = data.pop("proposedActivity")
    data["stakeholderUpdates"] = [
        update_from_match(s, result.proposed_activity.date).model_dump(by_alias=True)
        for s in result.stakeholders
        if s.match_status == "existing" and s.matched_stakeholder_id
    ]
    return data


def confirm_import(
    store: SqliteStore,
    workspace_id: str,
    payload: ImportPayload,
    logger: EventLogger | None = None,
) -> ImportResult:
    if not payload.stakeholders:
        raise rules.ValidationError("Select at least one stakeholder to import.")
    activity_date = rules.parse_date(payload.activity.date, "activity.date") or date.today()
    result = ImportResult()
    participants: list[str] = []

    with reconciliation_pass(store, workspace_id) as snapshot:
        for selected in payload.stakeholders:
            if selected.match_status == "existing" and selected.matched_stakeholder_id:
                snapshot.get_stakeholder(selected.matched_stakeholder_id)
                participants.append(selected.matched_stakeholder_id)
                continue
            # A repeated confirm must land on the stakeholder the first one created.
            match = resolve(selected.name, selected.email, snapshot.stakeholders)
            if match is not None and match.rule in (EMAIL_EXACT, NAME_EXACT):
                participants.append(match.id)
                continue
            created = create_in_snapshot(
                snapshot,
                name=selected.name,
                title=selected.title,
                team=selected.team,
                role=selected.role,
                priority=selected.priority,
                last_contact_date=activity_date,
                relationship_strength=selected.relationship_strength,
                key_priorities=selected.key_priorities,
                notes=selected.notes,
                email=selected.email,
            )
            result.created_stakeholders.append(created)
            participants.append(created.id)

        updates = {u.id: u for u in payload.stakeholder_updates}
        # Matched entries without a reviewed update still carry what was extracted for them.
        for selected in payload.stakeholders:
            if selected.match_status == "existing" and selected.matched_stakeholder_id:
                updates.setdefault(
                    selected.matched_stakeholder_id, update_from_match(selected, payload.activity.date)
                )
        for stakeholder_id in dict.fromkeys(participants):
            existing = snapshot.get_stakeholder(stakeholder_id)
            if any(c.id == stakeholder_id for c in result.created_stakeholders):
                continue
            update = updates.pop(stakeholder_id, None)
            merged = merge(existing, _to_update(update, activity_date), SMART_IMPORT_TAG, activity_date)
            if merged is not existing:
                result.updated_stakeholders.append(snapshot.replace_stakeholder(merged))

        # Updates may also target stakeholders outside the activity.
        for update in updates.values():
            existing = snapshot.get_stakeholder(update.id)
            merged = merge(existing, _to_update(update, None), SMART_IMPORT_TAG, activity_date)
            if merged is not existing:
                result.updated_stakeholders.append(snapshot.replace_stakeholder(merged))

        summary = f"{IMPORT_PREFIX} {payload.activity.summary}".strip()
        result.decision, result.activity = record_activity(
            snapshot, activity_date, payload.activity.type, participants, summary
        )

    if logger is not None:
        for created in result.created_stakeholders:
            logger.log(event_type="created", entity_type="stakeholder", entity_id=created.id, source=SOURCE)
        for updated in result.updated_stakeholders:
            logger.log(event_type="updated", entity_type="stakeholder", entity_id=updated.id, source=SOURCE)
        if result.activity is not None:
            logger.log(
                event_type="created", entity_type="activity", entity_id=result.activity.id, source=SOURCE
            )
        else:
            logger.log(
                event_type="skipped",
                entity_type="activity",
                entity_id=result.decision.duplicate_of or "",
                source=SOURCE,
            )
    return result


def _to_update(update: ImportStakeholderUpdate | None, activity_date: date | None) -> StakeholderUpdate:
    if update is None:
        return StakeholderUpdate(last_contact_date=activity_date)
    rules.validate_enum(
        update.relationship_strength,
        [s.value for s in RelationshipStrength],
        "relationship_strength",
    )
    last_contact = rules.parse_date(update.last_contact_date, "last_contact_date") or activity_date
    return StakeholderUpdate(
        last_contact_date=last_contact,
        relationship_strength=update.relationship_strength,
        key_priorities=tuple(update.key_priorities),
        notes=update.notes,
    )
