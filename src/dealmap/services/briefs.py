from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from dealmap.domain import rules
from dealmap.domain.extraction import OracleParseError, load_oracle_json
from dealmap.domain.models import Activity, Stakeholder, Workspace
from dealmap.domain.rules import days_since
from dealmap.services.smart_import import Oracle
from dealmap.store.sqlite import NotFoundError

RECENT_ACTIVITY_LIMIT = 15
ATTENDEE_ACTIVITY_LIMIT = 3
ENGAGED_DAYS = 30


def _contact_label(value: date | None, today: date) -> str:
    elapsed = days_since(value, today)
    return "Never contacted" if elapsed is None else f"{elapsed} days ago"


def _recent(activities: Sequence[Activity], limit: int) -> list[Activity]:
    return sorted(activities, key=lambda a: a.date, reverse=True)[:limit]


def build_context(
    workspace: Workspace,
    stakeholders: Sequence[Stakeholder],
    activities: Sequence[Activity],
    today: date | None = None,
) -> str:
    today = today or date.today()
    names = {s.id: s.name for s in stakeholders}

    people = "\n".join(
        f"- {s.name} ({s.title}, {s.team}) | Role: {s.role} | Priority: {s.priority} | "
        f"Relationship: {s.relationship_strength} | Last Contact: {_contact_label(s.last_contact_date, today)} | "
        f"Priorities: {', '.join(s.key_priorities)} | Notes: {s.notes}"
        for s in stakeholders
    )
    recent = "\n".join(
        f"- {a.date.isoformat()} [{a.type}] with "
        f"{', '.join(names.get(sid, sid) for sid in a.stakeholder_ids)}: {a.summary}"
        for a in _recent(activities, RECENT_ACTIVITY_LIMIT)
    )

    coverage = []
    for team in dict.fromkeys(s.team for s in stakeholders):
        members = [s for s in stakeholders if s.team == team]
        elapsed = [days_since(s.last_contact_date, today) for s in members]
        engaged = sum(1 for d in elapsed if d is not None and d < ENGAGED_DAYS)
        coverage.append(f"- {team}: {engaged}/{len(members)} engaged in last {ENGAGED_DAYS} days")

    header = f"ACCOUNT: {workspace.name}"
    if workspace.description:
        header += f" ({workspace.description})"
    lines = [header]
    if workspace.deal_context:
        lines.append(f"DEAL CONTEXT: {workspace.deal_context}")
    if workspace.renewal_info:
        lines.append(f"RENEWAL: {workspace.renewal_info}")
    return "\n".join(lines) + (
        f"\n\nSTAKEHOLDERS ({len(stakeholders)} total):\n{people}"
        f"\n\nRECENT ACTIVITIES:\n{recent}"
        f"\n\nTEAM COVERAGE:\n" + "\n".join(coverage)
    )


def build_meeting_prep_prompt(
    workspace: Workspace,
    stakeholders: Sequence[Stakeholder],
    activities: Sequence[Activity],
    selected_ids: Sequence[str],
    meeting_context: str | None = None,
    today: date | None = None,
) -> str:
    today = today or date.today()
    if not selected_ids:
        raise rules.ValidationError("Please select at least one stakeholder")
    by_id = {s.id: s for s in stakeholders}
    missing = [sid for sid in selected_ids if sid not in by_id]
    if missing:
        raise NotFoundError(f"Stakeholder not found: {', '.join(missing)}")

    attendees = []
    for sid in dict.fromkeys(selected_ids):
        s = by_id[sid]
        history = _recent([a for a in activities if sid in a.stakeholder_ids], ATTENDEE_ACTIVITY_LIMIT)
        history_lines = (
            "\n".join(f"  * {a.date.isoformat()} [{a.type}]: {a.summary}" for a in history)
            or "  * No recorded interactions"
        )
        attendees.append(
            f"ATTENDEE: {s.name}\n"
            f"  Title: {s.title} ({s.team})\n"
            f"  Deal Role: {s.role} | Priority: {s.priority}\n"
            f"  Relationship: {s.relationship_strength} | Last Contact: {_contact_label(s.last_contact_date, today)}\n"
            f"  Key Priorities: {', '.join(s.key_priorities)}\n"
            f"  Notes: {s.notes}\n"
            f"  Recent Interactions:\n{history_lines}"
        )

    context_line = f"MEETING CONTEXT: {meeting_context}" if meeting_context else ""
    return f"""You are an expert enterprise sales strategist preparing a meeting brief. Create a comprehensive, actionable meeting prep document.

FULL ACCOUNT CONTEXT:
{build_context(workspace, stakeholders, activities, today)}

MEETING ATTENDEES:
{chr(10).join(attendees)}

{context_line}

Create a meeting prep brief in clean markdown format with these sections:

## Meeting Brief: [Meeting Title based on attendees]

### Attendee Profiles
For each attendee, provide:
- Name, title, and role in the deal
- Current relationship status and what they care about
- Recent interaction summary
- Watch-outs or sensitivities

### Suggested Talking Points
- 5-7 specific talking points tailored to this audience
- Reference their priorities and concerns

### Open Questions to Address
- 3-5 questions or concerns these stakeholders likely have
- Include any unresolved items from past interactions

### Recommended Next Steps
- 3-5 specific follow-up actions after this meeting
- Include timeline suggestions

### Pre-Meeting Preparation Checklist
- Materials to prepare or bring
- People to align with before the meeting
- Key messages to reinforce

Be specific, use names, reference actual data points and history. Make it immediately actionable."""


def meeting_prep(
    oracle: Oracle,
    workspace: Workspace,
    stakeholders: Sequence[Stakeholder],
    activities: Sequence[Activity],
    selected_ids: Sequence[str],
    meeting_context: str | None = None,
    today: date | None = None,
) -> str:
    prompt = build_meeting_prep_prompt(
        workspace, stakeholders, activities, selected_ids, meeting_context, today
    )
    return oracle.complete(prompt)


def build_insights_prompt(
    workspace: Workspace,
    stakeholders: Sequence[Stakeholder],
    activities: Sequence[Activity],
    today: date | None = None,
) -> str:
    return f"""You are an expert enterprise sales strategist analyzing an account. Based on the stakeholder data below, generate actionable insights.

{build_context(workspace, stakeholders, activities, today)}

Generate a JSON response with this exact structure:
{{
  "dealHealthScore": {{
    "score": <number 0-100>,
    "reasoning": "<2-3 sentence explanation>"
  }},
  "insights": [
    {{
      "type": "coverage_gap" | "engagement_risk" | "missing_stakeholder" | "strategic",
      "severity": "critical" | "warning" | "info",
      "title": "<short title>",
      "description": "<2-3 sentence description>",
      "actionItem": "<specific next step>"
    }}
  ]
}}

Generate 5-7 insights, ordered by severity. Be specific with names, dates, and numbers. Focus on:
1. Coverage gaps (unengaged teams or roles)
2. Engagement risks (relationships cooling, long gaps since contact)
3. Missing stakeholder connections
4. Strategic suggestions for advancing the deal

Respond with ONLY the JSON, no markdown code blocks."""


def insights(
    oracle: Oracle,
    workspace: Workspace,
    stakeholders: Sequence[Stakeholder],
    activities: Sequence[Activity],
    today: date | None = None,
) -> dict[str, Any]:
    text = oracle.complete(build_insights_prompt(workspace, stakeholders, activities, today))
    data = load_oracle_json(text)
    if not isinstance(data, dict):
        raise OracleParseError("AI response must be a JSON object.")
    return data
