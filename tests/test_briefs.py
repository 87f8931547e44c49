from datetime import date

import pytest

from dealmap.domain.extraction import OracleParseError
from dealmap.domain.models import Activity, Stakeholder, Workspace
from dealmap.domain.rules import ValidationError
from dealmap.services.briefs import build_context, build_meeting_prep_prompt, insights, meeting_prep
from dealmap.store.sqlite import NotFoundError

TODAY = date(2026, 3, 1)
WORKSPACE = Workspace(id="ai-labs", name="AI Labs", deal_context="Renewal at $400K ARR")


class FakeOracle:
    def __init__(self, text: str) -> None:
        self.text = text
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.text


def _people() -> list[Stakeholder]:
    return [
        Stakeholder(id="s1", name="Priya Raman", team="Security", role="Champion",
                    last_contact_date=date(2026, 2, 20)),
        Stakeholder(id="s2", name="Dana Wu", team="Finance", role="Economic Buyer"),
    ]


def _activities() -> list[Activity]:
    return [Activity(id="a1", date=date(2026, 2, 20), type="Call", stakeholder_ids=("s1",), summary="Pricing")]


def test_context_lists_people_activity_and_coverage() -> None:
    context = build_context(WORKSPACE, _people(), _activities(), TODAY)
    assert context.startswith("ACCOUNT: AI Labs")
    assert "DEAL CONTEXT: Renewal at $400K ARR" in context
    assert "Last Contact: 9 days ago" in context
    assert "Last Contact: Never contacted" in context
    assert "- 2026-02-20 [Call] with Priya Raman: Pricing" in context
    assert "- Security: 1/1 engaged in last 30 days" in context
    assert "- Finance: 0/1 engaged in last 30 days" in context


def test_meeting_prep_requires_known_attendees() -> None:
    with pytest.raises(ValidationError, match="Please select at least one stakeholder"):
        build_meeting_prep_prompt(WORKSPACE, _people(), _activities(), [], today=TODAY)
    with pytest.raises(NotFoundError):
        build_meeting_prep_prompt(WORKSPACE, _people(), _activities(), ["s9"], today=TODAY)


def test_meeting_prep_sends_attendee_details() -> None:
    oracle = FakeOracle("## Meeting Brief: Finance sync")
    brief = meeting_prep(oracle, WORKSPACE, _people(), _activities(), ["s2"], "Budget review", TODAY)
    assert brief == "## Meeting Brief: Finance sync"
    prompt = oracle.prompts[0]
    assert "ATTENDEE: Dana Wu" in prompt
    assert "  * No recorded interactions" in prompt
    assert "MEETING CONTEXT: Budget review" in prompt


def test_insights_parses_fenced_json() -> None:
    oracle = FakeOracle('```json\n{"dealHealthScore": {"score": 61}, "insights": []}\n```')
    payload = insights(oracle, WORKSPACE, _people(), _activities(), TODAY)
    assert payload["dealHealthScore"]["score"] == 61

    with pytest.raises(OracleParseError):
        insights(FakeOracle("not json"), WORKSPACE, _people(), _activities(), TODAY)
