import json

import pytest

from dealmap.domain.extraction import (
    OracleParseError,
    load_oracle_json,
    parse_extraction,
    parse_import_payload,
    strip_code_fence,
)


def test_strip_code_fence() -> None:
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n[1]\n```') == "[1]"
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_parse_extraction_accepts_camel_case_and_fills_defaults() -> None:
    text = """```json
{
  "stakeholders": [
    {"name": " Miguel Ortiz ", "role": "blocker", "relationshipStrength": "At Risk",
     "keyPriorities": "Compliance", "email": "Miguel@AILabs.com"},
    {"name": "Ana", "role": "Sponsor", "priority": "P9", "email": "n/a"}
  ],
  "actionItems": [{"description": "Send SOC2 report", "owner": "AE"}],
  "sentimentSignals": [{"stakeholderName": "Ana", "sentiment": "positive"}],
  "proposedActivity": {"date": "2026-02-27", "type": "call", "summary": "Security review",
                       "stakeholderNames": ["Miguel Ortiz", "Ana"]}
}
```"""
    result = parse_extraction(text)

    miguel, ana = result.stakeholders
    assert miguel.name == "Miguel Ortiz"
    assert miguel.role == "Blocker"
    assert miguel.relationship_strength == "At Risk"
    assert miguel.key_priorities == ["Compliance"]
    assert miguel.email == "miguel@ailabs.com"
    assert (ana.role, ana.priority, ana.email) == ("Influencer", "P2", None)
    assert ana.match_status == "new"
    assert result.action_items[0].description == "Send SOC2 report"
    assert result.proposed_activity.type == "Call"
    assert result.proposed_activity.stakeholder_names == ["Miguel Ortiz", "Ana"]


def test_partial_response_is_tolerated() -> None:
    result = parse_extraction('{"stakeholders": []}')
    assert result.action_items == []
    assert result.proposed_activity.type == "Meeting"


def test_parse_failures_raise() -> None:
    with pytest.raises(OracleParseError, match="Failed to parse AI response"):
        load_oracle_json("I could not read that transcript.")
    with pytest.raises(OracleParseError):
        parse_extraction("[1, 2]")
    with pytest.raises(OracleParseError):
        parse_extraction('{"stakeholders": [{"name": "   "}]}')


def test_import_payload_reads_review_file() -> None:
    payload = parse_import_payload(
        {
            "stakeholders": [
                {"name": "Sarah J. Connor", "matchStatus": "existing", "matchedStakeholderId": "s1"}
            ],
            "stakeholderUpdates": [{"id": "s1", "notes": "Pushing expansion"}],
            "activity": {"date": "2026-02-27", "type": "Meeting", "summary": "Kickoff"},
        }
    )
    assert payload.stakeholders[0].matched_stakeholder_id == "s1"
    assert payload.stakeholder_updates[0].notes == "Pushing expansion"
    with pytest.raises(OracleParseError):
        parse_import_payload(["not", "a", "mapping"])


def test_backticks_inside_values_are_not_stripped() -> None:
    payload = {"stakeholders": [{"name": "Ana Ruiz", "notes": "pasted ```yaml``` block"}]}
    result = parse_extraction(json.dumps(payload))
    assert result.stakeholders[0].notes == "pasted ```yaml``` block"
    assert strip_code_fence('{"notes": "```x```"}') == '{"notes": "```x```"}'


def test_explicit_nulls_fall_back_to_defaults() -> None:
    text = json.dumps(
        {
            "stakeholders": [{"name": "Ana Ruiz", "title": None}],
            "actionItems": [{"description": "Send pricing", "owner": None, "deadline": None}],
            "sentimentSignals": [{"stakeholderName": "Ana Ruiz", "sentiment": "positive", "signal": None}],
            "proposedActivity": None,
        }
    )
    result = parse_extraction(text)
    assert result.action_items[0].owner == ""
    assert result.sentiment_signals[0].signal == ""
    assert result.proposed_activity.type == "Meeting"
    assert result.proposed_activity.stakeholder_names == []

    activity = parse_extraction(
        json.dumps({"proposedActivity": {"summary": None, "stakeholderNames": None}})
    ).proposed_activity
    assert (activity.summary, activity.stakeholder_names) == ("", [])
