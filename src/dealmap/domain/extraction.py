from __future__ import annotations

import json
import re
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from dealmap.domain.stages import ActivityType, DealRole, Priority, RelationshipStrength

FENCE_RE = re.compile(r"```[a-zA-Z]*\s*\n?(.*?)\n?\s*```", re.DOTALL)


class OracleParseError(RuntimeError):
    pass


class _OracleModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# The oracle often sends explicit nulls for fields it has nothing to say about.
Text = Annotated[str, BeforeValidator(lambda v: "" if v is None else v)]
Names = Annotated[List[str], BeforeValidator(lambda v: [] if v is None else v)]


def _coerce_choice(value: Any, allowed: list[str], default: str) -> str:
    if isinstance(value, str):
        cleaned = value.strip()
        for choice in allowed:
            if cleaned.lower() == choice.lower():
                return choice
    return default


class ExtractedStakeholder(_OracleModel):
    name: str = Field(..., min_length=1)
    title: str = ""
    team: str = ""
    role: str = DealRole.INFLUENCER.value
    priority: str = Priority.P2.value
    relationship_strength: str = RelationshipStrength.UNKNOWN.value
    key_priorities: List[str] = Field(default_factory=list)
    notes: str = ""
    email: Optional[str] = None

    # Filled in by identity resolution, never by the oracle.
    match_status: Literal["existing", "new"] = "new"
    matched_stakeholder_id: Optional[str] = None
    match_confidence: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("title", "team", "notes", mode="before")
    @classmethod
    def _blank_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, v: Any) -> str:
        return _coerce_choice(v, [r.value for r in DealRole], DealRole.INFLUENCER.value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> str:
        return _coerce_choice(v, [p.value for p in Priority], Priority.P2.value)

    @field_validator("relationship_strength", mode="before")
    @classmethod
    def _strength(cls, v: Any) -> str:
        return _coerce_choice(
            v, [s.value for s in RelationshipStrength], RelationshipStrength.UNKNOWN.value
        )

    @field_validator("key_priorities", mode="before")
    @classmethod
    def _priorities(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, v: Any) -> Optional[str]:
        if not v or not isinstance(v, str) or "@" not in v:
            return None
        return v.strip().lower()


class ActionItem(_OracleModel):
    description: Text = ""
    owner: Text = ""
    deadline: Optional[str] = None


class SentimentSignal(_OracleModel):
    stakeholder_name: Text = ""
    sentiment: Text = ""
    signal: Text = ""


class ProposedActivity(_OracleModel):
    date: Optional[str] = None
    type: str = ActivityType.MEETING.value
    summary: Text = ""
    stakeholder_names: Names = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return _coerce_choice(v, [t.value for t in ActivityType], ActivityType.MEETING.value)


class ExtractionResult(_OracleModel):
    stakeholders: List[ExtractedStakeholder] = Field(default_factory=list)
    action_items: List[ActionItem] = Field(default_factory=list)
    sentiment_signals: List[SentimentSignal] = Field(default_factory=list)
    proposed_activity: ProposedActivity = Field(default_factory=ProposedActivity)

    @field_validator("stakeholders", "action_items", "sentiment_signals", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("proposed_activity", mode="before")
    @classmethod
    def _activity(cls, v: Any) -> Any:
        return {} if v is None else v


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    # Only a fence wrapping the whole response is stripped; backticks inside values stay.
    match = FENCE_RE.fullmatch(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def load_oracle_json(text: str) -> Any:
    try:
        return json.loads(strip_code_fence(text or ""))
    except json.JSONDecodeError as exc:
        raise OracleParseError("Failed to parse AI response. Please try again.") from exc


def parse_extraction(text: str) -> ExtractionResult:
    data = load_oracle_json(text)
    if not isinstance(data, dict):
        raise OracleParseError("AI response must be a JSON object.")
    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as exc:
        raise OracleParseError(f"AI response did not match the extraction schema: {exc}") from exc


class ImportActivity(_OracleModel):
    date: Optional[str] = None
    type: str = ActivityType.MEETING.value
    summary: Text = ""

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return _coerce_choice(v, [t.value for t in ActivityType], ActivityType.MEETING.value)


class ImportStakeholderUpdate(_OracleModel):
    id: str
    last_contact_date: Optional[str] = None
    key_priorities: List[str] = Field(default_factory=list)
    relationship_strength: Optional[str] = None
    notes: Optional[str] = None


class ImportPayload(_OracleModel):
    """Reviewed extraction the user confirms for writing."""

    stakeholders: List[ExtractedStakeholder] = Field(default_factory=list)
    stakeholder_updates: List[ImportStakeholderUpdate] = Field(default_factory=list)
    activity: ImportActivity = Field(default_factory=ImportActivity)


def parse_import_payload(data: Any) -> ImportPayload:
    if not isinstance(data, dict):
        raise OracleParseError("Import payload must be a JSON object.")
    try:
        return ImportPayload.model_validate(data)
    except ValidationError as exc:
        raise OracleParseError(f"Import payload is invalid: {exc}") from exc
