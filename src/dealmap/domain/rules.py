from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date
from enum import Enum


class ValidationError(ValueError):
    pass


class UpstreamAuthError(RuntimeError):
    """Credentials for the mail/calendar provider or the oracle are missing or rejected."""


SLUG_RE = re.compile(r"[^a-z0-9]+")


def require(value: str | None, field: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required.")
    return text


def validate_enum(value: str | None, allowed: Iterable[str] | type[Enum], field: str) -> None:
    if value is None:
        return
    choices = [c.value if isinstance(c, Enum) else c for c in allowed]
    if value not in choices:
        raise ValidationError(f"Invalid {field} {value!r}. Expected one of: {', '.join(choices)}")


def parse_date(value: str | None, field: str) -> date | None:
    """Accepts YYYY-MM-DD or a full ISO timestamp, keeping only the date."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError as exc:
        raise ValidationError(f"{field} must be YYYY-MM-DD, got {value!r}.") from exc


def slugify(name: str) -> str:
    return SLUG_RE.sub("-", name.strip().lower()).strip("-")


def days_since(value: date | None, today: date) -> int | None:
    if value is None:
        return None
    return (today - value).days
