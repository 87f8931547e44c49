"""Identity resolution of free-form name/email mentions against a stakeholder list.

Rules are tried in precedence order and the first rule that matches any
stakeholder wins. Within a rule, stakeholders are scanned in collection order
and the first hit is returned: first-fit, not best-fit, so results depend only
on the input order.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from dealmap.domain.models import Stakeholder
from dealmap.services.utils import email_domain

EMAIL_EXACT = "email_exact"
NAME_EXACT = "name_exact"
FIRST_LAST = "first_last"
FIRST_NAME = "first_name"
LAST_NAME = "last_name"
SUBSTRING = "substring"

CONFIDENCE = {
    EMAIL_EXACT: 100,
    NAME_EXACT: 100,
    FIRST_LAST: 95,
    FIRST_NAME: 75,
    LAST_NAME: 60,
    SUBSTRING: 70,
}


@dataclass(frozen=True)
class Match:
    id: str
    confidence: int
    rule: str


def normalize_name(name: str | None) -> str:
    return " ".join((name or "").lower().split())


def _first_last(a: list[str], b: list[str]) -> bool:
    return len(a) > 1 and len(b) > 1 and a[0] == b[0] and a[-1] == b[-1]


def _first_name(a: list[str], b: list[str]) -> bool:
    return (len(a) == 1 or len(b) == 1) and a[0] == b[0]


def _last_name(a: list[str], b: list[str]) -> bool:
    return len(a) > 1 and len(b) > 1 and a[-1] == b[-1]


_TOKEN_RULES: list[tuple[str, Callable[[list[str], list[str]], bool]]] = [
    (FIRST_LAST, _first_last),
    (FIRST_NAME, _first_name),
    (LAST_NAME, _last_name),
]


def resolve(
    name: str | None,
    email: str | None,
    stakeholders: Sequence[Stakeholder],
) -> Match | None:
    candidate_email = (email or "").strip().lower()
    if candidate_email:
        for s in stakeholders:
            if s.email and s.email.strip().lower() == candidate_email:
                return Match(s.id, CONFIDENCE[EMAIL_EXACT], EMAIL_EXACT)

    candidate = normalize_name(name)
    if not candidate:
        return None
    names = [(s, normalize_name(s.name)) for s in stakeholders]
    names = [(s, n) for s, n in names if n]

    for s, existing in names:
        if existing == candidate:
            return Match(s.id, CONFIDENCE[NAME_EXACT], NAME_EXACT)

    candidate_tokens = candidate.split()
    for rule, check in _TOKEN_RULES:
        for s, existing in names:
            if check(candidate_tokens, existing.split()):
                return Match(s.id, CONFIDENCE[rule], rule)

    for s, existing in names:
        if candidate in existing or existing in candidate:
            return Match(s.id, CONFIDENCE[SUBSTRING], SUBSTRING)
    return None


def is_internal_email(email: str | None, internal_domains: Iterable[str]) -> bool:
    domain = email_domain(email)
    if domain is None:
        return False
    for allowed in internal_domains:
        allowed = allowed.strip().lower().lstrip("@")
        if allowed and (domain == allowed or domain.endswith(f".{allowed}")):
            return True
    return False
