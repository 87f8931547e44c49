"""Deterministic deal health score over a stakeholder set.

Each rule adds a signed impact to a base of 50 and records a factor; factors
are kept in evaluation order, not sorted by magnitude.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from dealmap.domain.models import Stakeholder
from dealmap.domain.rules import days_since
from dealmap.domain.stages import DealRole, RelationshipStrength

BASE_SCORE = 50
ECONOMIC_BUYER_WINDOW_DAYS = 30
BLOCKER_STALE_DAYS = 30
TEAM_ENGAGED_DAYS = 45
RECENT_CONTACT_DAYS = 14
BLOCKER_PENALTY = -8


@dataclass(frozen=True)
class HealthFactor:
    label: str
    impact: int
    detail: str


@dataclass(frozen=True)
class HealthScore:
    score: int
    factors: list[HealthFactor] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _within(s: Stakeholder, days: int, today: date) -> bool:
    elapsed = days_since(s.last_contact_date, today)
    return elapsed is not None and elapsed < days


def _stale(s: Stakeholder, days: int, today: date) -> bool:
    elapsed = days_since(s.last_contact_date, today)
    return elapsed is None or elapsed > days


def score_health(stakeholders: Sequence[Stakeholder], today: date | None = None) -> HealthScore:
    today = today or date.today()
    if not stakeholders:
        return HealthScore(
            score=0,
            factors=[HealthFactor("No stakeholders", 0, "Add stakeholders to compute deal health")],
        )

    total = len(stakeholders)
    score = BASE_SCORE
    factors: list[HealthFactor] = []

    def add(label: str, impact: int, detail: str) -> None:
        nonlocal score
        score += impact
        factors.append(HealthFactor(label, impact, detail))

    strong_champions = [
        s
        for s in stakeholders
        if s.role == DealRole.CHAMPION.value
        and s.relationship_strength == RelationshipStrength.STRONG.value
    ]
    if len(strong_champions) >= 2:
        add("Strong champions", 15, f"{len(strong_champions)} strong champion relationships")
    elif len(strong_champions) == 1:
        add("Champion coverage", 8, "1 strong champion, need backup")

    buyers = [s for s in stakeholders if s.role == DealRole.ECONOMIC_BUYER.value]
    engaged_buyers = [
        s
        for s in buyers
        if _within(s, ECONOMIC_BUYER_WINDOW_DAYS, today)
        and s.relationship_strength != RelationshipStrength.WEAK.value
    ]
    if buyers and len(engaged_buyers) == len(buyers):
        add("Economic buyer engagement", 15, "All economic buyers recently engaged")
    else:
        add(
            "Economic buyer gap",
            -10,
            f"{len(buyers) - len(engaged_buyers)} of {len(buyers)} economic buyers not recently engaged",
        )

    unmanaged = [
        s
        for s in stakeholders
        if s.role == DealRole.BLOCKER.value
        and (
            _stale(s, BLOCKER_STALE_DAYS, today)
            or s.relationship_strength
            in (RelationshipStrength.AT_RISK.value, RelationshipStrength.UNKNOWN.value)
        )
    ]
    if unmanaged:
        add(
            "Unmanaged blockers",
            BLOCKER_PENALTY * len(unmanaged),
            f"{len(unmanaged)} blocker(s) not engaged or at risk",
        )

    teams = {s.team for s in stakeholders}
    engaged_teams = {s.team for s in stakeholders if _within(s, TEAM_ENGAGED_DAYS, today)}
    add(
        "Team coverage",
        round_half_up(len(engaged_teams) / len(teams) * 10),
        f"{len(engaged_teams)} of {len(teams)} teams recently engaged",
    )

    strong = sum(1 for s in stakeholders if s.relationship_strength == RelationshipStrength.STRONG.value)
    weak_or_at_risk = sum(
        1
        for s in stakeholders
        if s.relationship_strength
        in (RelationshipStrength.AT_RISK.value, RelationshipStrength.WEAK.value)
    )
    add(
        "Relationship health",
        min(10, round_half_up(strong / total * 15) - round_half_up(weak_or_at_risk / total * 10)),
        f"{strong} strong, {weak_or_at_risk} weak/at-risk",
    )

    recent = sum(1 for s in stakeholders if _within(s, RECENT_CONTACT_DAYS, today))
    add(
        "Contact recency",
        min(10, round_half_up(recent / total * 15)),
        f"{recent} stakeholders contacted in last 2 weeks",
    )

    return HealthScore(score=max(0, min(100, score)), factors=factors)
