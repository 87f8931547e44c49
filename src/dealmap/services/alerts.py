from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from dealmap.domain.models import Stakeholder
from dealmap.domain.rules import days_since
from dealmap.domain.stages import DealRole, Priority, RelationshipStrength
from dealmap.services.scoring import round_half_up

MAX_ALERTS = 8
NEVER_CONTACTED_DAYS = 90
KEY_ROLES = (DealRole.ECONOMIC_BUYER.value, DealRole.BLOCKER.value, DealRole.CHAMPION.value)


@dataclass(frozen=True)
class Alert:
    severity: str
    message: str
    stakeholder_id: str | None = None


@dataclass(frozen=True)
class QuickStats:
    total: int
    p0_count: int
    teams: int
    engaged_teams: int
    avg_days_since_contact: int
    at_risk: int
    strong: int


def generate_alerts(
    stakeholders: Sequence[Stakeholder],
    today: date | None = None,
    limit: int = MAX_ALERTS,
) -> list[Alert]:
    today = today or date.today()
    alerts: list[Alert] = []

    for s in stakeholders:
        if s.last_contact_date is None and (
            s.priority == Priority.P0.value or s.role == DealRole.BLOCKER.value
        ):
            alerts.append(
                Alert("critical", f"{s.name} ({s.title}, {s.role}) has NEVER been contacted", s.id)
            )

    for s in stakeholders:
        if s.relationship_strength == RelationshipStrength.AT_RISK.value and s.priority == Priority.P0.value:
            elapsed = days_since(s.last_contact_date, today)
            alerts.append(
                Alert(
                    "critical",
                    f"{s.name} ({s.role}) relationship is At Risk - "
                    f"{elapsed if elapsed is not None else 'never'} days since contact",
                    s.id,
                )
            )

    for s in stakeholders:
        elapsed = days_since(s.last_contact_date, today)
        if s.role == DealRole.ECONOMIC_BUYER.value and elapsed is not None and elapsed > 40:
            alerts.append(
                Alert("critical", f"Economic Buyer {s.name} last contacted {elapsed} days ago", s.id)
            )

    teams: dict[str, list[Stakeholder]] = {}
    for s in stakeholders:
        teams.setdefault(s.team, []).append(s)
    for team, members in teams.items():
        if all(m.last_contact_date is None for m in members):
            alerts.append(
                Alert("critical", f"{team} team ({len(members)} members) has zero engagement")
            )

    for s in stakeholders:
        elapsed = days_since(s.last_contact_date, today)
        if s.role == DealRole.CHAMPION.value and elapsed is not None and elapsed > 20:
            alerts.append(
                Alert(
                    "warning",
                    f"Champion {s.name} hasn't been contacted in {elapsed} days - keep momentum",
                    s.id,
                )
            )

    for s in stakeholders:
        if s.relationship_strength != RelationshipStrength.WEAK.value or s.role not in KEY_ROLES:
            continue
        if any(a.stakeholder_id == s.id for a in alerts):
            continue
        alerts.append(
            Alert("warning", f"{s.name} ({s.role}) has a Weak relationship - invest in strengthening", s.id)
        )

    return alerts[:limit]


def quick_stats(stakeholders: Sequence[Stakeholder], today: date | None = None) -> QuickStats:
    today = today or date.today()
    total = len(stakeholders)
    elapsed = [days_since(s.last_contact_date, today) for s in stakeholders]
    engaged_teams = {s.team for s, d in zip(stakeholders, elapsed) if d is not None and d < 30}
    avg = 0
    if total:
        avg = round_half_up(
            sum(d if d is not None else NEVER_CONTACTED_DAYS for d in elapsed) / total
        )
    at_risk = sum(
        1
        for s in stakeholders
        if s.relationship_strength
        in (RelationshipStrength.AT_RISK.value, RelationshipStrength.WEAK.value)
        or (
            s.relationship_strength == RelationshipStrength.UNKNOWN.value
            and s.role in (DealRole.ECONOMIC_BUYER.value, DealRole.BLOCKER.value)
        )
    )
    return QuickStats(
        total=total,
        p0_count=sum(1 for s in stakeholders if s.priority == Priority.P0.value),
        teams=len({s.team for s in stakeholders}),
        engaged_teams=len(engaged_teams),
        avg_days_since_contact=avg,
        at_risk=at_risk,
        strong=sum(1 for s in stakeholders if s.relationship_strength == RelationshipStrength.STRONG.value),
    )
