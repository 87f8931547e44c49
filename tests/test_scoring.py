from datetime import date, timedelta

from dealmap.domain.models import Stakeholder
from dealmap.services.scoring import round_half_up, score_health

TODAY = date(2026, 3, 1)


def _ago(days: int) -> date:
    return TODAY - timedelta(days=days)


def test_empty_workspace_scores_zero() -> None:
    result = score_health([], TODAY)
    assert result.score == 0
    assert [f.label for f in result.factors] == ["No stakeholders"]


def test_factors_in_evaluation_order() -> None:
    people = [
        Stakeholder(id="s1", name="A", team="Infra", role="Champion",
                    relationship_strength="Strong", last_contact_date=_ago(5)),
        Stakeholder(id="s2", name="B", team="Security", role="Champion",
                    relationship_strength="Strong", last_contact_date=_ago(10)),
        Stakeholder(id="s3", name="C", team="Infra", role="Economic Buyer",
                    relationship_strength="Neutral", last_contact_date=_ago(20)),
        Stakeholder(id="s4", name="D", team="Legal", role="Blocker"),
    ]
    result = score_health(people, TODAY)
    assert [(f.label, f.impact) for f in result.factors] == [
        ("Strong champions", 15),
        ("Economic buyer engagement", 15),
        ("Unmanaged blockers", -8),
        ("Team coverage", 7),
        ("Relationship health", 8),
        ("Contact recency", 8),
    ]
    assert result.score == 95


def test_single_champion_and_buyer_gap() -> None:
    people = [
        Stakeholder(id="s1", name="A", team="Infra", role="Champion",
                    relationship_strength="Strong", last_contact_date=_ago(1)),
        Stakeholder(id="s2", name="B", team="Finance", role="Economic Buyer",
                    relationship_strength="Weak", last_contact_date=_ago(3)),
    ]
    result = score_health(people, TODAY)
    labels = {f.label: f for f in result.factors}
    assert labels["Champion coverage"].impact == 8
    assert labels["Economic buyer gap"].impact == -10
    assert labels["Economic buyer gap"].detail == "1 of 1 economic buyers not recently engaged"


def test_economic_buyer_window_is_strict() -> None:
    people = [Stakeholder(id="s1", name="A", role="Economic Buyer", last_contact_date=_ago(30))]
    labels = [f.label for f in score_health(people, TODAY).factors]
    assert "Economic buyer gap" in labels


def test_score_clamped_to_bounds() -> None:
    blockers = [
        Stakeholder(id=f"s{i}", name=f"B{i}", team="Legal", role="Blocker",
                    relationship_strength="At Risk")
        for i in range(1, 9)
    ]
    assert score_health(blockers, TODAY).score == 0

    strong = [
        Stakeholder(id="s1", name="A", team="Infra", role="Champion",
                    relationship_strength="Strong", last_contact_date=TODAY),
        Stakeholder(id="s2", name="B", team="Infra", role="Champion",
                    relationship_strength="Strong", last_contact_date=TODAY),
        Stakeholder(id="s3", name="C", team="Infra", role="Economic Buyer",
                    relationship_strength="Strong", last_contact_date=TODAY),
    ]
    assert score_health(strong, TODAY).score == 100


def test_score_is_deterministic() -> None:
    people = [
        Stakeholder(id="s1", name="A", team="Infra", role="Influencer", last_contact_date=_ago(13)),
        Stakeholder(id="s2", name="B", team="Legal", role="Blocker", last_contact_date=_ago(31)),
    ]
    assert score_health(people, TODAY) == score_health(list(people), TODAY)


def test_round_half_up() -> None:
    assert round_half_up(7.5) == 8
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(6.49) == 6


def test_each_unmanaged_blocker_costs_eight() -> None:
    never_met = [
        Stakeholder(id="s1", name="A", team="Legal", role="Blocker"),
        Stakeholder(id="s2", name="B", team="Security", role="Blocker"),
    ]
    managed = Stakeholder(id="s3", name="C", team="Infra", role="Blocker",
                          relationship_strength="Neutral", last_contact_date=_ago(5))

    for people in (never_met, never_met + [managed]):
        labels = {f.label: f.impact for f in score_health(people, TODAY).factors}
        assert labels["Unmanaged blockers"] == -16
