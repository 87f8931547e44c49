from dealmap.domain.models import Stakeholder
from dealmap.services.resolver import (
    EMAIL_EXACT,
    FIRST_LAST,
    FIRST_NAME,
    LAST_NAME,
    NAME_EXACT,
    SUBSTRING,
    is_internal_email,
    resolve,
)


def _people() -> list[Stakeholder]:
    return [
        Stakeholder(id="s1", name="Sarah J. Connor", email="sarah@ailabs.com"),
        Stakeholder(id="s2", name="Sarah Smith"),
        Stakeholder(id="s3", name="Jordan Lee"),
    ]


def test_email_match_wins_over_name() -> None:
    match = resolve("Jordan Lee", "SARAH@ailabs.com", _people())
    assert match is not None
    assert (match.id, match.confidence, match.rule) == ("s1", 100, EMAIL_EXACT)


def test_exact_name_is_normalized() -> None:
    match = resolve("  jordan   LEE ", None, _people())
    assert match is not None
    assert (match.id, match.confidence, match.rule) == ("s3", 100, NAME_EXACT)


def test_first_and_last_token_match() -> None:
    match = resolve("Sarah Connor", None, _people())
    assert match is not None
    assert (match.id, match.confidence, match.rule) == ("s1", 95, FIRST_LAST)


def test_single_token_takes_first_stakeholder_in_order() -> None:
    match = resolve("Sarah", None, _people())
    assert match is not None
    assert (match.id, match.confidence, match.rule) == ("s1", 75, FIRST_NAME)


def test_last_token_only() -> None:
    match = resolve("Tom Lee", None, _people())
    assert match is not None
    assert (match.id, match.confidence, match.rule) == ("s3", 60, LAST_NAME)


def test_substring_fallback() -> None:
    match = resolve("Conn", None, _people())
    assert match is not None
    assert (match.id, match.confidence, match.rule) == ("s1", 70, SUBSTRING)


def test_no_match_and_blank_names() -> None:
    assert resolve("Priya Raman", None, _people()) is None
    assert resolve("   ", None, _people()) is None
    assert resolve(None, None, _people()) is None
    assert resolve("Sarah", None, []) is None


def test_rule_precedence_beats_collection_order() -> None:
    people = [
        Stakeholder(id="s1", name="Alex Morgan"),
        Stakeholder(id="s2", name="Alex Chen"),
    ]
    match = resolve("Alex Chen", None, people)
    assert match is not None
    assert match.id == "s2"
    assert match.rule == NAME_EXACT


def test_internal_email_domains() -> None:
    domains = ["ailabs.com", "@ai-labs.io"]
    assert is_internal_email("pat@ailabs.com", domains)
    assert is_internal_email("pat@eu.ailabs.com", domains)
    assert is_internal_email("pat@AI-LABS.io", domains)
    assert not is_internal_email("pat@notailabs.com", domains)
    assert not is_internal_email("pat@gmail.com", domains)
    assert not is_internal_email(None, domains)
    assert not is_internal_email("pat@ailabs.com", [])
