"""Test suite for the intent classifier."""

import pytest

from kayd_assistant.domain.models import Category, ResponseTemplate, Rule
from kayd_assistant.services.classifier import (
    DEFAULT_TEMPLATE,
    QUICK_ACTIONS,
    RULES,
    WELCOME_TEMPLATE,
    classify,
    match_rule,
)


def rule_named(name: str) -> Rule:
    return next(rule for rule in RULES if rule.name == name)


@pytest.mark.parametrize(
    "utterance, rule_name",
    [
        ("How much does a generator cost?", "pricing"),
        ("Is the lift available on Friday?", "availability"),
        ("Can you deliver to my site?", "delivery"),
        ("kitchen renovation", "construction"),
        ("I need a drill", "power_tools"),
        ("I need to rent a camera", "camera"),
        ("planning a wedding", "events"),
        ("need a bulldozer", "heavy_equipment"),
        ("anything nearby?", "location"),
        ("can you explain deposits", "help"),
    ],
)
def test_each_rule_matches_its_triggers(utterance, rule_name):
    """Test that representative utterances reach the expected rule."""
    assert match_rule(utterance).name == rule_name
    assert classify(utterance) == rule_named(rule_name).template


def test_earlier_rule_wins_on_overlap():
    """Test that rule order breaks ties between matching rules."""
    template = classify("what's the cheapest excavator price")
    assert template == rule_named("pricing").template
    assert template.category == Category.COMPARISON

    assert match_rule("deliver a camera").name == "delivery"
    assert match_rule("power drill for a renovation").name == "construction"
    assert match_rule("an excavator for the party").name == "events"
    assert match_rule("how do I rent an excavator").name == "heavy_equipment"


def test_location_rule_yields_to_catalogue():
    """Test that location words never override availability or delivery."""
    assert match_rule("local delivery please").name == "delivery"
    assert classify("local delivery please").category == Category.INFO
    assert match_rule("can you deliver to my location?").name == "delivery"
    assert match_rule("is it available near me").name == "availability"
    assert match_rule("cameras near me").name == "camera"
    assert match_rule("help me find something local").name == "location"


def test_fallback_for_unmatched_utterances():
    """Test that unmatched input returns the default info template."""
    for utterance in ["xyzzy", "", "   ", None, "12345"]:
        template = classify(utterance)
        assert template is DEFAULT_TEMPLATE
        assert template.category == Category.INFO
        assert match_rule(utterance) is None


def test_matching_is_case_insensitive_substring():
    """Test lowercase normalization and non word-boundary containment."""
    assert match_rule("I NEED A CAMERA").name == "camera"
    assert match_rule("partycity supplies").name == "events"
    # "how" is found inside "show"
    assert match_rule("show trending rentals").name == "help"


def test_classification_is_deterministic():
    """Test repeated calls return the same template."""
    utterances = ["camera for a wedding", "xyzzy", "price of a backhoe"]
    first = [classify(u) for u in utterances]
    for _ in range(5):
        assert [classify(u) for u in utterances] == first


def test_custom_rule_table():
    """Test classification against an injected rule table."""
    template = ResponseTemplate(content="ladders", suggestions=("Tall",), category=Category.SEARCH)
    rules = (Rule(name="ladders", triggers=("ladder",), template=template),)
    assert classify("Step LADDER please", rules) is template
    assert classify("a camera", rules) is DEFAULT_TEMPLATE


def test_template_shape():
    """Test every template carries at most four suggestions."""
    templates = [rule.template for rule in RULES] + [DEFAULT_TEMPLATE, WELCOME_TEMPLATE]
    for template in templates:
        assert template.content
        assert len(template.suggestions) <= 4
    for rule in RULES:
        assert rule.triggers
        assert all(trigger == trigger.lower() for trigger in rule.triggers)


def test_camera_suggestions():
    """Test the camera catalogue offers shoot-type follow-ups."""
    template = classify("I need to rent a camera")
    assert template.category == Category.SEARCH
    assert set(template.suggestions) & {
        "Wedding photography",
        "Short film",
        "Real estate",
        "YouTube/content creation",
    }


def test_quick_actions_reach_catalogues():
    """Test the preset queries land on their intended catalogues."""
    assert match_rule(QUICK_ACTIONS["photography"]).name == "camera"
    assert match_rule(QUICK_ACTIONS["events"]).name == "events"
    assert match_rule(QUICK_ACTIONS["heavy_equipment"]).name == "construction"
    assert match_rule(QUICK_ACTIONS["power_tools"]).name == "availability"
