"""
Tests for best-plan resolution and catalog lookup.
"""
from app.core.plan_resolver import get_best_plan_id, get_plan_details
from app.core.plans import (
    ADVANCED_PLAN_ID,
    ESSENTIALS_PLAN_ID,
    FREE_PLAN_ID,
    PORTFOLIO_BUILDER_PLAN_ID,
)


def test_empty_input_returns_none():
    assert get_best_plan_id([]) is None


def test_highest_tier_wins_regardless_of_input_order():
    """The advanced rule is checked before essentials, whatever order the plans arrive in."""
    plans = [ESSENTIALS_PLAN_ID, ADVANCED_PLAN_ID]
    assert get_best_plan_id(plans) == ADVANCED_PLAN_ID
    assert get_best_plan_id(list(reversed(plans))) == ADVANCED_PLAN_ID


def test_vendor_ids_map_to_canonical_ids():
    assert get_best_plan_id(["pln_office-team-monthly"]) == PORTFOLIO_BUILDER_PLAN_ID
    assert get_best_plan_id(["pln_unlimited-2023"]) == PORTFOLIO_BUILDER_PLAN_ID
    assert get_best_plan_id(["pln_pro-annual"]) == ADVANCED_PLAN_ID
    assert get_best_plan_id(["pln_starter-legacy"]) == ESSENTIALS_PLAN_ID
    assert get_best_plan_id(["pln_free-forever"]) == FREE_PLAN_ID


def test_matching_is_case_insensitive():
    assert get_best_plan_id(["PLN_PREMIUM-X"]) == PORTFOLIO_BUILDER_PLAN_ID
    assert get_best_plan_id(["Advanced-Monthly"]) == ADVANCED_PLAN_ID


def test_unmatched_returns_first_input_unchanged():
    assert get_best_plan_id(["pln_gold-1", "pln_silver-2"]) == "pln_gold-1"


def test_any_matching_input_beats_unmatched_ones():
    assert get_best_plan_id(["pln_gold-1", "pln_essentials-abc"]) == ESSENTIALS_PLAN_ID


def test_accepts_any_iterable():
    assert get_best_plan_id(plan for plan in [FREE_PLAN_ID, "pln_team-9"]) == PORTFOLIO_BUILDER_PLAN_ID


def test_plan_details_defaults_to_free():
    assert get_plan_details(None).id == FREE_PLAN_ID
    assert get_plan_details("").id == FREE_PLAN_ID
    assert get_plan_details("pln_mystery-42").id == FREE_PLAN_ID


def test_plan_details_exact_and_fragment_lookup():
    assert get_plan_details(ADVANCED_PLAN_ID).name == "Advanced"
    assert get_plan_details("pln_advanced-legacy").name == "Advanced"
    assert get_plan_details("pln_portfolio-2024").tier == 3
