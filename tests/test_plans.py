"""
Tests for the static plan catalog and checkout pricing.
"""
import dataclasses

import pytest

from app.core.plans import (
    ADVANCED_PLAN_ID,
    ESSENTIALS_PLAN_ID,
    FREE_PLAN_ID,
    PLANS,
    PORTFOLIO_BUILDER_PLAN_ID,
    UNLIMITED,
    get_checkout_price_id,
    get_plan_description,
)


def test_catalog_tiers_and_quotas():
    expected = {
        FREE_PLAN_ID: ("Free", 0, 0, 0),
        ESSENTIALS_PLAN_ID: ("Essentials", 1, 2, 5),
        ADVANCED_PLAN_ID: ("Advanced", 2, 20, 30),
        PORTFOLIO_BUILDER_PLAN_ID: ("Portfolio Builder", 3, UNLIMITED, UNLIMITED),
    }
    for plan_id, (name, tier, suburb_reports, property_reports) in expected.items():
        plan = PLANS[plan_id]
        assert plan.id == plan_id
        assert (plan.name, plan.tier) == (name, tier)
        assert plan.suburb_reports == suburb_reports
        assert plan.property_reports == property_reports


def test_catalog_is_immutable():
    with pytest.raises(TypeError):
        PLANS["pln_new"] = PLANS[FREE_PLAN_ID]
    with pytest.raises(dataclasses.FrozenInstanceError):
        PLANS[FREE_PLAN_ID].tier = 3


def test_plan_description_fallback():
    assert get_plan_description("Advanced").startswith("Extended access")
    assert get_plan_description("Free") == "Basic access to Microburbs features"


def test_checkout_price_ids():
    assert get_checkout_price_id("free") is None
    assert get_checkout_price_id("unknown") is None
    assert get_checkout_price_id("advanced") == "prc_advanced-monthly-5gdm0crl"
    assert get_checkout_price_id("advanced", "quarterly") == "prc_advanced-quarterly-u0jn06ox"
