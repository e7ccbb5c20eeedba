"""
Plan catalog and pricing.
Single source of truth for subscription tiers.

Each plan defines:
- Tier ordinal (higher = more access)
- Monthly report quotas (-1 = unlimited)
- Marketing feature descriptions

The catalog is static configuration and is never mutated at runtime.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

UNLIMITED = -1


@dataclass(frozen=True)
class Plan:
    """A canonical catalog entry."""
    id: str
    name: str
    tier: int
    suburb_reports: int
    property_reports: int
    features: tuple[str, ...]


@dataclass(frozen=True)
class PlanPricing:
    """Checkout prices for a plan (AUD)."""
    monthly: int
    quarterly: int
    monthly_price_id: str | None
    quarterly_price_id: str | None


FREE_PLAN_ID = "pln_basic--n5180oor"
ESSENTIALS_PLAN_ID = "pln_essentials-vb1k04zy"
ADVANCED_PLAN_ID = "pln_advanced-ni690fz3"
PORTFOLIO_BUILDER_PLAN_ID = "pln_portfolio-builder-fb6b0fzp"


PLANS: Mapping[str, Plan] = MappingProxyType({
    FREE_PLAN_ID: Plan(
        id=FREE_PLAN_ID,
        name="Free",
        tier=0,
        suburb_reports=0,
        property_reports=0,
        features=("5 AI property matches", "Basic suburb reports", "Limited filters"),
    ),
    ESSENTIALS_PLAN_ID: Plan(
        id=ESSENTIALS_PLAN_ID,
        name="Essentials",
        tier=1,
        suburb_reports=2,
        property_reports=5,
        features=(
            "Unlimited AI property matches",
            "2 suburb reports/month",
            "5 property reports/month",
        ),
    ),
    ADVANCED_PLAN_ID: Plan(
        id=ADVANCED_PLAN_ID,
        name="Advanced",
        tier=2,
        suburb_reports=20,
        property_reports=30,
        features=(
            "Unlimited AI property matches",
            "20 suburb reports/month",
            "30 property reports/month",
            "All filters + CSV export",
        ),
    ),
    PORTFOLIO_BUILDER_PLAN_ID: Plan(
        id=PORTFOLIO_BUILDER_PLAN_ID,
        name="Portfolio Builder",
        tier=3,
        suburb_reports=UNLIMITED,
        property_reports=UNLIMITED,
        features=("Unlimited everything", "Priority support", "Custom reports"),
    ),
})


PLAN_DESCRIPTIONS: Mapping[str, str] = MappingProxyType({
    "Portfolio Builder": "Unlimited access to all Microburbs features and reports",
    "Advanced": "Extended access with 20 suburb reports and 30 property reports per month",
    "Essentials": "Basic access with 2 suburb reports and 5 property reports per month",
})

DEFAULT_PLAN_DESCRIPTION = "Basic access to Microburbs features"


# Pricing keyed by the plan keys used on the pricing page
PLAN_PRICING: Mapping[str, PlanPricing] = MappingProxyType({
    "free": PlanPricing(
        monthly=0,
        quarterly=0,
        monthly_price_id=None,
        quarterly_price_id=None,
    ),
    "essentials": PlanPricing(
        monthly=95,
        quarterly=77,
        monthly_price_id="prc_essentials-monthly-x7wv07nc",
        quarterly_price_id="prc_essentials-quarterly-1l3v0p5r",
    ),
    "advanced": PlanPricing(
        monthly=170,
        quarterly=137,
        monthly_price_id="prc_advanced-monthly-5gdm0crl",
        quarterly_price_id="prc_advanced-quarterly-u0jn06ox",
    ),
    "portfolioBuilder": PlanPricing(
        monthly=390,
        quarterly=320,
        monthly_price_id="prc_portfolio-builder-monthly-p3od0cof",
        quarterly_price_id="prc_portfolio-builder-quarterly-xr920fz8",
    ),
})

# Pricing key -> canonical plan id
PRICING_PLAN_IDS: Mapping[str, str] = MappingProxyType({
    "free": FREE_PLAN_ID,
    "essentials": ESSENTIALS_PLAN_ID,
    "advanced": ADVANCED_PLAN_ID,
    "portfolioBuilder": PORTFOLIO_BUILDER_PLAN_ID,
})


def get_plan_description(plan_name: str) -> str:
    return PLAN_DESCRIPTIONS.get(plan_name, DEFAULT_PLAN_DESCRIPTION)


def get_checkout_price_id(plan_key: str, billing: str = "monthly") -> str | None:
    """Get the vendor price id for a paid plan, or None for free/unknown plans.

    Args:
        plan_key: Pricing key ('essentials', 'advanced', 'portfolioBuilder')
        billing: 'monthly' or 'quarterly'

    Returns:
        The price id to start checkout with, None if no checkout is needed
    """
    pricing = PLAN_PRICING.get(plan_key)
    if pricing is None:
        return None
    if billing == "quarterly":
        return pricing.quarterly_price_id
    return pricing.monthly_price_id
