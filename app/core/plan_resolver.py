"""
Best-plan resolution for vendor plan identifiers.

Memberstack plan ids are not guaranteed to match the catalog exactly, so plans
are matched by name fragment. Rules are ordered from the highest tier down and
the first rule that matches any active plan wins.
"""
import logging
from typing import Iterable

from app.core.plans import (
    ADVANCED_PLAN_ID,
    ESSENTIALS_PLAN_ID,
    FREE_PLAN_ID,
    PLANS,
    PORTFOLIO_BUILDER_PLAN_ID,
    Plan,
)

logger = logging.getLogger(__name__)

# (pattern, canonical id) - order matters, highest tier first
PLAN_HIERARCHY: tuple[tuple[str, str], ...] = (
    ("portfolio", PORTFOLIO_BUILDER_PLAN_ID),
    ("office-team", PORTFOLIO_BUILDER_PLAN_ID),
    ("team", PORTFOLIO_BUILDER_PLAN_ID),
    ("premium", PORTFOLIO_BUILDER_PLAN_ID),
    ("unlimited", PORTFOLIO_BUILDER_PLAN_ID),
    ("advanced", ADVANCED_PLAN_ID),
    ("pro", ADVANCED_PLAN_ID),
    ("essentials", ESSENTIALS_PLAN_ID),
    ("starter", ESSENTIALS_PLAN_ID),
    ("basic", FREE_PLAN_ID),
    ("free", FREE_PLAN_ID),
)


def _match_hierarchy(plan_ids: list[str]) -> str | None:
    lowered = [plan_id.lower() for plan_id in plan_ids]
    for pattern, mapped_id in PLAN_HIERARCHY:
        for original, candidate in zip(plan_ids, lowered):
            if pattern in candidate:
                logger.info(f"[Plans] Matched plan {original} -> {mapped_id}")
                return mapped_id
    return None


def get_best_plan_id(active_plan_ids: Iterable[str]) -> str | None:
    """Pick the single most valuable canonical plan id.

    Args:
        active_plan_ids: Vendor plan ids of the member's active plan connections

    Returns:
        The canonical id of the highest matching tier, the first plan id
        unchanged when nothing matches, or None when there are no plans
    """
    plan_ids = list(active_plan_ids)
    if not plan_ids:
        return None

    mapped = _match_hierarchy(plan_ids)
    if mapped:
        return mapped

    logger.info(f"[Plans] No pattern match, using first plan: {plan_ids[0]}")
    return plan_ids[0]


def get_plan_details(plan_id: str | None) -> Plan:
    """Get the catalog entry used for quotas and display.

    None, and ids that neither exist in the catalog nor match a rule,
    resolve to the free plan.
    """
    if not plan_id:
        return PLANS[FREE_PLAN_ID]

    plan = PLANS.get(plan_id)
    if plan:
        return plan

    mapped = _match_hierarchy([plan_id])
    if mapped:
        return PLANS[mapped]

    return PLANS[FREE_PLAN_ID]
