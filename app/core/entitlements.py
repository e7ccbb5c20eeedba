"""
Entitlement checking for subscription-gated features.

Combines the session's best plan with this month's report orders (owned by
the upstream backend) to answer "what can this user do right now".

Usage:
    @router.get("/export")
    async def export_orders(
        session: UserSession = Depends(require_feature("csv_export")),
    ):
        # Only executes if the session's plan includes CSV export
        pass
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, status

from app.core.config import get_settings
from app.core.plan_resolver import get_plan_details
from app.core.plans import UNLIMITED, Plan, get_plan_description
from app.domain.schemas import (
    FeatureFlags,
    PlanSummary,
    SubscriptionData,
    UsageSummary,
    UserSession,
)
from app.services.backend import BackendClient

logger = logging.getLogger(__name__)

# Tier thresholds for feature flags
ADVANCED_FEATURES_MIN_TIER = 2
PRIORITY_SUPPORT_MIN_TIER = 3
# Lowest tier that sees report sections without blur
UNBLURRED_MIN_TIER = 1

PROPERTY_CATEGORY = "Property"
SUBURB_CATEGORY = "Suburb"


class FeatureNotAvailableError(HTTPException):
    """Raised when a feature is not available in the user's plan."""

    def __init__(self, feature: str, plan_name: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "FEATURE_NOT_AVAILABLE",
                "feature": feature,
                "plan": plan_name,
                "message": f"The '{feature}' feature is not included in the {plan_name} plan.",
                "upgrade_required": True,
            }
        )


def get_feature_flags(plan: Plan) -> FeatureFlags:
    """Feature flags derive only from the plan tier."""
    has_advanced = plan.tier >= ADVANCED_FEATURES_MIN_TIER
    finder = "unlimited" if has_advanced else "limited"
    return FeatureFlags(
        suburb_finder=finder,
        property_finder=finder,
        csv_export=has_advanced,
        priority_support=plan.tier >= PRIORITY_SUPPORT_MIN_TIER,
    )


def has_feature(plan: Plan, feature: str) -> bool:
    """Check if a plan has a boolean feature (e.g. 'csv_export')."""
    flags = get_feature_flags(plan).model_dump()
    value = flags.get(feature)
    if isinstance(value, str):
        return value == "unlimited"
    return bool(value)


def remaining_quota(limit: int, used: int) -> int:
    """Reports left this month. Unlimited plans always report UNLIMITED."""
    if limit == UNLIMITED:
        return UNLIMITED
    return max(0, limit - used)


def _order_month(date_str: str) -> Optional[tuple[int, int]]:
    """Parse (month, year) from a DD-MM-YYYY order date, None if malformed."""
    try:
        _, month, year = (int(part) for part in date_str.split("-"))
    except (AttributeError, ValueError):
        return None
    return month, year


def count_reports_this_month(orders: Iterable[dict], now: datetime) -> dict[str, int]:
    """Count this calendar month's orders per report category.

    Orders with unparseable dates are skipped.
    """
    counts = {PROPERTY_CATEGORY: 0, SUBURB_CATEGORY: 0}
    for order in orders:
        if not isinstance(order, dict):
            continue
        parsed = _order_month(order.get("date", ""))
        if parsed != (now.month, now.year):
            continue
        category = order.get("report_category")
        if category in counts:
            counts[category] += 1
    return counts


def report_month_now(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Current time in the zone order dates are written in."""
    zone = ZoneInfo(tz_name or get_settings().report_timezone)
    return (now or datetime.now(timezone.utc)).astimezone(zone)


async def get_monthly_usage(
    backend: BackendClient,
    email: str,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """This month's report usage; zero when the backend can't be reached."""
    now = report_month_now(now)
    try:
        orders = await backend.get_user_orders(email)
    except Exception as e:
        logger.warning(f"[Subscription] Failed to fetch usage: {e}")
        orders = None

    if orders is None:
        return {PROPERTY_CATEGORY: 0, SUBURB_CATEGORY: 0}
    return count_reports_this_month(orders, now)


def build_subscription(plan: Plan, usage: dict[str, int]) -> SubscriptionData:
    property_used = usage.get(PROPERTY_CATEGORY, 0)
    suburb_used = usage.get(SUBURB_CATEGORY, 0)

    return SubscriptionData(
        plan=PlanSummary(
            id=plan.id,
            name=plan.name,
            tier=plan.tier,
            description=get_plan_description(plan.name),
        ),
        usage=UsageSummary(
            property_reports_used=property_used,
            property_reports_limit=plan.property_reports,
            property_reports_left=remaining_quota(plan.property_reports, property_used),
            suburb_reports_used=suburb_used,
            suburb_reports_limit=plan.suburb_reports,
            suburb_reports_left=remaining_quota(plan.suburb_reports, suburb_used),
        ),
        features=get_feature_flags(plan),
    )


async def get_subscription(
    session: UserSession,
    backend: BackendClient,
    now: Optional[datetime] = None,
) -> SubscriptionData:
    """Compute the entitlement snapshot for a session. Never cached."""
    plan = get_plan_details(session.best_plan_id)
    logger.info(
        f"[Subscription] User {session.user_email} bestPlanId={session.best_plan_id} "
        f"-> {plan.name} (tier {plan.tier})"
    )
    usage = await get_monthly_usage(backend, session.user_email, now)
    return build_subscription(plan, usage)


def resolve_blur(session: Optional[UserSession], requested: bool = False) -> bool:
    """Decide whether upstream report sections are sent blurred.

    A client may ask for blur, but only a paid plan can remove it.
    """
    if requested or session is None:
        return True
    return get_plan_details(session.best_plan_id).tier < UNBLURRED_MIN_TIER


def require_feature(feature: str):
    """Factory to create a dependency that requires a specific feature.

    Args:
        feature: Feature flag name (e.g., 'csv_export', 'priority_support')

    Returns:
        A FastAPI dependency returning the current UserSession
    """
    from app.api.deps import require_session

    async def dependency(session: UserSession = Depends(require_session)) -> UserSession:
        plan = get_plan_details(session.best_plan_id)
        if not has_feature(plan, feature):
            raise FeatureNotAvailableError(feature, plan.name)
        return session

    return dependency
