"""
End-to-end tests for the subscription status route.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.domain.schemas import UserSession

this_month = datetime.now(ZoneInfo("Australia/Sydney")).strftime("15-%m-%Y")


def test_anonymous_is_rejected(client):
    response = client.get("/api/user/subscription")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Not authenticated"


def test_advanced_member_with_two_reports_this_month(client, upstream, login):
    upstream.add("/user-orders", body=[
        {"report_category": "Property", "date": this_month},
        {"report_category": "Suburb", "date": this_month},
        {"report_category": "Suburb", "date": "15-01-2001"},
    ])
    login(plans=["pln_advanced-ni690fz3"])

    response = client.get("/api/user/subscription")

    assert response.status_code == 200
    subscription = response.json()["subscription"]
    assert subscription["plan"]["name"] == "Advanced"
    assert subscription["plan"]["tier"] == 2
    assert subscription["usage"] == {
        "propertyReportsUsed": 1,
        "propertyReportsLimit": 30,
        "propertyReportsLeft": 29,
        "suburbReportsUsed": 1,
        "suburbReportsLimit": 20,
        "suburbReportsLeft": 19,
    }
    assert subscription["features"] == {
        "suburbFinder": "unlimited",
        "propertyFinder": "unlimited",
        "csvExport": True,
        "prioritySupport": False,
    }

    request = upstream.requested("/user-orders")[0]
    assert request.url.params["email"] == "jane@example.com"
    assert request.url.params["token"] == "test-key"


def test_backend_outage_reports_zero_usage(client, login):
    login(plans=["pln_essentials-vb1k04zy"])

    subscription = client.get("/api/user/subscription").json()["subscription"]

    assert subscription["plan"]["name"] == "Essentials"
    assert subscription["usage"]["propertyReportsUsed"] == 0
    assert subscription["usage"]["propertyReportsLeft"] == 5
    assert subscription["features"]["csvExport"] is False


def test_unmapped_plan_is_shown_but_gets_free_quotas(client, login):
    user = login(plans=["pln_gold-2019"])
    assert user["bestPlanId"] == "pln_gold-2019"

    subscription = client.get("/api/user/subscription").json()["subscription"]
    assert subscription["plan"]["name"] == "Free"
    assert subscription["usage"]["suburbReportsLimit"] == 0


def test_expired_cookie_is_cleared_on_401(client, store):
    now = datetime.now(timezone.utc)
    stale = UserSession(
        id="old",
        user_email="jane@example.com",
        created_at=now - timedelta(hours=30),
        last_accessed=now - timedelta(hours=7),
        expires_at=now - timedelta(hours=6),
    )
    asyncio.run(store.set("old", stale, 60))
    client.cookies.set("mib_session", "old")

    response = client.get("/api/user/subscription")

    assert response.status_code == 401
    assert response.json()["code"] == "NOT_AUTHENTICATED"
    cleared = response.headers["set-cookie"]
    assert cleared.startswith("mib_session=")
    assert "Max-Age=0" in cleared
    assert asyncio.run(store.get("old")) is None


def test_dangling_cookie_is_cleared_on_orders_401(client):
    client.cookies.set("mib_session", "missing")

    response = client.get("/api/orders")

    assert response.status_code == 401
    assert "Max-Age=0" in response.headers["set-cookie"]
