"""
Tests for the server-side Memberstack admin client.
"""
import httpx
import pytest

from app.core.config import Settings
from app.core.plans import ADVANCED_PLAN_ID
from app.services.memberstack import MemberstackClient, create_memberstack_client, normalize_member

API_URL = "https://admin.memberstack.com/members"

RAW_MEMBER = {
    "id": "mem_abc",
    "auth": {"email": "jane@example.com"},
    "customFields": {"first-name": "Jane", "last-name": "Doe"},
    "planConnections": [
        {"planId": "pln_advanced-ni690fz3", "status": "ACTIVE"},
        {"planId": "pln_essentials-vb1k04zy", "status": "CANCELED"},
    ],
}


def make_client(handler, api_key="sk_test") -> MemberstackClient:
    return MemberstackClient(
        env="staging",
        api_key=api_key,
        api_url=API_URL,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_get_member_by_email():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": [RAW_MEMBER]})

    member = await make_client(handler).get_member("jane@example.com")

    assert member.id == "mem_abc"
    assert member.email == "jane@example.com"
    assert member.first_name == "Jane"
    assert seen[0].headers["X-API-KEY"] == "sk_test"
    assert seen[0].url.params["email"] == "jane@example.com"


@pytest.mark.asyncio
async def test_get_member_by_id():
    def handler(request):
        assert request.url.path == "/members/mem_abc"
        return httpx.Response(200, json={"data": RAW_MEMBER})

    member = await make_client(handler).get_member_by_id("mem_abc")
    assert member.id == "mem_abc"


@pytest.mark.asyncio
async def test_member_id_is_escaped_into_one_path_segment():
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return httpx.Response(404)

    assert await make_client(handler).get_member_by_id("../admin?x=1") is None
    assert seen[0].startswith(b"/members/..%2Fadmin%3Fx%3D1")


@pytest.mark.asyncio
async def test_lookups_absorb_failures():
    """Non-2xx, empty results, network errors and a missing key all read as 'not found'."""
    assert await make_client(lambda r: httpx.Response(500)).get_member("a@b.c") is None
    assert await make_client(lambda r: httpx.Response(200, json={"data": []})).get_member("a@b.c") is None
    assert await make_client(lambda r: httpx.Response(200, text="<html>")).get_member_by_id("x") is None

    def boom(request):
        raise httpx.ConnectError("unreachable", request=request)

    assert await make_client(boom).get_member("a@b.c") is None

    called = []
    no_key = make_client(lambda r: called.append(r) or httpx.Response(200), api_key="")
    assert await no_key.get_member("a@b.c") is None
    assert called == []


def test_active_plan_ids_and_best_plan():
    member = normalize_member(RAW_MEMBER)
    active = MemberstackClient.get_active_plan_ids(member)
    assert active == ["pln_advanced-ni690fz3"]
    assert MemberstackClient.get_best_plan_id(active) == ADVANCED_PLAN_ID
    assert MemberstackClient.get_best_plan_id([]) is None


def test_environment_selects_api_key():
    settings = Settings(memberstack_api_key_staging="sk_stage", memberstack_api_key_production="sk_prod")
    assert create_memberstack_client("staging", settings).api_key == "sk_stage"
    assert create_memberstack_client("production", settings).api_key == "sk_prod"
