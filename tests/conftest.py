"""
Pytest configuration and shared fixtures.

Upstream HTTP (analytics backend) is served by httpx.MockTransport, the
Memberstack admin client is a mock, and sessions live in an in-memory store.
"""
import os

# Settings are read at import time
os.environ["ENVIRONMENT"] = "development"
os.environ["FLASK_BACKEND_URL"] = "http://backend.test"
os.environ["FLASK_API_KEY"] = "test-key"
os.environ["KV_URL"] = ""
os.environ.pop("DOPPLER_TOKEN", None)
os.environ.pop("USE_SAMPLE_FALLBACK", None)

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_backend_client, get_memberstack_factory, get_session_store
from app.domain.schemas import Member, PlanConnection
from app.main import app
from app.services.backend import BackendClient
from app.services.memberstack import MemberstackClient
from app.services.session_store import InMemorySessionStore

BACKEND_URL = "http://backend.test"


class FakeUpstream:
    """Canned upstream responses keyed by request path."""

    def __init__(self):
        self.responses = {}
        self.requests = []

    def add(self, path, body=None, status_code=200, text=None):
        """Register a response. `body` may be a callable taking the request."""
        self.responses[path] = (status_code, body, text)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path not in self.responses:
            return httpx.Response(404, text="not found")

        status_code, body, text = self.responses[request.url.path]
        if text is not None:
            return httpx.Response(status_code, text=text)
        if callable(body):
            body = body(request)
        return httpx.Response(status_code, json=body)

    def requested(self, path):
        return [request for request in self.requests if request.url.path == path]


def build_member(
    member_id="mem_123",
    email="jane@example.com",
    plans=(),
    first_name="Jane",
    last_name="Doe",
    status="ACTIVE",
) -> Member:
    return Member(
        id=member_id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        plan_connections=[PlanConnection(plan_id=plan, status=status) for plan in plans],
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def backend(upstream):
    return BackendClient(
        base_url=BACKEND_URL,
        api_key="test-key",
        transport=httpx.MockTransport(upstream.handler),
    )


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def memberstack_client():
    client = MagicMock(spec=MemberstackClient)
    client.get_member = AsyncMock(return_value=None)
    client.get_member_by_id = AsyncMock(return_value=None)
    client.get_active_plan_ids.side_effect = MemberstackClient.get_active_plan_ids
    client.get_best_plan_id.side_effect = MemberstackClient.get_best_plan_id
    return client


@pytest.fixture
def memberstack_factory(memberstack_client):
    return MagicMock(return_value=memberstack_client)


@pytest.fixture
def client(store, backend, memberstack_factory):
    """TestClient with the session store, backend and Memberstack replaced."""
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_backend_client] = lambda: backend
    app.dependency_overrides[get_memberstack_factory] = lambda: memberstack_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client, memberstack_client):
    """Log in through the API as a member holding the given active plans."""
    def _login(plans=(), email="jane@example.com"):
        memberstack_client.get_member.return_value = build_member(email=email, plans=plans)
        response = client.post("/api/auth/login", json={"email": email, "memberstackToken": "tok"})
        assert response.status_code == 200
        return response.json()["user"]
    return _login


@pytest.fixture
def make_member():
    return build_member
