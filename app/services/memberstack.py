"""
Memberstack admin API client for server-side member lookups.

Lookups never raise: any failure is logged and reported as None so route
handlers can fall back to client-supplied identity fields.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from app.core.config import Settings, get_settings
from app.core.plan_resolver import get_best_plan_id
from app.domain.schemas import Member, MemberstackEnv, PlanConnection

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "ACTIVE"


def normalize_member(data: dict) -> Member:
    """Convert a raw Memberstack member payload to a Member."""
    custom_fields = data.get("customFields") or {}
    connections = [
        PlanConnection(plan_id=conn.get("planId", ""), status=conn.get("status", ""))
        for conn in data.get("planConnections") or []
    ]
    return Member(
        id=data["id"],
        email=(data.get("auth") or {}).get("email", ""),
        first_name=custom_fields.get("first-name"),
        last_name=custom_fields.get("last-name"),
        plan_connections=connections,
    )


class MemberstackClient:
    """Server-side Memberstack client bound to one vendor environment."""

    def __init__(
        self,
        env: MemberstackEnv,
        api_key: str,
        api_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.env = env
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        if not self.api_key:
            logger.warning(f"Memberstack API key not configured for {env} environment")

    async def _get(self, url: str, params: Optional[dict] = None) -> Optional[dict]:
        if not self.api_key:
            logger.error("Memberstack API key not configured")
            return None

        headers = {
            "X-API-KEY": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Error fetching member from Memberstack: {e}")
            return None

        if not response.is_success:
            logger.error(f"Failed to fetch member from Memberstack: {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from Memberstack: {e}")
            return None

    async def get_member(self, email: str) -> Optional[Member]:
        """Find a member by email."""
        logger.info(f"[Memberstack API] Fetching member by email: {email}")
        data = await self._get(self.api_url, params={"email": email})
        if not data:
            return None

        members = data.get("data") or []
        if not isinstance(members, list) or not members:
            logger.info(f"[Memberstack API] No member found for email: {email}")
            return None

        try:
            return normalize_member(members[0])
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected Memberstack member payload: {e}")
            return None

    async def get_member_by_id(self, member_id: str) -> Optional[Member]:
        """Fetch a member by Memberstack id."""
        logger.info(f"[Memberstack API] Fetching member by ID: {member_id}")
        data = await self._get(f"{self.api_url}/{quote(member_id, safe='')}")
        if not data or not data.get("data"):
            return None

        try:
            return normalize_member(data["data"])
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected Memberstack member payload: {e}")
            return None

    @staticmethod
    def get_active_plan_ids(member: Member) -> list[str]:
        return [
            conn.plan_id
            for conn in member.plan_connections
            if conn.status == ACTIVE_STATUS
        ]

    @staticmethod
    def get_best_plan_id(active_plan_ids: list[str]) -> Optional[str]:
        return get_best_plan_id(active_plan_ids)


_clients: dict[str, MemberstackClient] = {}


def create_memberstack_client(env: MemberstackEnv, settings: Settings) -> MemberstackClient:
    """Factory function to create a MemberstackClient from settings."""
    api_key = (
        settings.memberstack_api_key_production
        if env == "production"
        else settings.memberstack_api_key_staging
    )
    return MemberstackClient(
        env=env,
        api_key=api_key,
        api_url=settings.memberstack_api_url,
        timeout=settings.http_timeout,
    )


def get_memberstack_client(env: MemberstackEnv = "staging") -> MemberstackClient:
    """Get the cached client for a vendor environment."""
    if env not in _clients:
        _clients[env] = create_memberstack_client(env, get_settings())
    return _clients[env]
