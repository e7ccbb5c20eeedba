"""
HTTP client for the upstream analytics backend (Flask).

Two auth styles are in use upstream:
- /api/* endpoints take a Bearer API key and return JSON
- report graph endpoints take the key as a `token` query param and return
  either JSON or a pre-rendered HTML fragment

Every fetch degrades to None on a non-2xx, empty body, or network error; the
caller treats None as "section unavailable".
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from app.core.config import Settings

logger = logging.getLogger(__name__)

Fragment = Optional[Any]


def parse_fragment(text: str) -> Fragment:
    """Sniff an upstream body: JSON objects pass through, anything else is HTML."""
    if not text or not text.strip():
        return None
    try:
        parsed = json.loads(text)
    except ValueError:
        return {"html": text}
    if isinstance(parsed, (dict, list)):
        return parsed
    return {"html": text}


class BackendClient:
    """Async client for the upstream analytics backend."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            transport=self._transport,
            timeout=self.timeout,
        )

    async def _get_text(self, path: str, params: dict, headers: Optional[dict] = None) -> Optional[str]:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"[Backend] Error fetching {path}: {e}")
            return None

        if not response.is_success:
            logger.warning(f"[Backend] {path} returned {response.status_code}")
            return None
        return response.text

    async def fetch_api(self, endpoint: str, params: Optional[dict] = None) -> Fragment:
        """Fetch a JSON /api endpoint with Bearer auth."""
        text = await self._get_text(
            endpoint,
            params=params or {},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError:
            logger.warning(f"[Backend] {endpoint} returned non-JSON body")
            return None

    async def fetch_suburb_graph(self, endpoint: str, suburb: str, params: Optional[dict] = None) -> Fragment:
        """Fetch a suburb report graph section."""
        query = {"token": self.api_key, **(params or {})}
        path = f"/suburb_report/graphs/{endpoint}/{quote(suburb, safe='')}"
        text = await self._get_text(path, params=query)
        return parse_fragment(text) if text is not None else None

    async def fetch_property_graph(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        kind: str = "auto",
    ) -> Fragment:
        """Fetch a property report graph section.

        Args:
            endpoint: Path such as /property/graphs/avm
            params: Query params (gnaf_id, blur)
            kind: 'json', 'text' (plain summary text) or 'auto' (JSON or HTML)
        """
        query = {"token": self.api_key, **(params or {})}
        text = await self._get_text(endpoint, params=query, headers={"Accept": "*/*"})
        if text is None or not text.strip():
            return None
        if kind == "text":
            return {"summary_short": text, "text": text}
        if kind == "json":
            try:
                return json.loads(text)
            except ValueError:
                return {"html": text}
        return parse_fragment(text)

    async def get_user_orders(self, email: str, report_category: Optional[str] = None) -> Optional[list]:
        """Fetch a user's report orders. Returns None when the backend is unavailable."""
        params = {"email": email, "token": self.api_key}
        if report_category and report_category != "All":
            params["report_category"] = report_category

        data = await self.fetch_api("/user-orders", params)
        if data is None:
            return None
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return data.get("orders") or []
        return []

    async def search_suburbs(self, query: str, **params) -> Optional[dict]:
        search = {"suburb": query, "token": self.api_key}
        search.update({key: str(value) for key, value in params.items() if value})
        data = await self.fetch_api("/api/suburb/suburbs", search)
        return data if isinstance(data, dict) else None

    async def get_suburb_info(self, suburb: str) -> Optional[dict]:
        data = await self.fetch_api("/api/suburb/info", {"suburb": suburb})
        return data if isinstance(data, dict) else None

    async def search_addresses(self, query: str) -> Optional[dict]:
        data = await self.fetch_api("/api/property/address", {"address": query})
        return data if isinstance(data, dict) else None


def create_backend_client(settings: Settings) -> BackendClient:
    """Factory function to create a BackendClient from settings."""
    if not settings.flask_api_key:
        logger.warning("FLASK_API_KEY is not set!")
    return BackendClient(
        base_url=settings.flask_backend_url,
        api_key=settings.flask_api_key,
        timeout=settings.http_timeout,
    )
