"""
Report assembly for suburb, property and region pages.

Each report page loads its sections one at a time. A section name maps to one
upstream graph endpoint, or for composite property sections to several
endpoints fetched concurrently and returned under fixed keys.

Region reports have no upstream of their own: a representative suburb inside
the SA3 region is found first and its suburb graphs are used, keeping only the
SA3-level figures where the upstream provides them.
"""

import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union

from app.domain.reference_data import (
    KNOWN_REGIONS,
    SAMPLE_ADDRESSES,
    STATE_CODES,
    STATE_NAME_ABBREVIATIONS,
)
from app.services.backend import BackendClient, Fragment

logger = logging.getLogger(__name__)

REGION_TYPE = "SA3"
MAX_REGION_RESULTS = 20
MAX_SAMPLE_SUGGESTIONS = 10


class UnknownSectionError(ValueError):
    """Raised when a report section name is not in the registry."""

    def __init__(self, section: str):
        super().__init__(f"Unknown section: {section}")
        self.section = section


# ============================================
# Section Registries
# ============================================

@dataclass(frozen=True)
class GraphSource:
    """One upstream property graph endpoint."""
    endpoint: str
    blurrable: bool = True
    kind: str = "auto"


def _graph(name: str, blurrable: bool = True, kind: str = "auto") -> GraphSource:
    return GraphSource(endpoint=f"/property/graphs/{name}", blurrable=blurrable, kind=kind)


PropertySection = Union[GraphSource, Mapping[str, GraphSource]]

PROPERTY_SECTIONS: Mapping[str, PropertySection] = MappingProxyType({
    "info": _graph("basic-info", kind="json"),
    "image": _graph("house_img", blurrable=False, kind="json"),
    "history": _graph("history"),
    "sales": _graph("sales"),
    "rent": _graph("rent"),
    "yield": _graph("yield"),
    "risk": _graph("risk"),
    "amenities": _graph("amenities", blurrable=False),
    "demographics": _graph("demographics"),
    "das_table": _graph("das_table"),
    "das_map": _graph("das_map"),
    "summary": _graph("summary", kind="text"),
    "avm": _graph("avm", kind="json"),
    "noise": _graph("noise"),
    "easements": _graph("easement_map"),
    "pocket": _graph("pocket"),
    "neighbors": _graph("neighbors"),
    "nearby": _graph("nearby-properties"),
    "income": _graph("income"),
    "base_map": _graph("base_map", blurrable=False),
    "thresholds": _graph("thresholds"),
    "cma": _graph("cma"),
    "sal_insights": _graph("sal_insights"),
    "public_schools": _graph("public_schools", blurrable=False),
    "private_schools": _graph("private_schools", blurrable=False),
    # Composite sections
    "schools": {
        "private_schools": _graph("private_schools", blurrable=False),
        "public_schools": _graph("public_schools", blurrable=False),
    },
    "zoning": {
        "map": _graph("zoning_map"),
        "chart": _graph("zoning_chart"),
    },
    "development": {
        "map": _graph("das_map"),
        "table": _graph("das_table"),
    },
    "ethnicity": {
        "map": _graph("ethnicity"),
        "chart": _graph("ethnicity_chart"),
    },
})

PROPERTY_OVERVIEW = PROPERTY_SECTIONS["info"]

# Section name -> suburb graph endpoint
SUBURB_SECTIONS: Mapping[str, str] = MappingProxyType({
    # Market
    "msp": "msp",
    "mrp": "mrp",
    "yield": "yield",
    "volume": "volume",
    "vacancy": "vacancy",
    "growth": "growth",
    "growth_forecast": "growth_forecast",
    "growth_quadrants": "growth_quadrants",
    # Demographics
    "demographics": "demographics",
    "income": "income",
    "industry": "industry",
    "occupations": "occupations",
    "ethnicity_ts": "ethnicity_ts",
    "population": "population",
    "population_forecast": "population_forecast",
    # Lifestyle
    "amenity": "amenity",
    "amenities": "amenity",
    "schools_map": "schools_map",
    "schools_table": "schools_table",
    "schools_catchments": "schools_catchments",
    "noise": "noise",
    "base_map": "base_map",
    # Properties
    "pocket": "pocket",
    "streets": "streets",
    "near_sales": "near_sales",
    # Development
    "das_map": "das_map",
    "das_table": "das_table",
    "zoning": "zoning",
    # Risk
    "risk": "risk",
    # Summary and insights
    "summary": "gpt_summary",
    "gpt_summary": "gpt_summary",
    "market_insights": "market_insights",
    "similar_suburbs": "similar_suburbs",
    "insights": "insights",
})

# Suburb sections that also take the property type filter
PROPERTY_TYPE_SECTIONS = frozenset({"pocket"})

REGION_SECTIONS: Mapping[str, str] = MappingProxyType({
    "msp": "msp",
    "mrp": "mrp",
    "yield": "yield",
    "volume": "volume",
    "vacancy": "vacancy",
    "growth": "growth",
    "demographics": "demographics",
    "income": "income",
    "population": "population",
    "market_insights": "market_insights",
    "risk": "risk",
})

# Region sections whose payload carries SA3 figures per dwelling type
SA3_SECTIONS = frozenset({"msp", "mrp", "yield"})


# ============================================
# Helpers
# ============================================

def blur_param(blur: bool) -> str:
    return "true" if blur else "false"


def extract_sa3_data(data: Fragment) -> Fragment:
    """Keep only the SA3 figures of a house/unit payload.

    Payloads without house or unit parts are returned unchanged.
    """
    if not isinstance(data, dict):
        return data

    result = {}
    for dwelling in ("house", "unit"):
        part = data.get(dwelling)
        if isinstance(part, dict):
            result[dwelling] = {"sa3": part.get("sa3") or {}, "html": part.get("html")}
    return result or data


def parse_suburb_from_address(display_name: str) -> str:
    """'123 Main St, Parramatta' -> 'Parramatta'"""
    parts = display_name.split(",")
    return parts[-1].strip() if len(parts) > 1 else ""


def parse_state_from_gnaf_id(gnaf_id: str) -> str:
    """'GANSW123456' -> 'NSW'. GNAF ids carry the state code after 'GA'."""
    if not gnaf_id or len(gnaf_id) < 5:
        return ""
    body = gnaf_id[2:].upper()
    for code in sorted(STATE_CODES, key=len, reverse=True):
        if body.startswith(code):
            return code
    return body[:3]


def abbreviate_state(state_name: Optional[str]) -> str:
    if not state_name:
        return ""
    for full_name, code in STATE_NAME_ABBREVIATIONS:
        if full_name in state_name:
            return code
    return ""


def search_sample_addresses(query: str) -> list[dict]:
    query_lower = query.lower()
    matches = [
        dict(address)
        for address in SAMPLE_ADDRESSES
        if query_lower in address["address"].lower()
        or query_lower in address["suburb"].lower()
        or query in address["postcode"]
    ]
    return matches[:MAX_SAMPLE_SUGGESTIONS]


# ============================================
# Report Service
# ============================================

class ReportService:
    """Builds report payloads from the upstream backend."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    # Suburbs

    async def get_suburb_section(
        self,
        suburb: str,
        section: str,
        blur: bool,
        property_type: str = "house",
    ) -> Fragment:
        endpoint = SUBURB_SECTIONS.get(section)
        if endpoint is None:
            raise UnknownSectionError(section)

        params = {"blur": blur_param(blur)}
        if section in PROPERTY_TYPE_SECTIONS:
            params["property_type"] = property_type or "house"
        return await self.backend.fetch_suburb_graph(endpoint, suburb, params)

    async def get_suburb_overview(self, suburb: str) -> Optional[dict]:
        """Basic suburb information, or None when the suburb is unknown."""
        info = await self.backend.get_suburb_info(suburb)
        if not info or info.get("error"):
            return None
        return {"name": suburb, **(info.get("information") or {})}

    async def search_suburbs(
        self,
        query: str,
        state: str = "",
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        data = await self.backend.search_suburbs(query, state=state, page=page, limit=limit)
        if data is None:
            return {"results": []}

        results = []
        for item in data.get("results") or []:
            information = item.get("information") or {}
            results.append({
                "name": item.get("area_name"),
                "level": item.get("area_level"),
                "state": information.get("state") or "",
                "postcode": information.get("poa") or "",
                "lga": information.get("lga") or "",
                "sa3": information.get("sa3") or "",
            })
        return {"results": results, "page": data.get("page") or 1}

    # Properties

    async def _fetch_property_source(self, gnaf_id: str, source: GraphSource, blur: bool) -> Fragment:
        params = {"gnaf_id": gnaf_id}
        if source.blurrable:
            params["blur"] = blur_param(blur)
        return await self.backend.fetch_property_graph(source.endpoint, params, kind=source.kind)

    async def get_property_section(self, gnaf_id: str, section: str, blur: bool) -> Fragment:
        entry = PROPERTY_SECTIONS.get(section)
        if entry is None:
            raise UnknownSectionError(section)

        if isinstance(entry, GraphSource):
            return await self._fetch_property_source(gnaf_id, entry, blur)

        keys = list(entry.keys())
        parts = await asyncio.gather(*[
            self._fetch_property_source(gnaf_id, entry[key], blur)
            for key in keys
        ])
        return dict(zip(keys, parts))

    async def get_property_overview(self, gnaf_id: str, blur: bool) -> Optional[dict]:
        """Basic property information, or None when the property is unknown."""
        info = await self._fetch_property_source(gnaf_id, PROPERTY_OVERVIEW, blur)
        if not info:
            return None
        if not isinstance(info, dict):
            info = {"data": info}
        return {"gnaf_id": gnaf_id, **info}

    async def search_properties(self, query: str, use_sample_fallback: bool = False) -> dict:
        data = await self.backend.search_addresses(query)
        if data is not None:
            items = data.get("results") or data.get("suggestions") or []
            suggestions = []
            for item in items:
                display_name = item.get("display_name") or item.get("name") or ""
                gnaf_id = item.get("id") or ""
                suggestions.append({
                    "gnaf_id": item.get("id"),
                    "address": display_name,
                    "suburb": parse_suburb_from_address(display_name),
                    "state": parse_state_from_gnaf_id(gnaf_id),
                    "postcode": "",
                    "property_type": item.get("property_type"),
                })
            return {"suggestions": suggestions}

        if use_sample_fallback:
            logger.info("[Property Search] Backend unavailable, using sample addresses")
            return {"suggestions": search_sample_addresses(query)}

        return {"suggestions": [], "error": "Property search service unavailable"}

    # Regions

    async def _search_region_members(self, search: str, region: str, limit: int) -> Optional[str]:
        data = await self.backend.search_suburbs(search, limit=limit)
        if data is None:
            return None
        for suburb in data.get("results") or []:
            information = suburb.get("information") or {}
            if information.get("sa3") == region:
                return suburb.get("name") or suburb.get("area_name")
        return None

    async def find_suburb_in_region(self, region: str) -> Optional[str]:
        """Find one suburb whose SA3 is the region."""
        found = await self._search_region_members(region.split(" - ")[0], region, limit=50)
        if found:
            return found
        # Broader search when the region name is not itself a suburb name
        return await self._search_region_members("a", region, limit=200)

    async def get_region_section(self, region: str, section: str, blur: bool) -> Optional[dict]:
        """Region section payload, or None when no suburb of the region is known."""
        endpoint = REGION_SECTIONS.get(section)
        if endpoint is None:
            raise UnknownSectionError(section)

        suburb = await self.find_suburb_in_region(region)
        if not suburb:
            return None

        data = await self.backend.fetch_suburb_graph(endpoint, suburb, {"blur": blur_param(blur)})
        if section in SA3_SECTIONS:
            data = extract_sa3_data(data)
        return {
            "data": data,
            "section": section,
            "region": region,
            "representativeSuburb": suburb,
        }

    async def get_region_overview(self, region: str) -> Optional[dict]:
        suburb = await self.find_suburb_in_region(region)
        if not suburb:
            return None

        info = await self.backend.get_suburb_info(suburb) or {}
        return {
            "name": region,
            "type": REGION_TYPE,
            "representativeSuburb": suburb,
            "state": (info.get("information") or {}).get("state") or "",
            "suburbCount": 1,
        }

    async def search_regions(self, query: str, state: str = "") -> dict:
        query_lower = query.lower()
        matches = [
            {"name": name, "type": REGION_TYPE, "state": region_state}
            for name, region_state in KNOWN_REGIONS.items()
            if query_lower in name.lower() and (not state or region_state == state)
        ][:MAX_REGION_RESULTS]

        data = await self.backend.search_suburbs(query, limit=50)
        if data is None:
            return {"results": matches}

        seen = {region["name"] for region in matches}
        for suburb in data.get("results") or []:
            information = suburb.get("information") or {}
            sa3 = information.get("sa3")
            if not sa3 or sa3 in seen:
                continue
            seen.add(sa3)
            matches.append({
                "name": sa3,
                "type": REGION_TYPE,
                "state": abbreviate_state(information.get("state")),
            })
        return {"results": matches}
