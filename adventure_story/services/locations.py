# SPDX-License-Identifier: MIT
"""Location aggregation from the wiki page and wiki search."""

import json
import logging
from typing import Any, Dict, List, Optional

from ..core.cache import cache_key
from ..core.errors import AggregationError
from ..core.fanout import gather_settled
from ..models.types import LocationData
from ..sources import WikiFetcher
from ..sources.wikitext import location_type
from .base import AggregationService
from .merge import fill, fill_all, now_iso

logger = logging.getLogger(__name__)


def default_location(name: str, source_name: str, time_period: Optional[str] = None) -> LocationData:
    status: Dict[str, Any] = {"condition": "unknown"}
    if time_period:
        status["timePeriod"] = time_period
    return {
        "name": name,
        "aliases": [],
        "source": source_name,
        "type": "other",
        "description": "",
        "geography": {},
        "population": {},
        "features": {"landmarks": [], "importantBuildings": [], "naturalFeatures": []},
        "history": {"keyEvents": [], "significance": ""},
        "connections": {"childLocations": [], "neighboringAreas": [], "accessMethods": []},
        "currentStatus": status,
        "notableResidents": [],
        "images": [],
        "lastUpdated": now_iso(),
    }


def merge_location(name: str, source_name: str, page: Optional[Dict[str, Any]],
                   hits: Optional[List[Dict[str, Any]]], time_period: Optional[str] = None) -> LocationData:
    """Page fields win; the top search snippet only fills an empty description."""
    data = default_location(name, source_name, time_period)

    if page:
        kind = page.get("type")
        data["type"] = kind if kind and kind != "other" else location_type(name)
        fill(data, "description", page.get("description"))
        for section in ("geography", "population", "features", "history", "connections"):
            data[section] = fill_all(dict(page.get(section) or {}), data[section])
        data["currentStatus"].update(page.get("currentStatus") or {})
        data["aliases"] = list(page.get("aliases") or [])
        data["notableResidents"] = list(page.get("notableResidents") or [])
        data["images"] = list(page.get("images") or [])

    if hits:
        fill(data, "description", hits[0].get("description"))

    if time_period:
        data["currentStatus"]["timePeriod"] = time_period
        apply_time_period(data, time_period)
    return data


def apply_time_period(data: LocationData, time_period: str) -> LocationData:
    period = time_period.lower()
    status = data["currentStatus"]
    if "war" in period or "battle" in period:
        if status.get("condition") == "thriving":
            status["condition"] = "declining"
        status["accessibility"] = "Restricted due to conflict"
    if "post" in period or "after" in period:
        if status.get("condition") == "destroyed":
            status["condition"] = "declining"
    return data


class LocationService(AggregationService):
    def __init__(self, wiki: WikiFetcher, cache=None):
        super().__init__(cache)
        self.wiki = wiki

    async def get_location_data(self, location_name: str, source_name: str,
                                time_period: Optional[str] = None) -> LocationData:
        key = cache_key("location", source_name, location_name, time_period)

        async def compute() -> LocationData:
            got = await gather_settled(f"location:{location_name}", {
                "page": self.wiki.get_location_info(source_name, location_name),
                "search": self.wiki.search_content(source_name, location_name),
            })
            return merge_location(location_name, source_name, got["page"], got["search"], time_period)

        return await self._aggregate(key, compute,
                                     f'location information for "{location_name}" from "{source_name}"')

    async def search_locations(self, source_name: str, query: str,
                               filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        filters = filters or {}
        key = cache_key("location_search", source_name, query, json.dumps(filters, sort_keys=True))

        async def compute() -> List[Dict[str, Any]]:
            results = await self.wiki.search_locations(source_name, query)
            for r in results:
                r["basicInfo"] = {"type": location_type(r["name"]), **(r.get("basicInfo") or {})}
            return [r for r in results if _matches_location_filters(r["basicInfo"], filters)]

        return await self._aggregate(key, compute, f'locations in "{source_name}"')

    async def get_locations_by_type(self, source_name: str, kind: str) -> List[Dict[str, Any]]:
        key = cache_key("locations_by_type", source_name, kind)

        async def compute() -> List[Dict[str, Any]]:
            members = await self.wiki.get_all_locations(source_name)
            out, seen = [], set()
            for m in members:
                title = m.get("title") or ""
                if title and title not in seen and location_type(title) == kind:
                    seen.add(title)
                    out.append({"name": title, "type": kind, "pageid": m.get("pageid")})
            return out

        return await self._aggregate(key, compute, f'{kind} locations from "{source_name}"')

    async def get_location_connections(self, location_name: str, source_name: str) -> Dict[str, Any]:
        data = await self.get_location_data(location_name, source_name)
        conns = data["connections"]
        out: Dict[str, Any] = {"parent": None, "children": [], "neighbors": []}

        if conns.get("parentLocation"):
            out["parent"] = await self._try_location(conns["parentLocation"], source_name)
        for bucket, names in (("children", conns.get("childLocations")), ("neighbors", conns.get("neighboringAreas"))):
            for name in names or []:
                loc = await self._try_location(name, source_name)
                if loc is not None:
                    out[bucket].append(loc)
        return out

    async def _try_location(self, name: str, source_name: str) -> Optional[LocationData]:
        try:
            return await self.get_location_data(name, source_name)
        except AggregationError as e:
            logger.warning("Could not fetch connected location %s: %s", name, e)
            return None

    async def validate_location_exists(self, location_name: str, source_name: str) -> Dict[str, Any]:
        results = await self.search_locations(source_name, location_name)
        wanted = location_name.lower()
        if any(r["name"].lower() == wanted for r in results):
            return {"exists": True, "confidence": 1.0}

        partial = [r["name"] for r in results if r.get("score", 0) > 0.5][:3]
        if partial:
            return {"exists": False, "confidence": 0.7, "suggestions": partial}
        return {"exists": False, "confidence": 0}


def _matches_location_filters(info: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    if filters.get("type") and info.get("type") != filters["type"]:
        return False
    status = info.get("currentStatus")
    if filters.get("status") and status is not None and status.get("condition") != filters["status"]:
        return False
    if "hasResidents" in filters and "notableResidents" in info:
        if bool(info["notableResidents"]) != bool(filters["hasResidents"]):
            return False
    return True
