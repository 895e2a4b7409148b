from __future__ import annotations

from typing import Optional

from uavfleet.application.services._payloads import (
    ClientProto,
    default_client,
    parse_list,
    parse_model,
)
from uavfleet.domain.entities import Region
from uavfleet.infrastructure.ttl_cache import TTLCache


class RegionService:
    """Region lookup under ``/api/regions``.

    The region list is cached for ``ttl_seconds`` (default 10 minutes) and
    dropped whenever a region is created or deleted.
    """

    base_path = "/api/regions"

    def __init__(self, client: Optional[ClientProto] = None, ttl_seconds: float = 10 * 60) -> None:
        self._client = default_client(client)
        self._cache = TTLCache[str, list[Region]](ttl_seconds)

    def list_regions(self) -> list[Region]:
        cached = self._cache.get("all")
        if cached is not None:
            return cached
        result = parse_list(Region, self._client.get(self.base_path), key="regions")
        self._cache.set("all", result)
        return result

    def get_region(self, region_id: int) -> Region:
        return parse_model(Region, self._client.get(f"{self.base_path}/{region_id}"), key="region")

    def create_region(self, name: str) -> Region:
        payload = self._client.post(self.base_path, {"regionName": name})
        self._cache.clear()
        return parse_model(Region, payload, key="region")

    def delete_region(self, region_id: int) -> None:
        self._client.delete(f"{self.base_path}/{region_id}")
        self._cache.clear()
