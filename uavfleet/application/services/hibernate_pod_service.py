from __future__ import annotations

from typing import Any, Mapping, Optional

from uavfleet.application.services._payloads import (
    ClientProto,
    default_client,
    parse_list,
    parse_model,
)
from uavfleet.domain.entities import UAV, HibernatePodStatus


class HibernatePodService:
    """Hibernate pod occupancy under ``/api/hibernate-pod``.

    The backend answers ``{"success": false, "message": ...}`` when the pod
    is full or the UAV is already inside; the client turns that into
    ``APIError`` before it reaches this service.
    """

    base_path = "/api/hibernate-pod"

    def __init__(self, client: Optional[ClientProto] = None) -> None:
        self._client = default_client(client)

    def status(self) -> HibernatePodStatus:
        return parse_model(HibernatePodStatus, self._client.get(f"{self.base_path}/status"))

    def list_uavs(self) -> list[UAV]:
        return parse_list(UAV, self._client.get(f"{self.base_path}/uavs"), key="uavs")

    def add_uav(self, uav_id: int) -> HibernatePodStatus:
        payload = self._client.post(f"{self.base_path}/add", params={"uavId": uav_id})
        return self._status_from(payload)

    def remove_uav(self, uav_id: int) -> HibernatePodStatus:
        payload = self._client.post(f"{self.base_path}/remove", params={"uavId": uav_id})
        return self._status_from(payload)

    def _status_from(self, payload: Any) -> HibernatePodStatus:
        # add/remove answer with the new counts but not always the id list
        if isinstance(payload, Mapping) and "currentCapacity" in payload:
            return parse_model(HibernatePodStatus, payload)
        return self.status()
