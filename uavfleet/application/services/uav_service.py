from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import ValidationError as SchemaError

from uavfleet.application.services._payloads import (
    ClientProto,
    default_client,
    parse_list,
    parse_model,
    safe_bool,
    schema_error_text,
    to_api_payload,
)
from uavfleet.domain.entities import (
    UAV,
    CreateUAVRequest,
    FleetStatistics,
    LocationUpdate,
    Region,
)
from uavfleet.domain.value_objects.enums import UAVStatus
from uavfleet.infrastructure.errors import ValidationError


class UAVService:
    """CRUD, status and region membership for UAVs under ``/api/uav``."""

    base_path = "/api/uav"

    def __init__(self, client: Optional[ClientProto] = None) -> None:
        self._client = default_client(client)

    def list_uavs(self) -> list[UAV]:
        return parse_list(UAV, self._client.get(f"{self.base_path}/all"), key="uavs")

    def get_uav(self, uav_id: int) -> UAV:
        return parse_model(UAV, self._client.get(f"{self.base_path}/{uav_id}"), key="uav")

    def create_uav(self, data: CreateUAVRequest | Mapping[str, Any]) -> UAV:
        if isinstance(data, CreateUAVRequest):
            request = data
        else:
            try:
                request = CreateUAVRequest.model_validate(data)
            except SchemaError as exc:
                raise ValidationError(
                    f"Invalid UAV data: {schema_error_text(exc)}",
                    details={"errors": exc.errors(include_url=False)},
                ) from exc
        payload = self._client.post(self.base_path, request.to_payload())
        return parse_model(UAV, payload, key="uav")

    def update_uav(self, uav_id: int, changes: Mapping[str, Any]) -> UAV:
        payload = self._client.put(f"{self.base_path}/{uav_id}", to_api_payload(changes))
        return parse_model(UAV, payload, key="uav")

    def delete_uav(self, uav_id: int) -> None:
        self._client.delete(f"{self.base_path}/{uav_id}")

    def update_status(self, uav_id: int, status: UAVStatus | str) -> UAV:
        value = status.value if isinstance(status, UAVStatus) else str(status).upper()
        payload = self._client.put(f"{self.base_path}/{uav_id}/status", {"status": value})
        return parse_model(UAV, payload, key="uav")

    def toggle_status(self, uav_id: int) -> UAV:
        """Flip AUTHORIZED/UNAUTHORIZED server-side (``PUT /{id}/status`` without a body)."""
        payload = self._client.put(f"{self.base_path}/{uav_id}/status")
        return parse_model(UAV, payload, key="uav")

    def list_by_status(self, status: UAVStatus | str) -> list[UAV]:
        value = status.value if isinstance(status, UAVStatus) else str(status).upper()
        return parse_list(UAV, self._client.get(f"{self.base_path}/status/{value}"), key="uavs")

    def get_statistics(self) -> FleetStatistics:
        return parse_model(FleetStatistics, self._client.get(f"{self.base_path}/statistics"))

    def validate_rfid(self, rfid_tag: str) -> bool:
        """Return True when ``rfid_tag`` is not yet used by another UAV."""
        payload = self._client.get(f"{self.base_path}/validate-rfid/{rfid_tag}")
        if isinstance(payload, Mapping):
            return safe_bool(payload.get("isUnique", payload.get("unique", False)))
        return safe_bool(payload)

    def add_region(self, uav_id: int, region_id: int) -> UAV:
        payload = self._client.post(f"{self.base_path}/{uav_id}/regions/{region_id}")
        return parse_model(UAV, payload, key="uav")

    def remove_region(self, uav_id: int, region_id: int) -> UAV:
        payload = self._client.delete(f"{self.base_path}/{uav_id}/regions/{region_id}")
        return parse_model(UAV, payload, key="uav")

    def available_regions(self, uav_id: int) -> list[Region]:
        payload = self._client.get(f"{self.base_path}/{uav_id}/available-regions")
        return parse_list(Region, payload, key="regions")

    def update_location(
        self,
        uav_id: int,
        latitude: float,
        longitude: float,
        altitude: float | None = None,
    ) -> UAV:
        body: dict[str, Any] = {"latitude": latitude, "longitude": longitude}
        if altitude is not None:
            body["altitude"] = altitude
        payload = self._client.post(f"{self.base_path}/{uav_id}/location", body)
        return parse_model(UAV, payload, key="uav")

    def location_history(self, uav_id: int) -> list[LocationUpdate]:
        payload = self._client.get(f"{self.base_path}/{uav_id}/history")
        items = payload.get("history") if isinstance(payload, Mapping) else payload
        if isinstance(items, list):
            items = [
                {"uavId": uav_id, **item} if isinstance(item, Mapping) else item for item in items
            ]
        return parse_list(LocationUpdate, items)
