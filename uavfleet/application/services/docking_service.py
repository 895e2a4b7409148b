from __future__ import annotations

from typing import Optional

from uavfleet.application.services._payloads import (
    ClientProto,
    default_client,
    parse_list,
    parse_model,
)
from uavfleet.domain.entities import DockingRecord, DockingStation, DockingStatistics
from uavfleet.domain.value_objects.enums import DockingPurpose


class DockingStationService:
    """Docking stations and dock/undock operations under ``/api/docking-stations``."""

    base_path = "/api/docking-stations"

    def __init__(self, client: Optional[ClientProto] = None) -> None:
        self._client = default_client(client)

    def list_stations(self) -> list[DockingStation]:
        return parse_list(DockingStation, self._client.get(self.base_path), key="stations")

    def get_station(self, station_id: int) -> DockingStation:
        payload = self._client.get(f"{self.base_path}/{station_id}")
        return parse_model(DockingStation, payload, key="station")

    def available_stations(self) -> list[DockingStation]:
        payload = self._client.get(f"{self.base_path}/available")
        return parse_list(DockingStation, payload, key="stations")

    def nearest_stations(
        self, latitude: float, longitude: float, limit: int = 5
    ) -> list[DockingStation]:
        payload = self._client.get(
            f"{self.base_path}/nearest",
            params={"latitude": latitude, "longitude": longitude, "limit": limit},
        )
        return parse_list(DockingStation, payload, key="stations")

    def dock(
        self,
        station_id: int,
        uav_id: int,
        purpose: DockingPurpose | str = DockingPurpose.STORAGE,
    ) -> DockingRecord:
        value = purpose.value if isinstance(purpose, DockingPurpose) else str(purpose).upper()
        payload = self._client.post(
            f"{self.base_path}/{station_id}/dock",
            params={"uavId": uav_id, "purpose": value},
        )
        return parse_model(DockingRecord, payload, key="record")

    def undock(self, station_id: int, uav_id: int) -> DockingRecord:
        payload = self._client.post(
            f"{self.base_path}/{station_id}/undock", params={"uavId": uav_id}
        )
        return parse_model(DockingRecord, payload, key="record")

    def statistics(self) -> DockingStatistics:
        return parse_model(DockingStatistics, self._client.get(f"{self.base_path}/statistics"))
