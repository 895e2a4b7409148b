from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field

from uavfleet.application.services.docking_service import DockingStationService
from uavfleet.application.services.hibernate_pod_service import HibernatePodService
from uavfleet.application.services.region_service import RegionService
from uavfleet.application.services.uav_service import UAVService
from uavfleet.application.stores.base import Store
from uavfleet.domain.entities import (
    UAV,
    CreateUAVRequest,
    DockingStation,
    FleetStatistics,
    HibernatePodStatus,
    LocationUpdate,
    Region,
    UAVFilter,
)
from uavfleet.domain.value_objects.enums import OperationalStatus, UAVStatus
from uavfleet.infrastructure.errors import AppError, error_message

logger = logging.getLogger(__name__)

HEALTHY_MIN = 60
WARNING_MIN = 30
LOW_MIN = 15


class UAVState(BaseModel):
    uavs: list[UAV] = Field(default_factory=list)
    selected_uav: Optional[UAV] = None
    hibernate_pod: Optional[HibernatePodStatus] = None
    docking_stations: list[DockingStation] = Field(default_factory=list)
    regions: list[Region] = Field(default_factory=list)
    stats: Optional[FleetStatistics] = None
    loading: bool = False
    error: Optional[str] = None
    filter: UAVFilter = Field(default_factory=UAVFilter)
    search_query: str = ""
    selected_ids: tuple[int, ...] = ()

    model_config = ConfigDict(frozen=True)


class BatterySummary(TypedDict):
    healthy: int
    warning: int
    low: int
    critical: int
    charging: int
    unknown: int
    average: int


class UAVStore(Store[UAVState]):
    """Fleet list, hibernate pod and docking station state.

    API actions never raise ``AppError``: they fill ``error``, log, and report
    success through their return value.
    """

    def __init__(
        self,
        uav_service: UAVService,
        pod_service: Optional[HibernatePodService] = None,
        docking_service: Optional[DockingStationService] = None,
        region_service: Optional[RegionService] = None,
    ) -> None:
        super().__init__(UAVState())
        self._uavs = uav_service
        self._pod = pod_service
        self._docking = docking_service
        self._regions = region_service

    # ------------------------------------------------------------------
    # Local setters
    # ------------------------------------------------------------------
    def set_filter(self, **partial: Any) -> None:
        merged = {**self.state.filter.model_dump(), **partial}
        self.set_state(filter=UAVFilter.model_validate(merged))

    def clear_filter(self) -> None:
        self.set_state(filter=UAVFilter(), search_query="")

    def set_search_query(self, query: str) -> None:
        self.set_state(search_query=query)

    def set_selected_ids(self, ids: list[int] | tuple[int, ...]) -> None:
        self.set_state(selected_ids=tuple(ids))

    def select_uav(self, uav: Optional[UAV]) -> None:
        self.set_state(selected_uav=uav)

    def clear_selection(self) -> None:
        self.set_state(selected_ids=(), selected_uav=None)

    # ------------------------------------------------------------------
    # API actions
    # ------------------------------------------------------------------
    def fetch_uavs(self) -> bool:
        self.set_state(loading=True, error=None)
        try:
            uavs = self._uavs.list_uavs()
        except AppError as exc:
            return self._fail(exc, "Failed to fetch UAVs")
        self.set_state(uavs=uavs, loading=False)
        return True

    def fetch_uav(self, uav_id: int) -> Optional[UAV]:
        """Load one UAV, merge it into the list and select it."""
        self.set_state(loading=True, error=None)
        try:
            uav = self._uavs.get_uav(uav_id)
        except AppError as exc:
            self._fail(exc, f"Failed to fetch UAV {uav_id}")
            return None
        self.upsert_uav(uav)
        self.set_state(selected_uav=uav, loading=False)
        return uav

    def create_uav(self, data: CreateUAVRequest | Mapping[str, Any]) -> Optional[UAV]:
        self.set_state(loading=True, error=None)
        try:
            uav = self._uavs.create_uav(data)
        except AppError as exc:
            self._fail(exc, "Failed to create UAV")
            return None
        self.set_state(uavs=[*self.state.uavs, uav], loading=False)
        logger.info("UAV created", extra={"uav_id": uav.id})
        return uav

    def update_uav(self, uav_id: int, changes: Mapping[str, Any]) -> Optional[UAV]:
        self.set_state(loading=True, error=None)
        try:
            uav = self._uavs.update_uav(uav_id, changes)
        except AppError as exc:
            self._fail(exc, "Failed to update UAV")
            return None
        self._replace(uav)
        self.set_state(loading=False)
        return uav

    def delete_uav(self, uav_id: int) -> bool:
        self.set_state(loading=True, error=None)
        try:
            self._uavs.delete_uav(uav_id)
        except AppError as exc:
            return self._fail(exc, "Failed to delete UAV")
        selected = self.state.selected_uav
        self.set_state(
            uavs=[u for u in self.state.uavs if u.id != uav_id],
            selected_uav=None if selected is not None and selected.id == uav_id else selected,
            selected_ids=tuple(i for i in self.state.selected_ids if i != uav_id),
            loading=False,
        )
        logger.info("UAV deleted", extra={"uav_id": uav_id})
        return True

    def set_uav_status(self, uav_id: int, status: UAVStatus) -> bool:
        self.set_state(loading=True, error=None)
        try:
            uav = self._uavs.update_status(uav_id, status)
        except AppError as exc:
            return self._fail(exc, "Failed to update UAV status")
        self._replace(uav)
        self.set_state(loading=False)
        return True

    def toggle_uav_status(self, uav_id: int) -> bool:
        uav = self.get_uav(uav_id)
        if uav is None:
            self.set_state(error=f"UAV {uav_id} not found")
            return False
        target = (
            UAVStatus.UNAUTHORIZED if uav.status == UAVStatus.AUTHORIZED else UAVStatus.AUTHORIZED
        )
        return self.set_uav_status(uav_id, target)

    def add_to_hibernate_pod(self, uav_id: int) -> bool:
        return self._move_hibernate(uav_id, inside=True)

    def remove_from_hibernate_pod(self, uav_id: int) -> bool:
        return self._move_hibernate(uav_id, inside=False)

    def fetch_stats(self) -> bool:
        try:
            stats = self._uavs.get_statistics()
        except AppError as exc:
            return self._fail(exc, "Failed to fetch statistics")
        self.set_state(stats=stats)
        return True

    def fetch_hibernate_pod(self) -> bool:
        if self._pod is None:
            return False
        try:
            status = self._pod.status()
        except AppError as exc:
            return self._fail(exc, "Failed to fetch hibernate pod status")
        self.set_state(hibernate_pod=status)
        return True

    def fetch_docking_stations(self, available_only: bool = False) -> bool:
        if self._docking is None:
            return False
        self.set_state(loading=True, error=None)
        try:
            if available_only:
                stations = self._docking.available_stations()
            else:
                stations = self._docking.list_stations()
        except AppError as exc:
            return self._fail(exc, "Failed to fetch docking stations")
        self.set_state(docking_stations=stations, loading=False)
        return True

    def fetch_nearest_docking_stations(
        self, latitude: float, longitude: float, limit: int = 5
    ) -> bool:
        if self._docking is None:
            return False
        self.set_state(loading=True, error=None)
        try:
            stations = self._docking.nearest_stations(latitude, longitude, limit)
        except AppError as exc:
            return self._fail(exc, "Failed to fetch nearest docking stations")
        self.set_state(docking_stations=stations, loading=False)
        return True

    def fetch_regions(self) -> bool:
        if self._regions is None:
            return False
        try:
            regions = self._regions.list_regions()
        except AppError as exc:
            return self._fail(exc, "Failed to fetch regions")
        self.set_state(regions=regions)
        return True

    # ------------------------------------------------------------------
    # Real-time merges
    # ------------------------------------------------------------------
    def apply_status_update(
        self,
        uav_id: int,
        status: Optional[UAVStatus] = None,
        operational_status: Optional[OperationalStatus] = None,
    ) -> bool:
        uav = self.get_uav(uav_id)
        if uav is None:
            return False
        changes: dict[str, Any] = {}
        if status is not None:
            changes["status"] = status
        if operational_status is not None:
            changes["operational_status"] = operational_status
            if operational_status == OperationalStatus.HIBERNATING:
                changes["in_hibernate_pod"] = True
        self._replace(uav.model_copy(update=changes))
        return True

    def apply_location_update(self, update: LocationUpdate) -> bool:
        uav = self.get_uav(update.uav_id)
        if uav is None:
            return False
        changes: dict[str, Any] = {
            "current_latitude": update.latitude,
            "current_longitude": update.longitude,
            "last_location_update": update.timestamp,
        }
        if update.altitude is not None:
            changes["current_altitude_meters"] = update.altitude
        self._replace(uav.model_copy(update=changes))
        return True

    def apply_battery_level(self, uav_id: int, level: float) -> bool:
        uav = self.get_uav(uav_id)
        if uav is None:
            return False
        self._replace(uav.model_copy(update={"battery_level": max(0.0, min(100.0, level))}))
        return True

    def apply_hibernate_pod(self, status: HibernatePodStatus) -> None:
        uavs = self.state.uavs
        if status.uav_ids is not None:
            inside = set(status.uav_ids)
            uavs = [
                u
                if u.in_hibernate_pod == (u.id in inside)
                else u.model_copy(update={"in_hibernate_pod": u.id in inside})
                for u in uavs
            ]
        self.set_state(hibernate_pod=status, uavs=uavs)

    def upsert_uav(self, uav: UAV) -> None:
        if self.get_uav(uav.id) is None:
            self.set_state(uavs=[*self.state.uavs, uav])
        else:
            self._replace(uav)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_uav(self, uav_id: int) -> Optional[UAV]:
        for uav in self.state.uavs:
            if uav.id == uav_id:
                return uav
        return None

    def uavs_by_status(self, status: UAVStatus) -> list[UAV]:
        return [u for u in self.state.uavs if u.status == status]

    def filtered_uavs(self) -> list[UAV]:
        state = self.state
        result = list(state.uavs)

        query = state.search_query.strip().lower()
        if query:
            result = [u for u in result if _matches_search(u, query)]

        f = state.filter
        if f.status is not None:
            result = [u for u in result if u.status == f.status]
        if f.operational_status is not None:
            result = [u for u in result if u.operational_status == f.operational_status]
        if f.in_hibernate_pod is not None:
            result = [u for u in result if u.in_hibernate_pod == f.in_hibernate_pod]
        if f.region_id is not None:
            result = [u for u in result if any(r.id == f.region_id for r in u.regions)]
        if f.battery_min is not None:
            result = [
                u
                for u in result
                if u.battery_level is not None and u.battery_level >= f.battery_min
            ]
        if f.battery_max is not None:
            result = [
                u
                for u in result
                if u.battery_level is not None and u.battery_level <= f.battery_max
            ]
        return result

    def battery_summary(self) -> BatterySummary:
        """Bucket the fleet by charge level.

        healthy > 60, warning 31-60, low 16-30, critical <= 15. Charging UAVs
        are counted separately; other UAVs without a reading count as unknown.
        Every UAV lands in exactly one bucket.
        """
        summary = BatterySummary(
            healthy=0, warning=0, low=0, critical=0, charging=0, unknown=0, average=0
        )
        levels: list[float] = []
        for uav in self.state.uavs:
            level = uav.battery_level
            if level is not None:
                levels.append(level)
            if uav.is_charging:
                summary["charging"] += 1
            elif level is None:
                summary["unknown"] += 1
            else:
                summary[_battery_bucket(level)] += 1  # type: ignore[literal-required]
        if levels:
            summary["average"] = round(sum(levels) / len(levels))
        return summary

    def low_battery_uavs(self, threshold: float = 30) -> list[UAV]:
        low = [
            u
            for u in self.state.uavs
            if u.battery_level is not None and u.battery_level <= threshold
        ]
        return sorted(low, key=lambda u: u.battery_level or 0.0)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _move_hibernate(self, uav_id: int, *, inside: bool) -> bool:
        if self._pod is None:
            return False
        self.set_state(loading=True, error=None)
        try:
            if inside:
                status = self._pod.add_uav(uav_id)
            else:
                status = self._pod.remove_uav(uav_id)
        except AppError as exc:
            action = "add UAV to" if inside else "remove UAV from"
            return self._fail(exc, f"Failed to {action} hibernate pod")
        uav = self.get_uav(uav_id)
        if uav is not None:
            operational = OperationalStatus.HIBERNATING if inside else OperationalStatus.READY
            changes = {"in_hibernate_pod": inside, "operational_status": operational}
            self._replace(uav.model_copy(update=changes))
        self.set_state(hibernate_pod=status, loading=False)
        return True

    def _replace(self, uav: UAV) -> None:
        selected = self.state.selected_uav
        self.set_state(
            uavs=[uav if u.id == uav.id else u for u in self.state.uavs],
            selected_uav=uav if selected is not None and selected.id == uav.id else selected,
        )

    def _fail(self, exc: AppError, fallback: str) -> bool:
        message = error_message(exc, fallback)
        logger.error("%s: %s", fallback, message, extra={"code": exc.code})
        self.set_state(loading=False, error=message)
        return False


def _battery_bucket(level: float) -> str:
    if level > HEALTHY_MIN:
        return "healthy"
    if level > WARNING_MIN:
        return "warning"
    if level > LOW_MIN:
        return "low"
    return "critical"


def _matches_search(uav: UAV, query: str) -> bool:
    parts = [
        uav.rfid_tag,
        uav.owner_name,
        uav.model,
        uav.status.value,
        uav.operational_status.value,
        *uav.region_names,
    ]
    return any(query in part.lower() for part in parts)
