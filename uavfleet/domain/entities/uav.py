from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..value_objects.enums import ChargingStatus, OperationalStatus, UAVStatus
from .base import ApiModel, ensure_utc


class Region(ApiModel):
    id: int
    region_name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class BatteryStatus(ApiModel):
    current_charge_percentage: float = Field(..., ge=0, le=100)
    charging_status: ChargingStatus = ChargingStatus.DISCHARGING
    voltage: float | None = None
    temperature_celsius: float | None = None
    cycle_count: int = 0
    health_percentage: float = 100.0
    estimated_time_to_empty: int | None = None
    estimated_time_to_full: int | None = None
    is_overheating: bool = False
    needs_replacement: bool = False


class UAV(ApiModel):
    id: int
    rfid_tag: str
    owner_name: str = ""
    model: str = ""
    status: UAVStatus = UAVStatus.UNAUTHORIZED
    operational_status: OperationalStatus = OperationalStatus.READY
    in_hibernate_pod: bool = False
    serial_number: str | None = None
    manufacturer: str | None = None
    weight_kg: float | None = None
    max_flight_time_minutes: int | None = None
    max_altitude_meters: float | None = None
    max_speed_kmh: float | None = None
    total_flight_hours: float = 0.0
    total_flight_cycles: int = 0
    current_latitude: float | None = Field(default=None, ge=-90, le=90)
    current_longitude: float | None = Field(default=None, ge=-180, le=180)
    current_altitude_meters: float | None = None
    last_location_update: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    regions: list[Region] = Field(default_factory=list)
    battery_status: BatteryStatus | None = None
    battery_level: float | None = Field(default=None, ge=0, le=100)

    @field_validator("last_location_update", "created_at", "updated_at", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)

    @model_validator(mode="before")
    @classmethod
    def _battery_from_status(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("batteryLevel") is not None or data.get("battery_level") is not None:
            return data
        status = data.get("batteryStatus") or data.get("battery_status")
        if isinstance(status, dict):
            level = status.get("currentChargePercentage", status.get("current_charge_percentage"))
        elif isinstance(status, BatteryStatus):
            level = status.current_charge_percentage
        else:
            level = None
        if level is None:
            return data
        return {**data, "batteryLevel": level}

    @property
    def is_charging(self) -> bool:
        return (
            self.operational_status == OperationalStatus.CHARGING
            or (
                self.battery_status is not None
                and self.battery_status.charging_status == ChargingStatus.CHARGING
            )
        )

    @property
    def region_names(self) -> list[str]:
        return [r.region_name for r in self.regions]


class LocationUpdate(ApiModel):
    uav_id: int
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: float | None = None
    speed: float | None = None
    heading: float | None = None
    timestamp: datetime | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class CreateUAVRequest(ApiModel):
    rfid_tag: str = Field(..., min_length=1)
    owner_name: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    status: UAVStatus = UAVStatus.UNAUTHORIZED
    in_hibernate_pod: bool = False
    region_ids: list[int] = Field(default_factory=list)
    serial_number: str | None = None
    manufacturer: str | None = None
    weight_kg: float | None = None
    max_flight_time_minutes: int | None = None
    max_altitude_meters: float | None = None
    max_speed_kmh: float | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UAVFilter(BaseModel):
    status: UAVStatus | None = None
    operational_status: OperationalStatus | None = None
    in_hibernate_pod: bool | None = None
    region_id: int | None = None
    battery_min: float | None = None
    battery_max: float | None = None

    model_config = ConfigDict(frozen=True)


class FleetStatistics(ApiModel):
    total_uavs: int = Field(0, alias="totalUAVs")
    authorized_uavs: int = Field(0, alias="authorizedUAVs")
    unauthorized_uavs: int = Field(0, alias="unauthorizedUAVs")
    hibernating_uavs: int = Field(0, alias="hibernatingUAVs")
    active_uavs: int = Field(0, alias="activeUAVs")
    total_regions: int = 0
    hibernate_pod_capacity: int = 0
    hibernate_pod_used: int = 0

    @property
    def hibernate_pod_available(self) -> int:
        return max(0, self.hibernate_pod_capacity - self.hibernate_pod_used)
