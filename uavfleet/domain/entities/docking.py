from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from ..value_objects.enums import DockingPurpose, StationStatus, StationType
from .base import ApiModel, ensure_utc


class DockingStation(ApiModel):
    id: int
    name: str
    description: str | None = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude_meters: float | None = None
    max_capacity: int = Field(..., ge=0)
    current_occupancy: int = Field(0, ge=0)
    status: StationStatus = StationStatus.OPERATIONAL
    station_type: StationType = StationType.STANDARD
    charging_available: bool = False
    maintenance_available: bool = False
    weather_protected: bool = False
    security_level: str | None = None
    contact_info: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)

    @model_validator(mode="after")
    def _occupancy_within_capacity(self) -> "DockingStation":
        if self.current_occupancy > self.max_capacity:
            raise ValueError("current_occupancy cannot exceed max_capacity")
        return self

    @property
    def available_ports(self) -> int:
        return self.max_capacity - self.current_occupancy

    @property
    def is_available(self) -> bool:
        return self.status == StationStatus.OPERATIONAL and self.available_ports > 0

    @property
    def utilization_percentage(self) -> float:
        if self.max_capacity == 0:
            return 0.0
        return round(self.current_occupancy / self.max_capacity * 100, 1)


class DockingRecord(ApiModel):
    id: int
    uav_id: int
    station_id: int
    purpose: DockingPurpose = DockingPurpose.STORAGE
    status: str = "DOCKED"
    docking_time: datetime | None = None
    undocking_time: datetime | None = None
    notes: str | None = None

    @field_validator("docking_time", "undocking_time", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class DockingStatistics(ApiModel):
    total_stations: int = 0
    operational_stations: int = 0
    total_capacity: int = 0
    current_occupancy: int = 0
    available_ports: int = 0
    utilization_percentage: float = 0.0
