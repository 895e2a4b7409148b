from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from ..value_objects.enums import HealthStatus
from .alert import GeoPoint
from .base import ApiModel, ensure_utc


class ComponentHealth(ApiModel):
    status: HealthStatus = HealthStatus.UNKNOWN
    message: str | None = None
    last_check: datetime | None = None
    uptime: float | None = None
    response_time: float | None = None

    @field_validator("last_check", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class SystemHealth(ApiModel):
    overall: HealthStatus = HealthStatus.UNKNOWN
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    last_updated: datetime | None = None

    @field_validator("last_updated", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)

    def unhealthy_components(self) -> list[str]:
        return [
            name
            for name, component in self.components.items()
            if component.status in (HealthStatus.WARNING, HealthStatus.CRITICAL)
        ]


class RealtimeData(ApiModel):
    active_connections: int = 0
    messages_per_second: float = 0.0
    data_transfer_rate: float = 0.0
    last_update: datetime | None = None

    @field_validator("last_update", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class DashboardMetrics(ApiModel):
    total_uavs: int = Field(0, alias="totalUAVs")
    authorized_uavs: int = Field(0, alias="authorizedUAVs")
    unauthorized_uavs: int = Field(0, alias="unauthorizedUAVs")
    active_flights: int = 0
    hibernating_uavs: int = Field(0, alias="hibernatingUAVs")
    low_battery_count: int = 0
    charging_count: int = 0
    maintenance_count: int = 0
    emergency_count: int = 0
    offline_count: int = 0
    system_health: SystemHealth | None = None
    realtime_data: RealtimeData | None = None


class ChartPoint(ApiModel):
    timestamp: datetime
    value: float
    label: str | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class WeatherData(ApiModel):
    temperature: float
    humidity: float = 0.0
    wind_speed: float = 0.0
    wind_direction: float = 0.0
    visibility: float = 0.0
    conditions: str = ""
    timestamp: datetime | None = None
    location: GeoPoint | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class ConnectionStatus(ApiModel):
    is_connected: bool = False
    last_connected: datetime | None = None
    reconnect_attempts: int = 0
    latency: float | None = None
    message: str | None = None
