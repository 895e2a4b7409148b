from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from ..value_objects.enums import AlertSeverity, AlertType
from .base import ApiModel, ensure_utc, utc_now


class GeoPoint(ApiModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Alert(ApiModel):
    id: str
    type: AlertType = AlertType.NOTIFICATION
    severity: AlertSeverity = AlertSeverity.LOW
    title: str = ""
    message: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    acknowledged: bool = False
    uav_id: str | None = None
    location: GeoPoint | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "uav_id", mode="before")
    @classmethod
    def _coerce_str(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, v: Any) -> Any:
        # Server-side categories outside the known set are shown as notifications
        if isinstance(v, AlertType):
            return v
        try:
            return AlertType(str(v).upper())
        except ValueError:
            return AlertType.NOTIFICATION

    @field_validator("severity", mode="before")
    @classmethod
    def _upper_severity(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return utc_now() if v is None else ensure_utc(v)

    @property
    def is_critical(self) -> bool:
        return self.severity == AlertSeverity.CRITICAL
