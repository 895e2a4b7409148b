from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from uavfleet.application.services._payloads import (
    ClientProto,
    default_client,
    parse_list,
    parse_model,
)
from uavfleet.domain.entities import (
    Alert,
    ChartPoint,
    DashboardMetrics,
    SystemHealth,
    WeatherData,
)
from uavfleet.domain.value_objects.enums import TimeRange
from uavfleet.infrastructure.errors import ValidationError

CHART_KINDS = ("uav-activity", "battery", "performance")


class DashboardService:
    """Read side of the control-center dashboard under ``/api/dashboard``."""

    base_path = "/api/dashboard"

    def __init__(self, client: Optional[ClientProto] = None) -> None:
        self._client = default_client(client)

    def get_metrics(self) -> DashboardMetrics:
        return parse_model(DashboardMetrics, self._client.get(f"{self.base_path}/metrics"))

    def get_system_health(self) -> SystemHealth:
        return parse_model(SystemHealth, self._client.get(f"{self.base_path}/health"))

    def get_alerts(
        self,
        acknowledged: bool | None = None,
        severity: Sequence[str] | None = None,
        type: Sequence[str] | None = None,  # noqa: A002 - mirrors the query parameter
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Alert]:
        params: dict[str, Any] = {
            "acknowledged": acknowledged,
            "severity": _values(severity),
            "type": _values(type),
            "limit": limit or None,
            "offset": offset or None,
        }
        payload = self._client.get(f"{self.base_path}/alerts", params=params)
        return parse_list(Alert, payload, key="alerts")

    def acknowledge_alert(self, alert_id: str) -> None:
        self._client.post(f"{self.base_path}/alerts/{alert_id}/acknowledge")

    def acknowledge_alerts(self, alert_ids: Iterable[str]) -> dict[str, list[str]]:
        payload = self._client.post(
            f"{self.base_path}/alerts/acknowledge-multiple", {"alertIds": list(alert_ids)}
        )
        if not isinstance(payload, Mapping):
            return {"acknowledged": [], "failed": []}
        return {
            "acknowledged": [str(i) for i in payload.get("acknowledged") or []],
            "failed": [str(i) for i in payload.get("failed") or []],
        }

    def dismiss_alert(self, alert_id: str) -> None:
        self._client.delete(f"{self.base_path}/alerts/{alert_id}")

    def get_chart(
        self, kind: str, time_range: TimeRange | str = TimeRange.LAST_DAY
    ) -> dict[str, list[ChartPoint]]:
        """Return the named series of a dashboard chart.

        ``kind`` is one of ``uav-activity``, ``battery`` or ``performance``.
        Series keys are kept as the API sends them (``authorized``,
        ``cpuUsage``, ...).
        """
        if kind not in CHART_KINDS:
            raise ValidationError(f"Unknown chart kind: {kind!r}")
        range_value = time_range.value if isinstance(time_range, TimeRange) else str(time_range)
        payload = self._client.get(f"{self.base_path}/charts/{kind}", params={"range": range_value})
        if not isinstance(payload, Mapping):
            return {}
        series: dict[str, list[ChartPoint]] = {}
        for name, points in payload.items():
            if isinstance(points, list):
                series[str(name)] = parse_list(ChartPoint, points)
        return series

    def get_weather(self) -> WeatherData:
        return parse_model(WeatherData, self._client.get(f"{self.base_path}/weather"))

    def get_realtime_metrics(self) -> dict[str, Any]:
        payload = self._client.get(f"{self.base_path}/realtime")
        return dict(payload) if isinstance(payload, Mapping) else {}


def _values(items: Sequence[Any] | None) -> list[str] | None:
    if not items:
        return None
    return [getattr(item, "value", str(item)) for item in items]
