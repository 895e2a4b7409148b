from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from uavfleet.application.services.dashboard_service import CHART_KINDS, DashboardService
from uavfleet.application.stores.base import Store
from uavfleet.config.settings import settings
from uavfleet.domain.entities import (
    Alert,
    ChartPoint,
    ConnectionStatus,
    DashboardMetrics,
    LocationUpdate,
    SystemHealth,
    WeatherData,
)
from uavfleet.domain.value_objects.enums import AlertSeverity, HealthStatus, TimeRange
from uavfleet.infrastructure.errors import AppError, error_message
from uavfleet.logging_config import CacheStats

logger = logging.getLogger(__name__)


class DashboardFilters(BaseModel):
    time_range: TimeRange = TimeRange.LAST_DAY
    alert_severity: tuple[AlertSeverity, ...] = ()
    show_acknowledged: bool = False

    model_config = ConfigDict(frozen=True)


class DashboardState(BaseModel):
    metrics: Optional[DashboardMetrics] = None
    system_health: Optional[SystemHealth] = None
    alerts: list[Alert] = Field(default_factory=list)
    chart_data: dict[str, dict[str, list[ChartPoint]]] = Field(default_factory=dict)
    weather: Optional[WeatherData] = None
    connection: ConnectionStatus = Field(default_factory=ConnectionStatus)
    location_updates: dict[int, LocationUpdate] = Field(default_factory=dict)
    filters: DashboardFilters = Field(default_factory=DashboardFilters)

    is_loading: bool = False
    is_loading_metrics: bool = False
    is_loading_charts: bool = False
    is_loading_alerts: bool = False

    error: Optional[str] = None
    metrics_error: Optional[str] = None
    charts_error: Optional[str] = None
    alerts_error: Optional[str] = None

    last_fetch: Optional[float] = None

    model_config = ConfigDict(frozen=True)


class DashboardStore(Store[DashboardState]):
    """Metrics, alerts, charts and real-time connection state of the dashboard.

    - ``fetch_dashboard_data`` is a no-op while the last fetch is younger than
      ``cache_seconds`` and metrics are loaded.
    - Each section (metrics, charts, alerts, weather) fails on its own; the
      others still load.
    - The alert list is newest first and never longer than ``max_alerts``.
    """

    def __init__(
        self,
        service: DashboardService,
        *,
        cache_seconds: Optional[float] = None,
        max_alerts: Optional[int] = None,
        weather_enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(DashboardState())
        self._service = service
        self.cache_seconds = float(
            settings.dashboard_cache_seconds if cache_seconds is None else cache_seconds
        )
        self.max_alerts = int(settings.max_alerts if max_alerts is None else max_alerts)
        self.weather_enabled = (
            settings.feature_enabled("weather") if weather_enabled is None else weather_enabled
        )
        self._clock = clock
        self.cache_stats = CacheStats("dashboard")

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------
    def is_cache_valid(self, now: Optional[float] = None) -> bool:
        last = self.state.last_fetch
        if last is None:
            return False
        current = self._clock() if now is None else now
        return current - last < self.cache_seconds

    def invalidate_cache(self) -> None:
        self.set_state(last_fetch=None)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def fetch_dashboard_data(self) -> None:
        if self.is_cache_valid() and self.state.metrics is not None:
            self.cache_stats.record_hit()
            return
        self.cache_stats.record_miss()

        self.set_state(is_loading=True, error=None)
        results = [self.fetch_metrics(), self.fetch_chart_data(), self.fetch_alerts()]
        if self.weather_enabled:
            self.fetch_weather()

        if any(results):
            self.set_state(last_fetch=self._clock(), is_loading=False)
        else:
            self.set_state(is_loading=False, error="Failed to fetch dashboard data")

    def refresh_all(self) -> None:
        self.invalidate_cache()
        self.fetch_dashboard_data()

    def fetch_metrics(self) -> bool:
        self.set_state(is_loading_metrics=True, metrics_error=None)
        try:
            metrics = self._service.get_metrics()
            health = metrics.system_health or self._service.get_system_health()
        except AppError as exc:
            message = error_message(exc, "Failed to fetch metrics")
            logger.error("Failed to fetch metrics: %s", message)
            self.set_state(is_loading_metrics=False, metrics_error=message)
            return False
        self.set_state(metrics=metrics, system_health=health, is_loading_metrics=False)
        return True

    def fetch_chart_data(self) -> bool:
        self.set_state(is_loading_charts=True, charts_error=None)
        time_range = self.state.filters.time_range
        charts: dict[str, dict[str, list[ChartPoint]]] = dict(self.state.chart_data)
        failure: Optional[str] = None
        loaded = 0
        for kind in CHART_KINDS:
            try:
                charts[kind] = self._service.get_chart(kind, time_range)
                loaded += 1
            except AppError as exc:
                failure = failure or error_message(exc, "Failed to fetch chart data")
                logger.error("Failed to fetch %s chart: %s", kind, exc)
        self.set_state(chart_data=charts, charts_error=failure, is_loading_charts=False)
        return loaded > 0

    def fetch_alerts(self) -> bool:
        self.set_state(is_loading_alerts=True, alerts_error=None)
        try:
            alerts = self._service.get_alerts(limit=self.max_alerts)
        except AppError as exc:
            message = error_message(exc, "Failed to fetch alerts")
            logger.error("Failed to fetch alerts: %s", message)
            self.set_state(is_loading_alerts=False, alerts_error=message)
            return False
        self.set_state(alerts=alerts[: self.max_alerts], is_loading_alerts=False)
        return True

    def fetch_weather(self) -> bool:
        try:
            weather = self._service.get_weather()
        except AppError as exc:
            logger.warning("Weather data unavailable: %s", exc)
            return False
        self.set_state(weather=weather)
        return True

    # ------------------------------------------------------------------
    # Real-time merges
    # ------------------------------------------------------------------
    def update_metrics(self, **partial: Any) -> None:
        current = self.state.metrics
        if current is None:
            metrics = DashboardMetrics.model_validate(partial)
        else:
            metrics = current.model_copy(update=partial)
        self.set_state(metrics=metrics)

    def update_location(self, update: LocationUpdate) -> None:
        updates = dict(self.state.location_updates)
        updates[update.uav_id] = update
        self.set_state(location_updates=updates)

    def set_system_health(self, health: SystemHealth) -> None:
        self.set_state(system_health=health)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------
    def add_alert(self, alert: Alert) -> None:
        rest = [a for a in self.state.alerts if a.id != alert.id]
        self.set_state(alerts=[alert, *rest][: self.max_alerts])

    def remove_alert(self, alert_id: str) -> None:
        self.set_state(alerts=[a for a in self.state.alerts if a.id != alert_id])

    def clear_alerts(self) -> None:
        self.set_state(alerts=[])

    def acknowledge_alert(self, alert_id: str) -> None:
        self._mark_acknowledged({alert_id})

    def acknowledge_alert_by_id(self, alert_id: str) -> bool:
        try:
            self._service.acknowledge_alert(alert_id)
        except AppError as exc:
            message = error_message(exc, "Failed to acknowledge alert")
            logger.error("Failed to acknowledge alert %s: %s", alert_id, message)
            self.set_state(alerts_error=message)
            return False
        self._mark_acknowledged({alert_id})
        return True

    def acknowledge_alerts(self, alert_ids: Iterable[str]) -> list[str]:
        """Acknowledge several alerts in one call; returns the ids the server rejected."""
        ids = list(alert_ids)
        try:
            result = self._service.acknowledge_alerts(ids)
        except AppError as exc:
            message = error_message(exc, "Failed to acknowledge alerts")
            logger.error("Failed to acknowledge alerts: %s", message)
            self.set_state(alerts_error=message)
            return ids
        failed = set(result["failed"])
        self._mark_acknowledged({i for i in ids if i not in failed})
        return [i for i in ids if i in failed]

    def dismiss_alert(self, alert_id: str) -> bool:
        try:
            self._service.dismiss_alert(alert_id)
        except AppError as exc:
            message = error_message(exc, "Failed to dismiss alert")
            logger.error("Failed to dismiss alert %s: %s", alert_id, message)
            self.set_state(alerts_error=message)
            return False
        self.remove_alert(alert_id)
        return True

    # ------------------------------------------------------------------
    # Connection and filters
    # ------------------------------------------------------------------
    def set_connection_status(self, **partial: Any) -> None:
        if partial.get("is_connected"):
            partial.setdefault("last_connected", datetime.now(timezone.utc))
        self.set_state(connection=self.state.connection.model_copy(update=partial))

    def increment_reconnect_attempts(self) -> int:
        attempts = self.state.connection.reconnect_attempts + 1
        self.set_connection_status(reconnect_attempts=attempts)
        return attempts

    def reset_reconnect_attempts(self) -> None:
        self.set_connection_status(reconnect_attempts=0)

    def set_filters(self, **partial: Any) -> None:
        merged = {**self.state.filters.model_dump(), **partial}
        self.set_state(filters=DashboardFilters.model_validate(merged))

    def clear_errors(self) -> None:
        self.set_state(error=None, metrics_error=None, charts_error=None, alerts_error=None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def filtered_alerts(self) -> list[Alert]:
        filters = self.state.filters
        alerts = list(self.state.alerts)
        if not filters.show_acknowledged:
            alerts = [a for a in alerts if not a.acknowledged]
        if filters.alert_severity:
            wanted = set(filters.alert_severity)
            alerts = [a for a in alerts if a.severity in wanted]
        return sorted(alerts, key=lambda a: a.timestamp, reverse=True)

    def unacknowledged_alerts(self) -> list[Alert]:
        return [a for a in self.state.alerts if not a.acknowledged]

    def critical_alerts(self) -> list[Alert]:
        return [
            a
            for a in self.state.alerts
            if not a.acknowledged and a.severity == AlertSeverity.CRITICAL
        ]

    def system_health_status(self) -> HealthStatus:
        health = self.state.system_health
        if health is None:
            return HealthStatus.UNKNOWN
        return health.overall

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _mark_acknowledged(self, ids: set[str]) -> None:
        self.set_state(
            alerts=[
                a.model_copy(update={"acknowledged": True}) if a.id in ids else a
                for a in self.state.alerts
            ]
        )
