# mypy: ignore-errors

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List

from uavfleet.application.stores.dashboard_store import DashboardStore
from uavfleet.domain.entities import (
    Alert,
    ChartPoint,
    DashboardMetrics,
    LocationUpdate,
    SystemHealth,
    WeatherData,
)
from uavfleet.domain.value_objects.enums import AlertSeverity, HealthStatus, TimeRange
from uavfleet.infrastructure.errors import APIError, NetworkError

_T0 = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)


def _alert(alert_id: str, minutes: int = 0, **fields: Any) -> Alert:
    return Alert(id=alert_id, timestamp=_T0 + timedelta(minutes=minutes), **fields)


class _FakeDashboardService:
    def __init__(self) -> None:
        self.calls: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self.alerts: List[Alert] = [_alert("a1", 1), _alert("a2", 2)]
        self.metrics = DashboardMetrics(total_uavs=4)
        self.rejected: set[str] = set()
        self.chart_ranges: List[Any] = []

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def get_metrics(self) -> DashboardMetrics:
        self._call("metrics")
        return self.metrics

    def get_system_health(self) -> SystemHealth:
        self._call("health")
        return SystemHealth(overall=HealthStatus.HEALTHY)

    def get_chart(self, kind: str, time_range: Any) -> Dict[str, List[ChartPoint]]:
        self._call(f"chart:{kind}")
        self.chart_ranges.append(time_range)
        return {"series": [ChartPoint(timestamp=_T0, value=1.0)]}

    def get_alerts(self, limit: int | None = None, **_: Any) -> List[Alert]:
        self._call("alerts")
        return list(self.alerts)

    def get_weather(self) -> WeatherData:
        self._call("weather")
        return WeatherData(temperature=18.0)

    def acknowledge_alert(self, alert_id: str) -> None:
        self._call(f"ack:{alert_id}")

    def acknowledge_alerts(self, alert_ids: Iterable[str]) -> Dict[str, List[str]]:
        ids = list(alert_ids)
        self._call("ack-multiple")
        return {
            "acknowledged": [i for i in ids if i not in self.rejected],
            "failed": [i for i in ids if i in self.rejected],
        }

    def dismiss_alert(self, alert_id: str) -> None:
        self._call(f"dismiss:{alert_id}")


def _store(**kwargs: Any):
    svc = _FakeDashboardService()
    clock = {"now": 1000.0}
    kwargs.setdefault("cache_seconds", 300)
    kwargs.setdefault("max_alerts", 3)
    kwargs.setdefault("weather_enabled", False)
    store = DashboardStore(svc, clock=lambda: clock["now"], **kwargs)
    return store, svc, clock


def test_fetch_dashboard_data_loads_all_sections() -> None:
    store, svc, _ = _store()
    store.fetch_dashboard_data()

    state = store.state
    assert state.metrics.total_uavs == 4
    assert state.system_health.overall == HealthStatus.HEALTHY
    assert set(state.chart_data) == {"uav-activity", "battery", "performance"}
    assert [a.id for a in state.alerts] == ["a1", "a2"]
    assert state.last_fetch == 1000.0
    assert state.is_loading is False
    assert state.error is None
    assert "weather" not in svc.calls
    assert svc.chart_ranges == [TimeRange.LAST_DAY] * 3


def test_metrics_with_embedded_health_skip_health_call() -> None:
    store, svc, _ = _store()
    svc.metrics = DashboardMetrics(
        total_uavs=1, system_health=SystemHealth(overall=HealthStatus.WARNING)
    )
    assert store.fetch_metrics() is True
    assert "health" not in svc.calls
    assert store.system_health_status() == HealthStatus.WARNING


def test_cache_hit_skips_network_until_expired() -> None:
    store, svc, clock = _store()
    store.fetch_dashboard_data()
    first_calls = len(svc.calls)

    clock["now"] = 1200.0
    store.fetch_dashboard_data()
    assert len(svc.calls) == first_calls
    assert store.cache_stats.hits == 1

    clock["now"] = 1300.0
    assert store.is_cache_valid() is False
    store.fetch_dashboard_data()
    assert len(svc.calls) > first_calls
    assert store.cache_stats.misses == 2


def test_refresh_all_bypasses_cache() -> None:
    store, svc, _ = _store()
    store.fetch_dashboard_data()
    first_calls = len(svc.calls)
    store.refresh_all()
    assert len(svc.calls) == 2 * first_calls


def test_section_failures_are_independent() -> None:
    store, svc, _ = _store()
    svc.failures["metrics"] = NetworkError("offline")
    svc.failures["chart:battery"] = APIError("chart down", 500)

    store.fetch_dashboard_data()
    state = store.state
    assert state.metrics is None
    assert state.metrics_error == "offline"
    assert state.charts_error == "chart down"
    assert set(state.chart_data) == {"uav-activity", "performance"}
    assert len(state.alerts) == 2
    assert state.error is None
    assert state.last_fetch == 1000.0
    assert store.is_cache_valid() is True


def test_total_failure_sets_error_and_leaves_cache_cold() -> None:
    store, svc, _ = _store()
    err = NetworkError("offline")
    for name in ("metrics", "chart:uav-activity", "chart:battery", "chart:performance", "alerts"):
        svc.failures[name] = err

    store.fetch_dashboard_data()
    assert store.state.error == "Failed to fetch dashboard data"
    assert store.state.alerts_error == "offline"
    assert store.state.last_fetch is None
    assert store.state.is_loading is False


def test_weather_only_when_enabled_and_failure_is_quiet() -> None:
    store, svc, _ = _store(weather_enabled=True)
    store.fetch_dashboard_data()
    assert store.state.weather.temperature == 18.0

    store2, svc2, _ = _store(weather_enabled=True)
    svc2.failures["weather"] = NetworkError("no weather")
    store2.fetch_dashboard_data()
    assert store2.state.weather is None
    assert store2.state.error is None


def test_fetch_alerts_truncates_to_max() -> None:
    store, svc, _ = _store(max_alerts=1)
    assert store.fetch_alerts() is True
    assert [a.id for a in store.state.alerts] == ["a1"]


def test_add_alert_prepends_dedupes_and_truncates() -> None:
    store, _, _ = _store(max_alerts=3)
    for i in range(4):
        store.add_alert(_alert(f"n{i}", i))
    assert [a.id for a in store.state.alerts] == ["n3", "n2", "n1"]

    store.add_alert(_alert("n2", 10, title="updated"))
    assert [a.id for a in store.state.alerts] == ["n2", "n3", "n1"]
    assert store.state.alerts[0].title == "updated"

    store.remove_alert("n3")
    assert [a.id for a in store.state.alerts] == ["n2", "n1"]
    store.clear_alerts()
    assert store.state.alerts == []


def test_acknowledge_paths() -> None:
    store, svc, _ = _store()
    store.fetch_alerts()

    store.acknowledge_alert("a1")
    assert store.state.alerts[0].acknowledged is True
    assert svc.calls == ["alerts"]

    assert store.acknowledge_alert_by_id("a2") is True
    assert "ack:a2" in svc.calls
    assert all(a.acknowledged for a in store.state.alerts)

    svc.failures["ack:zz"] = APIError("nope", 404)
    assert store.acknowledge_alert_by_id("zz") is False
    assert store.state.alerts_error == "nope"


def test_acknowledge_multiple_reports_rejected_ids() -> None:
    store, svc, _ = _store()
    store.fetch_alerts()
    svc.rejected = {"a2"}
    assert store.acknowledge_alerts(["a1", "a2"]) == ["a2"]
    flags = {a.id: a.acknowledged for a in store.state.alerts}
    assert flags == {"a1": True, "a2": False}

    svc.failures["ack-multiple"] = NetworkError("offline")
    assert store.acknowledge_alerts(["a2"]) == ["a2"]
    assert store.state.alerts_error == "offline"


def test_dismiss_alert() -> None:
    store, svc, _ = _store()
    store.fetch_alerts()
    assert store.dismiss_alert("a1") is True
    assert [a.id for a in store.state.alerts] == ["a2"]
    svc.failures["dismiss:a2"] = NetworkError("offline")
    assert store.dismiss_alert("a2") is False
    assert [a.id for a in store.state.alerts] == ["a2"]


def test_alert_queries_and_filters() -> None:
    store, _, _ = _store(max_alerts=10)
    store.add_alert(_alert("low", 1, severity=AlertSeverity.LOW))
    store.add_alert(_alert("crit", 3, severity=AlertSeverity.CRITICAL))
    store.add_alert(_alert("high", 2, severity=AlertSeverity.HIGH, acknowledged=True))
    store.add_alert(_alert("crit-ack", 4, severity=AlertSeverity.CRITICAL, acknowledged=True))

    assert [a.id for a in store.filtered_alerts()] == ["crit", "low"]
    store.set_filters(show_acknowledged=True)
    assert [a.id for a in store.filtered_alerts()] == ["crit-ack", "crit", "high", "low"]
    store.set_filters(alert_severity=(AlertSeverity.HIGH, AlertSeverity.LOW))
    assert [a.id for a in store.filtered_alerts()] == ["high", "low"]
    assert store.state.filters.show_acknowledged is True

    assert {a.id for a in store.unacknowledged_alerts()} == {"low", "crit"}
    assert [a.id for a in store.critical_alerts()] == ["crit"]


def test_time_range_filter_feeds_chart_requests() -> None:
    store, svc, _ = _store()
    store.set_filters(time_range=TimeRange.LAST_WEEK)
    store.fetch_chart_data()
    assert svc.chart_ranges == [TimeRange.LAST_WEEK] * 3


def test_realtime_merges_and_connection_status() -> None:
    store, _, _ = _store()
    store.update_metrics(total_uavs=9, active_flights=2)
    assert store.state.metrics.total_uavs == 9
    store.update_metrics(active_flights=3)
    assert store.state.metrics.total_uavs == 9
    assert store.state.metrics.active_flights == 3

    store.update_location(LocationUpdate(uav_id=4, latitude=1, longitude=2))
    store.update_location(LocationUpdate(uav_id=4, latitude=3, longitude=4))
    assert store.state.location_updates[4].latitude == 3

    store.set_connection_status(is_connected=True, reconnect_attempts=0)
    assert store.state.connection.is_connected is True
    assert store.state.connection.last_connected is not None
    assert store.increment_reconnect_attempts() == 1
    assert store.increment_reconnect_attempts() == 2
    store.reset_reconnect_attempts()
    assert store.state.connection.reconnect_attempts == 0

    store.set_system_health(SystemHealth(overall=HealthStatus.CRITICAL))
    assert store.system_health_status() == HealthStatus.CRITICAL


def test_clear_errors_and_unknown_health() -> None:
    store, svc, _ = _store()
    assert store.system_health_status() == HealthStatus.UNKNOWN
    svc.failures["metrics"] = NetworkError("offline")
    store.fetch_metrics()
    store.clear_errors()
    state = store.state
    assert (state.error, state.metrics_error, state.charts_error, state.alerts_error) == (
        None,
        None,
        None,
        None,
    )


def test_invalidate_cache() -> None:
    store, _, _ = _store()
    store.fetch_dashboard_data()
    assert store.is_cache_valid() is True
    store.invalidate_cache()
    assert store.is_cache_valid() is False
