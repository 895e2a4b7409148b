from __future__ import annotations

import argparse
import sys
import time
from typing import List, Sequence

from uavfleet.application.stores.dashboard_store import DashboardStore
from uavfleet.cli.context import build_context


def _format_summary(store: DashboardStore) -> str:
    state = store.state
    lines: List[str] = []
    m = state.metrics
    if m is not None:
        lines.append(
            f"UAVs: {m.total_uavs} total, {m.authorized_uavs} authorized, "
            f"{m.unauthorized_uavs} unauthorized, {m.hibernating_uavs} hibernating"
        )
        lines.append(
            f"Flights: {m.active_flights} active | Battery: {m.low_battery_count} low, "
            f"{m.charging_count} charging | Maintenance: {m.maintenance_count} | "
            f"Emergencies: {m.emergency_count}"
        )
    lines.append(f"System health: {store.system_health_status().value}")
    health = state.system_health
    if health is not None:
        for name in health.unhealthy_components():
            component = health.components[name]
            detail = f" ({component.message})" if component.message else ""
            lines.append(f"  {name}: {component.status.value}{detail}")
    lines.append(
        f"Alerts: {len(state.alerts)} total, {len(store.unacknowledged_alerts())} unacknowledged, "
        f"{len(store.critical_alerts())} critical"
    )
    if state.weather is not None:
        w = state.weather
        lines.append(
            f"Weather: {w.conditions or '-'} {w.temperature:.1f}C wind {w.wind_speed:.1f} m/s"
        )
    return "\n".join(lines)


def _print_errors(store: DashboardStore) -> None:
    state = store.state
    for label, err in (
        ("metrics", state.metrics_error),
        ("charts", state.charts_error),
        ("alerts", state.alerts_error),
        ("dashboard", state.error),
    ):
        if err:
            print(f"Error ({label}): {err}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Show the control-center dashboard summary")
    p.add_argument("--refresh", action="store_true", help="Bypass the dashboard cache")
    p.add_argument(
        "--watch",
        type=float,
        metavar="SECONDS",
        help="Re-print the summary every SECONDS until interrupted",
    )
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.watch is not None and args.watch <= 0:
        parser.error("--watch must be positive")

    store = build_context().dashboard

    try:
        while True:
            if args.refresh:
                store.refresh_all()
            else:
                store.fetch_dashboard_data()
            _print_errors(store)
            if store.state.metrics is None and store.state.metrics_error:
                return 1
            print(_format_summary(store))
            if args.watch is None:
                return 0
            time.sleep(args.watch)
            print()
    except KeyboardInterrupt:
        store.cache_stats.log_hit_rate()
        return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
