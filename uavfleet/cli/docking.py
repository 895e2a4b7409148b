from __future__ import annotations

import argparse
import sys
from typing import Iterable, List, Sequence

from uavfleet.cli.context import build_context
from uavfleet.domain.entities import DockingStation


def _format_rows(stations: Iterable[DockingStation]) -> str:
    out_lines: List[str] = []
    for s in stations:
        extras = [
            name
            for name, flag in (
                ("charging", s.charging_available),
                ("maintenance", s.maintenance_available),
                ("sheltered", s.weather_protected),
            )
            if flag
        ]
        out_lines.append(
            f"[{s.id}] {s.name} {s.station_type.value} {s.status.value} "
            f"{s.current_occupancy}/{s.max_capacity} ({s.available_ports} free)"
            + (f" {', '.join(extras)}" if extras else "")
        )
    return "\n".join(out_lines)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Docking stations")
    sub = p.add_subparsers(dest="cmd", required=True)

    pl = sub.add_parser("list", help="List docking stations")
    pl.add_argument("--available", action="store_true", help="Only stations with free ports")

    pn = sub.add_parser("nearest", help="Stations closest to a position")
    pn.add_argument("latitude", type=float)
    pn.add_argument("longitude", type=float)
    pn.add_argument("--limit", type=int, default=5, help="How many stations (default: 5)")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    store = build_context().uavs

    if args.cmd == "nearest":
        if not (-90 <= args.latitude <= 90 and -180 <= args.longitude <= 180):
            parser.error("latitude must be within ±90 and longitude within ±180")
        ok = store.fetch_nearest_docking_stations(args.latitude, args.longitude, args.limit)
    else:
        ok = store.fetch_docking_stations(available_only=bool(args.available))

    if not ok:
        print(f"Error: {store.state.error}", file=sys.stderr)
        return 1
    stations = store.state.docking_stations
    if not stations:
        print("No docking stations found.")
    else:
        print(_format_rows(stations))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
