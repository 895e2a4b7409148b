from __future__ import annotations

import argparse
import sys
from typing import Sequence

from uavfleet.cli.context import build_context


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Fleet battery overview")
    p.add_argument(
        "--threshold",
        type=float,
        default=30.0,
        help="List UAVs at or below this charge percentage (default: 30)",
    )
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not 0 <= args.threshold <= 100:
        parser.error("--threshold must be between 0 and 100")

    store = build_context().uavs
    if not store.fetch_uavs():
        print(f"Error: {store.state.error}", file=sys.stderr)
        return 1

    s = store.battery_summary()
    print(
        f"Healthy: {s['healthy']}  Warning: {s['warning']}  Low: {s['low']}  "
        f"Critical: {s['critical']}  Charging: {s['charging']}"
    )
    if s["unknown"]:
        print(f"No reading: {s['unknown']}")
    print(f"Average charge: {s['average']}%")

    low = store.low_battery_uavs(args.threshold)
    if not low:
        print(f"No UAVs at or below {args.threshold:g}%.")
        return 0
    print(f"At or below {args.threshold:g}%:")
    for uav in low:
        marker = " (charging)" if uav.is_charging else ""
        print(f"  [{uav.id}] {uav.rfid_tag} {uav.battery_level:.0f}%{marker}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
