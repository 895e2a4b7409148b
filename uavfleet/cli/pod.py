from __future__ import annotations

import argparse
import sys
from typing import Sequence

from uavfleet.cli.context import build_context
from uavfleet.domain.entities import HibernatePodStatus


def _format_status(status: HibernatePodStatus) -> str:
    line = (
        f"Hibernate pod: {status.current_capacity}/{status.max_capacity} "
        f"({status.utilization_percentage:.1f}% used, {status.available_capacity} free)"
    )
    if status.is_full:
        line += " FULL"
    if status.uav_ids:
        line += "\nUAVs: " + ", ".join(str(i) for i in status.uav_ids)
    return line


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Hibernate pod occupancy")
    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("status", help="Show pod occupancy")
    pa = sub.add_parser("add", help="Put a UAV into the pod")
    pa.add_argument("uav_id", type=int, help="UAV ID")
    pr = sub.add_parser("remove", help="Take a UAV out of the pod")
    pr.add_argument("uav_id", type=int, help="UAV ID")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    store = build_context().uavs

    if args.cmd == "status":
        ok = store.fetch_hibernate_pod()
    elif args.cmd == "add":
        ok = store.add_to_hibernate_pod(args.uav_id)
    else:
        ok = store.remove_from_hibernate_pod(args.uav_id)

    if not ok:
        print(f"Error: {store.state.error}", file=sys.stderr)
        return 1
    status = store.state.hibernate_pod
    if status is not None:
        print(_format_status(status))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
