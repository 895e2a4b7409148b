from __future__ import annotations

import argparse
import sys
from typing import Iterable, List, Sequence

from pydantic import ValidationError as SchemaError

from uavfleet.application.services._payloads import schema_error_text
from uavfleet.cli.context import build_context
from uavfleet.domain.entities import UAV, CreateUAVRequest
from uavfleet.domain.value_objects.enums import UAVStatus

_STATUS_CHOICES = [s.value for s in UAVStatus]


def _format_uav(uav: UAV) -> str:
    battery = "-" if uav.battery_level is None else f"{uav.battery_level:.0f}%"
    pod = " [pod]" if uav.in_hibernate_pod else ""
    return (
        f"[{uav.id}] {uav.rfid_tag} {uav.model} ({uav.owner_name or '-'}) "
        f"{uav.status.value}/{uav.operational_status.value} battery={battery}{pod}"
    )


def _format_rows(uavs: Iterable[UAV]) -> str:
    out_lines: List[str] = [_format_uav(u) for u in uavs]
    return "\n".join(out_lines)


def _format_detail(uav: UAV) -> str:
    lines = [_format_uav(uav)]
    if uav.serial_number or uav.manufacturer:
        lines.append(
            f"  serial: {uav.serial_number or '-'}  manufacturer: {uav.manufacturer or '-'}"
        )
    lines.append(f"  regions: {', '.join(uav.region_names) or '-'}")
    if uav.current_latitude is not None and uav.current_longitude is not None:
        lines.append(f"  location: {uav.current_latitude:.5f}, {uav.current_longitude:.5f}")
    lines.append(f"  flight hours: {uav.total_flight_hours:g}  cycles: {uav.total_flight_cycles}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Manage the UAV fleet")
    sub = p.add_subparsers(dest="cmd", required=True)

    pl = sub.add_parser("list", help="List UAVs")
    pl.add_argument("--status", choices=_STATUS_CHOICES, help="Only UAVs with this status")
    pl.add_argument("--search", default="", help="Match RFID, owner, model, region or status")
    pl.add_argument(
        "--hibernating", action="store_true", help="Only UAVs inside the hibernate pod"
    )

    ps = sub.add_parser("show", help="Show one UAV")
    ps.add_argument("id", type=int, help="UAV ID")

    pc = sub.add_parser("create", help="Register a UAV")
    pc.add_argument("--rfid", required=True, help="Unique RFID tag")
    pc.add_argument("--owner", required=True, help="Owner name")
    pc.add_argument("--model", required=True, help="Model name")
    pc.add_argument("--status", choices=_STATUS_CHOICES, default=UAVStatus.UNAUTHORIZED.value)

    pd = sub.add_parser("delete", help="Delete a UAV")
    pd.add_argument("id", type=int, help="UAV ID")

    pst = sub.add_parser("status", help="Set a UAV's authorization status")
    pst.add_argument("id", type=int, help="UAV ID")
    pst.add_argument("status", choices=_STATUS_CHOICES)

    pt = sub.add_parser("toggle", help="Flip AUTHORIZED/UNAUTHORIZED")
    pt.add_argument("id", type=int, help="UAV ID")

    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    store = build_context().uavs

    def fail() -> int:
        print(f"Error: {store.state.error}", file=sys.stderr)
        return 1

    if args.cmd == "list":
        if not store.fetch_uavs():
            return fail()
        store.set_search_query(args.search)
        store.set_filter(
            status=UAVStatus(args.status) if args.status else None,
            in_hibernate_pod=True if args.hibernating else None,
        )
        rows = store.filtered_uavs()
        if not rows:
            print("No UAVs found.")
        else:
            print(_format_rows(rows))
        return 0

    if args.cmd == "show":
        uav = store.fetch_uav(args.id)
        if uav is None:
            return fail()
        print(_format_detail(uav))
        return 0

    if args.cmd == "create":
        try:
            request = CreateUAVRequest(
                rfid_tag=args.rfid,
                owner_name=args.owner,
                model=args.model,
                status=UAVStatus(args.status),
            )
        except SchemaError as exc:
            parser.error(f"invalid UAV: {schema_error_text(exc)}")
        created = store.create_uav(request)
        if created is None:
            return fail()
        print(f"Created {_format_uav(created)}")
        return 0

    if args.cmd == "delete":
        if not store.delete_uav(args.id):
            return fail()
        print(f"Deleted UAV {args.id}.")
        return 0

    if args.cmd == "status":
        if not store.set_uav_status(args.id, UAVStatus(args.status)):
            return fail()
        print(f"UAV {args.id} is now {args.status}.")
        return 0

    if args.cmd == "toggle":
        if store.fetch_uav(args.id) is None or not store.toggle_uav_status(args.id):
            return fail()
        uav = store.get_uav(args.id)
        print(f"UAV {args.id} is now {uav.status.value if uav else '?'}.")
        return 0

    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
