from __future__ import annotations

import argparse
import sys
from typing import Iterable, List, Sequence

from uavfleet.cli.context import build_context
from uavfleet.domain.entities import Alert
from uavfleet.domain.value_objects.enums import AlertSeverity

_SEVERITY_CHOICES = [s.value for s in AlertSeverity]


def format_alert(alert: Alert) -> str:
    ack = "ack" if alert.acknowledged else "NEW"
    uav = f" uav={alert.uav_id}" if alert.uav_id else ""
    ts = alert.timestamp.isoformat(timespec="seconds")
    return (
        f"{ts} [{alert.severity.value:<8}] {ack} {alert.id}: "
        f"{alert.title} - {alert.message}{uav}"
    )


def _format_rows(alerts: Iterable[Alert]) -> str:
    out_lines: List[str] = [format_alert(a) for a in alerts]
    return "\n".join(out_lines)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Review and acknowledge fleet alerts")
    sub = p.add_subparsers(dest="cmd", required=True)

    pl = sub.add_parser("list", help="List alerts, newest first")
    pl.add_argument("--all", action="store_true", help="Include acknowledged alerts")
    pl.add_argument(
        "--severity",
        nargs="+",
        choices=_SEVERITY_CHOICES,
        help="Only alerts with these severities",
    )

    pa = sub.add_parser("ack", help="Acknowledge alerts")
    pa.add_argument("ids", nargs="+", help="Alert ID(s)")

    pd = sub.add_parser("dismiss", help="Dismiss an alert")
    pd.add_argument("id", help="Alert ID")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    store = build_context().dashboard

    if args.cmd == "list":
        if not store.fetch_alerts():
            print(f"Error: {store.state.alerts_error}", file=sys.stderr)
            return 1
        store.set_filters(
            show_acknowledged=bool(args.all),
            alert_severity=tuple(AlertSeverity(s) for s in args.severity or ()),
        )
        rows = store.filtered_alerts()
        if not rows:
            print("No alerts.")
        else:
            print(_format_rows(rows))
        return 0

    if args.cmd == "ack":
        if len(args.ids) == 1:
            ok = store.acknowledge_alert_by_id(args.ids[0])
            failed = [] if ok else list(args.ids)
        else:
            failed = store.acknowledge_alerts(args.ids)
        if failed:
            reason = store.state.alerts_error or "rejected by server"
            print(f"Could not acknowledge {', '.join(failed)}: {reason}", file=sys.stderr)
            return 1
        print(f"Acknowledged {len(args.ids)} alert(s).")
        return 0

    if args.cmd == "dismiss":
        if not store.dismiss_alert(args.id):
            print(f"Error: {store.state.alerts_error}", file=sys.stderr)
            return 1
        print(f"Dismissed alert {args.id}.")
        return 0

    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
