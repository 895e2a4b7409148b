from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from uavfleet.application.realtime_dispatch import MessageDispatcher, bind_stores
from uavfleet.application.stores.dashboard_store import DashboardState
from uavfleet.cli.alerts import format_alert
from uavfleet.cli.context import FleetContext, build_context
from uavfleet.infrastructure.realtime_client import RealtimeClient

DEFAULT_TOPICS = ("alerts", "uav-status", "location-updates", "system-stats")


def _newest_alert_id(state: DashboardState) -> Optional[str]:
    return state.alerts[0].id if state.alerts else None


def _print_alert(new: DashboardState, old: DashboardState) -> None:
    if new.alerts:
        print(format_alert(new.alerts[0]), flush=True)


def _print_connection(new: DashboardState, old: DashboardState) -> None:
    message = new.connection.message
    if new.connection.is_connected:
        print("* connected", file=sys.stderr, flush=True)
    elif message:
        print(f"* {message}", file=sys.stderr, flush=True)


def build_client(ctx: FleetContext, topics: Sequence[str]) -> RealtimeClient:
    dispatcher = MessageDispatcher()
    bind_stores(dispatcher, ctx.dashboard, ctx.uavs)
    ctx.dashboard.subscribe(_print_alert, selector=_newest_alert_id)
    ctx.dashboard.subscribe(
        _print_connection, selector=lambda s: (s.connection.is_connected, s.connection.message)
    )
    return RealtimeClient(
        dispatcher,
        url=ctx.settings.ws_url,
        token_provider=lambda: ctx.auth.state.token,
        status_sink=ctx.dashboard,
        topics=topics,
        reconnect_attempts=ctx.settings.ws_reconnect_attempts,
        reconnect_delay=ctx.settings.ws_reconnect_delay,
        heartbeat_seconds=ctx.settings.ws_heartbeat_seconds,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Stream live alerts from the control center")
    p.add_argument(
        "--topic",
        action="append",
        dest="topics",
        help=f"Channel topic to subscribe to (repeatable, default: {', '.join(DEFAULT_TOPICS)})",
    )
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    ctx = build_context()
    if not ctx.settings.feature_enabled("realtime"):
        print("Real-time updates are disabled (UAV_FEATURE_REALTIME).", file=sys.stderr)
        return 2

    client = build_client(ctx, args.topics or DEFAULT_TOPICS)
    try:
        stopped_cleanly = asyncio.run(client.run())
    except KeyboardInterrupt:
        return 0
    return 0 if stopped_cleanly else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
