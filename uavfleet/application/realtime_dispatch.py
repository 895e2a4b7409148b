"""Routing of real-time channel messages into the dashboard and fleet stores."""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from uavfleet.application.stores.dashboard_store import DashboardStore
from uavfleet.application.stores.uav_store import UAVStore
from uavfleet.domain.entities import UAV, Alert, HibernatePodStatus, LocationUpdate
from uavfleet.domain.value_objects.enums import (
    AlertSeverity,
    AlertType,
    OperationalStatus,
    UAVStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RealtimeMessage:
    type: str
    payload: Any = None
    timestamp: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)


Handler = Callable[[RealtimeMessage], None]


def decode_message(raw: str | bytes | Mapping[str, Any]) -> Optional[RealtimeMessage]:
    """Parse a frame into a :class:`RealtimeMessage`; None when it is unusable."""
    data: Any = raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            data = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.error("Dropping non UTF-8 frame (%d bytes)", len(raw))
            return None
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            logger.error("Dropping invalid JSON frame: %s", exc)
            return None
    if not isinstance(data, Mapping):
        logger.error("Dropping frame that is not a JSON object: %r", type(data).__name__)
        return None
    msg_type = data.get("type")
    if not isinstance(msg_type, str) or not msg_type:
        logger.error("Dropping frame without a message type")
        return None
    payload = data.get("payload", data.get("data"))
    timestamp = data.get("timestamp")
    return RealtimeMessage(
        type=msg_type,
        payload=payload,
        timestamp=str(timestamp) if timestamp is not None else None,
        raw=dict(data),
    )


class MessageDispatcher:
    """Calls the handlers registered for a message type, in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def register(self, msg_type: str, handler: Handler) -> None:
        self._handlers.setdefault(msg_type, []).append(handler)

    def unregister(self, msg_type: str, handler: Handler) -> None:
        handlers = self._handlers.get(msg_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def dispatch(self, raw: str | bytes | Mapping[str, Any]) -> bool:
        message = decode_message(raw)
        if message is None:
            return False
        handlers = list(self._handlers.get(message.type, ()))
        if not handlers:
            logger.debug("No handler for message type %s", message.type)
            return False
        for handler in handlers:
            try:
                handler(message)
            except Exception:
                logger.exception(
                    "Handler failed for message type %s",
                    message.type,
                    extra={"handler": getattr(handler, "__name__", repr(handler))},
                )
        return True


def bind_stores(
    dispatcher: MessageDispatcher,
    dashboard: DashboardStore,
    uavs: Optional[UAVStore] = None,
    *,
    clock: Callable[[], float] = time.time,
) -> None:
    """Wire the standard message types into ``dashboard`` and ``uavs``."""

    def on_alert(msg: RealtimeMessage) -> None:
        dashboard.add_alert(Alert.model_validate(_payload(msg)))

    def on_notification(msg: RealtimeMessage) -> None:
        data = _payload(msg)
        dashboard.add_alert(
            Alert(
                id=_alert_id("notification"),
                type=AlertType.NOTIFICATION,
                severity=AlertSeverity.LOW,
                title=data.get("title") or "Notification",
                message=data.get("message") or "",
                timestamp=data.get("timestamp") or msg.timestamp,
            )
        )

    def on_emergency(msg: RealtimeMessage) -> None:
        data = _payload(msg)
        dashboard.add_alert(
            Alert(
                id=_alert_id("emergency"),
                type=_alert_type(data.get("alertType"), AlertType.EMERGENCY_LANDING),
                severity=AlertSeverity.CRITICAL,
                title="EMERGENCY ALERT",
                message=f"{data.get('alertType')}: {data.get('description')}",
                uav_id=data.get("uavRfid") or data.get("uavId"),
                timestamp=data.get("timestamp") or msg.timestamp,
            )
        )

    def on_battery(msg: RealtimeMessage) -> None:
        data = _payload(msg)
        kind = str(data.get("alertType") or "LOW").upper()
        uav_id = data.get("uavId")
        level = data.get("batteryLevel")
        critical = kind in ("CRITICAL", "OVERHEATING")
        if kind == "OVERHEATING":
            text = f"UAV {uav_id} battery is overheating"
        else:
            text = f"UAV {uav_id} battery at {level}%"
        dashboard.add_alert(
            Alert(
                id=_alert_id(f"battery-{uav_id}"),
                type=AlertType.BATTERY_CRITICAL if critical else AlertType.BATTERY_LOW,
                severity=AlertSeverity.CRITICAL if critical else AlertSeverity.HIGH,
                title=f"Battery {kind.lower()}",
                message=text,
                uav_id=uav_id,
                timestamp=data.get("timestamp") or msg.timestamp,
            )
        )
        if uavs is not None and uav_id is not None and level is not None:
            uavs.apply_battery_level(int(uav_id), float(level))

    def on_location(msg: RealtimeMessage) -> None:
        update = LocationUpdate.model_validate(_payload(msg))
        dashboard.update_location(update)
        if uavs is not None:
            uavs.apply_location_update(update)

    def on_status(msg: RealtimeMessage) -> None:
        if uavs is None:
            return
        data = _payload(msg)
        if isinstance(data.get("uav"), Mapping):
            uavs.upsert_uav(UAV.model_validate(data["uav"]))
            return
        status = data.get("status")
        operational = data.get("operationalStatus")
        uavs.apply_status_update(
            int(data["uavId"]),
            UAVStatus(status) if status else None,
            OperationalStatus(operational) if operational else None,
        )

    def on_system_stats(msg: RealtimeMessage) -> None:
        data = _payload(msg)
        uav = data.get("uav")
        if not isinstance(uav, Mapping):
            return
        dashboard.update_metrics(
            total_uavs=_count(uav, "total"),
            authorized_uavs=_count(uav, "authorized"),
            unauthorized_uavs=_count(uav, "unauthorized"),
            hibernating_uavs=_count(uav, "hibernating"),
            active_flights=_count(data.get("flights"), "active"),
            low_battery_count=_count(data.get("battery"), "lowBattery"),
            charging_count=_count(data.get("battery"), "charging"),
            maintenance_count=_count(data.get("maintenance"), "active"),
            emergency_count=_count(data.get("emergency"), "active"),
        )

    def on_hibernate_pod(msg: RealtimeMessage) -> None:
        status = HibernatePodStatus.model_validate(_payload(msg))
        if uavs is not None:
            uavs.apply_hibernate_pod(status)
        if dashboard.state.metrics is not None:
            dashboard.update_metrics(hibernating_uavs=status.current_capacity)

    def on_pong(msg: RealtimeMessage) -> None:
        sent = _payload(msg).get("timestamp", msg.raw.get("timestamp"))
        try:
            latency_ms = max(0.0, (clock() - float(sent)) * 1000.0)
        except (TypeError, ValueError):
            return
        dashboard.set_connection_status(latency=round(latency_ms, 1))

    dispatcher.register("ALERT", on_alert)
    dispatcher.register("NOTIFICATION", on_notification)
    dispatcher.register("EMERGENCY_ALERT", on_emergency)
    dispatcher.register("BATTERY_ALERT", on_battery)
    dispatcher.register("LOCATION_UPDATE", on_location)
    dispatcher.register("UAV_STATUS_UPDATE", on_status)
    dispatcher.register("SYSTEM_STATS", on_system_stats)
    dispatcher.register("HIBERNATE_POD", on_hibernate_pod)
    dispatcher.register("PONG", on_pong)


def _payload(msg: RealtimeMessage) -> Mapping[str, Any]:
    if isinstance(msg.payload, Mapping):
        return msg.payload
    return {}


def _count(section: Any, key: str) -> int:
    if not isinstance(section, Mapping):
        return 0
    try:
        return int(section.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def _alert_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _alert_type(value: Any, default: AlertType) -> AlertType:
    try:
        return AlertType(str(value).upper())
    except ValueError:
        return default
