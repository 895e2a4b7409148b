"""WebSocket connection to the control-center real-time channel."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

import websockets
from websockets.exceptions import WebSocketException

from uavfleet.config.settings import settings

logger = logging.getLogger(__name__)

MAX_RECONNECT_MESSAGE = "Max reconnection attempts reached"


class _Dispatcher(Protocol):
    def dispatch(self, raw: Any) -> bool: ...


class _StatusSink(Protocol):
    def set_connection_status(self, **partial: Any) -> None: ...


class _Connection(Protocol):
    async def send(self, message: str) -> None: ...

    async def recv(self) -> Any: ...

    async def close(self) -> None: ...


ConnectFactory = Callable[[str], Awaitable[_Connection]]


class RealtimeClient:
    """Keeps one WebSocket open and feeds every frame to a dispatcher.

    - Authenticates with ``{"type": "auth", "token": ...}`` and subscribes to
      ``topics`` right after connecting.
    - Sends ``{"type": "ping", "timestamp": ...}`` every ``heartbeat_seconds``.
    - Reconnects after ``reconnect_delay * 2 ** (attempt - 1)`` seconds, at most
      ``reconnect_attempts`` times in a row; a successful connect resets the count.
    - Mirrors the connection state into ``status_sink`` (the dashboard store).
    """

    def __init__(
        self,
        dispatcher: _Dispatcher,
        *,
        url: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        status_sink: Optional[_StatusSink] = None,
        topics: Iterable[str] = (),
        reconnect_attempts: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
        heartbeat_seconds: Optional[float] = None,
        connect: Optional[ConnectFactory] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.url = url or settings.ws_url
        self.topics = tuple(topics)
        self.reconnect_attempts = int(
            settings.ws_reconnect_attempts if reconnect_attempts is None else reconnect_attempts
        )
        self.reconnect_delay = float(
            settings.ws_reconnect_delay if reconnect_delay is None else reconnect_delay
        )
        self.heartbeat_seconds = float(
            settings.ws_heartbeat_seconds if heartbeat_seconds is None else heartbeat_seconds
        )
        self._dispatcher = dispatcher
        self._token_provider = token_provider
        self._status_sink = status_sink
        self._connect: ConnectFactory = connect or websockets.connect
        self._clock = clock
        self._stop = asyncio.Event()
        self._ws: Optional[_Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    async def run(self) -> bool:
        """Run until :meth:`stop` is called or reconnects run out.

        Returns True after a clean stop, False when the reconnect budget was
        exhausted.
        """
        attempt = 0
        while not self._stop.is_set():
            try:
                ws = await self._connect(self.url)
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                logger.warning("WebSocket connect to %s failed: %s", self.url, exc)
                self._status(is_connected=False, message="Connection failed")
            else:
                attempt = 0
                self._ws = ws
                self._status(is_connected=True, reconnect_attempts=0, message=None)
                logger.info("WebSocket connected", extra={"url": self.url})
                try:
                    await self._session(ws)
                except (OSError, WebSocketException) as exc:
                    if not self._stop.is_set():
                        logger.warning("WebSocket connection lost: %s", exc)
                finally:
                    self._ws = None
                    await _close_quietly(ws)
                if self._stop.is_set():
                    break
                self._status(is_connected=False, message="Connection lost")

            attempt += 1
            if attempt > self.reconnect_attempts:
                logger.error(MAX_RECONNECT_MESSAGE, extra={"attempts": self.reconnect_attempts})
                self._status(is_connected=False, message=MAX_RECONNECT_MESSAGE)
                return False
            delay = self.reconnect_delay * 2 ** (attempt - 1)
            logger.info(
                "Attempting to reconnect in %.2fs (attempt %d/%d)",
                delay,
                attempt,
                self.reconnect_attempts,
            )
            self._status(reconnect_attempts=attempt)
            if await self._wait_for_stop(delay):
                break

        self._status(is_connected=False, message="Disconnected")
        return True

    async def stop(self) -> None:
        self._stop.set()
        ws = self._ws
        if ws is not None:
            await _close_quietly(ws)

    async def send(self, message: dict[str, Any]) -> bool:
        ws = self._ws
        if ws is None:
            return False
        await ws.send(json.dumps(message))
        return True

    async def _session(self, ws: _Connection) -> None:
        token = self._token_provider() if self._token_provider else None
        if token:
            await ws.send(json.dumps({"type": "auth", "token": token}))
        for topic in self.topics:
            await ws.send(json.dumps({"type": "subscribe", "topic": topic}))

        heartbeat = (
            asyncio.create_task(self._heartbeat(ws)) if self.heartbeat_seconds > 0 else None
        )
        try:
            while not self._stop.is_set():
                frame = await ws.recv()
                self._dispatcher.dispatch(frame)
        finally:
            if heartbeat is not None:
                heartbeat.cancel()
                await asyncio.gather(heartbeat, return_exceptions=True)

    async def _heartbeat(self, ws: _Connection) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_seconds)
            await ws.send(json.dumps({"type": "ping", "timestamp": self._clock()}))

    async def _wait_for_stop(self, delay: float) -> bool:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    def _status(self, **partial: Any) -> None:
        if self._status_sink is not None:
            self._status_sink.set_connection_status(**partial)


async def _close_quietly(ws: _Connection) -> None:
    try:
        await ws.close()
    except (OSError, WebSocketException) as exc:
        logger.debug("Ignoring error while closing WebSocket: %s", exc)
