from __future__ import annotations

import logging
from typing import List, Tuple

import pytest
from pydantic import BaseModel, ConfigDict

from uavfleet.application.stores.base import Store


class _State(BaseModel):
    count: int = 0
    label: str = ""

    model_config = ConfigDict(frozen=True)


def test_set_state_replaces_snapshot_and_notifies() -> None:
    store = Store(_State())
    seen: List[Tuple[int, int]] = []
    store.subscribe(lambda new, old: seen.append((old.count, new.count)))

    first = store.state
    store.set_state(count=1)
    store.set_state(label="x")

    assert first.count == 0
    assert store.state.count == 1
    assert store.state.label == "x"
    assert seen == [(0, 1), (1, 1)]


def test_selector_limits_notifications() -> None:
    store = Store(_State())
    labels: List[str] = []
    store.subscribe(lambda new, old: labels.append(new.label), selector=lambda s: s.label)

    store.set_state(count=5)
    store.set_state(label="a")
    store.set_state(label="a")
    store.set_state(label="b")

    assert labels == ["a", "b"]


def test_unsubscribe_stops_notifications() -> None:
    store = Store(_State())
    calls: List[int] = []
    unsubscribe = store.subscribe(lambda new, old: calls.append(new.count))
    store.set_state(count=1)
    unsubscribe()
    unsubscribe()
    store.set_state(count=2)
    assert calls == [1]


def test_failing_listener_is_logged_and_others_still_run(
    caplog: pytest.LogCaptureFixture,
) -> None:
    store = Store(_State())
    calls: List[int] = []

    def broken(new: _State, old: _State) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(broken)
    store.subscribe(lambda new, old: calls.append(new.count))

    logger = logging.getLogger("uavfleet.application.stores.base")
    logger.addHandler(caplog.handler)
    try:
        store.set_state(count=3)
    finally:
        logger.removeHandler(caplog.handler)

    assert calls == [3]
    assert any("Store listener failed" in r.getMessage() for r in caplog.records)
