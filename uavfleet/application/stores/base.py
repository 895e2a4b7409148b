"""Observable state containers shared by the dashboard stores."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)

Listener = Callable[[S, S], None]
Selector = Callable[[S], Any]


class Store(Generic[S]):
    """Holds one immutable state snapshot and notifies subscribers on change.

    Listeners run synchronously in registration order with ``(new, old)``.
    A listener registered with a selector only fires when the selected value
    changes.
    """

    def __init__(self, initial: S) -> None:
        self._state = initial
        self._listeners: list[tuple[Listener[S], Optional[Selector[S]]]] = []

    @property
    def state(self) -> S:
        return self._state

    def set_state(self, **changes: Any) -> S:
        old = self._state
        new = old.model_copy(update=changes)
        self._state = new
        self._notify(new, old)
        return new

    def subscribe(
        self,
        listener: Listener[S],
        selector: Optional[Selector[S]] = None,
    ) -> Callable[[], None]:
        entry = (listener, selector)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def _notify(self, new: S, old: S) -> None:
        for listener, selector in list(self._listeners):
            try:
                if selector is not None and selector(new) == selector(old):
                    continue
                listener(new, old)
            except Exception:
                logger.exception(
                    "Store listener failed",
                    extra={"store": type(self).__name__},
                )
