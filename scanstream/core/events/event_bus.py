from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent")
Handler = Callable[[Any], None]


@dataclass(frozen=True, slots=True, eq=False)
class Subscription:
    """Handle returned by the subscribe methods; pass it back to unsubscribe."""

    event_type: type[object]
    handler: Handler
    weak: bool = field(default=False)


class EventBus:
    """Synchronous in-process event bus.

    Events are delivered on the publishing thread (the scan event loop), to the
    handlers of the event's class and of its base classes, in subscription
    order. Subscribing to ``object`` therefore sees every event. A handler that
    raises is logged and counted in :attr:`handler_failures`; delivery continues
    with the next one.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: dict[type[object], list[Subscription]] = {}
        self.handler_failures = 0

    def subscribe(self, event_type: type[TEvent], handler: Callable[[TEvent], None]) -> Subscription:
        return self._add(Subscription(event_type, handler))

    def subscribe_many(
        self, event_types: Iterable[type[object]], handler: Handler
    ) -> list[Subscription]:
        return [self.subscribe(t, handler) for t in event_types]

    def subscribe_weak(
        self, event_type: type[TEvent], handler: Callable[[TEvent], None]
    ) -> Subscription:
        """Subscribe a bound method without keeping its owner alive.

        The subscription drops itself on the first publish after the owner is
        collected. Anything that is not a bound method is held strongly.
        """
        try:
            ref = WeakMethod(handler)  # type: ignore[arg-type]
        except TypeError:
            return self.subscribe(event_type, handler)

        sub: Subscription

        def _deref(event: object) -> None:
            target = ref()
            if target is None:
                self.unsubscribe(sub)
                return
            target(event)

        sub = Subscription(event_type, _deref, weak=True)
        return self._add(sub)

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(subscription.event_type)
            if subs and subscription in subs:
                subs.remove(subscription)
                if not subs:
                    del self._subs[subscription.event_type]

    def has_subscribers(self, event_type: type[object]) -> bool:
        with self._lock:
            return any(t in self._subs for t in event_type.__mro__)

    def publish(self, event: object) -> None:
        with self._lock:
            targets = [s for t in type(event).__mro__ for s in self._subs.get(t, ())]
        for sub in targets:
            try:
                sub.handler(event)
            except Exception:
                self.handler_failures += 1
                logger.exception(
                    "Handler for %s failed", type(event).__name__,
                    extra={"event": type(event).__name__},
                )

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()

    def _add(self, sub: Subscription) -> Subscription:
        with self._lock:
            self._subs.setdefault(sub.event_type, []).append(sub)
        return sub
