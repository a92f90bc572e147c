"""Cart Notifications - event bus for cart state changes.

Observers subscribe to named events (or to every event with "*") and are
called synchronously after the cart has mutated and persisted its state.
Delivery is fire-and-forget: an observer that raises is logged and skipped,
it never blocks or rolls back the mutation.

A Redis Streams observer is provided for forwarding events to consumers
outside the process.
"""

import json
from collections import defaultdict
from typing import Any, Callable, Union

from shopcart.db import RedisKeys, get_redis
from shopcart.logging import get_logger, log_safe

logger = get_logger(__name__)

Observer = Callable[[str, Any], None]

WILDCARD = "*"


class CartEvents:
    """Event names emitted by the cart aggregate."""

    NEW = "cart.new"
    ITEM_ADDED = "cart.item_added"
    ITEM_REMOVED = "cart.item_removed"
    ITEM_UPDATED = "cart.item_updated"
    UPDATING_HASH = "cart.updating_hash"
    UPDATED = "cart.updated"
    EMPTIED = "cart.emptied"
    DESTROYED = "cart.destroyed"
    COUPON_APPLIED = "cart.coupon_applied"
    COUPON_REMOVED = "cart.coupon_removed"


class EventBus:
    """Synchronous observer registry."""

    def __init__(self):
        self._observers: dict[str, list[Observer]] = defaultdict(list)

    def subscribe(self, event: str, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers[event].append(observer)

        def unsubscribe() -> None:
            self.unsubscribe(event, observer)

        return unsubscribe

    def subscribe_all(self, observer: Observer) -> Callable[[], None]:
        """Register an observer for every event."""
        return self.subscribe(WILDCARD, observer)

    def unsubscribe(self, event: str, observer: Observer) -> None:
        observers = self._observers.get(event)
        if observers and observer in observers:
            observers.remove(observer)

    def emit(self, event: str, payload: Any = None) -> None:
        """Deliver an event to its observers, then to wildcard observers."""
        targets = list(self._observers.get(event, ())) + list(self._observers.get(WILDCARD, ()))
        for observer in targets:
            try:
                observer(event, payload)
            except Exception as e:
                logger.warning(f"Observer failed for {event}: {e}", exc_info=True)


def _serialize_payload(payload: Any) -> Any:
    if payload is None or isinstance(payload, (str, int, float, bool)):
        return payload
    if hasattr(payload, "to_dict"):
        return payload.to_dict()
    if isinstance(payload, dict):
        return {str(k): _serialize_payload(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_serialize_payload(v) for v in payload]
    return str(payload)


class RedisStreamObserver:
    """Forwards cart events to a Redis stream per cart instance.

    Stream key: stream:cart:{instance}. Each entry carries one "data" field
    with the JSON-encoded event.
    """

    def __init__(self, instance: Union[str, Callable[[], str]], redis=None):
        self._instance = instance
        self._redis = redis

    @property
    def instance(self) -> str:
        return self._instance() if callable(self._instance) else self._instance

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def __call__(self, event: str, payload: Any = None) -> None:
        instance = self.instance
        message = {
            "event": event,
            "instance": instance,
            "data": _serialize_payload(payload),
        }
        self.redis.xadd(RedisKeys.events_key(instance), "*", {"data": json.dumps(message, default=str)})
        logger.debug(f"Emitted {event} for cart {log_safe(instance)}")


def attach_stream(bus: EventBus, instance: Union[str, Callable[[], str]], redis=None) -> Callable[[], None]:
    """Subscribe a RedisStreamObserver for `instance` to every event on `bus`."""
    return bus.subscribe_all(RedisStreamObserver(instance, redis=redis))
