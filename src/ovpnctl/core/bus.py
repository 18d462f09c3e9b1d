"""In-process event bus with typed event definitions.

Events are declared once with a pydantic model describing their
properties. A ``Bus`` instance is owned by the application context and
handed explicitly to whoever publishes or subscribes; there is no
process-global bus.

Example:
    class ThingChangedProps(BaseModel):
        name: str

    ThingChanged = BusEvent.define("thing.changed", ThingChangedProps)

    bus = Bus()
    unsubscribe = bus.subscribe(ThingChanged, on_thing_changed)
    await bus.publish(ThingChanged, ThingChangedProps(name="a"))
    unsubscribe()
"""

import traceback
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)

# Lazy logger: util.log imports core.global_paths, which loads this package.
_log: Optional[Any] = None


def _get_log():
    global _log
    if _log is None:
        from ..util.log import Log
        _log = Log.create({"service": "bus"})
    return _log


class BusEvent(Generic[T]):
    """Event definition: a type string plus its properties model.

    Attributes:
        type: Unique event type identifier (e.g., "connection.changed")
        properties_type: Pydantic model class for event properties
    """

    def __init__(self, event_type: str, properties_type: type[T]):
        self.type = event_type
        self.properties_type = properties_type

    @staticmethod
    def define(event_type: str, properties_type: type[T]) -> 'BusEvent[T]':
        """Define and register a new event type."""
        event = BusEvent(event_type, properties_type)
        _registry[event_type] = event
        return event


_registry: Dict[str, BusEvent] = {}


def registered_events() -> Dict[str, BusEvent]:
    """All event definitions declared so far, keyed by type."""
    return dict(_registry)


class EventPayload(BaseModel):
    """Payload delivered to subscribers."""
    type: str
    properties: Dict[str, Any]


SubscriptionCallback = Callable[[EventPayload], Union[None, Awaitable[None]]]


class Bus:
    """Publish/subscribe hub.

    Callbacks run in subscription order. A failing callback is logged and
    does not prevent later callbacks from running.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[SubscriptionCallback]] = {}

    async def publish(self, event: BusEvent[T], properties: T | dict[str, Any]) -> None:
        if not isinstance(properties, event.properties_type):
            if isinstance(properties, dict):
                properties = event.properties_type(**properties)
            else:
                raise TypeError(
                    f"Properties must be instance of {event.properties_type.__name__}"
                )

        payload = EventPayload(type=event.type, properties=properties.model_dump(mode="json"))

        callbacks: List[SubscriptionCallback] = []
        for key in [event.type, "*"]:
            callbacks.extend(self._subscriptions.get(key, []))

        for callback in callbacks:
            try:
                result = callback(payload)
                if hasattr(result, '__await__'):
                    await result
            except Exception as e:
                _get_log().error("subscription callback failed", {
                    "error": str(e),
                    "type": event.type,
                    "traceback": traceback.format_exc(),
                })

    def subscribe(self, event: BusEvent[T], callback: SubscriptionCallback) -> Callable[[], None]:
        """Subscribe to one event type. Returns an unsubscribe function."""
        return self._raw_subscribe(event.type, callback)

    def subscribe_all(self, callback: SubscriptionCallback) -> Callable[[], None]:
        return self._raw_subscribe("*", callback)

    def _raw_subscribe(self, event_type: str, callback: SubscriptionCallback) -> Callable[[], None]:
        self._subscriptions.setdefault(event_type, []).append(callback)

        def unsubscribe() -> None:
            subs = self._subscriptions.get(event_type, [])
            if callback in subs:
                subs.remove(callback)

        return unsubscribe

    def subscriber_count(self, event: BusEvent[Any] | None = None) -> int:
        if event is None:
            return sum(len(subs) for subs in self._subscriptions.values())
        return len(self._subscriptions.get(event.type, []))

    def clear(self) -> None:
        self._subscriptions.clear()
