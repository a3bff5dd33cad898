"""
Notification Hub: Named-event publish/subscribe for parser consumers.

The parser raises four notifications: ``prose_delta``, ``code_delta``,
``manifest_resolved`` and ``complete``. Renderers and storage subscribe
either to the typed event models or, through the ``on_*`` helpers, to the
bare payloads.
"""

from typing import Callable, Dict, List, Union

from ..blocks.segment_schema import (
    EVENT_NAMES,
    CodeDeltaEvent,
    CompleteEvent,
    ManifestResolvedEvent,
    ProseDeltaEvent,
    Segment,
)


Event = Union[ProseDeltaEvent, CodeDeltaEvent, ManifestResolvedEvent, CompleteEvent]
Subscriber = Callable[[Event], None]


class NotificationHub:
    """
    Dispatches parser events to subscribers in registration order.

    Example:
        >>> hub = NotificationHub()
        >>> seen = []
        >>> unsubscribe = hub.on_prose_delta(seen.append)
        >>> hub.publish(ProseDeltaEvent(text="Hi"))
        >>> seen
        ['Hi']
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {name: [] for name in EVENT_NAMES}

    def subscribe(self, event_name: str, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for one event name.

        Args:
            event_name: One of prose_delta, code_delta, manifest_resolved, complete
            callback: Called with the event model

        Returns:
            A function that removes the subscription

        Raises:
            ValueError: If the event name is unknown
        """
        if event_name not in self._subscribers:
            raise ValueError(f"Unknown event '{event_name}', expected one of {EVENT_NAMES}")
        self._subscribers[event_name].append(callback)
        return lambda: self.unsubscribe(event_name, callback)

    def unsubscribe(self, event_name: str, callback: Subscriber) -> None:
        subscribers = self._subscribers.get(event_name, [])
        if callback in subscribers:
            subscribers.remove(callback)

    def publish(self, event: Event) -> None:
        # Copy so a callback may unsubscribe itself
        for callback in list(self._subscribers[event.event]):
            callback(event)

    def clear(self) -> None:
        for subscribers in self._subscribers.values():
            subscribers.clear()

    def has_subscribers(self, event_name: str) -> bool:
        return bool(self._subscribers.get(event_name))

    # Payload-level helpers

    def on_prose_delta(self, callback: Callable[[str], None]) -> Callable[[], None]:
        return self.subscribe("prose_delta", lambda event: callback(event.text))

    def on_code_delta(self, callback: Callable[[str], None]) -> Callable[[], None]:
        return self.subscribe("code_delta", lambda event: callback(event.text))

    def on_manifest_resolved(self, callback: Callable[[Dict[str, str]], None]) -> Callable[[], None]:
        return self.subscribe("manifest_resolved", lambda event: callback(event.manifest))

    def on_complete(
        self, callback: Callable[[List[Segment], Dict[str, str]], None]
    ) -> Callable[[], None]:
        return self.subscribe("complete", lambda event: callback(event.segments, event.manifest))
