"""Outbound channel for order notifications.

``OrderNotificationsHandler`` hands OrderCreated, StatusChanged and
OrderCancelled payloads to whichever sink is installed here. A message bus
adapter is installed with ``set_event_sink``; without one, notifications
are kept in a RecordingEventSink so they can be inspected in-process.
"""

from orderflow.sink.fake_adapter import RecordingEventSink
from orderflow.sink.port import EventSink

_sink: EventSink | None = None


def get_event_sink() -> EventSink:
    global _sink
    if _sink is None:
        _sink = RecordingEventSink()
    return _sink


def set_event_sink(sink: EventSink) -> None:
    global _sink
    _sink = sink


def reset_event_sink() -> None:
    """Drop the installed sink along with anything it recorded."""
    global _sink
    _sink = None
