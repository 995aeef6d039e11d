"""Event sink port — where order lifecycle notifications are sent.

Delivery is fire-and-forget: a failing sink must never roll back the
order change that produced the notification.
"""

from abc import ABC, abstractmethod


class EventSink(ABC):
    @abstractmethod
    def publish(self, name: str, payload: dict) -> None:
        """Deliver one named notification."""
        ...
