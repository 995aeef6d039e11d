"""Recording event sink for development and testing."""

from orderflow.sink.port import EventSink


class RecordingEventSink(EventSink):
    """Captures published notifications; can be configured to fail."""

    def __init__(self) -> None:
        self.should_fail: bool = False
        self.failure_reason: str = "Sink unavailable"
        self.published: list[dict] = []

    def configure(self, should_fail: bool, failure_reason: str = "Sink unavailable") -> None:
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def publish(self, name: str, payload: dict) -> None:
        if self.should_fail:
            raise ConnectionError(self.failure_reason)
        self.published.append({"name": name, "payload": payload})

    def names(self) -> list[str]:
        return [entry["name"] for entry in self.published]
