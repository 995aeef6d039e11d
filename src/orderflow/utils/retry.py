"""Bounded exponential backoff for transient store failures."""

import time

import structlog

from orderflow.shared.errors import is_transient

logger = structlog.get_logger(__name__)


def retry_transient(operation, attempts=3, initial_delay=1.0, max_delay=5.0, sleep=time.sleep):
    """Call ``operation`` until it succeeds, retrying only transient failures.

    The delay doubles after each failed attempt and never exceeds
    ``max_delay``. Non-transient errors propagate immediately; the last
    transient error propagates once ``attempts`` are used up. The operation
    always runs at least once, whatever ``attempts`` says.
    """
    attempts = max(1, int(attempts))
    delay = initial_delay
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if not is_transient(exc) or attempt == attempts:
                raise
            logger.warning(
                "Transient failure, retrying",
                attempt=attempt,
                max_attempts=attempts,
                delay_seconds=delay,
                error=str(exc),
            )
            sleep(delay)
            delay = min(delay * 2, max_delay)
