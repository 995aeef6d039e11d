"""Batch advancement job — periodically sweeps orders from one status to the next.

The job owns a daemon thread. Each tick pushes a fresh domain context, reads
its settings from the configuration parameters, and runs AdvanceOrders with
bounded retries on transient failures. A failed tick is logged and the job
simply waits for the next one.
"""

import threading
import time

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from orderflow.configuration import defaults as keys
from orderflow.configuration.defaults import default_for
from orderflow.configuration.lookup import ConfigurationLookup
from orderflow.order.advancement import AdvanceOrders
from orderflow.shared.errors import is_transient
from orderflow.utils.retry import retry_transient
from orderflow.workflow.registry import StatusRegistry

logger = structlog.get_logger(__name__)


class BatchAdvancementJob:
    def __init__(self, domain, interval=None, source_status=None, target_status=None, sleep=time.sleep):
        self.domain = domain
        self.interval = interval
        self.source_status = source_status
        self.target_status = target_status
        self.sleep = sleep
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------
    # Single sweep
    # -------------------------------------------------------------------
    def run_once(self):
        """Run one sweep. Returns the number of orders advanced, or None if the sweep failed."""
        ctx = self.domain.domain_context()
        ctx.push()
        try:
            return self._sweep()
        finally:
            ctx.pop()

    def _sweep(self):
        lookup = ConfigurationLookup()
        source = self.source_status or lookup.get_string(
            keys.SCHEDULER_SOURCE_STATUS, default_for(keys.SCHEDULER_SOURCE_STATUS)
        )
        target = self.target_status or lookup.get_string(
            keys.SCHEDULER_TARGET_STATUS, default_for(keys.SCHEDULER_TARGET_STATUS)
        )

        registry = StatusRegistry(lookup=lookup)
        try:
            registry.get_by_code(source)
            registry.get_by_code(target)
        except ObjectNotFoundError as exc:
            logger.warning("Batch advancement skipped, status missing", error=str(exc))
            return None

        command = AdvanceOrders(source_status=source, target_status=target)
        try:
            updated = retry_transient(
                lambda: self.domain.process(command, asynchronous=False),
                attempts=max(
                    1, lookup.get_integer(keys.SCHEDULER_RETRY_ATTEMPTS, default_for(keys.SCHEDULER_RETRY_ATTEMPTS))
                ),
                initial_delay=lookup.get_float(
                    keys.SCHEDULER_RETRY_INITIAL_DELAY, default_for(keys.SCHEDULER_RETRY_INITIAL_DELAY)
                ),
                max_delay=lookup.get_float(keys.SCHEDULER_RETRY_MAX_DELAY, default_for(keys.SCHEDULER_RETRY_MAX_DELAY)),
                sleep=self.sleep,
            )
        except ValidationError as exc:
            logger.warning("Batch advancement rejected", from_status=source, to_status=target, error=str(exc))
            return None
        except Exception as exc:
            logger.error(
                "Batch advancement failed",
                from_status=source,
                to_status=target,
                transient=is_transient(exc),
                exc_info=True,
            )
            return None

        logger.info("Batch advancement completed", from_status=source, to_status=target, updated=updated)
        return updated

    # -------------------------------------------------------------------
    # Timer thread
    # -------------------------------------------------------------------
    def _interval_seconds(self):
        if self.interval is not None:
            return self.interval
        ctx = self.domain.domain_context()
        ctx.push()
        try:
            configured = ConfigurationLookup().get_integer(
                keys.SCHEDULER_INTERVAL_SECONDS, default_for(keys.SCHEDULER_INTERVAL_SECONDS)
            )
            # Zero or negative would spin the timer thread
            return max(1, configured)
        finally:
            ctx.pop()

    def _run(self, interval):
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(interval)

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        interval = self._interval_seconds()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, args=(interval,), name="batch-advancement", daemon=True)
        self._thread.start()
        logger.info("Batch advancement job started", interval_seconds=interval)

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Batch advancement job stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
