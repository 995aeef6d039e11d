"""Batch advancement runner for the orderflow domain.

Starts the BatchAdvancementJob on its timer thread and blocks until
interrupted, or runs a single sweep and exits.

Usage:
    python src/server.py                    # Seed the workflow and run the job
    python src/server.py --once             # Run one sweep and exit
    python src/server.py --interval 60      # Override scheduler.interval.seconds
"""

import argparse
import signal
import threading

import structlog


def _get_domain(seed):
    from orderflow.domain import orderflow
    from orderflow.utils.db import setup_db
    from orderflow.workflow.seed import seed_workflow

    orderflow.init()
    setup_db(orderflow)
    if seed:
        with orderflow.domain_context():
            seed_workflow()
    return orderflow


def main():
    parser = argparse.ArgumentParser(description="Orderflow batch advancement runner")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument("--interval", type=int, help="Seconds between sweeps (default: configured value)")
    parser.add_argument("--no-seed", action="store_true", help="Skip seeding the default workflow")
    args = parser.parse_args()

    from orderflow.order.scheduler import BatchAdvancementJob

    logger = structlog.get_logger("server")
    domain = _get_domain(seed=not args.no_seed)
    job = BatchAdvancementJob(domain, interval=args.interval)

    if args.once:
        updated = job.run_once()
        logger.info("Single sweep finished", updated=updated)
        return 0 if updated is not None else 1

    stopped = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stopped.set())

    job.start()
    try:
        stopped.wait()
    except KeyboardInterrupt:
        pass
    finally:
        job.stop(timeout=10)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
