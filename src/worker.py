"""Notification queue worker for the fulfillment domain.

Sends queued emails: one pass immediately at start, then one pass every
``MAIL_QUEUE_INTERVAL_SECONDS`` until interrupted.

Usage:
    python src/worker.py           # Run until SIGINT/SIGTERM
    python src/worker.py --once    # Process one batch and exit
"""

import argparse
import signal
import threading

import structlog

from fulfillment.domain import fulfillment
from fulfillment.services import get_services
from fulfillment.utils.logging import configure_logging

logger = structlog.get_logger("worker")


def run(once: bool = False) -> None:
    fulfillment.init()

    with fulfillment.domain_context():
        worker = get_services().worker

        if once:
            summary = worker.process_due()
            logger.info("worker.single_run_finished", processed=summary.processed, failed=summary.failed)
            return

        stop_event = threading.Event()

        def _stop(signum, frame):  # noqa: ARG001
            logger.info("worker.stopping", signal=signum)
            stop_event.set()

        signal.signal(signal.SIGINT, _stop)
        signal.signal(signal.SIGTERM, _stop)

        worker.run_forever(stop_event)


def main():
    parser = argparse.ArgumentParser(description="Fulfillment notification queue worker")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process one batch of due notifications and exit",
    )
    args = parser.parse_args()

    configure_logging("worker")
    run(once=args.once)


if __name__ == "__main__":
    main()
