#!/usr/bin/env python3
"""Dev entrypoint for running the reminder scheduler outside the API.

Usage:
    # Single tick (deliver everything due now, once)
    python scripts/run_scheduler.py --once

    # Continuous loop (Ctrl+C to stop)
    python scripts/run_scheduler.py --loop

    # Loop with custom interval
    python scripts/run_scheduler.py --loop --interval 10

    # Limit iterations (for testing)
    python scripts/run_scheduler.py --loop --max-iterations 5

Environment variables:
    SCHEDULER_INTERVAL_SECONDS: Seconds between ticks (default: 60)
    SCHEDULER_BATCH_SIZE: Page size of the due query (default: 100)
    SMTP_SERVER, FROM_EMAIL: Enable the email channel
    FCM_PROJECT_ID, FCM_CREDENTIALS_JSON: Enable the push channel

In-app events are only logged here; connected clients are served by the
API process, which runs its own scheduler when SCHEDULER_ENABLED is set.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from reminder_service.config import get_settings
from reminder_service.realtime.notifier import LoggingNotifier
from reminder_service.services.dispatcher import DeliveryDispatcher
from reminder_service.workers import ReminderScheduler, WorkerStatus, configure_logging


def main() -> int:
    """Main entrypoint for the scheduler."""
    parser = argparse.ArgumentParser(
        description="Deliver due reminders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run a single tick and exit",
    )
    mode.add_argument(
        "--loop",
        action="store_true",
        help="Tick continuously at the configured interval",
    )

    # Configuration
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between ticks (loop mode only)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Maximum ticks before stopping (loop mode only)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Page size of the due query",
    )

    # Logging
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging to warnings only",
    )

    args = parser.parse_args()

    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.WARNING)
    else:
        configure_logging(logging.INFO)

    logger = logging.getLogger(__name__)
    settings = get_settings()

    try:
        dispatcher = DeliveryDispatcher.from_settings(settings, LoggingNotifier())
        scheduler = ReminderScheduler(
            dispatcher,
            interval_seconds=args.interval or settings.SCHEDULER_INTERVAL_SECONDS,
            batch_size=args.batch_size or settings.SCHEDULER_BATCH_SIZE,
        )

        if args.once:
            logger.info("Running one scheduler tick...")
            result = scheduler.tick()

            print("\n--- Scheduler Tick Summary ---")
            print(f"Status: {result.status.value}")
            print(f"Due: {result.found_count}")
            print(f"Delivered: {result.processed_count}")
            print(f"Failed: {result.failed_count}")

            for err in result.errors:
                print(f"  - {err}")

            return 1 if result.status == WorkerStatus.FAILED else 0

        logger.info("Starting scheduler loop (Ctrl+C to stop)...")
        scheduler.run_loop(max_iterations=args.max_iterations)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Scheduler failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
