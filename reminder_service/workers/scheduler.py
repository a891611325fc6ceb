"""Reminder scheduler: the fixed-interval ticker behind reminder delivery.

Provides three ways to drive the reminder worker:
- tick(): Single processing cycle (deterministic, used by tests and --once)
- start()/stop(): Background timer thread inside the API process
- run_loop(): Blocking loop for a dedicated terminal process

A tick never raises. Query failures and per-reminder dispatch failures
are logged and retried on the next tick, because a failed dispatch does
not move a reminder out of pending/snoozed.
"""

import logging
import signal
import threading
from typing import Callable

from sqlmodel import Session

from reminder_service.clock import Clock, SystemClock
from reminder_service.errors import SchedulerTickError
from reminder_service.services.dispatcher import DeliveryDispatcher
from reminder_service.workers.base import WorkerResult, WorkerStatus
from reminder_service.workers.reminder_worker import ReminderWorker

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_BATCH_SIZE = 100


def _default_session_factory() -> Session:
    from reminder_service.db.session import engine

    return Session(engine)


class ReminderScheduler:
    """Owns the tick cadence and feeds due reminders to the dispatcher.

    Usage:
        scheduler = ReminderScheduler(dispatcher)
        result = scheduler.tick()

        scheduler.start()   # background thread
        scheduler.stop()
    """

    def __init__(
        self,
        dispatcher: DeliveryDispatcher,
        clock: Clock | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        session_factory: Callable[[], Session] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            dispatcher: Delivers each due reminder
            clock: Time source for the due query (defaults to system UTC)
            interval_seconds: Seconds between ticks
            batch_size: Page size of the due query; a tick drains every page
            session_factory: Creates a session per tick when none is passed
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.session_factory = session_factory or _default_session_factory
        self.worker = ReminderWorker(dispatcher, batch_size=batch_size)

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self, session: Session | None = None) -> WorkerResult:
        """Execute one scheduler tick.

        Args:
            session: Optional database session (creates new if not provided)

        Returns:
            WorkerResult with found/processed/failed counts and duration
        """
        now = self.clock.now()
        own_session = session is None

        try:
            if own_session:
                session = self.session_factory()
            try:
                return self.worker.run(session, now)
            finally:
                if own_session:
                    session.close()

        except Exception as e:
            error = SchedulerTickError(f"Tick at {now.isoformat()} failed: {e}")
            self._logger.error(error.message, exc_info=True)
            return WorkerResult(status=WorkerStatus.FAILED, errors=[{"error": error.message}])

    # -------------------------------------------------------------------------
    # Background thread
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start ticking on a daemon thread. No-op if already running."""
        if self.running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="reminder-scheduler",
            daemon=True,
        )
        self._thread.start()
        self._logger.info(
            "Reminder scheduler started",
            extra={"interval_seconds": self.interval_seconds, "batch_size": self.batch_size},
        )

    def stop(self, timeout: float | None = 10.0) -> None:
        """Signal the thread to stop and wait for the current tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            self._logger.info("Reminder scheduler stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.interval_seconds)

    # -------------------------------------------------------------------------
    # Blocking loop
    # -------------------------------------------------------------------------

    def run_loop(self, max_iterations: int | None = None) -> int:
        """Run ticks in the foreground until a signal or max_iterations.

        Args:
            max_iterations: Max ticks to run (None for infinite)

        Returns:
            Number of ticks executed
        """
        iterations = 0
        self._stop_event.clear()
        self._setup_signal_handlers()

        self._logger.info(
            "Starting scheduler loop",
            extra={"interval_seconds": self.interval_seconds, "max_iterations": max_iterations},
        )

        try:
            while not self._stop_event.is_set():
                if max_iterations is not None and iterations >= max_iterations:
                    self._logger.info(f"Reached max iterations ({max_iterations}), stopping")
                    break

                result = self.tick()
                iterations += 1

                self._logger.info(
                    f"Iteration {iterations} complete",
                    extra={"processed": result.processed_count, "failed": result.failed_count},
                )

                if max_iterations is not None and iterations >= max_iterations:
                    continue
                self._stop_event.wait(self.interval_seconds)

        except KeyboardInterrupt:
            self._logger.info("Keyboard interrupt received, shutting down")

        self._logger.info("Scheduler loop stopped", extra={"total_iterations": iterations})
        return iterations

    def request_shutdown(self) -> None:
        """Request graceful shutdown of the loop."""
        self._stop_event.set()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        if threading.current_thread() is not threading.main_thread():
            return

        def handle_signal(signum, frame):
            self._logger.info(f"Received signal {signum}, requesting shutdown")
            self._stop_event.set()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging for the scheduler process.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("reminder_service").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
