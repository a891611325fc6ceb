"""Background delivery of due reminders.

The scheduler can be driven via:
- ReminderScheduler.tick(): Single processing cycle
- ReminderScheduler.start()/stop(): Background thread in the API process
- ReminderScheduler.run_loop(): Blocking loop for scripts/run_scheduler.py
"""

from reminder_service.workers.base import (
    WorkerBase,
    WorkerResult,
    WorkerStatus,
)
from reminder_service.workers.reminder_worker import ReminderWorker
from reminder_service.workers.scheduler import (
    ReminderScheduler,
    configure_logging,
)

__all__ = [
    # Base classes
    "WorkerBase",
    "WorkerResult",
    "WorkerStatus",
    # Workers
    "ReminderWorker",
    # Scheduler
    "ReminderScheduler",
    "configure_logging",
]
