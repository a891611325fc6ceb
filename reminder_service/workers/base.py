"""Base worker abstraction for polling workers.

A worker cycle:
1. fetch_pending() - Query a page of items due for processing, repeated
   until the query is exhausted
2. process_item() - Do the work for one item, committed per item
3. Failures of one item are logged and rolled back without stopping
   the cycle; a failed fetch ends the cycle early

Workers are testable via direct calls to run() with a session and a
reference time.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlmodel import Session

from reminder_service.errors import SchedulerTickError

logger = logging.getLogger(__name__)


class WorkerStatus(str, Enum):
    """Status of a worker run."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Some items processed, some failed
    FAILED = "failed"
    NO_WORK = "no_work"


@dataclass
class WorkerResult:
    """Result of a worker processing cycle.

    Attributes:
        status: Overall status of the worker run
        found_count: Number of due items returned by the query
        processed_count: Number of items successfully processed
        failed_count: Number of items that failed
        skipped_count: Number of items no longer eligible when processed
        duration_ms: Time taken for the processing cycle
        errors: List of error details for failed items
    """

    status: WorkerStatus
    found_count: int = 0
    processed_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    duration_ms: float = 0.0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "status": self.status.value,
            "found_count": self.found_count,
            "processed_count": self.processed_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "duration_ms": self.duration_ms,
            "errors": self.errors,
        }


# Generic type for work items
T = TypeVar("T")


class WorkerBase(ABC, Generic[T]):
    """Abstract base class for polling workers."""

    def __init__(self, batch_size: int = 100) -> None:
        """Initialize the worker.

        Args:
            batch_size: Page size of the due query
        """
        self.batch_size = batch_size
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def worker_name(self) -> str:
        """Return the worker name for logging."""
        pass

    @abstractmethod
    def fetch_pending(
        self, session: Session, as_of: datetime, exclude_ids: Collection[UUID] = ()
    ) -> list[T]:
        """Fetch up to batch_size items due at as_of, skipping exclude_ids."""
        pass

    @abstractmethod
    def process_item(self, session: Session, item: T) -> bool:
        """Process a single item.

        Returns:
            True if processed, False if the item was skipped

        Raises:
            Exception: If processing fails
        """
        pass

    @abstractmethod
    def get_item_id(self, item: T) -> UUID:
        """Get the unique identifier for an item."""
        pass

    def run(self, session: Session, as_of: datetime) -> WorkerResult:
        """Execute one processing cycle.

        Pages through the due query batch_size items at a time until a
        page comes back short. Items attempted earlier in the cycle are
        excluded from later pages, so each item is tried at most once.

        Args:
            session: Database session
            as_of: Reference time for the due query

        Returns:
            WorkerResult with processing statistics
        """
        start = time.monotonic()
        found = 0
        processed = 0
        failed = 0
        skipped = 0
        errors: list[dict[str, Any]] = []
        attempted: set[UUID] = set()
        fetch_failed = False

        while True:
            try:
                items = self.fetch_pending(session, as_of, exclude_ids=attempted)
            except Exception as e:
                session.rollback()
                fetch_failed = True
                error = SchedulerTickError(f"Due query failed: {e}")
                errors.append({"error": error.message})
                self._logger.error(
                    f"[{self.worker_name}] Worker cycle failed",
                    extra={"error": error.message},
                    exc_info=True,
                )
                break

            if not items:
                break

            found += len(items)
            self._logger.info(f"[{self.worker_name}] Found {len(items)} items to process")

            # Ids are read up front; a rollback expires the remaining items
            page = [(self.get_item_id(item), item) for item in items]
            attempted.update(item_id for item_id, _ in page)

            for item_id, item in page:
                try:
                    if self.process_item(session, item):
                        processed += 1
                    else:
                        skipped += 1
                    session.commit()

                except Exception as e:
                    session.rollback()
                    failed += 1
                    error_msg = str(e)[:500]
                    errors.append({"item_id": str(item_id), "error": error_msg})

                    self._logger.error(
                        f"[{self.worker_name}] Failed to process item {item_id}",
                        extra={"item_id": str(item_id), "error": error_msg},
                        exc_info=True,
                    )

            if len(items) < self.batch_size:
                break

        if found == 0 and not fetch_failed:
            self._logger.debug(f"[{self.worker_name}] No pending items")
            return WorkerResult(
                status=WorkerStatus.NO_WORK,
                duration_ms=self._elapsed_ms(start),
            )

        if processed > 0 and (failed > 0 or fetch_failed):
            status = WorkerStatus.PARTIAL
        elif processed > 0:
            status = WorkerStatus.SUCCESS
        elif failed > 0 or fetch_failed:
            status = WorkerStatus.FAILED
        else:
            status = WorkerStatus.NO_WORK

        result = WorkerResult(
            status=status,
            found_count=found,
            processed_count=processed,
            failed_count=failed,
            skipped_count=skipped,
            duration_ms=self._elapsed_ms(start),
            errors=errors,
        )

        self._logger.info(f"[{self.worker_name}] Cycle complete", extra=result.to_dict())
        return result

    def _elapsed_ms(self, start: float) -> float:
        """Calculate elapsed time in milliseconds."""
        return (time.monotonic() - start) * 1000
