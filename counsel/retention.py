"""Bounded retention for the conversation log.

``RetentionPolicy.run`` trims the log down to ``max_records`` by deleting the
oldest records. ``RetentionScheduler`` fires it on a cron cadence from a
background thread that the application lifespan starts and stops.
"""

from __future__ import annotations

import enum
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from croniter import croniter

from counsel.core.conversation_log import ConversationLog
from counsel.errors import StartupError, StorageError


logger = logging.getLogger("counsel.retention")


class RetentionState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class RetentionPolicy:
    def __init__(self, log: ConversationLog, max_records: int) -> None:
        if max_records < 0:
            raise ValueError("max_records must be >= 0")
        self.log = log
        self.max_records = max_records
        self._running = threading.Lock()

    @property
    def state(self) -> RetentionState:
        return RetentionState.RUNNING if self._running.locked() else RetentionState.IDLE

    def run(self) -> Optional[int]:
        """Trim the log once.

        Returns the number of records deleted, or ``None`` when the trigger
        was skipped because a run was already in flight or the run failed.
        """
        if not self._running.acquire(blocking=False):
            logger.info("Retention run already in progress; skipping trigger")
            return None
        try:
            count = self.log.count()
            if count <= self.max_records:
                logger.info("Retention: %s conversations, limit %s; nothing to delete", count, self.max_records)
                return 0
            excess = count - self.max_records
            deleted = self.log.delete_oldest(excess)
            logger.info("Cleaned up %s old conversations", deleted)
            return deleted
        except StorageError:
            logger.exception("Error during conversation cleanup")
            return None
        finally:
            self._running.release()


def validate_schedule(expression: str) -> str:
    if not croniter.is_valid(expression):
        raise StartupError(f"Invalid retention schedule: {expression!r}")
    return expression


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RetentionScheduler:
    """Fires ``policy.run`` on every tick of a cron expression.

    Each tick dispatches the run on its own worker thread; overlapping runs
    are turned away by the policy itself.
    """

    def __init__(
        self,
        policy: RetentionPolicy,
        schedule: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.policy = policy
        self.schedule = validate_schedule(schedule)
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._workers: List[threading.Thread] = []

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def next_fire_time(self, now: Optional[datetime] = None) -> datetime:
        return croniter(self.schedule, now or self._clock()).get_next(datetime)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="retention-scheduler", daemon=True)
        self._thread.start()
        logger.info("Retention scheduler started: schedule=%r limit=%s", self.schedule, self.policy.max_records)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        # A run still in flight must finish before the log is closed.
        for worker in self._workers:
            worker.join(timeout)
        self._workers = []
        logger.info("Retention scheduler stopped")

    def trigger(self) -> threading.Thread:
        logger.info("Running scheduled conversation cleanup")
        worker = threading.Thread(target=self.policy.run, name="retention-run", daemon=True)
        worker.start()
        self._workers = [w for w in self._workers if w.is_alive()] + [worker]
        return worker

    def _loop(self) -> None:
        while not self._stop.is_set():
            now = self._clock()
            delay = (self.next_fire_time(now) - now).total_seconds()
            if self._stop.wait(max(delay, 0.0)):
                break
            self.trigger()
