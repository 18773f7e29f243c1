"""Batched persistence of the in-memory step count."""

from datetime import date
from typing import List, Optional, Set
import asyncio
import logging

from .activity_store import ActivityStore
from .config import StepConfig
from .errors import PersistenceWriteFailure
from .models import derive_activity_metrics

logger = logging.getLogger(__name__)


class PersistenceFlushPolicy:
    """
    Flushes the step count to an activity store every ``FLUSH_BATCH_SIZE`` steps.

    Writes are bounded to ``count / batch_size`` per session and the stored
    record lags the in-memory count by at most ``batch_size - 1`` steps. Each
    flush is a fire-and-forget task on the running loop; a failed flush is
    logged and the next batch boundary persists the larger count.
    """

    def __init__(self, store: ActivityStore, config: Optional[StepConfig] = None):
        """
        Initialize the flush policy.

        Args:
            store: Activity store receiving the upserts
            config: Step configuration, defaults to StepConfig()
        """
        self.store = store
        self.config = config or StepConfig()
        self.batch_size = self.config.FLUSH_BATCH_SIZE
        self._pending: Set[asyncio.Task] = set()
        self.flushed: List[int] = []
        self.failures = 0
        self.reset()

    def reset(self, baseline: int = 0):
        """Treat every batch boundary up to ``baseline`` as already flushed."""
        self._last_flushed = baseline - baseline % self.batch_size

    @property
    def flush_count(self) -> int:
        return len(self.flushed)

    @property
    def pending(self) -> Set[asyncio.Task]:
        """Flush tasks that have not completed yet."""
        return set(self._pending)

    def should_flush(self, steps: int) -> bool:
        return steps % self.batch_size == 0 and steps > self._last_flushed

    def on_count(self, user_id: Optional[str], day: date, steps: int) -> Optional[asyncio.Task]:
        """
        Dispatch a flush if ``steps`` reached a new batch boundary.

        Args:
            user_id: Owner of the activity record, None for anonymous sessions
            day: Calendar date of the record
            steps: Current in-memory step count

        Returns:
            The scheduled flush task, or None if nothing was dispatched
        """
        if user_id is None or not self.should_flush(steps):
            return None

        # Raises RuntimeError without a running loop, before any state changes
        loop = asyncio.get_running_loop()
        derived = derive_activity_metrics(
            steps,
            self.config.CALORIES_PER_STEP,
            self.config.STEPS_PER_ACTIVE_MINUTE,
        )

        task = loop.create_task(
            self._flush(user_id, day, steps, derived['calories_burned'], derived['active_minutes'])
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._last_flushed = steps
        self.flushed.append(steps)

        logger.info(f"Flushing {steps} steps for user {user_id} on {day}")
        return task

    async def _flush(
        self, user_id: str, day: date, steps: int, calories_burned: int, active_minutes: int
    ) -> bool:
        try:
            await self.store.upsert_steps(user_id, day, steps, calories_burned, active_minutes)
        except Exception as e:
            self.failures += 1
            failure = PersistenceWriteFailure(user_id, day, steps, e)
            logger.warning(str(failure), exc_info=e)
            return False
        return True

    async def drain(self):
        """Wait for in-flight flushes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
