"""Motion sensor sources delivering samples to a single handler."""

from typing import Callable, List, Optional, Sequence
import asyncio
import logging

import polars as pl

from .data_loader import dataframe_to_samples
from .models import MotionSample

logger = logging.getLogger(__name__)

SampleHandler = Callable[[MotionSample], None]


class Subscription:
    """Delivers samples to a handler until unsubscribed."""

    def __init__(
        self,
        handler: SampleHandler,
        on_unsubscribe: Optional[Callable[['Subscription'], None]] = None,
    ):
        self.handler = handler
        self.active = True
        self._on_unsubscribe = on_unsubscribe
        self.task: Optional[asyncio.Task] = None

    def deliver(self, sample: MotionSample):
        if self.active:
            self.handler(sample)

    def unsubscribe(self):
        """Stop delivery. No sample reaches the handler after this returns."""
        if not self.active:
            return
        self.active = False
        if self._on_unsubscribe is not None:
            self._on_unsubscribe(self)


class SensorSource:
    """Capability check, permission request and sample subscription."""

    def is_available(self) -> bool:
        raise NotImplementedError

    async def request_permission(self) -> bool:
        raise NotImplementedError

    def subscribe(self, handler: SampleHandler) -> Subscription:
        raise NotImplementedError


class PushSensorSource(SensorSource):
    """
    Source fed programmatically with ``push``.

    Args:
        available: Result of the capability check
        grant: Result of the permission request
    """

    def __init__(self, available: bool = True, grant: bool = True):
        self.available = available
        self.grant = grant
        self.permission_requests = 0
        self.subscriptions: List[Subscription] = []

    def is_available(self) -> bool:
        return self.available

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.grant

    def subscribe(self, handler: SampleHandler) -> Subscription:
        subscription = Subscription(handler, on_unsubscribe=self.subscriptions.remove)
        self.subscriptions.append(subscription)
        return subscription

    def push(self, sample: MotionSample):
        """Deliver a sample synchronously to every active subscriber."""
        for subscription in list(self.subscriptions):
            subscription.deliver(sample)


class ReplaySensorSource(SensorSource):
    """
    Replays recorded samples on the running event loop.

    Samples are paced by their timestamp deltas divided by ``speed``. A speed of
    0 replays as fast as possible while still yielding to the loop between
    samples.
    """

    def __init__(self, samples: Sequence[MotionSample], speed: float = 1.0):
        if speed < 0:
            raise ValueError("speed must be non-negative")
        self.samples = list(samples)
        self.speed = speed
        self.delivered = 0
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_dataframe(cls, df: pl.DataFrame, speed: float = 1.0) -> 'ReplaySensorSource':
        return cls(dataframe_to_samples(df), speed=speed)

    def is_available(self) -> bool:
        return True

    async def request_permission(self) -> bool:
        return True

    def subscribe(self, handler: SampleHandler) -> Subscription:
        subscription = Subscription(handler, on_unsubscribe=self._cancel)
        task = asyncio.get_running_loop().create_task(self._replay(subscription))
        subscription.task = task
        self._tasks.append(task)
        return subscription

    def _cancel(self, subscription: Subscription):
        if subscription.task is not None:
            subscription.task.cancel()

    async def _replay(self, subscription: Subscription):
        previous_ms = None
        for sample in self.samples:
            if previous_ms is not None and self.speed > 0:
                delay = max(0, sample.timestamp_ms - previous_ms) / 1000.0 / self.speed
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)

            if not subscription.active:
                break
            subscription.deliver(sample)
            self.delivered += 1
            previous_ms = sample.timestamp_ms

        logger.info(f"Replay finished after {self.delivered} samples")

    async def wait_finished(self):
        """Wait until every replay task has finished or been cancelled."""
        await asyncio.gather(*self._tasks, return_exceptions=True)
