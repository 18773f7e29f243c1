"""Tracking session lifecycle: permission, subscription and step counting."""

from datetime import date
from typing import Callable, Dict, Optional
import logging

from .activity_store import ActivityStore
from .config import StepConfig
from .errors import CapabilityUnavailable, PermissionDenied, StepTrackingError
from .flush_policy import PersistenceFlushPolicy
from .models import MotionSample, TrackingState
from .sensor_source import SensorSource, Subscription
from .step_detector import StepDetector

logger = logging.getLogger(__name__)


class StepTrackingSession:
    """
    Owns one step-tracking session: the detector, its flush policy and the
    sensor subscription.

    States move Idle -> RequestingPermission -> Tracking -> Idle. Sensor errors
    end the attempt and are exposed through ``error``; persistence errors are
    only logged and never stop counting.
    """

    def __init__(
        self,
        sensor: SensorSource,
        store: Optional[ActivityStore] = None,
        user_id: Optional[str] = None,
        config: Optional[StepConfig] = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize the session.

        Args:
            sensor: Source of motion samples
            store: Activity store for resuming and flushing, None to keep counts in memory
            user_id: Owner of the activity records, None for an anonymous session
            config: Step configuration, defaults to StepConfig()
            clock: Returns the current calendar date
        """
        self.sensor = sensor
        self.store = store
        self.user_id = user_id
        self.config = config or StepConfig()
        self.clock = clock

        self.detector = StepDetector(self.config)
        self.flush_policy = PersistenceFlushPolicy(store, self.config) if store is not None else None

        self.state = TrackingState.IDLE
        self.has_permission = False
        self.error: Optional[StepTrackingError] = None
        self.day: Optional[date] = None
        self._subscription: Optional[Subscription] = None

    @property
    def steps(self) -> int:
        return self.detector.steps

    @property
    def is_tracking(self) -> bool:
        return self.state == TrackingState.TRACKING

    async def start(self):
        """
        Request sensor access and begin counting.

        Does nothing if the session is already tracking or waiting for
        permission. Any failure while starting returns the session to Idle and
        is recorded in ``error`` instead of being raised.
        """
        if self.state != TrackingState.IDLE:
            return

        self.state = TrackingState.REQUESTING_PERMISSION
        logger.info("Requesting motion sensor permission")

        try:
            await self._start_tracking()
        except StepTrackingError as e:
            self._fail_start(e)
        except Exception as e:
            error = StepTrackingError(f"Failed to start tracking: {e}")
            error.__cause__ = e
            self._fail_start(error)

    async def _start_tracking(self):
        await self._request_access()

        # stop() may have been called while waiting for the platform
        if self.state != TrackingState.REQUESTING_PERMISSION:
            return
        self.has_permission = True

        self.day = self.clock()
        baseline = await self._load_baseline(self.day)
        if self.state != TrackingState.REQUESTING_PERMISSION:
            return

        self._reset_counters(baseline)
        self._subscription = self.sensor.subscribe(self._on_sample)
        self.state = TrackingState.TRACKING
        self.error = None
        logger.info(f"Step tracking started at {baseline} steps for {self.day}")

    def _fail_start(self, error: StepTrackingError):
        self.state = TrackingState.IDLE
        self.has_permission = False
        self.error = error
        logger.warning(f"Step tracking not started: {error}")

    async def _request_access(self):
        try:
            available = self.sensor.is_available()
        except Exception as e:
            raise CapabilityUnavailable(f"Motion sensor capability check failed: {e}") from e
        if not available:
            raise CapabilityUnavailable()

        try:
            granted = await self.sensor.request_permission()
        except StepTrackingError:
            raise
        except Exception as e:
            raise PermissionDenied(f"Motion sensor permission request failed: {e}") from e

        if not granted:
            raise PermissionDenied()

    async def _load_baseline(self, day: date) -> int:
        """Return today's persisted step count, 0 when absent or unreadable."""
        if self.store is None or self.user_id is None:
            return 0
        try:
            steps = await self.store.load_steps(self.user_id, day)
        except Exception as e:
            logger.warning(f"Error loading today's steps, starting from 0: {e}")
            return 0
        if steps is not None and steps < 0:
            logger.warning(f"Ignoring invalid persisted step count {steps}, starting from 0")
            return 0
        return steps or 0

    def _reset_counters(self, baseline: int):
        self.detector.reset(baseline)
        if self.flush_policy is not None:
            self.flush_policy.reset(baseline)

    def _on_sample(self, sample: MotionSample):
        if self.state != TrackingState.TRACKING:
            return
        try:
            self._process_sample(sample)
        except Exception:
            logger.exception("Failed to process motion sample")

    def _process_sample(self, sample: MotionSample):
        today = self.clock()
        if today != self.day:
            logger.info(f"New day {today}, resetting step count from {self.steps}")
            self.day = today
            self._reset_counters(0)

        if not self.detector.process_sample(sample):
            return

        if self.flush_policy is not None:
            self.flush_policy.on_count(self.user_id, self.day, self.steps)

    def stop(self):
        """Unsubscribe from the sensor and return to Idle. Safe to call repeatedly."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        if self.state != TrackingState.IDLE:
            logger.info(f"Step tracking stopped at {self.steps} steps")
            self.state = TrackingState.IDLE

    def close(self):
        """Tear the session down: stop tracking and discard all counting state."""
        self.stop()
        self._reset_counters(0)
        self.day = None

    async def __aenter__(self) -> 'StepTrackingSession':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def metrics(self) -> Dict:
        """Current step count with derived calories, active minutes and recent cadence."""
        self.detector.consume_stale()
        return self.detector.get_metrics(self.config.METRICS_WINDOW)

    def as_dict(self) -> Dict:
        """Caller-facing snapshot of the session."""
        return {
            'steps': self.steps,
            'is_tracking': self.is_tracking,
            'has_permission': self.has_permission,
            'error': str(self.error) if self.error is not None else None,
        }
