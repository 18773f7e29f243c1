"""Real-time step detection from acceleration magnitude."""

from collections import deque
from typing import Dict, Optional
import logging

import numpy as np

from .config import StepConfig
from .models import MotionSample, derive_activity_metrics
from .signal_filters import StreamingFilter

logger = logging.getLogger(__name__)


class StepDetector:
    """
    Detects steps with a magnitude threshold and a refractory debounce window.

    A sample counts as a step when its (optionally smoothed) magnitude exceeds
    the threshold and at least ``DEBOUNCE_MS`` have elapsed since the last
    accepted step. Any periodic motion above threshold is counted, including
    vehicle vibration.
    """

    def __init__(
        self,
        config: Optional[StepConfig] = None,
        initial_count: int = 0,
        max_history: int = 1000,
    ):
        """
        Initialize the step detector.

        Args:
            config: Step configuration, defaults to StepConfig()
            initial_count: Baseline step count (e.g. persisted steps for today)
            max_history: Number of accepted step timestamps kept for cadence
        """
        self.config = config or StepConfig()
        self.threshold = self.config.MAGNITUDE_THRESHOLD
        self.debounce_ms = self.config.DEBOUNCE_MS
        self.max_history = max_history
        self.filter = StreamingFilter(self.config.filter_config)
        self.reset(initial_count)

    def reset(self, initial_count: int = 0):
        """Reset all internal state, starting from a baseline count."""
        if initial_count < 0:
            raise ValueError("initial_count must be non-negative")
        self._steps = initial_count
        self._last_step_ms: Optional[int] = None
        self._last_sample_ms: Optional[int] = None
        self._step_times = deque(maxlen=self.max_history)
        self._metrics_stale = False
        self.filter.reset()

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def last_step_ms(self) -> Optional[int]:
        return self._last_step_ms

    @property
    def metrics_stale(self) -> bool:
        """True when steps were accepted since derived metrics were last consumed."""
        return self._metrics_stale

    def consume_stale(self) -> bool:
        """Return and clear the stale flag."""
        stale = self._metrics_stale
        self._metrics_stale = False
        return stale

    def process_sample(self, sample: MotionSample) -> bool:
        """
        Process a new sample.

        Args:
            sample: Acceleration reading

        Returns:
            True if the sample was accepted as a step
        """
        self._last_sample_ms = sample.timestamp_ms
        magnitude = self.filter.filter_sample(sample.magnitude)

        if magnitude <= self.threshold:
            return False

        if self._last_step_ms is not None:
            if sample.timestamp_ms - self._last_step_ms < self.debounce_ms:
                return False

        self._steps += 1
        self._last_step_ms = sample.timestamp_ms
        self._step_times.append(sample.timestamp_ms)
        self._metrics_stale = True

        logger.debug(
            f"Step {self._steps} at {sample.timestamp_ms} ms (magnitude {magnitude:.2f})"
        )
        return True

    def get_metrics(self, window_seconds: Optional[float] = None) -> Dict:
        """
        Calculate metrics for the current count.

        Args:
            window_seconds: If provided, cadence only covers steps in the last N
                          seconds of sample time. If None, all kept steps are used.

        Returns:
            Dictionary with steps, calories_burned, active_minutes and cadence
        """
        metrics = {'steps': self._steps, 'cadence': None}
        metrics.update(derive_activity_metrics(
            self._steps,
            self.config.CALORIES_PER_STEP,
            self.config.STEPS_PER_ACTIVE_MINUTE,
        ))

        step_times = np.array(self._step_times, dtype=float)

        # Use the most recent sample timestamp, not the last step time,
        # so cadence drops to None once the user stands still
        if window_seconds is not None and self._last_sample_ms is not None:
            cutoff_ms = self._last_sample_ms - window_seconds * 1000.0
            step_times = step_times[step_times >= cutoff_ms]

        if len(step_times) > 1:
            intervals = np.diff(step_times)
            mean_interval = float(np.mean(intervals))
            if mean_interval > 0:
                metrics['cadence'] = 60000.0 / mean_interval

        return metrics
