"""
Optional smoothing of the acceleration magnitude before step detection.

Two causal filters are available for live streams:
1. Moving average (simple smoothing, no frequency selectivity)
2. Butterworth low-pass (sosfilt with carried state)

The default configuration applies no filtering, so the detector thresholds the
raw magnitude.
"""

from collections import deque
from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np
from scipy.signal import butter, sosfilt, sosfilt_zi


FilterType = Literal['butterworth', 'moving_average', 'none']


@dataclass
class FilterConfig:
    """Configuration for magnitude smoothing."""
    filter_type: FilterType = 'none'
    cutoff_freq: float = 5.0  # Hz, well above walking cadence (~2 Hz)
    filter_order: int = 2
    sampling_rate: int = 60  # Hz

    # Moving average parameters
    window_size: int = 3


class ButterworthFilter:
    """
    Real-time Butterworth low-pass filter using sosfilt (causal).

    The internal state is seeded from the first sample so a resting magnitude
    of ~1 g does not produce a start-up transient.
    """

    def __init__(self, cutoff: float, fs: int, order: int = 2):
        """
        Initialize Butterworth filter.

        Args:
            cutoff: Cutoff frequency in Hz, must be below fs / 2
            fs: Sampling rate in Hz
            order: Filter order
        """
        if cutoff >= fs / 2:
            raise ValueError(f"Cutoff {cutoff} Hz must be below Nyquist ({fs / 2} Hz)")
        self.cutoff = cutoff
        self.fs = fs
        self.order = order
        self.sos = butter(order, cutoff, btype='low', fs=fs, output='sos')
        self.zi: Optional[np.ndarray] = None

    def filter_sample(self, sample: float) -> float:
        """Filter a single sample, carrying state between calls."""
        if self.zi is None:
            self.zi = sosfilt_zi(self.sos) * sample
        filtered, self.zi = sosfilt(self.sos, [sample], zi=self.zi)
        return float(filtered[0])

    def reset(self):
        """Reset filter state (next sample re-seeds it)."""
        self.zi = None


class MovingAverageFilter:
    """Simple moving average over the last N samples."""

    def __init__(self, window_size: int):
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self.window_size = window_size
        self.buffer = deque(maxlen=window_size)
        self.sum = 0.0

    def filter_sample(self, sample: float) -> float:
        # Remove oldest value from sum if buffer is full
        if len(self.buffer) == self.window_size:
            self.sum -= self.buffer[0]

        self.buffer.append(sample)
        self.sum += sample

        return self.sum / len(self.buffer)

    def reset(self):
        self.buffer.clear()
        self.sum = 0.0


class StreamingFilter:
    """Selects and drives the configured magnitude filter."""

    def __init__(self, config: FilterConfig):
        self.config = config

        if config.filter_type == 'butterworth':
            self.filter = ButterworthFilter(
                config.cutoff_freq,
                config.sampling_rate,
                config.filter_order
            )
        elif config.filter_type == 'moving_average':
            self.filter = MovingAverageFilter(config.window_size)
        elif config.filter_type == 'none':
            self.filter = None
        else:
            raise ValueError(f"Unknown filter type: {config.filter_type!r}")

    def filter_sample(self, sample: float) -> float:
        """
        Filter a single sample.

        Args:
            sample: Input magnitude

        Returns:
            Filtered magnitude (or the input unchanged if no filter)
        """
        if self.filter is None:
            return sample
        return self.filter.filter_sample(sample)

    def reset(self):
        """Reset filter state."""
        if self.filter is not None:
            self.filter.reset()

    def get_info(self) -> dict:
        """Describe the active filter for logs."""
        if self.config.filter_type == 'butterworth':
            return {
                'type': 'Butterworth',
                'description': f'Order {self.config.filter_order} low-pass @ {self.config.cutoff_freq:.1f} Hz'
            }
        if self.config.filter_type == 'moving_average':
            return {
                'type': 'Moving Average',
                'description': f'Moving average (window={self.config.window_size})'
            }
        return {'type': 'None', 'description': 'No filtering'}
