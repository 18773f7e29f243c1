"""Configuration settings for step tracking."""

from pathlib import Path
from dataclasses import dataclass, field

from .signal_filters import FilterConfig


@dataclass
class StepConfig:
    """Configuration for step detection and persistence."""

    MAGNITUDE_THRESHOLD: float = 1.2  # g-like units, threshold-only variant used 1.5
    DEBOUNCE_MS: int = 300  # Minimum time between two accepted steps
    FLUSH_BATCH_SIZE: int = 10  # Persist the count every N steps
    CALORIES_PER_STEP: float = 0.04
    STEPS_PER_ACTIVE_MINUTE: int = 100
    SAMPLING_RATE: int = 60  # Hz, typical sensor frequency
    METRICS_WINDOW: float = 60.0  # Time window for recent cadence (seconds)
    filter_config: FilterConfig = field(
        default_factory=lambda: FilterConfig(filter_type='none', sampling_rate=60)
    )

    def __post_init__(self):
        if self.MAGNITUDE_THRESHOLD <= 0:
            raise ValueError("MAGNITUDE_THRESHOLD must be positive")
        if self.DEBOUNCE_MS < 0:
            raise ValueError("DEBOUNCE_MS must be non-negative")
        if self.FLUSH_BATCH_SIZE <= 0:
            raise ValueError("FLUSH_BATCH_SIZE must be positive")
        if self.STEPS_PER_ACTIVE_MINUTE <= 0:
            raise ValueError("STEPS_PER_ACTIVE_MINUTE must be positive")


@dataclass
class ReplayConfig:
    """Configuration for replaying recorded motion data."""

    DATA_DIR: Path = Path("data/raw/motion")
    STORE_PATH: Path = Path("data/activities.parquet")
    SPEED: float = 1.0  # Playback speed multiplier (1 = real-time, 0 = as fast as possible)
