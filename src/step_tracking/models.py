"""Data models for step tracking."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict
import math


class TrackingState(str, Enum):
    """Lifecycle states of a tracking session."""

    IDLE = 'idle'
    REQUESTING_PERMISSION = 'requesting_permission'
    TRACKING = 'tracking'


@dataclass(frozen=True)
class MotionSample:
    """A single 3-axis acceleration reading."""

    x: float
    y: float
    z: float
    timestamp_ms: int

    @property
    def magnitude(self) -> float:
        """Euclidean norm of the acceleration vector."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


@dataclass
class DailyActivityRecord:
    """Per-user, per-day activity row owned by the surrounding application."""

    user_id: str
    date: date
    steps: int = 0
    calories_burned: int = 0
    active_minutes: int = 0
    sleep_hours: float = 0.0
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def derive_activity_metrics(
    steps: int,
    calories_per_step: float = 0.04,
    steps_per_active_minute: int = 100,
) -> Dict[str, int]:
    """
    Recompute the fields derived from a step count.

    Args:
        steps: Total steps for the day
        calories_per_step: Approximate calories burned per step
        steps_per_active_minute: Steps that count as one active minute

    Returns:
        Dictionary with 'calories_burned' and 'active_minutes'
    """
    return {
        'calories_burned': math.floor(steps * calories_per_step),
        'active_minutes': steps // steps_per_active_minute,
    }
