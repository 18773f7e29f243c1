"""Step detection and batched persistence for motion-sensor streams."""

from .config import StepConfig, ReplayConfig
from .models import MotionSample, DailyActivityRecord, TrackingState, derive_activity_metrics
from .errors import (
    StepTrackingError,
    CapabilityUnavailable,
    PermissionDenied,
    PersistenceWriteFailure
)
from .signal_filters import FilterConfig, StreamingFilter
from .step_detector import StepDetector
from .flush_policy import PersistenceFlushPolicy
from .activity_store import ActivityStore, InMemoryActivityStore, ParquetActivityStore
from .data_loader import MotionDataLoader, dataframe_to_samples
from .sensor_source import SensorSource, Subscription, PushSensorSource, ReplaySensorSource
from .tracking_session import StepTrackingSession


__all__ = [
    'StepConfig',
    'ReplayConfig',
    'MotionSample',
    'DailyActivityRecord',
    'TrackingState',
    'derive_activity_metrics',
    'StepTrackingError',
    'CapabilityUnavailable',
    'PermissionDenied',
    'PersistenceWriteFailure',
    'FilterConfig',
    'StreamingFilter',
    'StepDetector',
    'PersistenceFlushPolicy',
    'ActivityStore',
    'InMemoryActivityStore',
    'ParquetActivityStore',
    'MotionDataLoader',
    'dataframe_to_samples',
    'SensorSource',
    'Subscription',
    'PushSensorSource',
    'ReplaySensorSource',
    'StepTrackingSession'
]
