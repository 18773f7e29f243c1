"""Shared fixtures for step tracking tests."""

from datetime import date

import pytest

from step_tracking import InMemoryActivityStore, MotionSample, PushSensorSource


TODAY = date(2024, 3, 18)


def sample_at(magnitude: float, timestamp_ms: int) -> MotionSample:
    """Sample whose magnitude lies entirely on the z axis."""
    return MotionSample(x=0.0, y=0.0, z=magnitude, timestamp_ms=timestamp_ms)


def walking_samples(steps: int, start_ms: int = 0, interval_ms: int = 400, magnitude: float = 2.0):
    """One above-threshold sample per step, spaced outside the debounce window."""
    return [sample_at(magnitude, start_ms + i * interval_ms) for i in range(steps)]


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    return InMemoryActivityStore()


@pytest.fixture
def sensor():
    return PushSensorSource()
