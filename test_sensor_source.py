"""Tests for sensor sources, recorded data loading and end-to-end replay."""

import asyncio

import numpy as np
import polars as pl
import pytest

from conftest import TODAY, sample_at, walking_samples
from step_tracking import (
    InMemoryActivityStore,
    MotionDataLoader,
    PushSensorSource,
    ReplaySensorSource,
    StepTrackingSession,
)


def synthetic_walk(duration: float = 5.0, fs: int = 50, cadence_hz: float = 2.0) -> pl.DataFrame:
    """Vertical acceleration oscillating around 1 g at walking cadence."""
    t = np.arange(int(duration * fs)) / fs
    z = 1.0 + 0.6 * np.sin(2 * np.pi * cadence_hz * t)
    return pl.DataFrame({
        'timestamp_ms': (t * 1000).round().astype(np.int64),
        'x': np.zeros_like(t),
        'y': np.zeros_like(t),
        'z': z,
    })


def test_push_source_delivers_until_unsubscribed():
    sensor = PushSensorSource()
    received = []
    subscription = sensor.subscribe(received.append)

    sensor.push(walking_samples(1)[0])
    subscription.unsubscribe()
    subscription.unsubscribe()
    sensor.push(walking_samples(1)[0])

    assert len(received) == 1
    assert not subscription.active


@pytest.mark.asyncio
async def test_replay_delivers_samples_in_order():
    samples = walking_samples(20)
    sensor = ReplaySensorSource(samples, speed=0)
    received = []

    sensor.subscribe(received.append)
    await sensor.wait_finished()

    assert received == samples
    assert sensor.delivered == 20


@pytest.mark.asyncio
async def test_replay_stops_delivering_after_unsubscribe():
    sensor = ReplaySensorSource(walking_samples(20), speed=0)
    received = []
    subscriptions = []

    def handler(sample):
        received.append(sample)
        if len(received) == 3:
            subscriptions[0].unsubscribe()

    subscriptions.append(sensor.subscribe(handler))
    await sensor.wait_finished()

    assert len(received) == 3


def test_replay_rejects_negative_speed():
    with pytest.raises(ValueError):
        ReplaySensorSource([], speed=-1)


@pytest.mark.asyncio
async def test_replayed_walk_counts_one_step_per_cycle():
    sensor = ReplaySensorSource.from_dataframe(synthetic_walk(), speed=0)
    store = InMemoryActivityStore()
    session = StepTrackingSession(sensor, store=store, user_id="user-1", clock=lambda: TODAY)

    await session.start()
    await sensor.wait_finished()
    await session.flush_policy.drain()

    assert session.steps == 10
    assert session.metrics()['cadence'] == pytest.approx(120.0)
    assert store.get_record("user-1", TODAY).steps == 10


def test_loader_lists_and_loads_recordings(tmp_path):
    walk = synthetic_walk(duration=1.0)
    walk.write_parquet(tmp_path / "morning.parquet")
    walk.reverse().write_csv(tmp_path / "evening.csv")
    loader = MotionDataLoader(tmp_path)

    assert loader.get_available_recordings() == ["evening", "morning"]

    evening = loader.load_recording("evening")
    assert evening['timestamp_ms'].is_sorted()

    samples = loader.load_samples("morning")
    assert len(samples) == 50
    assert samples[0].timestamp_ms == 0


def test_loader_rejects_missing_columns(tmp_path):
    pl.DataFrame({'timestamp_ms': [0, 10], 'x': [0.0, 0.1]}).write_csv(tmp_path / "broken.csv")
    loader = MotionDataLoader(tmp_path)

    with pytest.raises(ValueError, match="y, z"):
        loader.load_recording("broken")

    with pytest.raises(FileNotFoundError):
        loader.load_recording("missing")


@pytest.mark.asyncio
async def test_replay_paces_by_timestamp_delta_over_speed(monkeypatch):
    real_sleep = asyncio.sleep
    delays = []

    async def recording_sleep(delay, *args, **kwargs):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", recording_sleep)

    samples = [sample_at(1.0, ts) for ts in (0, 100, 300, 300, 1300)]
    sensor = ReplaySensorSource(samples, speed=2.0)
    received = []

    sensor.subscribe(received.append)
    await sensor.wait_finished()

    assert received == samples
    assert delays == pytest.approx([0, 0.05, 0.1, 0.0, 0.5])
