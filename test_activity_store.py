"""Tests for idempotent activity upserts."""

from datetime import date, datetime, timezone

import polars as pl
import pytest

from step_tracking import DailyActivityRecord, InMemoryActivityStore, ParquetActivityStore
from step_tracking.activity_store import ACTIVITY_SCHEMA


@pytest.mark.asyncio
async def test_in_memory_upsert_is_idempotent(today):
    store = InMemoryActivityStore()

    for _ in range(3):
        await store.upsert_steps("user-1", today, 120, 4, 1)

    assert len(store.records) == 1
    record = store.get_record("user-1", today)
    assert (record.steps, record.calories_burned, record.active_minutes) == (120, 4, 1)
    assert store.write_count == 3


@pytest.mark.asyncio
async def test_in_memory_upsert_overwrites_existing_record(today):
    store = InMemoryActivityStore()
    await store.upsert_steps("user-1", today, 10, 0, 0)
    await store.upsert_steps("user-1", today, 300, 12, 3)

    record = store.get_record("user-1", today)
    assert (record.steps, record.calories_burned, record.active_minutes) == (300, 12, 3)
    assert await store.load_steps("user-1", today) == 300
    assert await store.load_steps("user-2", today) is None


@pytest.mark.asyncio
async def test_parquet_upsert_creates_then_overwrites(tmp_path, today):
    store = ParquetActivityStore(tmp_path / "activities.parquet")

    assert await store.load_steps("user-1", today) is None

    await store.upsert_steps("user-1", today, 10, 0, 0)
    await store.upsert_steps("user-1", today, 20, 0, 0)
    await store.upsert_steps("user-2", today, 30, 1, 0)

    df = pl.read_parquet(tmp_path / "activities.parquet")
    assert df.height == 2
    assert await store.load_steps("user-1", today) == 20
    assert await store.load_steps("user-2", today) == 30

    record = store.get_record("user-1", today)
    assert isinstance(record, DailyActivityRecord)
    assert record.date == today
    assert record.sleep_hours == 0.0


@pytest.mark.asyncio
async def test_parquet_replayed_upsert_converges(tmp_path, today):
    store = ParquetActivityStore(tmp_path / "activities.parquet")

    await store.upsert_steps("user-1", today, 40, 1, 0)
    once = store.get_record("user-1", today)
    for _ in range(4):
        await store.upsert_steps("user-1", today, 40, 1, 0)
    many = store.get_record("user-1", today)

    assert pl.read_parquet(tmp_path / "activities.parquet").height == 1
    assert (many.steps, many.calories_burned, many.active_minutes) == \
        (once.steps, once.calories_burned, once.active_minutes)


@pytest.mark.asyncio
async def test_parquet_upsert_keeps_fields_it_does_not_own(tmp_path, today):
    path = tmp_path / "activities.parquet"
    pl.DataFrame(
        [{
            'user_id': "user-1",
            'date': today,
            'steps': 5,
            'calories_burned': 0,
            'active_minutes': 0,
            'sleep_hours': 7.5,
            'updated_at': datetime(2024, 3, 18, 6, 0, tzinfo=timezone.utc),
        }],
        schema=ACTIVITY_SCHEMA,
    ).write_parquet(path)
    store = ParquetActivityStore(path)

    await store.upsert_steps("user-1", today, 100, 4, 1)
    await store.upsert_steps("user-1", date(2024, 3, 19), 10, 0, 0)

    record = store.get_record("user-1", today)
    assert record.steps == 100
    assert record.sleep_hours == 7.5
    assert record.updated_at > datetime(2024, 3, 18, 6, 0, tzinfo=timezone.utc)
    assert await store.load_steps("user-1", date(2024, 3, 19)) == 10
