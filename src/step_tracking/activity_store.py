"""Activity stores that receive step-count upserts."""

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple
import asyncio
import logging

import polars as pl

from .models import DailyActivityRecord

logger = logging.getLogger(__name__)


ACTIVITY_SCHEMA = {
    'user_id': pl.Utf8,
    'date': pl.Date,
    'steps': pl.Int64,
    'calories_burned': pl.Int64,
    'active_minutes': pl.Int64,
    'sleep_hours': pl.Float64,
    'updated_at': pl.Datetime('us', 'UTC'),
}


class ActivityStore:
    """
    Write-mostly interface to the daily activity table.

    Implementations key records by (user_id, date). ``upsert_steps`` creates the
    day's record when absent, otherwise overwrites steps and the derived fields.
    Replaying the same upsert converges to the same stored state.
    """

    async def upsert_steps(
        self,
        user_id: str,
        day: date,
        steps: int,
        calories_burned: int,
        active_minutes: int,
    ) -> None:
        raise NotImplementedError

    async def load_steps(self, user_id: str, day: date) -> Optional[int]:
        """Return the persisted step count for the day, or None if no record exists."""
        raise NotImplementedError


class InMemoryActivityStore(ActivityStore):
    """Dictionary-backed store, useful for tests and embedding."""

    def __init__(self):
        self.records: Dict[Tuple[str, date], DailyActivityRecord] = {}
        self.write_count = 0

    async def upsert_steps(self, user_id, day, steps, calories_burned, active_minutes):
        self.write_count += 1
        record = self.records.get((user_id, day))
        if record is None:
            self.records[(user_id, day)] = DailyActivityRecord(
                user_id=user_id,
                date=day,
                steps=steps,
                calories_burned=calories_burned,
                active_minutes=active_minutes,
            )
            return

        record.steps = steps
        record.calories_burned = calories_burned
        record.active_minutes = active_minutes
        record.updated_at = datetime.now(timezone.utc)

    async def load_steps(self, user_id, day):
        record = self.records.get((user_id, day))
        return record.steps if record is not None else None

    def get_record(self, user_id: str, day: date) -> Optional[DailyActivityRecord]:
        return self.records.get((user_id, day))


class ParquetActivityStore(ActivityStore):
    """
    Activity table persisted to a single parquet file.

    Every write rewrites the file. Writes are serialized with an asyncio lock
    and the blocking IO runs in a worker thread so the event loop keeps
    delivering motion samples.
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Parquet file holding the activity table (created on first write)
        """
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> pl.DataFrame:
        if not self.path.exists():
            return pl.DataFrame(schema=ACTIVITY_SCHEMA)
        return pl.read_parquet(self.path)

    def _key(self, user_id: str, day: date) -> pl.Expr:
        return (pl.col('user_id') == user_id) & (pl.col('date') == day)

    def _upsert_sync(
        self, user_id: str, day: date, steps: int, calories_burned: int, active_minutes: int
    ) -> None:
        df = self._read()
        now = datetime.now(timezone.utc)
        key = self._key(user_id, day)

        if df.filter(key).height > 0:
            updates = {
                'steps': steps,
                'calories_burned': calories_burned,
                'active_minutes': active_minutes,
                'updated_at': now,
            }
            df = df.with_columns([
                pl.when(key)
                .then(pl.lit(value))
                .otherwise(pl.col(name))
                .cast(ACTIVITY_SCHEMA[name])
                .alias(name)
                for name, value in updates.items()
            ])
        else:
            new_row = pl.DataFrame(
                [{
                    'user_id': user_id,
                    'date': day,
                    'steps': steps,
                    'calories_burned': calories_burned,
                    'active_minutes': active_minutes,
                    'sleep_hours': 0.0,
                    'updated_at': now,
                }],
                schema=ACTIVITY_SCHEMA,
            )
            df = pl.concat([df, new_row], how='vertical')

        self.path.parent.mkdir(parents=True, exist_ok=True)
        df.write_parquet(self.path)

    async def upsert_steps(self, user_id, day, steps, calories_burned, active_minutes):
        async with self._lock:
            await asyncio.to_thread(
                self._upsert_sync, user_id, day, steps, calories_burned, active_minutes
            )
        logger.debug(f"Upserted {steps} steps for {user_id} on {day} into {self.path}")

    async def load_steps(self, user_id, day):
        async with self._lock:
            df = await asyncio.to_thread(self._read)
        rows = df.filter(self._key(user_id, day))
        if rows.height == 0:
            return None
        return int(rows['steps'][0])

    def get_record(self, user_id: str, day: date) -> Optional[DailyActivityRecord]:
        """Read back a full record (synchronous, for inspection)."""
        rows = self._read().filter(self._key(user_id, day))
        if rows.height == 0:
            return None
        return DailyActivityRecord(**rows.row(0, named=True))
