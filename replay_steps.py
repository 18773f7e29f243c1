"""
Replay a recorded motion file through a step-tracking session.

Samples are streamed with their recorded timing (scaled by --speed), steps are
flushed to a parquet activity table every batch, and the final count is
printed when the recording ends.
"""
import argparse
import asyncio
import logging
from pathlib import Path

from step_tracking import (
    StepConfig,
    ReplayConfig,
    MotionDataLoader,
    ReplaySensorSource,
    ParquetActivityStore,
    StepTrackingSession,
)


def parse_args() -> argparse.Namespace:
    defaults = ReplayConfig()
    step_defaults = StepConfig()

    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("recording", help="Recording name (file stem) in the data directory")
    parser.add_argument("--data-dir", type=Path, default=defaults.DATA_DIR)
    parser.add_argument("--store", type=Path, default=defaults.STORE_PATH,
                        help="Parquet file holding daily activity records")
    parser.add_argument("--user", default=None, help="User id; omit to skip persistence")
    parser.add_argument("--speed", type=float, default=defaults.SPEED,
                        help="Playback speed multiplier, 0 replays as fast as possible")
    parser.add_argument("--threshold", type=float, default=step_defaults.MAGNITUDE_THRESHOLD)
    parser.add_argument("--debounce-ms", type=int, default=step_defaults.DEBOUNCE_MS)
    parser.add_argument("--batch-size", type=int, default=step_defaults.FLUSH_BATCH_SIZE)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


async def replay(args: argparse.Namespace) -> dict:
    """
    Stream a recording through a session and wait for pending flushes.

    Args:
        args: Parsed command-line arguments

    Returns:
        Final session metrics
    """
    config = StepConfig(
        MAGNITUDE_THRESHOLD=args.threshold,
        DEBOUNCE_MS=args.debounce_ms,
        FLUSH_BATCH_SIZE=args.batch_size,
    )
    loader = MotionDataLoader(args.data_dir)
    sensor = ReplaySensorSource(loader.load_samples(args.recording), speed=args.speed)
    store = ParquetActivityStore(args.store)

    async with StepTrackingSession(sensor, store=store, user_id=args.user, config=config) as session:
        await session.start()
        if session.error is not None:
            raise SystemExit(f"Could not start tracking: {session.error}")

        await sensor.wait_finished()
        await session.flush_policy.drain()
        return session.metrics()


def main():
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    metrics = asyncio.run(replay(args))

    print(f"Steps:          {metrics['steps']}")
    print(f"Calories:       {metrics['calories_burned']}")
    print(f"Active minutes: {metrics['active_minutes']}")
    if metrics['cadence'] is not None:
        print(f"Cadence:        {metrics['cadence']:.1f} steps/min")


if __name__ == "__main__":
    main()
