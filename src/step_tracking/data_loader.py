"""Loading and validation of recorded motion samples."""

import polars as pl
from pathlib import Path
from typing import List

from .models import MotionSample


REQUIRED_COLUMNS = ('x', 'y', 'z', 'timestamp_ms')


def dataframe_to_samples(df: pl.DataFrame) -> List[MotionSample]:
    """
    Convert a validated DataFrame into motion samples.

    Args:
        df: DataFrame with x, y, z and timestamp_ms columns

    Returns:
        List of MotionSample in row order
    """
    return [
        MotionSample(x=float(x), y=float(y), z=float(z), timestamp_ms=int(ts))
        for x, y, z, ts in df.select(list(REQUIRED_COLUMNS)).iter_rows()
    ]


class MotionDataLoader:
    """Handles loading and validation of recorded motion files."""

    def __init__(self, data_dir: Path):
        """
        Initialize the data loader.

        Args:
            data_dir: Directory containing parquet or CSV recordings
        """
        self.data_dir = Path(data_dir)

    def get_available_recordings(self) -> list[str]:
        """
        List recording names (file stems) in the data directory.

        Returns:
            Sorted list of recording names
        """
        files = list(self.data_dir.glob("*.parquet")) + list(self.data_dir.glob("*.csv"))
        return sorted({f.stem for f in files})

    def get_file_path(self, recording: str) -> Path:
        """
        Get the file path for a recording, preferring parquet over CSV.

        Raises:
            FileNotFoundError: If no file exists for the recording
        """
        for suffix in (".parquet", ".csv"):
            path = self.data_dir / f"{recording}{suffix}"
            if path.exists():
                return path
        raise FileNotFoundError(f"Recording not found: {recording}")

    def load_recording(self, recording: str) -> pl.DataFrame:
        """
        Load a recording sorted by timestamp.

        Args:
            recording: Recording name

        Returns:
            DataFrame with at least x, y, z and timestamp_ms columns

        Raises:
            FileNotFoundError: If the recording doesn't exist
            ValueError: If required columns are missing
        """
        path = self.get_file_path(recording)
        df = pl.read_parquet(path) if path.suffix == ".parquet" else pl.read_csv(path)
        self.validate_columns(df)
        return df.sort('timestamp_ms')

    def validate_columns(self, df: pl.DataFrame):
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Recording is missing columns: {', '.join(missing)}")

    def load_samples(self, recording: str) -> List[MotionSample]:
        return dataframe_to_samples(self.load_recording(recording))
