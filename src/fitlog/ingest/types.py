"""
In-memory values passed between pipeline stages.

Plain dataclasses, no SQLModel and no DB dependencies. Only WorkoutSummary
(fitlog.models.workout) is ever persisted; everything here is transient and
discarded once a call to IngestionService.ingest() returns.
"""
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class RawActivityFile:
    """An uploaded file exactly as received from the upload boundary."""

    data: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path) -> "RawActivityFile":
        path = Path(path)
        return cls(data=path.read_bytes(), filename=path.name)


@dataclass(frozen=True)
class DecodedRecord:
    """
    One timestamped sample from a FIT 'record' message.
    All fields except timestamp are optional (device may not record all metrics).
    """

    timestamp: int                            # seconds since the first sample
    heart_rate: Optional[int] = None          # bpm, always > 0 when present
    speed_ms: Optional[float] = None          # m/s, always >= 0 when present
    elevation_meters: Optional[float] = None  # meters above sea level
    lat: Optional[float] = None               # decimal degrees
    lon: Optional[float] = None               # decimal degrees
    distance_meters: Optional[float] = None   # cumulative from activity start


@dataclass(frozen=True)
class SessionMetadata:
    """Session-level totals as reported by the device."""

    sport: str = "unknown"
    elapsed_seconds: Optional[float] = None
    distance_meters: Optional[float] = None
    calories: Optional[int] = None
    start_time: Optional[datetime] = None  # UTC
    session_count: int = 0


@dataclass(frozen=True)
class PartialSummary:
    """Summarizer output: everything we could extract, not yet validated."""

    sport: str
    duration_seconds: int
    distance_meters: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    max_heart_rate: Optional[int] = None
    calories: Optional[int] = None
