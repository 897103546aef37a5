"""Workout summary model: one row per successfully ingested .fit upload."""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy.types import DateTime, TypeDecorator
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column.

    Values are stored as naive UTC (SQLite has no timezone support) and come
    back as aware UTC datetimes, so a row reads back equal to what was written.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Sport(str, Enum):
    """Sports we classify workouts into. Anything else is stored as UNKNOWN."""

    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    WALKING = "walking"
    HIKING = "hiking"
    ROWING = "rowing"
    TRAINING = "training"
    FITNESS_EQUIPMENT = "fitness_equipment"
    GENERIC = "generic"
    MULTISPORT = "multisport"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "Sport":
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class WorkoutSummary(SQLModel, table=True):
    """
    Append-only activity log entry.

    Invariants (enforced by fitlog.ingest.validator before a row is created):
      duration >= 0
      distance >= 0 when present
      avg_heart_rate <= max_heart_rate when both present
    """

    __tablename__ = "workouts"

    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str
    sport: str = Field(default=Sport.UNKNOWN.value, index=True)
    duration: int  # seconds
    distance: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)  # meters

    avg_heart_rate: Optional[int] = None  # bpm
    max_heart_rate: Optional[int] = None  # bpm
    calories: Optional[int] = None  # kcal

    uploaded_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)  # UTC
