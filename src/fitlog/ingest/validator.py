"""
Validate and normalize a PartialSummary into a WorkoutSummary row.

Normalization never rejects:
  - sport names we don't classify become "unknown"
  - heart rates above the physiological ceiling (or <= 0) become absent
  - negative calorie counts become absent

Invariant violations always reject, naming the field:
  - duration < 0
  - distance < 0
  - avg_heart_rate > max_heart_rate
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fitlog.ingest.errors import InvariantViolated
from fitlog.ingest.summarizer import DEFAULT_HEART_RATE_CEILING_BPM
from fitlog.ingest.types import PartialSummary
from fitlog.models.workout import Sport, WorkoutSummary

_CENTIMETERS = Decimal("0.01")


def validate(
    partial: PartialSummary,
    filename: str = "",
    heart_rate_ceiling: int = DEFAULT_HEART_RATE_CEILING_BPM,
) -> WorkoutSummary:
    """
    Args:
        partial: summarizer output
        filename: original upload filename, stored on the row
        heart_rate_ceiling: bpm above which a heart-rate value is discarded

    Returns:
        A new, unsaved WorkoutSummary.

    Raises:
        InvariantViolated: if duration or distance is negative, or the
            average heart rate exceeds the maximum.
    """
    avg_hr = _plausible_heart_rate(partial.avg_heart_rate, heart_rate_ceiling)
    max_hr = _plausible_heart_rate(partial.max_heart_rate, heart_rate_ceiling)

    calories = partial.calories
    if calories is not None and calories < 0:
        calories = None

    if partial.duration_seconds < 0:
        raise InvariantViolated("duration", f"{partial.duration_seconds} < 0")
    if partial.distance_meters is not None and partial.distance_meters < 0:
        raise InvariantViolated("distance", f"{partial.distance_meters} < 0")
    if avg_hr is not None and max_hr is not None and avg_hr > max_hr:
        raise InvariantViolated("avg_heart_rate", f"average {avg_hr} > maximum {max_hr}")

    return WorkoutSummary(
        filename=filename,
        sport=Sport.normalize(partial.sport).value,
        duration=int(partial.duration_seconds),
        distance=_to_meters_decimal(partial.distance_meters),
        avg_heart_rate=int(round(avg_hr)) if avg_hr is not None else None,
        max_heart_rate=int(max_hr) if max_hr is not None else None,
        calories=int(calories) if calories is not None else None,
    )


def _plausible_heart_rate(value: Optional[float], ceiling: int) -> Optional[float]:
    if value is None or value <= 0 or value > ceiling:
        return None
    return value


def _to_meters_decimal(value: Optional[float]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(_CENTIMETERS, rounding=ROUND_HALF_UP)
