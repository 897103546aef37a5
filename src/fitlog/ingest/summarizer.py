"""
Reduce decoded samples and session metadata into a single PartialSummary.

Missing telemetry is never an error here: a workout without a heart-rate
strap is still a useful record, so absent data becomes an absent field.
"""
from statistics import mean
from typing import Optional, Sequence

from fitlog.ingest.types import DecodedRecord, PartialSummary, SessionMetadata

DEFAULT_HEART_RATE_CEILING_BPM = 250


def summarize(
    metadata: SessionMetadata,
    records: Sequence[DecodedRecord],
    heart_rate_ceiling: int = DEFAULT_HEART_RATE_CEILING_BPM,
) -> PartialSummary:
    """
    Build a PartialSummary.

    Duration prefers the device-reported elapsed time and falls back to the
    span between first and last sample. Distance is only ever taken from the
    session totals; integrating per-sample speed drifts on sparse sampling.
    Heart-rate samples above heart_rate_ceiling are ignored as sensor noise.

    A file with no record samples summarizes to zero duration and no
    distance or heart rate, whatever its session message claims. Sport and
    calories are still carried over.
    """
    if not records:
        return PartialSummary(
            sport=metadata.sport,
            duration_seconds=0,
            calories=metadata.calories,
        )

    hr_values = [
        r.heart_rate for r in records
        if r.heart_rate is not None and r.heart_rate <= heart_rate_ceiling
    ]

    avg_hr: Optional[float] = mean(hr_values) if hr_values else None
    max_hr: Optional[int] = max(hr_values) if hr_values else None

    return PartialSummary(
        sport=metadata.sport,
        duration_seconds=_duration(metadata, records),
        distance_meters=metadata.distance_meters,
        avg_heart_rate=avg_hr,
        max_heart_rate=max_hr,
        calories=metadata.calories,
    )


def _duration(metadata: SessionMetadata, records: Sequence[DecodedRecord]) -> int:
    if metadata.elapsed_seconds is not None:
        return int(round(metadata.elapsed_seconds))
    return records[-1].timestamp - records[0].timestamp
