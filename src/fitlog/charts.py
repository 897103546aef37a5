"""
Chart series for the workout list page.

Pure function over stored summaries; the presentation layer plots the
returned lists directly. Series are chronological (oldest first) even though
the store lists newest first.
"""
from typing import Any, Dict, List, Sequence

from fitlog.models.workout import WorkoutSummary


def build_chart_series(summaries: Sequence[WorkoutSummary]) -> Dict[str, List[Any]]:
    """
    Returns:
        Dict with parallel lists:
          labels            : upload date, ISO "YYYY-MM-DD"
          distance_km       : None where the workout had no distance
          duration_minutes
          avg_heart_rate    : None where no heart-rate data was recorded
    """
    ordered = sorted(summaries, key=lambda s: (s.uploaded_at, s.id or 0))
    return {
        "labels": [s.uploaded_at.date().isoformat() for s in ordered],
        "distance_km": [
            round(float(s.distance) / 1000.0, 2) if s.distance is not None else None
            for s in ordered
        ],
        "duration_minutes": [round(s.duration / 60.0, 1) for s in ordered],
        "avg_heart_rate": [s.avg_heart_rate for s in ordered],
    }
