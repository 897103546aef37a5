"""Tests for validate(): invariants reject, implausible values normalize."""
from decimal import Decimal

import pytest

from fitlog.ingest.errors import InvariantViolated, WorkoutValidationError
from fitlog.ingest.types import PartialSummary
from fitlog.ingest.validator import validate
from fitlog.models.workout import Sport, WorkoutSummary


def _partial(**overrides) -> PartialSummary:
    fields = dict(
        sport="running",
        duration_seconds=2700,
        distance_meters=8400.0,
        avg_heart_rate=144.0,
        max_heart_rate=168,
        calories=612,
    )
    fields.update(overrides)
    return PartialSummary(**fields)


class TestValidSummary:
    def test_builds_unsaved_workout_summary(self):
        summary = validate(_partial(), filename="morning.fit")
        assert isinstance(summary, WorkoutSummary)
        assert summary.id is None
        assert summary.filename == "morning.fit"
        assert summary.sport == "running"
        assert summary.duration == 2700
        assert summary.distance == Decimal("8400.00")
        assert summary.avg_heart_rate == 144
        assert summary.max_heart_rate == 168
        assert summary.calories == 612
        assert summary.uploaded_at is not None

    def test_average_heart_rate_rounded_to_int(self):
        summary = validate(_partial(avg_heart_rate=143.6))
        assert summary.avg_heart_rate == 144

    def test_distance_quantized_to_centimeters(self):
        summary = validate(_partial(distance_meters=1234.5678))
        assert summary.distance == Decimal("1234.57")

    def test_optional_fields_stay_absent(self):
        summary = validate(_partial(distance_meters=None, avg_heart_rate=None,
                                    max_heart_rate=None, calories=None))
        assert summary.distance is None
        assert summary.avg_heart_rate is None
        assert summary.max_heart_rate is None
        assert summary.calories is None

    def test_equal_average_and_maximum_is_valid(self):
        summary = validate(_partial(avg_heart_rate=150.0, max_heart_rate=150))
        assert summary.avg_heart_rate == summary.max_heart_rate == 150

    def test_zero_duration_is_valid(self):
        assert validate(_partial(duration_seconds=0)).duration == 0


class TestInvariants:
    @pytest.mark.parametrize("duration", [-1, -2700])
    def test_negative_duration_rejected(self, duration):
        with pytest.raises(InvariantViolated) as exc_info:
            validate(_partial(duration_seconds=duration))
        assert exc_info.value.field == "duration"

    def test_negative_distance_rejected(self):
        with pytest.raises(InvariantViolated) as exc_info:
            validate(_partial(distance_meters=-0.5))
        assert exc_info.value.field == "distance"

    @pytest.mark.parametrize("avg,max_hr", [(170.0, 168), (121.0, 120), (200.0, 60)])
    def test_average_above_maximum_rejected(self, avg, max_hr):
        with pytest.raises(InvariantViolated) as exc_info:
            validate(_partial(avg_heart_rate=avg, max_heart_rate=max_hr))
        assert exc_info.value.field == "avg_heart_rate"

    def test_invariant_violated_is_validation_error(self):
        assert issubclass(InvariantViolated, WorkoutValidationError)


class TestNormalization:
    @pytest.mark.parametrize("raw,expected", [
        ("running", "running"),
        ("Cycling", "cycling"),
        ("kitesurfing", "unknown"),
        ("53", "unknown"),
        ("unknown", "unknown"),
    ])
    def test_sport_normalized(self, raw, expected):
        assert validate(_partial(sport=raw)).sport == expected

    def test_heart_rate_above_ceiling_clamped_to_absent(self):
        summary = validate(_partial(avg_heart_rate=150.0, max_heart_rate=300))
        assert summary.max_heart_rate is None
        assert summary.avg_heart_rate == 150

    def test_custom_ceiling(self):
        summary = validate(_partial(avg_heart_rate=150.0, max_heart_rate=205), heart_rate_ceiling=200)
        assert summary.max_heart_rate is None

    def test_non_positive_heart_rate_clamped_to_absent(self):
        summary = validate(_partial(avg_heart_rate=0.0, max_heart_rate=0))
        assert summary.avg_heart_rate is None
        assert summary.max_heart_rate is None

    def test_negative_calories_clamped_to_absent(self):
        assert validate(_partial(calories=-5)).calories is None

    def test_validate_is_deterministic_apart_from_upload_time(self):
        first = validate(_partial(), filename="a.fit").model_dump(exclude={"uploaded_at"})
        second = validate(_partial(), filename="a.fit").model_dump(exclude={"uploaded_at"})
        assert first == second


class TestSportEnum:
    def test_none_is_unknown(self):
        assert Sport.normalize(None) is Sport.UNKNOWN

    def test_whitespace_and_case_ignored(self):
        assert Sport.normalize("  Running ") is Sport.RUNNING
