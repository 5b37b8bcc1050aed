"""
Unit tests for progress analytics.
"""

from datetime import datetime, timedelta, timezone

import pytest

from wmcoach.engine.staircase import SequenceLevel
from wmcoach.models.results import SessionResult
from wmcoach.models.types import ExerciseFamily, ProgressTrend
from wmcoach.utils.progress import (
    family_breakdown,
    progress_trend,
    score_histogram,
    score_percentile,
    score_summary,
    score_velocity,
)


def _result(score, family=ExerciseFamily.SEQUENTIAL_MEMORY, ended_at=None, accuracy=0.5):
    return SessionResult(
        score=score,
        accuracy=accuracy,
        average_response_time_ms=1000.0,
        completion_rate=1.0,
        attention_lapses=0,
        final_level=SequenceLevel(4),
        family=family,
        ended_at=ended_at,
    )


class TestProgressTrend:
    def test_initial_until_enough_sessions(self):
        assert progress_trend([]) == ProgressTrend.INITIAL
        assert progress_trend([90, 10, 50]) == ProgressTrend.INITIAL

    def test_improving(self):
        assert progress_trend([50, 50, 50, 70, 70, 70]) == ProgressTrend.IMPROVING

    def test_declining(self):
        assert progress_trend([80, 80, 80, 60, 60, 60]) == ProgressTrend.DECLINING

    def test_stable_within_margin(self):
        assert progress_trend([60, 60, 60, 64, 64, 64]) == ProgressTrend.STABLE

    def test_only_recent_window_counts(self):
        scores = [0] * 20 + [50] * 7 + [52, 52, 52]
        assert progress_trend(scores) == ProgressTrend.STABLE


class TestScoreStatistics:
    def test_summary(self):
        summary = score_summary([70, 80, 90])
        assert summary["mean"] == 80.0
        assert summary["median"] == 80.0
        assert summary["min"] == 70.0
        assert summary["max"] == 90.0
        assert summary["count"] == 3

    def test_summary_empty(self):
        assert score_summary([])["count"] == 0

    def test_histogram(self):
        assert score_histogram([85, 72, 45]) == [("40-49", 1), ("70-79", 1), ("80-89", 1)]

    def test_histogram_perfect_score_in_last_bin(self):
        assert score_histogram([100, 95]) == [("90-99", 2)]

    def test_percentile(self):
        assert score_percentile([10, 20, 30, 40, 50], 50) == 30.0
        assert score_percentile([], 90) == 0.0

    def test_percentile_out_of_range(self):
        with pytest.raises(ValueError):
            score_percentile([10], 101)


class TestFamilyBreakdown:
    def test_grouped_by_family(self):
        history = [
            _result(60, accuracy=0.6),
            _result(80, accuracy=0.8),
            _result(40, family=ExerciseFamily.VISUAL_SPATIAL),
            _result(50, family=None),
        ]
        breakdown = family_breakdown(history)
        assert breakdown["sequential_memory"]["sessions"] == 2
        assert breakdown["sequential_memory"]["mean_score"] == 70.0
        assert breakdown["sequential_memory"]["mean_accuracy"] == 0.7
        assert breakdown["visual_spatial"]["sessions"] == 1
        assert breakdown["unknown"]["sessions"] == 1


class TestScoreVelocity:
    def test_points_per_day(self):
        now = datetime(2026, 3, 10, tzinfo=timezone.utc)
        history = [
            _result(40, ended_at=(now - timedelta(days=4)).isoformat()),
            _result(60, ended_at=(now - timedelta(days=2)).isoformat()),
        ]
        assert score_velocity(history, now=now) == 10.0

    def test_sessions_outside_window_ignored(self):
        now = datetime(2026, 3, 10, tzinfo=timezone.utc)
        history = [
            _result(10, ended_at=(now - timedelta(days=30)).isoformat()),
            _result(60, ended_at=(now - timedelta(days=1)).isoformat()),
        ]
        assert score_velocity(history, now=now) == 0.0

    def test_untimestamped_sessions_ignored(self):
        assert score_velocity([_result(10), _result(90)]) == 0.0
