"""
Progress analytics over a profile's exercise history.

Provides:
- Progress trend (recent scores vs the scores before them)
- Summary statistics, histogram and percentile of session scores
- Per-family breakdown
- Score velocity (points per day)
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..models.results import SessionResult
from ..models.types import ProgressTrend


def progress_trend(
    scores: Sequence[float],
    short_window: int = 3,
    long_window: int = 10,
    margin: float = 5.0,
) -> ProgressTrend:
    """
    Compare the mean of the last ``short_window`` scores with the mean of the
    scores before them (up to ``long_window`` in total).

    Returns ``initial`` until there is at least one earlier score to compare
    against, i.e. fewer than ``short_window + 1`` sessions.

    Example:
        >>> progress_trend([50, 50, 50, 70, 70, 70])
        <ProgressTrend.IMPROVING: 'improving'>
    """
    if len(scores) <= short_window:
        return ProgressTrend.INITIAL

    recent = scores[-short_window:]
    earlier = scores[-long_window:-short_window]
    diff = float(np.mean(recent)) - float(np.mean(earlier))

    if diff > margin:
        return ProgressTrend.IMPROVING
    if diff < -margin:
        return ProgressTrend.DECLINING
    return ProgressTrend.STABLE


def score_summary(scores: Sequence[float]) -> Dict[str, float]:
    """
    Summary statistics of session scores.

    Returns:
        Dict with mean, median, min, max, std_dev, count (all 0 when empty)
    """
    if not scores:
        return {"mean": 0.0, "median": 0.0, "min": 0.0, "max": 0.0, "std_dev": 0.0, "count": 0}

    values = np.asarray(scores, dtype=float)
    return {
        "mean": round(float(values.mean()), 2),
        "median": round(float(np.median(values)), 2),
        "min": round(float(values.min()), 2),
        "max": round(float(values.max()), 2),
        "std_dev": round(float(values.std()), 2),
        "count": int(values.size),
    }


def score_histogram(scores: Sequence[float], bin_size: int = 10) -> List[Tuple[str, int]]:
    """
    Histogram of scores grouped into ``bin_size`` wide bins.

    A score of exactly 100 lands in the last bin.

    Example:
        >>> score_histogram([85, 72, 45])
        [('40-49', 1), ('70-79', 1), ('80-89', 1)]
    """
    if not scores:
        return []

    bins: Dict[int, int] = {}
    for value in scores:
        clamped = max(0.0, min(100.0, float(value)))
        start = int(math.floor(clamped) // bin_size) * bin_size
        if start >= 100:
            start = 100 - bin_size
        bins[start] = bins.get(start, 0) + 1

    return [(f"{start}-{start + bin_size - 1}", count) for start, count in sorted(bins.items())]


def score_percentile(scores: Sequence[float], percentile: float) -> float:
    """Nth percentile of scores with linear interpolation (0 when empty)."""
    if not scores:
        return 0.0
    if not 0 <= percentile <= 100:
        raise ValueError(f"percentile must be in [0, 100], got {percentile}")
    return round(float(np.percentile(np.asarray(scores, dtype=float), percentile)), 2)


def family_breakdown(history: Sequence[SessionResult]) -> Dict[str, Dict[str, float]]:
    """
    Sessions, mean score and mean accuracy per exercise family.

    Sessions recorded without a family are grouped under ``"unknown"``.
    """
    grouped: Dict[str, List[SessionResult]] = {}
    for result in history:
        key = result.family.value if result.family else "unknown"
        grouped.setdefault(key, []).append(result)

    breakdown = {}
    for family, results in grouped.items():
        breakdown[family] = {
            "sessions": len(results),
            "mean_score": round(float(np.mean([r.score for r in results])), 2),
            "mean_accuracy": round(float(np.mean([r.accuracy for r in results])), 3),
            "attention_lapses": sum(r.attention_lapses for r in results),
        }
    return breakdown


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def score_velocity(
    history: Sequence[SessionResult],
    window_days: int = 7,
    now: Optional[datetime] = None,
) -> float:
    """
    Score points gained per day over the recent window.

    Uses the first and last timestamped sessions inside the window; needs
    at least two of them, otherwise returns 0.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=window_days)

    recent = []
    for result in history:
        stamp = result.ended_at or result.started_at
        if not stamp:
            continue
        when = _parse_timestamp(stamp)
        if when >= cutoff:
            recent.append((when, result.score))

    if len(recent) < 2:
        return 0.0

    (first_time, first_score), (last_time, last_score) = recent[0], recent[-1]
    days_elapsed = (last_time - first_time).total_seconds() / 86400.0
    if days_elapsed == 0:
        return 0.0
    return round((last_score - first_score) / days_elapsed, 2)
