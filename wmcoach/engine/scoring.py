"""
Session scoring.

Reduces a trial history to a SessionResult. Each correct trial is worth
``points_per_rank`` times the staircase rank of the level it was attempted
at; incorrect trials are worth nothing. The score normalises the raw points
against the best possible run (every trial correct at the family maximum).
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..config import ScoringConfig, config
from ..models.results import SessionResult, TrialResult
from .staircase import Bounds, Level

logger = logging.getLogger(__name__)


def trial_points(trial: TrialResult, bounds: Bounds, points_per_rank: int) -> int:
    if not trial.correct:
        return 0
    return bounds.rank(trial.level_at_trial) * points_per_rank


def aggregate(
    trials: Sequence[TrialResult],
    initial_level: Level,
    bounds: Bounds,
    attention_lapse_ms: Optional[float] = None,
    settings: Optional[ScoringConfig] = None,
    **metadata,
) -> SessionResult:
    """
    Aggregate a trial history into a SessionResult.

    Args:
        trials: Scored trials in presentation order
        initial_level: Level the session started at (final level when no trial ran)
        bounds: Staircase bounds of the exercise family
        attention_lapse_ms: Threshold for counting a lapse; defaults to the
            lapse flag recorded on each trial
        settings: Scoring constants (defaults to global config)
        **metadata: session_id, exercise_id, family, started_at, ended_at

    Returns:
        SessionResult. A zero-trial history yields score 0, accuracy 0 and
        completion rate 0.
    """
    settings = settings or config.scoring
    n = len(trials)

    if n == 0:
        return SessionResult(
            score=0,
            accuracy=0.0,
            average_response_time_ms=0.0,
            completion_rate=0.0,
            attention_lapses=0,
            final_level=initial_level,
            trials_completed=0,
            **metadata,
        )

    correct = sum(1 for t in trials if t.correct)
    raw_points = sum(trial_points(t, bounds, settings.points_per_rank) for t in trials)
    per_trial_max = bounds.max_rank * settings.points_per_rank
    score = round(100 * raw_points / (n * per_trial_max))
    score = max(0, min(100, score))

    response_times = np.array([t.response_time_ms for t in trials], dtype=float)

    if attention_lapse_ms is None:
        lapses = sum(1 for t in trials if t.attention_lapse)
    else:
        lapses = int(np.count_nonzero(response_times > attention_lapse_ms))

    last = trials[-1]
    final_level = last.level_after_trial if last.level_after_trial is not None else last.level_at_trial

    result = SessionResult(
        score=int(score),
        accuracy=correct / n,
        average_response_time_ms=float(response_times.mean()),
        completion_rate=1.0,
        attention_lapses=lapses,
        final_level=final_level,
        trials_completed=n,
        **metadata,
    )
    logger.debug(
        "Aggregated %d trials: score=%d accuracy=%.2f lapses=%d",
        n, result.score, result.accuracy, result.attention_lapses,
    )
    return result
