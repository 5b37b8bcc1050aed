"""
Fold a finished session into a working-memory profile.

The fold is pure: it reads the previous profile and the session result and
returns a new profile. Steps:

1. Append the session to the history (oldest entries dropped past the cap)
2. Move the capacity behind the exercise's primary challenge area:
   up after a mastery-level score at or above the capacity-implied level,
   down after persistently low accuracy in the exercise family
3. Recompute overall capacity, challenge areas, recommended families,
   support level and progress trend
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np

from ..catalog import ExerciseConfig
from ..config import ProfileConfig, config
from ..models.profile import CAPACITY_KEYS, WorkingMemoryProfile, with_updates
from ..models.results import SessionResult
from ..models.types import ChallengeArea, SupportLevel
from ..utils.progress import progress_trend
from .recommendation import recommended_exercise_families
from .staircase import Bounds, GridLevel, grid_bounds, sequence_bounds

logger = logging.getLogger(__name__)


def bounds_for_level(level) -> Bounds:
    """Configured bounds of the family a level belongs to."""
    return grid_bounds() if isinstance(level, GridLevel) else sequence_bounds()


def capacity_implied_rank(capacity: float, bounds: Bounds, settings: Optional[ProfileConfig] = None) -> float:
    """Staircase rank a learner with ``capacity`` is expected to reach."""
    settings = settings or config.profile
    span = settings.capacity_max - settings.capacity_min
    fraction = (capacity - settings.capacity_min) / span if span else 0.0
    return bounds.min_rank + fraction * (bounds.max_rank - bounds.min_rank)


def support_level_for(overall: float) -> SupportLevel:
    """Support intensity for an overall capacity (higher capacity, lighter support)."""
    if overall >= 7:
        return SupportLevel.MINIMAL
    if overall >= 5:
        return SupportLevel.MODERATE
    if overall >= 3:
        return SupportLevel.SUBSTANTIAL
    return SupportLevel.COMPREHENSIVE


def challenge_areas_for(capacities: Dict[ChallengeArea, float], threshold: float) -> List[ChallengeArea]:
    """Areas below ``threshold``; when none are, every area tied at the lowest capacity."""
    below = [area for area, value in capacities.items() if value < threshold]
    if below:
        return below
    lowest = min(capacities.values())
    return [area for area, value in capacities.items() if value == lowest]


def _low_accuracy(history: List[dict], family: Optional[str], settings: ProfileConfig) -> bool:
    if family is None:
        return False
    recent = [r["accuracy"] for r in history if r.get("family") == family]
    recent = recent[-settings.low_accuracy_window:]
    if len(recent) < settings.low_accuracy_window:
        return False
    return float(np.mean(recent)) < settings.low_accuracy_threshold


def fold(
    profile: WorkingMemoryProfile,
    result: SessionResult,
    exercise: ExerciseConfig,
    settings: Optional[ProfileConfig] = None,
    bounds: Optional[Bounds] = None,
) -> WorkingMemoryProfile:
    """
    Return the profile that results from recording ``result``.

    Args:
        profile: Profile before the session (not modified)
        result: Finished session
        exercise: Catalog entry the session ran
        settings: Thresholds (global config if None)
        bounds: Level bounds the session ran with (configured bounds if None)

    Returns:
        New WorkingMemoryProfile
    """
    settings = settings or config.profile
    data = profile.to_dict()

    history = data["exercise_history"]
    record = result.to_dict()
    if record.get("family") is None:
        record["family"] = exercise.family.value
    if record.get("exercise_id") is None:
        record["exercise_id"] = exercise.exercise_id.value
    history.append(record)
    if len(history) > settings.max_history:
        del history[: len(history) - settings.max_history]

    capacities = profile.capacities()
    area = exercise.primary_challenge_area
    before = capacities[area]
    after = before

    bounds = bounds or bounds_for_level(result.final_level)
    reached = bounds.rank(result.final_level)
    if result.score > settings.mastery_threshold and reached >= capacity_implied_rank(before, bounds, settings):
        after = min(settings.capacity_max, before + settings.capacity_step)
    elif _low_accuracy(history, record["family"], settings):
        after = max(settings.capacity_min, before - settings.capacity_step)
    capacities[area] = after

    if after != before:
        logger.info(
            "Profile %s: %s capacity %.1f -> %.1f after %s (score=%d)",
            profile.user_id, area.value, before, after, exercise.exercise_id.value, result.score,
        )

    overall = round(float(np.mean(list(capacities.values()))), 2)
    areas = challenge_areas_for(capacities, settings.challenge_threshold)
    scores = [r["score"] for r in history]
    trend = progress_trend(
        scores,
        short_window=settings.trend_short_window,
        long_window=settings.trend_long_window,
        margin=settings.trend_margin,
    )

    new_capacities = {"overall": overall}
    new_capacities.update({CAPACITY_KEYS[a]: v for a, v in capacities.items()})

    return with_updates(
        profile,
        capacities=new_capacities,
        challenge_areas=areas,
        recommended_exercises=recommended_exercise_families(areas),
        recommended_support_level=support_level_for(overall),
        progress_trend=trend,
        exercise_history=history,
    )
