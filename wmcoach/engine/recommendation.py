"""
Exercise and support-tool recommendations from a profile's challenge areas.

Ranking is deterministic: descending overlap with the profile's challenge
areas, then ascending difficulty (exercises) or support level (tools), then
catalog order.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from ..catalog import ExerciseCatalog, ExerciseConfig, SupportTool, SupportToolCatalog
from ..config import config
from ..models.profile import WorkingMemoryProfile
from ..models.types import ChallengeArea, ExerciseFamily

logger = logging.getLogger(__name__)

# Families that train each challenge area
FAMILIES_BY_AREA = {
    ChallengeArea.VISUAL_SPATIAL_SKETCHPAD: [ExerciseFamily.VISUAL_SPATIAL],
    ChallengeArea.PHONOLOGICAL_LOOP: [ExerciseFamily.AUDITORY_VERBAL, ExerciseFamily.SEQUENTIAL_MEMORY],
    ChallengeArea.CENTRAL_EXECUTIVE: [ExerciseFamily.DUAL_N_BACK, ExerciseFamily.MENTAL_MATH],
    ChallengeArea.EPISODIC_BUFFER: [ExerciseFamily.CATEGORIZATION, ExerciseFamily.INSTRUCTION_FOLLOWING],
}

BALANCED_FAMILIES = [
    ExerciseFamily.SEQUENTIAL_MEMORY,
    ExerciseFamily.VISUAL_SPATIAL,
    ExerciseFamily.PATTERN_RECOGNITION,
]


def _overlap(areas: Sequence[ChallengeArea], wanted: Iterable[ChallengeArea]) -> int:
    wanted = set(wanted)
    return sum(1 for a in areas if a in wanted)


def _resolve_limit(limit: Optional[int]) -> Optional[int]:
    if limit is None:
        return config.recommendation.default_limit
    if limit < 0:
        raise ValueError(f"limit cannot be negative: {limit}")
    return limit


def recommend_exercises(
    profile: WorkingMemoryProfile,
    catalog: ExerciseCatalog,
    limit: Optional[int] = None,
) -> List[ExerciseConfig]:
    """
    Exercises that train at least one of the profile's challenge areas.

    Args:
        profile: Profile whose challenge areas drive the ranking
        catalog: Exercise catalog to draw from
        limit: Maximum number returned (config default if None)

    Returns:
        Exercises ordered by overlap (desc), difficulty (asc), catalog order
    """
    limit = _resolve_limit(limit)
    areas = profile.challenge_areas

    ranked = []
    for position, exercise in enumerate(catalog):
        overlap = _overlap(exercise.challenge_areas, areas)
        if overlap:
            ranked.append((-overlap, exercise.difficulty, position, exercise))
    ranked.sort(key=lambda entry: entry[:3])

    result = [entry[-1] for entry in ranked][:limit]
    logger.debug(
        "Recommended exercises for %s: %s",
        profile.user_id, [e.exercise_id.value for e in result],
    )
    return result


def recommend_support_tools(
    profile: WorkingMemoryProfile,
    catalog: SupportToolCatalog,
    limit: Optional[int] = None,
    enabled_tools: Optional[Iterable[str]] = None,
) -> List[SupportTool]:
    """
    Support tools for the profile's challenge areas, never more intensive
    than the profile's recommended support level.

    Args:
        profile: Profile whose challenge areas and support level apply
        catalog: Support tool catalog to draw from
        limit: Maximum number returned (config default if None)
        enabled_tools: When given, only these tool ids are eligible

    Returns:
        Tools ordered by overlap (desc), support level (asc), catalog order
    """
    limit = _resolve_limit(limit)
    areas = profile.challenge_areas
    ceiling = profile.recommended_support_level
    enabled = set(enabled_tools) if enabled_tools is not None else None

    ranked = []
    for position, tool in enumerate(catalog):
        if tool.support_level > ceiling:
            continue
        if enabled is not None and tool.tool_id not in enabled:
            continue
        overlap = _overlap(tool.target_challenge_areas, areas)
        if overlap:
            ranked.append((-overlap, tool.support_level.rank, position, tool))
    ranked.sort(key=lambda entry: entry[:3])

    result = [entry[-1] for entry in ranked][:limit]
    logger.debug(
        "Recommended tools for %s (<= %s): %s",
        profile.user_id, ceiling.value, [t.tool_id for t in result],
    )
    return result


def recommended_exercise_families(challenge_areas: Sequence[ChallengeArea]) -> List[ExerciseFamily]:
    """
    Exercise families to suggest for a set of challenge areas, de-duplicated
    in area order. A balanced default set is returned when there are none.
    """
    if not challenge_areas:
        return list(BALANCED_FAMILIES)

    families: List[ExerciseFamily] = []
    for area in challenge_areas:
        for family in FAMILIES_BY_AREA[ChallengeArea(area)]:
            if family not in families:
                families.append(family)
    return families


def default_exercises(catalog: ExerciseCatalog) -> List[ExerciseConfig]:
    """Starter exercises for a caller without a profile."""
    return catalog.defaults()


def default_support_tools(catalog: SupportToolCatalog) -> List[SupportTool]:
    """Starter tools for a caller without a profile."""
    return catalog.defaults()
