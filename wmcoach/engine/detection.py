"""
Rule-based detection of working-memory challenges from interaction signals.
"""

from __future__ import annotations

import logging

from ..models.support import ChallengeDetection, InteractionData
from ..models.types import ChallengeArea, SupportLevel

logger = logging.getLogger(__name__)

ERROR_PATTERN_LIMIT = 3
TASK_SWITCH_LIMIT = 5
INCOMPLETE_ACTION_LIMIT = 3
PAGE_REVISIT_LIMIT = 5

BASE_CONFIDENCE = 0.5
CONFIDENCE_PER_AREA = 0.1

# Support level by number of detected areas (3 or more is comprehensive)
_LEVEL_BY_COUNT = [
    SupportLevel.MINIMAL,
    SupportLevel.MODERATE,
    SupportLevel.SUBSTANTIAL,
    SupportLevel.COMPREHENSIVE,
]


def detect_challenges(interaction: InteractionData) -> ChallengeDetection:
    """
    Apply the detection rules:

    - more than 3 spatial-navigation errors: visual-spatial sketchpad
    - more than 3 instruction-recall errors: phonological loop
    - more than 5 task switches or more than 3 incomplete actions: central executive
    - more than 5 page revisits: episodic buffer

    Confidence starts at 0.5 and grows by 0.1 per detected area (max 1.0).
    """
    detected = []
    if interaction.error_count("spatial_navigation") > ERROR_PATTERN_LIMIT:
        detected.append(ChallengeArea.VISUAL_SPATIAL_SKETCHPAD)
    if interaction.error_count("instruction_recall") > ERROR_PATTERN_LIMIT:
        detected.append(ChallengeArea.PHONOLOGICAL_LOOP)
    if (
        interaction.task_switches > TASK_SWITCH_LIMIT
        or interaction.incomplete_actions > INCOMPLETE_ACTION_LIMIT
    ):
        detected.append(ChallengeArea.CENTRAL_EXECUTIVE)
    if interaction.page_revisits > PAGE_REVISIT_LIMIT:
        detected.append(ChallengeArea.EPISODIC_BUFFER)

    confidence = min(1.0, round(BASE_CONFIDENCE + CONFIDENCE_PER_AREA * len(detected), 2))
    level = _LEVEL_BY_COUNT[min(len(detected), len(_LEVEL_BY_COUNT) - 1)]

    logger.debug("Detected %s (confidence %.1f, support %s)", [a.value for a in detected], confidence, level.value)
    return ChallengeDetection(
        detected_challenges=detected,
        confidence_level=confidence,
        recommended_support_level=level,
    )
