"""
Data models for the working-memory coach.

- types: closed vocabularies (challenge areas, families, phases, ...)
- results: TrialResult and SessionResult
- profile: WorkingMemoryProfile
- support: SupportConfiguration and challenge-detection records
"""

from .types import (
    ChallengeArea,
    ContextualTrigger,
    ExerciseFamily,
    ExerciseType,
    FeedbackLevel,
    ProgressTrend,
    SessionPhase,
    SupportLevel,
)
from .results import SessionResult, TrialResult
from .profile import WorkingMemoryProfile
from .support import ChallengeDetection, ErrorPattern, InteractionData, SupportConfiguration

__all__ = [
    "ChallengeArea",
    "ContextualTrigger",
    "ExerciseFamily",
    "ExerciseType",
    "FeedbackLevel",
    "ProgressTrend",
    "SessionPhase",
    "SupportLevel",
    "SessionResult",
    "TrialResult",
    "WorkingMemoryProfile",
    "ChallengeDetection",
    "ErrorPattern",
    "InteractionData",
    "SupportConfiguration",
]
