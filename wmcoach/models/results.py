"""
Trial and session outcome records.

Both are immutable once produced; SessionResult round-trips through
``to_dict()`` / ``from_dict()`` because it is stored in the profile history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..engine.staircase import Level, level_from_dict
from .types import ExerciseFamily, ExerciseType


@dataclass(frozen=True)
class TrialResult:
    """
    Outcome of one presentation-response cycle.

    Attributes:
        correct: Exact match between response and expected answer
        response_time_ms: Time from entering recall to scoring
        level_at_trial: Level the stimulus was generated at
        level_after_trial: Level chosen by the staircase for the next trial
        attention_lapse: Response took longer than the lapse threshold
    """

    correct: bool
    response_time_ms: float
    level_at_trial: Level
    level_after_trial: Optional[Level] = None
    attention_lapse: bool = False

    def __post_init__(self):
        if self.response_time_ms < 0:
            raise ValueError(f"response_time_ms cannot be negative: {self.response_time_ms}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correct": self.correct,
            "response_time_ms": self.response_time_ms,
            "level_at_trial": self.level_at_trial.to_dict(),
            "level_after_trial": (
                self.level_after_trial.to_dict() if self.level_after_trial else None
            ),
            "attention_lapse": self.attention_lapse,
        }


@dataclass(frozen=True)
class SessionResult:
    """
    Aggregate of a finished session.

    Attributes:
        score: 0-100, difficulty-weighted
        accuracy: Fraction of correct trials (0-1)
        average_response_time_ms: Mean response time, 0 with no trials
        completion_rate: 1.0 when at least one trial ran, else 0.0
        attention_lapses: Trials slower than the lapse threshold
        final_level: Level after the last trial (initial level with no trials)
        trials_completed: Number of scored trials
    """

    score: int
    accuracy: float
    average_response_time_ms: float
    completion_rate: float
    attention_lapses: int
    final_level: Level
    trials_completed: int = 0
    session_id: Optional[str] = None
    exercise_id: Optional[ExerciseType] = None
    family: Optional[ExerciseFamily] = None
    started_at: Optional[str] = None
    ended_at: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"score must be in [0, 100], got {self.score}")
        if not 0.0 <= self.accuracy <= 1.0:
            raise ValueError(f"accuracy must be in [0, 1], got {self.accuracy}")
        if not 0.0 <= self.completion_rate <= 1.0:
            raise ValueError(f"completion_rate must be in [0, 1], got {self.completion_rate}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "exercise_id": self.exercise_id.value if self.exercise_id else None,
            "family": self.family.value if self.family else None,
            "score": self.score,
            "accuracy": self.accuracy,
            "average_response_time_ms": self.average_response_time_ms,
            "completion_rate": self.completion_rate,
            "attention_lapses": self.attention_lapses,
            "final_level": self.final_level.to_dict(),
            "trials_completed": self.trials_completed,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionResult":
        return cls(
            score=int(data["score"]),
            accuracy=float(data["accuracy"]),
            average_response_time_ms=float(data["average_response_time_ms"]),
            completion_rate=float(data["completion_rate"]),
            attention_lapses=int(data["attention_lapses"]),
            final_level=level_from_dict(data["final_level"]),
            trials_completed=int(data.get("trials_completed", 0)),
            session_id=data.get("session_id"),
            exercise_id=ExerciseType(data["exercise_id"]) if data.get("exercise_id") else None,
            family=ExerciseFamily(data["family"]) if data.get("family") else None,
            started_at=data.get("started_at"),
            ended_at=data.get("ended_at"),
        )
