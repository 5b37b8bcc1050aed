"""
Working-memory profile: per-user capacities, challenge areas and history.

The profile is a validated JSON document wrapped in a small class with typed
accessors. It is treated as a value: the updater and the coach build new
profiles instead of mutating stored ones.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jsonschema import ValidationError

from ..config import config
from ..utils.validation import ProfileValidator, schema_validator, PROFILE_SCHEMA
from .results import SessionResult
from .types import ChallengeArea, ExerciseFamily, ProgressTrend, SupportLevel

# Profile capacity key for each challenge area
CAPACITY_KEYS: Dict[ChallengeArea, str] = {
    ChallengeArea.VISUAL_SPATIAL_SKETCHPAD: "visual_spatial",
    ChallengeArea.PHONOLOGICAL_LOOP: "phonological",
    ChallengeArea.CENTRAL_EXECUTIVE: "central_executive",
    ChallengeArea.EPISODIC_BUFFER: "episodic_buffer",
}

DEFAULT_CHALLENGE_AREAS = [ChallengeArea.PHONOLOGICAL_LOOP, ChallengeArea.VISUAL_SPATIAL_SKETCHPAD]
DEFAULT_RECOMMENDED_EXERCISES = [ExerciseFamily.SEQUENTIAL_MEMORY, ExerciseFamily.VISUAL_SPATIAL]


class WorkingMemoryProfile:
    """
    Working-memory profile of one user.

    Usage:
        profile = WorkingMemoryProfile.default("user-1")
        profile.capacity_for(ChallengeArea.PHONOLOGICAL_LOOP)   # 5.0
        data = profile.to_dict()
    """

    def __init__(self, data: Dict[str, Any], validate: bool = True):
        """
        Wrap a profile document.

        Args:
            data: Document matching the profile schema (copied)
            validate: Validate on creation (raises ValidationError when invalid)
        """
        self._data = deepcopy(data)
        if validate:
            self._validate()

    @staticmethod
    def _utc_now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @classmethod
    def _get_validator(cls) -> ProfileValidator:
        return schema_validator(PROFILE_SCHEMA)

    @classmethod
    def default(cls, user_id: str) -> "WorkingMemoryProfile":
        """Profile synthesised for a user the store has never seen."""
        now = cls._utc_now()
        capacity = config.profile.default_capacity
        return cls(
            {
                "meta": {"schema_version": 1, "created_at": now, "last_updated": now},
                "user_id": user_id,
                "capacities": {
                    "overall": capacity,
                    "visual_spatial": capacity,
                    "phonological": capacity,
                    "central_executive": capacity,
                    "episodic_buffer": capacity,
                },
                "challenge_areas": [a.value for a in DEFAULT_CHALLENGE_AREAS],
                "recommended_exercises": [f.value for f in DEFAULT_RECOMMENDED_EXERCISES],
                "recommended_support_level": SupportLevel.MODERATE.value,
                "progress_trend": ProgressTrend.INITIAL.value,
                "exercise_history": [],
            }
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], auto_repair: bool = False) -> "WorkingMemoryProfile":
        """
        Build a profile from a stored document.

        Raises:
            ValidationError: If the document is invalid (after repair, if requested)
        """
        result = cls._get_validator().validate(data, auto_repair=auto_repair)
        if not result.valid:
            raise ValidationError("\n".join(result.errors))
        return cls(result.data, validate=False)

    def _validate(self) -> None:
        result = self._get_validator().validate(self._data, auto_repair=False)
        if not result.valid:
            raise ValidationError("\n".join(result.errors))

    # ==================== Accessors ====================

    @property
    def user_id(self) -> str:
        return self._data["user_id"]

    @property
    def created_at(self) -> str:
        return self._data["meta"]["created_at"]

    @property
    def last_updated(self) -> str:
        return self._data["meta"]["last_updated"]

    @property
    def overall_capacity(self) -> float:
        return self._data["capacities"]["overall"]

    @property
    def visual_spatial_capacity(self) -> float:
        return self._data["capacities"]["visual_spatial"]

    @property
    def phonological_capacity(self) -> float:
        return self._data["capacities"]["phonological"]

    @property
    def central_executive_strength(self) -> float:
        return self._data["capacities"]["central_executive"]

    @property
    def episodic_buffer_capacity(self) -> float:
        return self._data["capacities"]["episodic_buffer"]

    @property
    def challenge_areas(self) -> List[ChallengeArea]:
        return [ChallengeArea(a) for a in self._data["challenge_areas"]]

    @property
    def recommended_exercises(self) -> List[ExerciseFamily]:
        return [ExerciseFamily(f) for f in self._data["recommended_exercises"]]

    @property
    def recommended_support_level(self) -> SupportLevel:
        return SupportLevel(self._data["recommended_support_level"])

    @property
    def progress_trend(self) -> ProgressTrend:
        return ProgressTrend(self._data["progress_trend"])

    @property
    def exercise_history(self) -> List[SessionResult]:
        """Recorded sessions, oldest first."""
        return [SessionResult.from_dict(r) for r in self._data["exercise_history"]]

    @property
    def session_count(self) -> int:
        return len(self._data["exercise_history"])

    def capacity_for(self, area: ChallengeArea) -> float:
        """Capacity (0-10) of the subsystem behind a challenge area."""
        return self._data["capacities"][CAPACITY_KEYS[ChallengeArea(area)]]

    def capacities(self) -> Dict[ChallengeArea, float]:
        return {area: self._data["capacities"][key] for area, key in CAPACITY_KEYS.items()}

    # ==================== Serialisation ====================

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the profile document."""
        return deepcopy(self._data)

    def copy(self) -> "WorkingMemoryProfile":
        return WorkingMemoryProfile(self._data, validate=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkingMemoryProfile):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return (
            f"WorkingMemoryProfile(user_id={self.user_id!r}, "
            f"overall={self.overall_capacity}, "
            f"challenge_areas={[a.value for a in self.challenge_areas]}, "
            f"support={self.recommended_support_level.value}, "
            f"sessions={self.session_count}, trend={self.progress_trend.value})"
        )


def with_updates(profile: WorkingMemoryProfile, **changes: Optional[Any]) -> WorkingMemoryProfile:
    """
    New profile with top-level document fields replaced and ``last_updated`` bumped.

    Enum values are stored by value; lists of enums likewise.
    """
    data = profile.to_dict()
    for key, value in changes.items():
        if key not in data or key == "meta":
            raise ValueError(f"Unknown profile field: {key}")
        data[key] = _plain(value)
    data["meta"]["last_updated"] = WorkingMemoryProfile._utc_now()
    return WorkingMemoryProfile(data)


def _plain(value: Any) -> Any:
    if isinstance(value, (ChallengeArea, ExerciseFamily, SupportLevel, ProgressTrend)):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value
