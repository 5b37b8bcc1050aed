"""
Per-user support configuration and challenge-detection records.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .types import ChallengeArea, SupportLevel

NOTIFICATION_FREQUENCIES = ("low", "medium", "high")


@dataclass
class SupportConfiguration:
    """
    How support is delivered to one user.

    ``enabled_tools`` of None means every catalog tool is enabled.
    """

    user_id: str
    enabled_tools: Optional[List[str]] = None
    default_support_level: SupportLevel = SupportLevel.MODERATE
    automatic_detection: bool = True
    adaptive_support: bool = True
    notification_frequency: str = "medium"
    visual_cues: bool = True
    auditory_cues: bool = True
    reminder_system: bool = True
    parent_notifications: bool = False
    educator_notifications: bool = True
    data_collection: bool = True

    def __post_init__(self):
        self.default_support_level = SupportLevel(self.default_support_level)
        if self.notification_frequency not in NOTIFICATION_FREQUENCIES:
            raise ValueError(
                f"notification_frequency must be one of {NOTIFICATION_FREQUENCIES}, "
                f"got {self.notification_frequency!r}"
            )
        if self.enabled_tools is not None:
            self.enabled_tools = list(dict.fromkeys(self.enabled_tools))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["default_support_level"] = self.default_support_level.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportConfiguration":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class ErrorPattern:
    type: str
    count: int


@dataclass
class InteractionData:
    """Interaction signals collected by the host application for one user."""

    page_revisits: int = 0
    task_switches: int = 0
    incomplete_actions: int = 0
    response_delays: List[float] = field(default_factory=list)
    error_patterns: List[ErrorPattern] = field(default_factory=list)
    time_on_task: float = 0.0

    def __post_init__(self):
        for name in ("page_revisits", "task_switches", "incomplete_actions", "time_on_task"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative: {getattr(self, name)}")
        self.error_patterns = [
            p if isinstance(p, ErrorPattern) else ErrorPattern(**p) for p in self.error_patterns
        ]

    def error_count(self, pattern_type: str) -> int:
        return max((p.count for p in self.error_patterns if p.type == pattern_type), default=0)


@dataclass(frozen=True)
class ChallengeDetection:
    detected_challenges: List[ChallengeArea]
    confidence_level: float
    recommended_support_level: SupportLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected_challenges": [a.value for a in self.detected_challenges],
            "confidence_level": self.confidence_level,
            "recommended_support_level": self.recommended_support_level.value,
        }
