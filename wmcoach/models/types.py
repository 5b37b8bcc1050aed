"""
Closed vocabularies shared by the whole engine.

Every tag that crosses a module boundary (challenge areas, exercise ids,
families, support levels, session phases) is a ``str`` enum so that values
serialise to the same strings the profile documents use.
"""

from __future__ import annotations

from enum import Enum


class ChallengeArea(str, Enum):
    """Working-memory subsystems a learner can struggle with."""

    VISUAL_SPATIAL_SKETCHPAD = "visual_spatial_sketchpad"
    PHONOLOGICAL_LOOP = "phonological_loop"
    CENTRAL_EXECUTIVE = "central_executive"
    EPISODIC_BUFFER = "episodic_buffer"


class ExerciseFamily(str, Enum):
    """Groups of exercises that share stimulus and response mechanics."""

    SEQUENTIAL_MEMORY = "sequential_memory"
    DUAL_N_BACK = "dual_n_back"
    VISUAL_SPATIAL = "visual_spatial"
    AUDITORY_VERBAL = "auditory_verbal"
    PATTERN_RECOGNITION = "pattern_recognition"
    CATEGORIZATION = "categorization"
    MENTAL_MATH = "mental_math"
    INSTRUCTION_FOLLOWING = "instruction_following"


class ExerciseType(str, Enum):
    """Catalog identifiers of individual exercises."""

    DIGIT_SPAN = "digit_span"
    REVERSE_DIGIT_SPAN = "reverse_digit_span"
    DUAL_2_BACK = "dual_2_back"
    PATTERN_MEMORY = "pattern_memory"
    SPATIAL_LOCATION = "spatial_location"
    WORD_LIST_RECALL = "word_list_recall"
    SENTENCE_COMPLETION = "sentence_completion"
    SEQUENCE_PREDICTION = "sequence_prediction"
    SORTING_TASK = "sorting_task"
    MENTAL_ARITHMETIC = "mental_arithmetic"
    MULTI_STEP_INSTRUCTIONS = "multi_step_instructions"


class SupportLevel(str, Enum):
    """
    Intensity of support a learner needs.

    Ordered: minimal < moderate < substantial < comprehensive.
    """

    MINIMAL = "minimal"
    MODERATE = "moderate"
    SUBSTANTIAL = "substantial"
    COMPREHENSIVE = "comprehensive"

    @property
    def rank(self) -> int:
        return _SUPPORT_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, SupportLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, SupportLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, SupportLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, SupportLevel):
            return NotImplemented
        return self.rank >= other.rank


_SUPPORT_ORDER = [
    SupportLevel.MINIMAL,
    SupportLevel.MODERATE,
    SupportLevel.SUBSTANTIAL,
    SupportLevel.COMPREHENSIVE,
]


class ContextualTrigger(str, Enum):
    """When the UI should surface a support tool."""

    ALWAYS = "always"
    ON_DEMAND = "on_demand"
    AUTOMATIC_DETECTION = "automatic_detection"


class FeedbackLevel(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    DETAILED = "detailed"


class ProgressTrend(str, Enum):
    """Derived direction of a learner's recent scores."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INITIAL = "initial"


class SessionPhase(str, Enum):
    """Phases of one exercise session. ``FINISHED`` is terminal."""

    INSTRUCTION = "instruction"
    PRESENTATION = "presentation"
    RECALL = "recall"
    FEEDBACK = "feedback"
    FINISHED = "finished"
