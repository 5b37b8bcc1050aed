"""
Static catalogs of exercises and support tools.

Both catalogs are loaded once from the registries below and never mutated.
Registry order is the catalog order; it is the final tie-breaker whenever
catalog entries are ranked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import ConfigNotFoundError
from .models.types import (
    ChallengeArea,
    ContextualTrigger,
    ExerciseFamily,
    ExerciseType,
    FeedbackLevel,
    SupportLevel,
)

VSS = ChallengeArea.VISUAL_SPATIAL_SKETCHPAD
PL = ChallengeArea.PHONOLOGICAL_LOOP
CE = ChallengeArea.CENTRAL_EXECUTIVE
EB = ChallengeArea.EPISODIC_BUFFER


@dataclass(frozen=True)
class ExerciseConfig:
    """
    Catalog entry for one exercise.

    Attributes:
        exercise_id: Catalog identifier
        family: Stimulus/response family the exercise belongs to
        challenge_areas: Areas the exercise trains; the first is the primary one
        difficulty: 1-10 scale, used only to order the catalog
        duration: Session time budget in seconds
        adaptive_difficulty: Whether the staircase is active
        visual_support: Exercise offers visual cues
        auditory_support: Exercise offers auditory cues
        instructions: Text shown in the instruction phase
        feedback_level: How much feedback the UI shows after a trial
    """

    exercise_id: ExerciseType
    family: ExerciseFamily
    challenge_areas: Tuple[ChallengeArea, ...]
    difficulty: int
    duration: int
    adaptive_difficulty: bool = True
    visual_support: bool = True
    auditory_support: bool = False
    instructions: str = ""
    feedback_level: FeedbackLevel = FeedbackLevel.MODERATE

    @property
    def primary_challenge_area(self) -> ChallengeArea:
        return self.challenge_areas[0]

    def to_dict(self) -> dict:
        return {
            "exercise_id": self.exercise_id.value,
            "family": self.family.value,
            "challenge_areas": [a.value for a in self.challenge_areas],
            "difficulty": self.difficulty,
            "duration": self.duration,
            "adaptive_difficulty": self.adaptive_difficulty,
            "visual_support": self.visual_support,
            "auditory_support": self.auditory_support,
            "instructions": self.instructions,
            "feedback_level": self.feedback_level.value,
        }


@dataclass(frozen=True)
class SupportTool:
    """Catalog entry for an externalization aid recommended alongside exercises."""

    tool_id: str
    name: str
    description: str
    target_challenge_areas: Tuple[ChallengeArea, ...]
    support_level: SupportLevel
    contextual_trigger: ContextualTrigger
    visual_component: bool = False
    auditory_component: bool = False
    interactive_component: bool = False

    def to_dict(self) -> dict:
        return {
            "tool_id": self.tool_id,
            "name": self.name,
            "description": self.description,
            "target_challenge_areas": [a.value for a in self.target_challenge_areas],
            "support_level": self.support_level.value,
            "contextual_trigger": self.contextual_trigger.value,
            "visual_component": self.visual_component,
            "auditory_component": self.auditory_component,
            "interactive_component": self.interactive_component,
        }


EXERCISE_REGISTRY: Tuple[ExerciseConfig, ...] = (
    ExerciseConfig(
        exercise_id=ExerciseType.DIGIT_SPAN,
        family=ExerciseFamily.SEQUENTIAL_MEMORY,
        challenge_areas=(PL,),
        difficulty=3,
        duration=120,
        auditory_support=True,
        instructions="Remember and repeat the sequence of numbers in the same order.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.REVERSE_DIGIT_SPAN,
        family=ExerciseFamily.SEQUENTIAL_MEMORY,
        challenge_areas=(PL, CE),
        difficulty=4,
        duration=120,
        auditory_support=True,
        instructions="Remember the sequence of numbers and repeat them in reverse order.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.DUAL_2_BACK,
        family=ExerciseFamily.DUAL_N_BACK,
        challenge_areas=(VSS, PL, CE),
        difficulty=6,
        duration=180,
        auditory_support=True,
        instructions=(
            "Press the visual button when the position matches the position 2 steps back, "
            "and the audio button when the sound matches the sound 2 steps back."
        ),
        feedback_level=FeedbackLevel.DETAILED,
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.PATTERN_MEMORY,
        family=ExerciseFamily.VISUAL_SPATIAL,
        challenge_areas=(VSS,),
        difficulty=3,
        duration=150,
        instructions="Remember the pattern of highlighted squares and reproduce it after it disappears.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.SPATIAL_LOCATION,
        family=ExerciseFamily.VISUAL_SPATIAL,
        challenge_areas=(VSS, EB),
        difficulty=4,
        duration=150,
        instructions="Remember where the highlighted squares were and mark the same locations.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.WORD_LIST_RECALL,
        family=ExerciseFamily.AUDITORY_VERBAL,
        challenge_areas=(PL,),
        difficulty=3,
        duration=120,
        visual_support=False,
        auditory_support=True,
        instructions="Listen to the list of words and recall as many as you can in any order.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.SENTENCE_COMPLETION,
        family=ExerciseFamily.AUDITORY_VERBAL,
        challenge_areas=(PL, CE),
        difficulty=5,
        duration=180,
        auditory_support=True,
        instructions=(
            "Listen to the sentences and remember the last word of each. "
            "Then complete each sentence when prompted."
        ),
        feedback_level=FeedbackLevel.DETAILED,
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.SEQUENCE_PREDICTION,
        family=ExerciseFamily.PATTERN_RECOGNITION,
        challenge_areas=(CE,),
        difficulty=4,
        duration=150,
        instructions="Identify the pattern in the sequence and predict the next items.",
        feedback_level=FeedbackLevel.DETAILED,
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.SORTING_TASK,
        family=ExerciseFamily.CATEGORIZATION,
        challenge_areas=(CE, EB),
        difficulty=3,
        duration=180,
        instructions="Sort the items into the correct categories according to the rules.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.MENTAL_ARITHMETIC,
        family=ExerciseFamily.MENTAL_MATH,
        challenge_areas=(CE, PL),
        difficulty=4,
        duration=120,
        auditory_support=True,
        instructions="Solve the arithmetic problems in your head without writing anything down.",
    ),
    ExerciseConfig(
        exercise_id=ExerciseType.MULTI_STEP_INSTRUCTIONS,
        family=ExerciseFamily.INSTRUCTION_FOLLOWING,
        challenge_areas=(PL, CE, EB),
        difficulty=5,
        duration=180,
        auditory_support=True,
        instructions=(
            "Listen to or read the multi-step instructions, then perform the actions "
            "in the correct order."
        ),
        feedback_level=FeedbackLevel.DETAILED,
    ),
)


SUPPORT_TOOL_REGISTRY: Tuple[SupportTool, ...] = (
    SupportTool(
        tool_id="visual_checklist",
        name="Visual Checklist",
        description="Interactive visual checklist to track multi-step tasks",
        target_challenge_areas=(CE, VSS),
        support_level=SupportLevel.MODERATE,
        contextual_trigger=ContextualTrigger.ALWAYS,
        visual_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="mind_mapping",
        name="Mind Mapping Tool",
        description="Visual mind mapping to organize thoughts and information",
        target_challenge_areas=(VSS, EB),
        support_level=SupportLevel.MODERATE,
        contextual_trigger=ContextualTrigger.ON_DEMAND,
        visual_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="verbal_rehearsal",
        name="Verbal Rehearsal Assistant",
        description="Audio prompts to support verbal rehearsal of information",
        target_challenge_areas=(PL,),
        support_level=SupportLevel.SUBSTANTIAL,
        contextual_trigger=ContextualTrigger.ON_DEMAND,
        auditory_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="audio_note_taker",
        name="Audio Note Taker",
        description="Records and organizes audio notes with transcription",
        target_challenge_areas=(PL, EB),
        support_level=SupportLevel.SUBSTANTIAL,
        contextual_trigger=ContextualTrigger.ON_DEMAND,
        visual_component=True,
        auditory_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="task_breakdown",
        name="Task Breakdown Assistant",
        description="Breaks complex tasks into manageable steps",
        target_challenge_areas=(CE,),
        support_level=SupportLevel.COMPREHENSIVE,
        contextual_trigger=ContextualTrigger.AUTOMATIC_DETECTION,
        visual_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="attention_refocuser",
        name="Attention Refocuser",
        description="Gentle prompts to refocus attention when distraction is detected",
        target_challenge_areas=(CE,),
        support_level=SupportLevel.MODERATE,
        contextual_trigger=ContextualTrigger.AUTOMATIC_DETECTION,
        visual_component=True,
        auditory_component=True,
    ),
    SupportTool(
        tool_id="visual_memory_bank",
        name="Visual Memory Bank",
        description="Stores and organizes visual information for easy reference",
        target_challenge_areas=(VSS, EB),
        support_level=SupportLevel.SUBSTANTIAL,
        contextual_trigger=ContextualTrigger.ALWAYS,
        visual_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="concept_connector",
        name="Concept Connector",
        description="Visualizes connections between concepts to reduce cognitive load",
        target_challenge_areas=(EB, CE),
        support_level=SupportLevel.COMPREHENSIVE,
        contextual_trigger=ContextualTrigger.ON_DEMAND,
        visual_component=True,
        interactive_component=True,
    ),
    SupportTool(
        tool_id="cognitive_load_monitor",
        name="Cognitive Load Monitor",
        description="Monitors cognitive load and adjusts content presentation accordingly",
        target_challenge_areas=(CE, VSS, PL),
        support_level=SupportLevel.COMPREHENSIVE,
        contextual_trigger=ContextualTrigger.AUTOMATIC_DETECTION,
        visual_component=True,
        auditory_component=True,
    ),
    SupportTool(
        tool_id="multimodal_memory_assistant",
        name="Multimodal Memory Assistant",
        description="Provides information through multiple sensory channels to enhance retention",
        target_challenge_areas=(VSS, PL, EB),
        support_level=SupportLevel.COMPREHENSIVE,
        contextual_trigger=ContextualTrigger.ON_DEMAND,
        visual_component=True,
        auditory_component=True,
        interactive_component=True,
    ),
)

DEFAULT_EXERCISE_IDS = (
    ExerciseType.DIGIT_SPAN,
    ExerciseType.PATTERN_MEMORY,
    ExerciseType.SORTING_TASK,
)
DEFAULT_TOOL_IDS = ("visual_checklist", "task_breakdown", "attention_refocuser")


class ExerciseCatalog:
    """Read-only registry of exercise definitions keyed by exercise id."""

    def __init__(self, exercises: Iterable[ExerciseConfig] = EXERCISE_REGISTRY):
        self._exercises: Dict[ExerciseType, ExerciseConfig] = {}
        for exercise in exercises:
            if exercise.exercise_id in self._exercises:
                raise ValueError(f"Duplicate exercise id: {exercise.exercise_id.value}")
            if not exercise.challenge_areas:
                raise ValueError(f"Exercise {exercise.exercise_id.value} has no challenge areas")
            self._exercises[exercise.exercise_id] = exercise

    def __iter__(self) -> Iterator[ExerciseConfig]:
        return iter(self._exercises.values())

    def __len__(self) -> int:
        return len(self._exercises)

    def __contains__(self, exercise) -> bool:
        if isinstance(exercise, ExerciseConfig):
            return self._exercises.get(exercise.exercise_id) == exercise
        try:
            return ExerciseType(exercise) in self._exercises
        except ValueError:
            return False

    def get(self, exercise_id) -> ExerciseConfig:
        """
        Look up an exercise by id, or confirm a config belongs to the catalog.

        Raises:
            ConfigNotFoundError: If the id is not in the catalog, or the config
                differs from the catalog entry with its id
        """
        if isinstance(exercise_id, ExerciseConfig):
            if exercise_id not in self:
                raise ConfigNotFoundError(exercise_id.exercise_id.value, "exercise")
            return exercise_id
        try:
            return self._exercises[ExerciseType(exercise_id)]
        except (KeyError, ValueError):
            raise ConfigNotFoundError(str(getattr(exercise_id, "value", exercise_id)), "exercise") from None

    def position(self, exercise_id: ExerciseType) -> int:
        return list(self._exercises).index(exercise_id)

    def available(
        self,
        family: Optional[ExerciseFamily] = None,
        challenge_area: Optional[ChallengeArea] = None,
    ) -> List[ExerciseConfig]:
        """Exercises filtered by family and/or challenge area, in catalog order."""
        exercises = list(self._exercises.values())
        if family is not None:
            exercises = [e for e in exercises if e.family == family]
        if challenge_area is not None:
            exercises = [e for e in exercises if challenge_area in e.challenge_areas]
        return exercises

    def defaults(self) -> List[ExerciseConfig]:
        """Starter set for a caller that has no profile yet."""
        return [self._exercises[i] for i in DEFAULT_EXERCISE_IDS if i in self._exercises]


class SupportToolCatalog:
    """Read-only registry of support tools keyed by tool id."""

    def __init__(self, tools: Iterable[SupportTool] = SUPPORT_TOOL_REGISTRY):
        self._tools: Dict[str, SupportTool] = {}
        for tool in tools:
            if tool.tool_id in self._tools:
                raise ValueError(f"Duplicate tool id: {tool.tool_id}")
            self._tools[tool.tool_id] = tool

    def __iter__(self) -> Iterator[SupportTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def ids(self) -> List[str]:
        return list(self._tools)

    def get(self, tool_id: str) -> SupportTool:
        if tool_id not in self._tools:
            raise ConfigNotFoundError(tool_id, "support tool")
        return self._tools[tool_id]

    def position(self, tool_id: str) -> int:
        return list(self._tools).index(tool_id)

    def available(
        self,
        support_level: Optional[SupportLevel] = None,
        challenge_area: Optional[ChallengeArea] = None,
    ) -> List[SupportTool]:
        """Tools with exactly ``support_level`` and/or targeting ``challenge_area``."""
        tools = list(self._tools.values())
        if support_level is not None:
            tools = [t for t in tools if t.support_level == support_level]
        if challenge_area is not None:
            tools = [t for t in tools if challenge_area in t.target_challenge_areas]
        return tools

    def defaults(self) -> List[SupportTool]:
        return [self._tools[i] for i in DEFAULT_TOOL_IDS if i in self._tools]
