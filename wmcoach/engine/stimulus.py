"""
Stimulus generation and response checking per exercise family.

Two families have generators:

- Sequential (digit span, reverse digit span): ``length`` random digits 0-9
- Spatial (pattern memory, spatial location): ``pattern_count`` highlighted
  cells on a ``grid_size`` x ``grid_size`` grid, chosen without replacement

A ``StimulusFamily`` bundles everything a session needs to run one family:
its staircase bounds, how to generate a stimulus at a level, how the
stimulus is presented over time and how responses are recorded and checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..catalog import ExerciseConfig
from ..config import SessionTimingConfig, StaircaseConfig
from ..exceptions import UnsupportedExerciseError
from ..models.types import ExerciseFamily, ExerciseType
from .staircase import GridBounds, GridLevel, SequenceBounds, SequenceLevel, grid_bounds, sequence_bounds


@dataclass(frozen=True)
class SequenceStimulus:
    """Digits shown one at a time; ``reverse`` asks for them backwards."""

    items: Tuple[int, ...]
    reverse: bool = False

    @property
    def expected_response(self) -> Tuple[int, ...]:
        return tuple(reversed(self.items)) if self.reverse else self.items

    def is_correct(self, response: Sequence[int]) -> bool:
        return tuple(response) == self.expected_response


@dataclass(frozen=True)
class GridStimulus:
    """Highlighted cells of a square grid, as row-major flat indices."""

    grid_size: int
    cells: FrozenSet[int]

    def as_grid(self) -> List[List[bool]]:
        return [
            [row * self.grid_size + col in self.cells for col in range(self.grid_size)]
            for row in range(self.grid_size)
        ]

    def is_correct(self, response: Sequence[int]) -> bool:
        return frozenset(response) == self.cells


Stimulus = Union[SequenceStimulus, GridStimulus]


def generate_sequence(rng: np.random.Generator, length: int, reverse: bool = False) -> SequenceStimulus:
    if length < 1:
        raise ValueError(f"Sequence length must be >= 1, got {length}")
    items = tuple(int(d) for d in rng.integers(0, 10, size=length))
    return SequenceStimulus(items=items, reverse=reverse)


def generate_grid(rng: np.random.Generator, pattern_count: int, grid_size: int) -> GridStimulus:
    total = grid_size * grid_size
    if pattern_count < 1 or pattern_count > total:
        raise ValueError(
            f"pattern_count must be in [1, {total}] for a {grid_size}x{grid_size} grid, "
            f"got {pattern_count}"
        )
    cells = rng.choice(total, size=pattern_count, replace=False)
    return GridStimulus(grid_size=grid_size, cells=frozenset(int(c) for c in cells))


@dataclass(frozen=True)
class PresentationStep:
    """One timed frame of a presentation; ``visible`` is None during a gap."""

    duration_ms: int
    visible: Any = None


class StimulusFamily:
    """Base class for the per-family strategies used by ExerciseSession."""

    family: ExerciseFamily
    # True when recall ends by itself once enough responses are in
    auto_submit: bool = False

    def bounds(self, settings: Optional[StaircaseConfig] = None):
        raise NotImplementedError

    def generate(self, rng: np.random.Generator, level) -> Stimulus:
        raise NotImplementedError

    def presentation(self, stimulus: Stimulus, timing: SessionTimingConfig, reduce_motion: bool = False) -> List[PresentationStep]:
        raise NotImplementedError

    def record(self, stimulus: Stimulus, responses: List[int], value) -> List[int]:
        raise NotImplementedError

    def is_complete(self, stimulus: Stimulus, responses: List[int]) -> bool:
        return False


class SequentialFamily(StimulusFamily):
    family = ExerciseFamily.SEQUENTIAL_MEMORY
    auto_submit = True

    def __init__(self, reverse: bool = False):
        self.reverse = reverse

    def bounds(self, settings: Optional[StaircaseConfig] = None) -> SequenceBounds:
        return sequence_bounds(settings)

    def generate(self, rng: np.random.Generator, level: SequenceLevel) -> SequenceStimulus:
        return generate_sequence(rng, level.length, reverse=self.reverse)

    def presentation(self, stimulus, timing, reduce_motion=False):
        if reduce_motion:
            shown, gap = timing.item_display_ms_reduced_motion, timing.inter_item_gap_ms_reduced_motion
        else:
            shown, gap = timing.item_display_ms, timing.inter_item_gap_ms
        steps = []
        for item in stimulus.items:
            steps.append(PresentationStep(shown, item))
            steps.append(PresentationStep(gap, None))
        return steps

    def record(self, stimulus, responses, value):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ValueError(f"Digit response must be an integer, got {value!r}")
        if not 0 <= value <= 9:
            raise ValueError(f"Digit response must be in [0, 9], got {value}")
        if len(responses) >= len(stimulus.items):
            raise ValueError("All digits for this trial have already been entered")
        return responses + [int(value)]

    def is_complete(self, stimulus, responses):
        return len(responses) == len(stimulus.items)


class SpatialFamily(StimulusFamily):
    family = ExerciseFamily.VISUAL_SPATIAL

    def bounds(self, settings: Optional[StaircaseConfig] = None) -> GridBounds:
        return grid_bounds(settings)

    def generate(self, rng: np.random.Generator, level: GridLevel) -> GridStimulus:
        return generate_grid(rng, level.pattern_count, level.grid_size)

    def presentation(self, stimulus, timing, reduce_motion=False):
        shown = timing.pattern_display_ms_reduced_motion if reduce_motion else timing.pattern_display_ms
        return [PresentationStep(shown, stimulus.cells)]

    def record(self, stimulus, responses, value):
        """Toggle a cell given as a flat index or a ``(row, col)`` pair."""
        size = stimulus.grid_size
        if isinstance(value, tuple):
            row, col = value
            if not (0 <= row < size and 0 <= col < size):
                raise ValueError(f"Cell {value} is outside the {size}x{size} grid")
            index = row * size + col
        else:
            index = int(value)
            if not 0 <= index < size * size:
                raise ValueError(f"Cell {index} is outside the {size}x{size} grid")
        if index in responses:
            return [c for c in responses if c != index]
        return responses + [index]


def family_for(exercise: ExerciseConfig) -> StimulusFamily:
    """
    Pick the stimulus strategy for an exercise.

    Raises:
        UnsupportedExerciseError: For families without a generator
    """
    if exercise.family == ExerciseFamily.SEQUENTIAL_MEMORY:
        return SequentialFamily(reverse=exercise.exercise_id == ExerciseType.REVERSE_DIGIT_SPAN)
    if exercise.family == ExerciseFamily.VISUAL_SPATIAL:
        return SpatialFamily()
    raise UnsupportedExerciseError(
        f"No stimulus generator for family '{exercise.family.value}'",
        details={"exercise_id": exercise.exercise_id.value, "family": exercise.family.value},
    )
