"""
Staircase difficulty controller.

A 1-up/1-down rule shared by every exercise family: one step harder after a
correct trial, one step easier after an incorrect one, never leaving the
family's bounds. It optimizes for engagement, not threshold estimation.

Levels are small frozen dataclasses; bounds know how to step, clamp and rank
the levels of their family.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from ..config import StaircaseConfig, config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SequenceLevel:
    """Difficulty of a sequential trial: number of items to remember."""

    length: int

    def to_dict(self) -> Dict[str, Any]:
        return {"length": self.length}


@dataclass(frozen=True)
class GridLevel:
    """Difficulty of a spatial trial: highlighted cells on a square grid."""

    pattern_count: int
    grid_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"pattern_count": self.pattern_count, "grid_size": self.grid_size}


Level = Union[SequenceLevel, GridLevel]


def level_from_dict(data: Dict[str, Any]) -> Level:
    """Rebuild a level from its ``to_dict()`` form."""
    if "length" in data:
        return SequenceLevel(length=int(data["length"]))
    if "pattern_count" in data and "grid_size" in data:
        return GridLevel(pattern_count=int(data["pattern_count"]), grid_size=int(data["grid_size"]))
    raise ValueError(f"Unrecognised level: {data}")


@dataclass(frozen=True)
class SequenceBounds:
    """Bounds of the sequential family (inclusive)."""

    min_length: int = 3
    max_length: int = 9

    def __post_init__(self):
        if self.min_length < 1 or self.max_length < self.min_length:
            raise ValueError(
                f"Invalid sequence bounds: min={self.min_length}, max={self.max_length}"
            )

    @property
    def minimum(self) -> SequenceLevel:
        return SequenceLevel(self.min_length)

    @property
    def maximum(self) -> SequenceLevel:
        return SequenceLevel(self.max_length)

    def clamp(self, level: SequenceLevel) -> SequenceLevel:
        return SequenceLevel(max(self.min_length, min(self.max_length, level.length)))

    def step_up(self, level: SequenceLevel) -> SequenceLevel:
        return self.clamp(SequenceLevel(level.length + 1))

    def step_down(self, level: SequenceLevel) -> SequenceLevel:
        return self.clamp(SequenceLevel(level.length - 1))

    def rank(self, level: SequenceLevel) -> int:
        """Position on the staircase; equals the sequence length."""
        return self.clamp(level).length

    @property
    def min_rank(self) -> int:
        return self.min_length

    @property
    def max_rank(self) -> int:
        return self.max_length


@dataclass(frozen=True)
class GridBounds:
    """
    Bounds of the spatial family.

    Pattern count runs from ``min_pattern_count`` to ``max_pattern_count`` on
    each grid; grids are visited from smallest to largest.
    """

    grid_sizes: Tuple[int, ...] = (3, 4, 5)
    min_pattern_count: int = 3
    max_pattern_count: int = 7

    def __post_init__(self):
        sizes = tuple(self.grid_sizes)
        object.__setattr__(self, "grid_sizes", sizes)
        if not sizes or list(sizes) != sorted(set(sizes)):
            raise ValueError(f"grid_sizes must be strictly increasing, got {sizes}")
        if self.min_pattern_count < 1 or self.max_pattern_count < self.min_pattern_count:
            raise ValueError(
                f"Invalid pattern bounds: min={self.min_pattern_count}, "
                f"max={self.max_pattern_count}"
            )
        if self.max_pattern_count > sizes[0] * sizes[0]:
            raise ValueError(
                f"max_pattern_count {self.max_pattern_count} does not fit a "
                f"{sizes[0]}x{sizes[0]} grid"
            )

    @property
    def minimum(self) -> GridLevel:
        return GridLevel(self.min_pattern_count, self.grid_sizes[0])

    @property
    def maximum(self) -> GridLevel:
        return GridLevel(self.max_pattern_count, self.grid_sizes[-1])

    def _grid_index(self, grid_size: int) -> int:
        """Index of the largest configured grid not bigger than ``grid_size``."""
        index = 0
        for i, size in enumerate(self.grid_sizes):
            if size <= grid_size:
                index = i
        return index

    def clamp(self, level: GridLevel) -> GridLevel:
        grid_size = self.grid_sizes[self._grid_index(level.grid_size)]
        count = max(self.min_pattern_count, min(self.max_pattern_count, level.pattern_count))
        return GridLevel(count, grid_size)

    def step_up(self, level: GridLevel) -> GridLevel:
        level = self.clamp(level)
        if level.pattern_count < self.max_pattern_count:
            return GridLevel(level.pattern_count + 1, level.grid_size)
        index = self._grid_index(level.grid_size)
        if index + 1 < len(self.grid_sizes):
            return GridLevel(self.min_pattern_count, self.grid_sizes[index + 1])
        return level

    def step_down(self, level: GridLevel) -> GridLevel:
        level = self.clamp(level)
        if level.pattern_count > self.min_pattern_count:
            return GridLevel(level.pattern_count - 1, level.grid_size)
        index = self._grid_index(level.grid_size)
        if index > 0:
            return GridLevel(self.min_pattern_count, self.grid_sizes[index - 1])
        return level

    def rank(self, level: GridLevel) -> int:
        """
        Position on the staircase, starting at ``min_pattern_count``.

        Every larger grid adds a full run of pattern counts, so rank is
        strictly increasing along the step_up path.
        """
        level = self.clamp(level)
        per_grid = self.max_pattern_count - self.min_pattern_count + 1
        index = self._grid_index(level.grid_size)
        return self.min_pattern_count + index * per_grid + (level.pattern_count - self.min_pattern_count)

    @property
    def min_rank(self) -> int:
        return self.min_pattern_count

    @property
    def max_rank(self) -> int:
        return self.rank(self.maximum)


Bounds = Union[SequenceBounds, GridBounds]


def sequence_bounds(settings: StaircaseConfig = None) -> SequenceBounds:
    settings = settings or config.staircase
    return SequenceBounds(settings.min_sequence_length, settings.max_sequence_length)


def grid_bounds(settings: StaircaseConfig = None) -> GridBounds:
    settings = settings or config.staircase
    return GridBounds(
        tuple(settings.grid_sizes), settings.min_pattern_count, settings.max_pattern_count
    )


def next_level(current: Level, was_correct: bool, bounds: Bounds, adaptive: bool = True) -> Level:
    """
    Compute the level for the next trial.

    Args:
        current: Level the trial was presented at
        was_correct: Outcome of the trial
        bounds: Bounds of the exercise family
        adaptive: False when the exercise runs at a fixed level

    Returns:
        Next level, always within bounds
    """
    if not adaptive:
        return current

    if was_correct:
        nxt = bounds.step_up(current)
    else:
        nxt = bounds.step_down(current)

    if nxt != current:
        logger.debug("Staircase %s -> %s (correct=%s)", current, nxt, was_correct)
    return nxt
