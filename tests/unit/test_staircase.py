"""
Unit tests for the staircase difficulty controller.

Tests:
- Sequence bounds stepping and clamping
- Grid bounds stepping across grid sizes
- Rank ordering along the step_up path
- next_level with adaptive on/off
"""

import pytest

from wmcoach.config import StaircaseConfig
from wmcoach.engine.staircase import (
    GridBounds,
    GridLevel,
    SequenceBounds,
    SequenceLevel,
    grid_bounds,
    level_from_dict,
    next_level,
    sequence_bounds,
)


class TestSequenceBounds:
    """Test the sequential family staircase."""

    def test_defaults(self):
        bounds = SequenceBounds()
        assert bounds.minimum == SequenceLevel(3)
        assert bounds.maximum == SequenceLevel(9)
        assert bounds.min_rank == 3
        assert bounds.max_rank == 9

    def test_step_up_and_down(self):
        bounds = SequenceBounds()
        assert bounds.step_up(SequenceLevel(4)) == SequenceLevel(5)
        assert bounds.step_down(SequenceLevel(4)) == SequenceLevel(3)

    def test_never_leaves_bounds(self):
        bounds = SequenceBounds()
        assert bounds.step_up(SequenceLevel(9)) == SequenceLevel(9)
        assert bounds.step_down(SequenceLevel(3)) == SequenceLevel(3)

    def test_clamp(self):
        bounds = SequenceBounds()
        assert bounds.clamp(SequenceLevel(1)) == SequenceLevel(3)
        assert bounds.clamp(SequenceLevel(42)) == SequenceLevel(9)

    def test_rank_is_length(self):
        assert SequenceBounds().rank(SequenceLevel(6)) == 6

    @pytest.mark.parametrize("low,high", [(0, 5), (5, 4)])
    def test_invalid_bounds_rejected(self, low, high):
        with pytest.raises(ValueError):
            SequenceBounds(low, high)


class TestGridBounds:
    """Test the spatial family staircase."""

    def test_defaults(self):
        bounds = GridBounds()
        assert bounds.minimum == GridLevel(3, 3)
        assert bounds.maximum == GridLevel(7, 5)

    def test_pattern_count_grows_first(self):
        bounds = GridBounds()
        assert bounds.step_up(GridLevel(3, 3)) == GridLevel(4, 3)

    def test_moves_to_next_grid_after_max_count(self):
        bounds = GridBounds()
        assert bounds.step_up(GridLevel(7, 3)) == GridLevel(3, 4)
        assert bounds.step_down(GridLevel(3, 4)) == GridLevel(3, 3)

    def test_caps_at_maximum(self):
        bounds = GridBounds()
        assert bounds.step_up(GridLevel(7, 5)) == GridLevel(7, 5)
        assert bounds.step_down(GridLevel(3, 3)) == GridLevel(3, 3)

    def test_rank_strictly_increases_along_step_up(self):
        bounds = GridBounds()
        level = bounds.minimum
        ranks = [bounds.rank(level)]
        while level != bounds.maximum:
            level = bounds.step_up(level)
            ranks.append(bounds.rank(level))
        assert ranks == sorted(set(ranks))
        assert ranks[0] == bounds.min_rank == 3
        assert ranks[-1] == bounds.max_rank == 17

    def test_clamp_snaps_to_configured_grid(self):
        bounds = GridBounds()
        assert bounds.clamp(GridLevel(10, 6)) == GridLevel(7, 5)
        assert bounds.clamp(GridLevel(1, 2)) == GridLevel(3, 3)

    def test_unsorted_grid_sizes_rejected(self):
        with pytest.raises(ValueError):
            GridBounds(grid_sizes=(4, 3))

    def test_pattern_count_must_fit_smallest_grid(self):
        with pytest.raises(ValueError):
            GridBounds(grid_sizes=(2, 3), min_pattern_count=1, max_pattern_count=5)


class TestNextLevel:
    """Test the 1-up/1-down rule."""

    def test_correct_steps_up(self):
        assert next_level(SequenceLevel(3), True, SequenceBounds()) == SequenceLevel(4)

    def test_incorrect_steps_down(self):
        assert next_level(SequenceLevel(5), False, SequenceBounds()) == SequenceLevel(4)

    def test_fixed_level_when_not_adaptive(self):
        level = GridLevel(4, 3)
        assert next_level(level, True, GridBounds(), adaptive=False) == level
        assert next_level(level, False, GridBounds(), adaptive=False) == level


class TestBoundsFromConfig:
    def test_sequence_bounds_from_settings(self):
        settings = StaircaseConfig(min_sequence_length=2, max_sequence_length=5)
        assert sequence_bounds(settings) == SequenceBounds(2, 5)

    def test_grid_bounds_from_settings(self):
        settings = StaircaseConfig(grid_sizes=(4, 6), min_pattern_count=2, max_pattern_count=4)
        bounds = grid_bounds(settings)
        assert bounds.grid_sizes == (4, 6)
        assert bounds.minimum == GridLevel(2, 4)


class TestLevelFromDict:
    def test_sequence_level(self):
        assert level_from_dict({"length": 6}) == SequenceLevel(6)

    def test_grid_level(self):
        assert level_from_dict({"pattern_count": 4, "grid_size": 5}) == GridLevel(4, 5)

    def test_unknown_shape_rejected(self):
        with pytest.raises(ValueError):
            level_from_dict({"size": 3})
