"""
Unit tests for exercise and support-tool recommendations.
"""

import pytest

from wmcoach.engine.recommendation import (
    BALANCED_FAMILIES,
    default_exercises,
    default_support_tools,
    recommend_exercises,
    recommend_support_tools,
    recommended_exercise_families,
)
from wmcoach.models.profile import with_updates
from wmcoach.models.types import ChallengeArea, ExerciseFamily, ExerciseType, SupportLevel

VSS = ChallengeArea.VISUAL_SPATIAL_SKETCHPAD
PL = ChallengeArea.PHONOLOGICAL_LOOP
CE = ChallengeArea.CENTRAL_EXECUTIVE


@pytest.fixture
def visual_spatial_profile(default_profile):
    return with_updates(
        default_profile,
        challenge_areas=[VSS],
        recommended_support_level=SupportLevel.MODERATE,
    )


class TestRecommendExercises:
    def test_visual_spatial_profile(self, visual_spatial_profile, exercise_catalog):
        result = recommend_exercises(visual_spatial_profile, exercise_catalog)
        assert [e.exercise_id for e in result] == [
            ExerciseType.PATTERN_MEMORY,
            ExerciseType.SPATIAL_LOCATION,
            ExerciseType.DUAL_2_BACK,
        ]

    def test_overlap_ranks_before_difficulty(self, default_profile, exercise_catalog):
        result = recommend_exercises(default_profile, exercise_catalog)
        assert [e.exercise_id for e in result] == [
            ExerciseType.DUAL_2_BACK,
            ExerciseType.DIGIT_SPAN,
            ExerciseType.PATTERN_MEMORY,
            ExerciseType.WORD_LIST_RECALL,
            ExerciseType.REVERSE_DIGIT_SPAN,
        ]

    def test_every_result_trains_a_challenge_area(self, default_profile, exercise_catalog):
        areas = set(default_profile.challenge_areas)
        for exercise in recommend_exercises(default_profile, exercise_catalog, limit=20):
            assert areas & set(exercise.challenge_areas)

    def test_limit(self, default_profile, exercise_catalog):
        assert len(recommend_exercises(default_profile, exercise_catalog, limit=2)) == 2
        assert recommend_exercises(default_profile, exercise_catalog, limit=0) == []

    def test_negative_limit_rejected(self, default_profile, exercise_catalog):
        with pytest.raises(ValueError):
            recommend_exercises(default_profile, exercise_catalog, limit=-1)

    def test_deterministic(self, default_profile, exercise_catalog):
        first = recommend_exercises(default_profile, exercise_catalog)
        second = recommend_exercises(default_profile, exercise_catalog)
        assert first == second


class TestRecommendSupportTools:
    def test_visual_spatial_profile(self, visual_spatial_profile, tool_catalog):
        result = recommend_support_tools(visual_spatial_profile, tool_catalog)
        assert [t.tool_id for t in result] == ["visual_checklist", "mind_mapping"]
        assert all(t.support_level != SupportLevel.COMPREHENSIVE for t in result)

    def test_never_above_profile_support_level(self, default_profile, tool_catalog):
        profile = with_updates(
            default_profile,
            challenge_areas=[CE, PL],
            recommended_support_level=SupportLevel.SUBSTANTIAL,
        )
        result = recommend_support_tools(profile, tool_catalog, limit=20)
        assert result
        assert all(t.support_level <= SupportLevel.SUBSTANTIAL for t in result)

    def test_comprehensive_profile_sees_everything_relevant(self, default_profile, tool_catalog):
        profile = with_updates(
            default_profile,
            challenge_areas=[CE],
            recommended_support_level=SupportLevel.COMPREHENSIVE,
        )
        result = recommend_support_tools(profile, tool_catalog, limit=20)
        ids = [t.tool_id for t in result]
        assert "task_breakdown" in ids
        # Equal overlap: lighter support first
        assert ids.index("visual_checklist") < ids.index("task_breakdown")

    def test_enabled_tools_filter(self, visual_spatial_profile, tool_catalog):
        result = recommend_support_tools(visual_spatial_profile, tool_catalog, enabled_tools=["mind_mapping"])
        assert [t.tool_id for t in result] == ["mind_mapping"]


class TestExerciseFamilies:
    def test_families_for_areas(self):
        assert recommended_exercise_families([VSS, PL]) == [
            ExerciseFamily.VISUAL_SPATIAL,
            ExerciseFamily.AUDITORY_VERBAL,
            ExerciseFamily.SEQUENTIAL_MEMORY,
        ]

    def test_balanced_set_without_areas(self):
        assert recommended_exercise_families([]) == BALANCED_FAMILIES


class TestDefaults:
    def test_default_exercises(self, exercise_catalog):
        assert len(default_exercises(exercise_catalog)) == 3

    def test_default_support_tools(self, tool_catalog):
        assert [t.tool_id for t in default_support_tools(tool_catalog)][0] == "visual_checklist"
