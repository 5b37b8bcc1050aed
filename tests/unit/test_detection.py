"""
Unit tests for challenge detection and the support models.
"""

import pytest

from wmcoach.engine.detection import detect_challenges
from wmcoach.models.support import ErrorPattern, InteractionData, SupportConfiguration
from wmcoach.models.types import ChallengeArea, SupportLevel


class TestDetectChallenges:
    def test_quiet_interaction_detects_nothing(self):
        detection = detect_challenges(InteractionData())
        assert detection.detected_challenges == []
        assert detection.confidence_level == 0.5
        assert detection.recommended_support_level == SupportLevel.MINIMAL

    def test_spatial_navigation_errors(self):
        interaction = InteractionData(error_patterns=[ErrorPattern("spatial_navigation", 4)])
        detection = detect_challenges(interaction)
        assert detection.detected_challenges == [ChallengeArea.VISUAL_SPATIAL_SKETCHPAD]
        assert detection.confidence_level == 0.6
        assert detection.recommended_support_level == SupportLevel.MODERATE

    def test_thresholds_are_strict(self):
        interaction = InteractionData(
            page_revisits=5,
            task_switches=5,
            incomplete_actions=3,
            error_patterns=[ErrorPattern("instruction_recall", 3)],
        )
        assert detect_challenges(interaction).detected_challenges == []

    def test_either_signal_flags_central_executive(self):
        assert detect_challenges(InteractionData(task_switches=6)).detected_challenges == [
            ChallengeArea.CENTRAL_EXECUTIVE
        ]
        assert detect_challenges(InteractionData(incomplete_actions=4)).detected_challenges == [
            ChallengeArea.CENTRAL_EXECUTIVE
        ]

    def test_all_areas(self):
        interaction = InteractionData(
            page_revisits=6,
            task_switches=6,
            error_patterns=[
                {"type": "spatial_navigation", "count": 5},
                {"type": "instruction_recall", "count": 5},
            ],
        )
        detection = detect_challenges(interaction)
        assert detection.detected_challenges == [
            ChallengeArea.VISUAL_SPATIAL_SKETCHPAD,
            ChallengeArea.PHONOLOGICAL_LOOP,
            ChallengeArea.CENTRAL_EXECUTIVE,
            ChallengeArea.EPISODIC_BUFFER,
        ]
        assert detection.confidence_level == pytest.approx(0.9)
        assert detection.recommended_support_level == SupportLevel.COMPREHENSIVE

    def test_to_dict(self):
        detection = detect_challenges(InteractionData(page_revisits=9))
        assert detection.to_dict() == {
            "detected_challenges": ["episodic_buffer"],
            "confidence_level": 0.6,
            "recommended_support_level": "moderate",
        }


class TestInteractionData:
    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            InteractionData(task_switches=-1)

    def test_error_count_uses_largest_entry(self):
        interaction = InteractionData(
            error_patterns=[ErrorPattern("instruction_recall", 2), ErrorPattern("instruction_recall", 4)]
        )
        assert interaction.error_count("instruction_recall") == 4
        assert interaction.error_count("spatial_navigation") == 0


class TestSupportConfiguration:
    def test_defaults(self):
        support = SupportConfiguration(user_id="u1")
        assert support.enabled_tools is None
        assert support.default_support_level == SupportLevel.MODERATE
        assert support.automatic_detection
        assert not support.parent_notifications

    def test_invalid_notification_frequency(self):
        with pytest.raises(ValueError):
            SupportConfiguration(user_id="u1", notification_frequency="hourly")

    def test_round_trip(self):
        support = SupportConfiguration(
            user_id="u1",
            enabled_tools=["mind_mapping", "mind_mapping", "verbal_rehearsal"],
            default_support_level="substantial",
        )
        assert support.enabled_tools == ["mind_mapping", "verbal_rehearsal"]
        data = support.to_dict()
        assert data["default_support_level"] == "substantial"
        assert SupportConfiguration.from_dict(data) == support
