"""
Unit tests for configuration system.

Tests:
- Config loading and initialization
- Path configuration
- Config validation
- Deterministic seeding
"""

import pytest

from wmcoach.config import Config, RandomConfig, config


class TestConfig:
    """Test suite for Config class."""

    def test_config_singleton(self):
        """Test that Config implements singleton pattern."""
        config1 = Config()
        config2 = Config()
        assert config1 is config2, "Config should be a singleton"

    def test_config_initialization(self):
        """Test that config initializes with expected values."""
        assert config.staircase.min_sequence_length == 3
        assert config.staircase.max_sequence_length == 9
        assert tuple(config.staircase.grid_sizes) == (3, 4, 5)
        assert config.scoring.points_per_rank == 10
        assert config.profile.mastery_threshold == 80.0
        assert config.recommendation.default_limit == 5

    def test_paths_configured(self):
        """Test that all required paths are configured."""
        assert config.paths.schemas_dir.name == "schemas"
        assert (config.paths.schemas_dir / "working_memory_profile.schema.json").exists()
        assert config.paths.profiles_dir.parent == config.paths.data_dir

    def test_prepare_filesystem(self, tmp_path):
        from wmcoach.config import PathConfig

        paths = PathConfig(data_dir=tmp_path / "data")
        paths.prepare_filesystem()
        assert paths.profiles_dir.is_dir()
        assert paths.scratch_file == tmp_path / "data" / "scratch.json"

    def test_default_config_is_valid(self):
        assert config.validate() == []

    def test_validation_detects_inverted_sequence_bounds(self):
        original = config.staircase.max_sequence_length
        config.staircase.max_sequence_length = 2
        try:
            errors = config.validate()
        finally:
            config.staircase.max_sequence_length = original
        assert any("max_sequence_length" in e for e in errors)

    def test_validation_detects_pattern_too_large_for_grid(self):
        original = config.staircase.max_pattern_count
        config.staircase.max_pattern_count = 12
        try:
            errors = config.validate()
        finally:
            config.staircase.max_pattern_count = original
        assert any("smallest grid" in e for e in errors)

    def test_validation_detects_bad_trend_windows(self):
        original = config.profile.trend_long_window
        config.profile.trend_long_window = 2
        try:
            errors = config.validate()
        finally:
            config.profile.trend_long_window = original
        assert any("trend_long_window" in e for e in errors)


class TestRandomConfig:
    def test_deterministic_mode(self, monkeypatch):
        """Deterministic mode without an explicit seed falls back to 42."""
        monkeypatch.setenv("WMCOACH_DETERMINISTIC", "1")
        monkeypatch.delenv("WMCOACH_RANDOM_SEED", raising=False)
        assert RandomConfig().seed() == 42

    def test_explicit_seed(self, monkeypatch):
        monkeypatch.setenv("WMCOACH_RANDOM_SEED", "7")
        assert RandomConfig().seed() == 7

    def test_fresh_entropy_by_default(self, monkeypatch):
        monkeypatch.delenv("WMCOACH_DETERMINISTIC", raising=False)
        monkeypatch.delenv("WMCOACH_RANDOM_SEED", raising=False)
        assert RandomConfig().seed() is None


class TestEnvironmentOverrides:
    def test_feedback_ms_from_env(self, monkeypatch):
        from wmcoach.config import SessionTimingConfig

        monkeypatch.setenv("WMCOACH_FEEDBACK_MS", "500")
        assert SessionTimingConfig().feedback_ms == 500

    def test_bad_log_level_reported(self):
        original = config.logging.log_level
        config.logging.log_level = "LOUD"
        try:
            errors = config.validate()
        finally:
            config.logging.log_level = original
        assert errors == ["Unknown log level: LOUD"]


@pytest.mark.parametrize("level", ["DEBUG", "warning"])
def test_configure_logging(level):
    import logging

    from wmcoach.logging_config import configure_logging

    configure_logging(level)
    assert logging.getLogger().level == getattr(logging, level.upper())
    configure_logging("WARNING")
