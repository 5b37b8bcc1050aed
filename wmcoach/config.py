"""
Configuration management for the working-memory coach.

This module centralizes all configuration settings following 12-factor app principles:
- Values overridable from environment variables (a .env file is honoured)
- Sensible defaults matching the exercise timings learners are used to
- Single source of truth for staircase bounds, scoring and profile thresholds
- Validation that reports inconsistent settings instead of failing at import
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass
class SessionTimingConfig:
    """Phase durations of an exercise session, in milliseconds."""

    # Sequential presentation: one item visible, then a blank gap
    item_display_ms: int = 1000
    inter_item_gap_ms: int = 300
    item_display_ms_reduced_motion: int = 1500
    inter_item_gap_ms_reduced_motion: int = 500

    # Spatial presentation: whole pattern visible at once
    pattern_display_ms: int = 2000
    pattern_display_ms_reduced_motion: int = 3000

    feedback_ms: int = field(
        default_factory=lambda: _env_int("WMCOACH_FEEDBACK_MS", 2000)
    )

    # A recall slower than this counts as an attention lapse
    attention_lapse_ms: int = field(
        default_factory=lambda: _env_int("WMCOACH_ATTENTION_LAPSE_MS", 10000)
    )


@dataclass
class StaircaseConfig:
    """Bounds of the difficulty staircase for each stimulus family."""

    # Sequential family: number of digits in the sequence
    min_sequence_length: int = 3
    max_sequence_length: int = 9

    # Spatial family: highlighted cells per grid, grids from small to large
    grid_sizes: tuple = (3, 4, 5)
    min_pattern_count: int = 3
    max_pattern_count: int = 7


@dataclass
class ScoringConfig:
    """Per-trial reward: points_per_rank * staircase rank of the level."""

    points_per_rank: int = 10


@dataclass
class ProfileConfig:
    """Thresholds used when a finished session is folded into a profile."""

    default_capacity: float = 5.0
    capacity_min: float = 0.0
    capacity_max: float = 10.0
    capacity_step: float = 0.5

    # Score needed before a capacity is raised
    mastery_threshold: float = 80.0

    # Mean accuracy over the last N sessions of a family below which capacity drops
    low_accuracy_window: int = 3
    low_accuracy_threshold: float = 0.5

    # Capacities below this mark a challenge area
    challenge_threshold: float = 4.0

    # Trend: mean of the last `trend_short_window` scores vs the scores before them
    trend_short_window: int = 3
    trend_long_window: int = 10
    trend_margin: float = 5.0

    # Oldest sessions are dropped beyond this many
    max_history: int = 200


@dataclass
class RecommendationConfig:
    default_limit: int = 5


@dataclass
class RandomConfig:
    """Reproducibility of generated stimuli."""

    deterministic: bool = field(
        default_factory=lambda: os.getenv("WMCOACH_DETERMINISTIC", "0") == "1"
    )
    random_seed: Optional[int] = field(
        default_factory=lambda: (
            int(os.environ["WMCOACH_RANDOM_SEED"])
            if os.getenv("WMCOACH_RANDOM_SEED")
            else None
        )
    )

    def seed(self) -> Optional[int]:
        """Seed for new random generators (None means fresh entropy)."""
        if self.deterministic and self.random_seed is None:
            return 42
        return self.random_seed


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    package_root: Path = field(default_factory=lambda: Path(__file__).parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("WMCOACH_DATA_DIR", str(Path.cwd() / "data"))
        )
    )

    # Computed from data_dir / package_root
    profiles_dir: Path = field(init=False)
    scratch_file: Path = field(init=False)
    schemas_dir: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.data_dir = Path(self.data_dir)
        self.profiles_dir = self.data_dir / "profiles"
        self.scratch_file = self.data_dir / "scratch.json"
        self.schemas_dir = self.package_root / "schemas"

    def prepare_filesystem(self):
        """
        Create data directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [self.data_dir, self.profiles_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    log_level: str = field(
        default_factory=lambda: os.getenv("WMCOACH_LOG_LEVEL", "INFO").upper()
    )
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from wmcoach.config import config

        config.staircase.max_sequence_length
        config.timing.feedback_ms

        # Prepare filesystem (call once at startup)
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.reload()
        return cls._instance

    def reload(self):
        """Rebuild every section from defaults and the current environment."""
        self.paths = PathConfig()
        self.timing = SessionTimingConfig()
        self.staircase = StaircaseConfig()
        self.scoring = ScoringConfig()
        self.profile = ProfileConfig()
        self.recommendation = RecommendationConfig()
        self.random = RandomConfig()
        self.logging = LoggingConfig()

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        # Staircase validation
        s = self.staircase
        if s.min_sequence_length < 1:
            errors.append(f"min_sequence_length must be >= 1, got {s.min_sequence_length}")
        if s.max_sequence_length < s.min_sequence_length:
            errors.append(
                f"max_sequence_length ({s.max_sequence_length}) must be >= "
                f"min_sequence_length ({s.min_sequence_length})"
            )
        if not s.grid_sizes:
            errors.append("grid_sizes must not be empty")
        elif list(s.grid_sizes) != sorted(set(s.grid_sizes)):
            errors.append(f"grid_sizes must be strictly increasing, got {s.grid_sizes}")
        if s.min_pattern_count < 1:
            errors.append(f"min_pattern_count must be >= 1, got {s.min_pattern_count}")
        if s.max_pattern_count < s.min_pattern_count:
            errors.append(
                f"max_pattern_count ({s.max_pattern_count}) must be >= "
                f"min_pattern_count ({s.min_pattern_count})"
            )
        if s.grid_sizes and s.max_pattern_count > min(s.grid_sizes) ** 2:
            errors.append(
                f"max_pattern_count ({s.max_pattern_count}) does not fit in the "
                f"smallest grid ({min(s.grid_sizes)}x{min(s.grid_sizes)})"
            )

        # Timing validation
        t = self.timing
        for name in ("item_display_ms", "inter_item_gap_ms", "pattern_display_ms", "feedback_ms"):
            if getattr(t, name) < 0:
                errors.append(f"{name} must be >= 0, got {getattr(t, name)}")

        # Profile validation
        p = self.profile
        if not (p.capacity_min <= p.default_capacity <= p.capacity_max):
            errors.append(
                f"default_capacity must be in [{p.capacity_min}, {p.capacity_max}], "
                f"got {p.default_capacity}"
            )
        if not (0 <= p.mastery_threshold <= 100):
            errors.append(f"mastery_threshold must be in [0, 100], got {p.mastery_threshold}")
        if not (0 <= p.low_accuracy_threshold <= 1):
            errors.append(
                f"low_accuracy_threshold must be in [0, 1], got {p.low_accuracy_threshold}"
            )
        if p.trend_long_window <= p.trend_short_window:
            errors.append(
                f"trend_long_window ({p.trend_long_window}) must be > "
                f"trend_short_window ({p.trend_short_window})"
            )

        if self.logging.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            errors.append(f"Unknown log level: {self.logging.log_level}")

        return errors


# Global config instance
config = Config()
