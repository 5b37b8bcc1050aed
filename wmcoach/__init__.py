"""
Working-memory coach: adaptive working-memory exercises and support tools.

Main entry points:
- WorkingMemoryCoach: facade over profiles, recommendations and sessions
- ExerciseCatalog / SupportToolCatalog: static exercise and tool definitions
- ExerciseSession: timed trial loop with a 1-up/1-down staircase
- configure_logging: one-call logging setup for host applications
"""

from .catalog import ExerciseCatalog, ExerciseConfig, SupportTool, SupportToolCatalog
from .coach import WorkingMemoryCoach
from .config import config
from .engine.scheduler import AsyncioScheduler, ManualScheduler
from .engine.session import ExerciseSession
from .exceptions import (
    ConfigNotFoundError,
    InvalidSessionStateError,
    PersistenceError,
    UnsupportedExerciseError,
    WorkingMemoryError,
)
from .logging_config import configure_logging

__version__ = "0.1.0"

__all__ = [
    "WorkingMemoryCoach",
    "ExerciseCatalog",
    "ExerciseConfig",
    "SupportTool",
    "SupportToolCatalog",
    "ExerciseSession",
    "AsyncioScheduler",
    "ManualScheduler",
    "config",
    "configure_logging",
    "WorkingMemoryError",
    "ConfigNotFoundError",
    "InvalidSessionStateError",
    "PersistenceError",
    "UnsupportedExerciseError",
]
