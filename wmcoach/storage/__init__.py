"""
Persistence for profiles and for the scratch documents of the support tools.
"""

from .profile_store import InMemoryProfileStore, JsonFileProfileStore, ProfileStore
from .scratch import (
    ChecklistStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    TaskBreakdownStore,
    suggest_steps,
)

__all__ = [
    "ProfileStore",
    "InMemoryProfileStore",
    "JsonFileProfileStore",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "ChecklistStore",
    "TaskBreakdownStore",
    "suggest_steps",
]
