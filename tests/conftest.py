"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def scheduler():
    """Virtual clock; tests move time with scheduler.advance()."""
    from wmcoach.engine.scheduler import ManualScheduler

    return ManualScheduler()


@pytest.fixture
def rng():
    """Seeded generator so stimuli are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def exercise_catalog():
    from wmcoach.catalog import ExerciseCatalog

    return ExerciseCatalog()


@pytest.fixture
def tool_catalog():
    from wmcoach.catalog import SupportToolCatalog

    return SupportToolCatalog()


@pytest.fixture
def profile_store():
    from wmcoach.storage.profile_store import InMemoryProfileStore

    return InMemoryProfileStore()


@pytest.fixture
def coach(profile_store, exercise_catalog, tool_catalog, scheduler, rng):
    """Coach wired to in-memory stores and a manual scheduler."""
    from wmcoach.coach import WorkingMemoryCoach

    return WorkingMemoryCoach(
        store=profile_store,
        exercise_catalog=exercise_catalog,
        tool_catalog=tool_catalog,
        scheduler=scheduler,
        rng=rng,
    )


@pytest.fixture
def default_profile():
    from wmcoach.models.profile import WorkingMemoryProfile

    return WorkingMemoryProfile.default("learner-test-123")


@pytest.fixture
def temp_schema_file(tmp_path):
    """Small schema on disk for SchemaValidator tests."""
    import json

    schema = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "required": ["name"],
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "integer", "minimum": 0},
        },
        "additionalProperties": False,
    }

    schema_file = tmp_path / "test_schema.json"
    schema_file.write_text(json.dumps(schema))
    return schema_file


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests in unit/ directory as unit tests
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Mark tests in integration/ directory as integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
