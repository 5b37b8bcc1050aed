"""
Unit tests for profile persistence.
"""

import json

import pytest

from wmcoach.exceptions import PersistenceError
from wmcoach.models.profile import WorkingMemoryProfile, with_updates
from wmcoach.models.types import SupportLevel
from wmcoach.storage.profile_store import InMemoryProfileStore, JsonFileProfileStore


class TestInMemoryProfileStore:
    def test_miss_is_none(self, profile_store):
        assert profile_store.get("nobody") is None

    def test_put_then_get(self, profile_store, default_profile):
        profile_store.put(default_profile.user_id, default_profile)
        assert profile_store.get(default_profile.user_id) == default_profile
        assert profile_store.user_ids() == [default_profile.user_id]
        assert len(profile_store) == 1

    def test_stored_copy_is_independent(self, profile_store, default_profile):
        profile_store.put(default_profile.user_id, default_profile)
        loaded = profile_store.get(default_profile.user_id)
        changed = with_updates(loaded, recommended_support_level=SupportLevel.MINIMAL)
        assert profile_store.get(default_profile.user_id).recommended_support_level == SupportLevel.MODERATE
        assert changed.recommended_support_level == SupportLevel.MINIMAL

    def test_user_id_mismatch(self, profile_store, default_profile):
        with pytest.raises(ValueError):
            profile_store.put("someone-else", default_profile)


class TestJsonFileProfileStore:
    def test_round_trip(self, tmp_path, default_profile):
        store = JsonFileProfileStore(tmp_path)
        store.put(default_profile.user_id, default_profile)

        assert (tmp_path / f"{default_profile.user_id}.json").exists()
        assert store.get(default_profile.user_id) == default_profile
        assert store.user_ids() == [default_profile.user_id]

    def test_miss_is_none(self, tmp_path):
        assert JsonFileProfileStore(tmp_path).get("nobody") is None
        assert JsonFileProfileStore(tmp_path / "missing").user_ids() == []

    def test_no_temp_files_left_behind(self, tmp_path, default_profile):
        store = JsonFileProfileStore(tmp_path)
        store.put(default_profile.user_id, default_profile)
        store.put(default_profile.user_id, default_profile)
        assert [p.name for p in tmp_path.iterdir()] == [f"{default_profile.user_id}.json"]

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "u1.json").write_text("{not json")
        with pytest.raises(PersistenceError):
            JsonFileProfileStore(tmp_path).get("u1")

    def test_invalid_profile_raises(self, tmp_path):
        (tmp_path / "u1.json").write_text(json.dumps({"user_id": "u1"}))
        with pytest.raises(PersistenceError):
            JsonFileProfileStore(tmp_path).get("u1")

    def test_repairs_on_load(self, tmp_path):
        data = WorkingMemoryProfile.default("u1").to_dict()
        data["capacities"]["overall"] = 12
        (tmp_path / "u1.json").write_text(json.dumps(data))

        profile = JsonFileProfileStore(tmp_path).get("u1")
        assert profile.overall_capacity == 10.0

    def test_repair_can_be_disabled(self, tmp_path):
        data = WorkingMemoryProfile.default("u1").to_dict()
        data["capacities"]["overall"] = 12
        (tmp_path / "u1.json").write_text(json.dumps(data))

        with pytest.raises(PersistenceError):
            JsonFileProfileStore(tmp_path, auto_repair=False).get("u1")

    @pytest.mark.parametrize("user_id", ["../escape", "", "a/b"])
    def test_unsafe_user_ids_rejected(self, tmp_path, user_id):
        with pytest.raises(ValueError):
            JsonFileProfileStore(tmp_path).get(user_id)

    def test_write_failure_raises(self, tmp_path, default_profile):
        blocker = tmp_path / "blocked"
        blocker.write_text("a file, not a directory")
        store = JsonFileProfileStore(blocker / "profiles")
        with pytest.raises(PersistenceError):
            store.put(default_profile.user_id, default_profile)
