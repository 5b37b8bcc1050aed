"""
Unit tests for the checklist and task-breakdown scratch stores.
"""

import itertools
import json

import pytest

from wmcoach.exceptions import PersistenceError
from wmcoach.storage.scratch import (
    GENERIC_STEPS,
    ChecklistStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    TaskBreakdownStore,
    suggest_steps,
)


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    ticks = itertools.count(1000)
    return lambda: next(ticks)


@pytest.fixture
def checklists(kv, clock):
    return ChecklistStore(kv, clock=clock)


@pytest.fixture
def tasks(kv, clock):
    return TaskBreakdownStore(kv, clock=clock)


class TestKeyValueStores:
    def test_in_memory(self, kv):
        kv.set_item("a", "1")
        assert kv.get_item("a") == "1"
        kv.remove_item("a")
        kv.remove_item("a")
        assert kv.get_item("a") is None

    def test_json_file(self, tmp_path):
        path = tmp_path / "nested" / "scratch.json"
        store = JsonFileKeyValueStore(path)
        store.set_item("k", "v")

        assert JsonFileKeyValueStore(path).get_item("k") == "v"
        store.remove_item("k")
        assert store.get_item("k") is None

    def test_json_file_corrupt(self, tmp_path):
        path = tmp_path / "scratch.json"
        path.write_text("[1, 2")
        with pytest.raises(PersistenceError):
            JsonFileKeyValueStore(path).get_item("k")

    def test_json_file_not_an_object(self, tmp_path):
        path = tmp_path / "scratch.json"
        path.write_text("[]")
        with pytest.raises(PersistenceError):
            JsonFileKeyValueStore(path).get_item("k")


class TestChecklistStore:
    def test_create_makes_current(self, checklists, kv):
        list_id = checklists.create("Morning routine")

        assert list_id == "list_1000"
        assert checklists.current_id == list_id
        assert checklists.entries() == [{"id": list_id, "title": "Morning routine"}]
        assert json.loads(kv.get_item("working_memory_checklists"))["currentListId"] == list_id
        assert json.loads(kv.get_item(f"working_memory_checklist_{list_id}")) == []

    def test_ids_never_collide(self, kv):
        store = ChecklistStore(kv, clock=lambda: 5)
        first = store.create("A")
        second = store.create("B")
        assert first != second

    def test_items(self, checklists):
        list_id = checklists.create("Chores")
        first = checklists.add_item(list_id, "Pack bag")
        second = checklists.add_item(list_id, "  Feed cat  ")

        assert second["text"] == "Feed cat"
        assert [i["id"] for i in checklists.load(list_id)] == [first["id"], second["id"]]

        checklists.toggle_item(list_id, first["id"])
        assert checklists.progress(list_id) == 0.5

        items = checklists.move_item(list_id, 1, 0)
        assert [i["id"] for i in items] == [second["id"], first["id"]]

        items = checklists.remove_item(list_id, first["id"])
        assert [i["id"] for i in items] == [second["id"]]

    def test_empty_item_rejected(self, checklists):
        list_id = checklists.create("Chores")
        with pytest.raises(ValueError):
            checklists.add_item(list_id, "   ")

    def test_unknown_ids(self, checklists):
        list_id = checklists.create("Chores")
        with pytest.raises(ValueError):
            checklists.load("list_missing")
        with pytest.raises(ValueError):
            checklists.toggle_item(list_id, "item_missing")
        with pytest.raises(ValueError):
            checklists.move_item(list_id, 0, 1)

    def test_loading_marks_current(self, checklists):
        first = checklists.create("A")
        checklists.create("B")
        checklists.load(first)
        assert checklists.current_id == first

    def test_delete_moves_current_pointer(self, checklists, kv):
        first = checklists.create("A")
        second = checklists.create("B")

        assert checklists.delete(second) == first
        assert kv.get_item(f"working_memory_checklist_{second}") is None

        assert checklists.delete(first) is None
        assert checklists.current_id is None
        assert checklists.entries() == []

    def test_delete_other_keeps_current(self, checklists):
        first = checklists.create("A")
        second = checklists.create("B")
        assert checklists.delete(first) == second

    def test_rename(self, checklists):
        list_id = checklists.create("Old")
        checklists.rename(list_id, "New")
        assert checklists.entries()[0]["title"] == "New"

    def test_progress_of_empty_list(self, checklists):
        assert checklists.progress(checklists.create("Empty")) == 0.0

    def test_corrupt_index_treated_as_empty(self, checklists, kv):
        kv.set_item("working_memory_checklists", "{broken")
        assert checklists.entries() == []
        kv.set_item("working_memory_checklists", json.dumps({"lists": "nope"}))
        assert checklists.entries() == []

    def test_corrupt_entry_raises(self, checklists, kv):
        list_id = checklists.create("A")
        kv.set_item(f"working_memory_checklist_{list_id}", "{broken")
        with pytest.raises(PersistenceError):
            checklists.load(list_id)

    def test_save_rejects_invalid_items(self, checklists):
        list_id = checklists.create("A")
        with pytest.raises(ValueError):
            checklists.save(list_id, [{"id": "x"}])

    def test_save_new_id_adds_entry(self, checklists):
        checklists.save("list_imported", [{"id": "item_1", "text": "Do it", "completed": True}], title="Imported")
        assert checklists.entries() == [{"id": "list_imported", "title": "Imported"}]
        assert checklists.progress("list_imported") == 1.0


class TestTaskBreakdownStore:
    def test_steps(self, tasks):
        task_id = tasks.create("Science project")
        tasks.set_main_task(task_id, "Build a volcano")
        step = tasks.add_step(task_id, "Buy baking soda")

        document = tasks.load(task_id)
        assert document["mainTask"] == "Build a volcano"
        assert document["steps"] == [step]

        steps = tasks.toggle_step(task_id, step["id"])
        assert steps[0]["completed"]

        assert tasks.remove_step(task_id, step["id"]) == []

    def test_suggested_steps(self, tasks):
        task_id = tasks.create("Homework")
        tasks.set_main_task(task_id, "Write an essay on volcanoes")

        steps = tasks.add_suggested_steps(task_id)
        assert steps[0]["text"] == "Research the topic and gather sources"
        assert len({s["id"] for s in steps}) == len(steps)

    def test_move_step(self, tasks):
        task_id = tasks.create("Homework")
        a = tasks.add_step(task_id, "A")
        b = tasks.add_step(task_id, "B")
        steps = tasks.move_step(task_id, 0, 1)
        assert [s["id"] for s in steps] == [b["id"], a["id"]]

    def test_index_layout(self, tasks, kv):
        task_id = tasks.create("Homework")
        index = json.loads(kv.get_item("working_memory_tasks"))
        assert index == {"tasks": [{"id": task_id, "title": "Homework"}], "currentTaskId": task_id}
        assert task_id.startswith("task_")


class TestSuggestSteps:
    @pytest.mark.parametrize(
        "task,first_step",
        [
            ("Write a story", "Research the topic and gather sources"),
            ("Class presentation", "Define project scope and objectives"),
            ("Math problem set", "Understand what the problem is asking"),
            ("Read chapter 3", "Preview the text (title, headings, images)"),
        ],
    )
    def test_keywords(self, task, first_step):
        assert suggest_steps(task)[0] == first_step

    def test_generic_fallback(self):
        assert suggest_steps("Clean my room") == GENERIC_STEPS
        assert suggest_steps("") == GENERIC_STEPS
