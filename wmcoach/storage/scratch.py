"""
Keyed scratch storage for the externalization tools.

A KeyValueStore holds JSON strings under flat keys. On top of it, two
document stores keep the on-disk layout the tools have always used:

- Checklists: index ``working_memory_checklists`` =
  ``{"lists": [{"id", "title"}], "currentListId"}``; each list under
  ``working_memory_checklist_<id>`` as ``[{"id", "text", "completed"}]``
- Task breakdowns: index ``working_memory_tasks`` =
  ``{"tasks": [{"id", "title"}], "currentTaskId"}``; each task under
  ``working_memory_task_<id>`` as ``{"mainTask", "steps": [...]}``

Both share the index bookkeeping in IndexedDocumentStore: creating or
loading a document makes it current; deleting the current one moves the
pointer to the first remaining document, or drops it when none remain.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..config import config
from ..exceptions import PersistenceError
from ..utils.validation import (
    CHECKLIST_INDEX_SCHEMA,
    CHECKLIST_ITEMS_SCHEMA,
    TASK_BREAKDOWN_SCHEMA,
    TASK_INDEX_SCHEMA,
    schema_validator,
)

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._items)


class JsonFileKeyValueStore:
    """All keys in one JSON object on disk, rewritten atomically on every change."""

    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path) if path else config.paths.scratch_file
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                "Failed to read scratch storage", details={"path": str(self.path), "error": str(e)}
            ) from e
        if not isinstance(data, dict):
            raise PersistenceError("Scratch storage is not a JSON object", details={"path": str(self.path)})
        return data

    def _write(self, data: Dict[str, str]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(
                "Failed to write scratch storage", details={"path": str(self.path), "error": str(e)}
            ) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)


def _millis() -> int:
    return time.time_ns() // 1_000_000


class IndexedDocumentStore:
    """Index bookkeeping shared by the checklist and task-breakdown stores."""

    index_key: str
    entry_prefix: str
    list_field: str
    current_field: str
    id_prefix: str
    index_schema: str
    entry_schema: str

    def __init__(self, kv: KeyValueStore, clock: Callable[[], int] = _millis):
        self.kv = kv
        self._clock = clock

    # ---------------- index ----------------

    def _empty_index(self) -> Dict[str, Any]:
        return {self.list_field: []}

    def _load_index(self) -> Dict[str, Any]:
        raw = self.kv.get_item(self.index_key)
        if raw is None:
            return self._empty_index()
        try:
            index = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Unreadable index %s, starting from an empty one", self.index_key)
            return self._empty_index()
        if not schema_validator(self.index_schema).validate(index):
            logger.warning("Invalid index %s, starting from an empty one", self.index_key)
            return self._empty_index()
        return index

    def _save_index(self, index: Dict[str, Any]) -> None:
        self.kv.set_item(self.index_key, json.dumps(index))

    def _entry_key(self, doc_id: str) -> str:
        return f"{self.entry_prefix}{doc_id}"

    def _new_id(self, taken: List[str]) -> str:
        stamp = self._clock()
        doc_id = f"{self.id_prefix}_{stamp}"
        while doc_id in taken:
            stamp += 1
            doc_id = f"{self.id_prefix}_{stamp}"
        return doc_id

    # ---------------- entries ----------------

    def _read_entry(self, doc_id: str) -> Any:
        raw = self.kv.get_item(self._entry_key(doc_id))
        if raw is None:
            return None
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                f"Corrupt document {doc_id}", details={"key": self._entry_key(doc_id), "error": str(e)}
            ) from e
        result = schema_validator(self.entry_schema).validate(document)
        if not result:
            raise PersistenceError(
                f"Invalid document {doc_id}", details={"key": self._entry_key(doc_id), "errors": result.errors}
            )
        return document

    def _write_entry(self, doc_id: str, document: Any) -> None:
        result = schema_validator(self.entry_schema).validate(document)
        if not result:
            raise ValueError(f"Invalid document for {doc_id}: {result.errors}")
        self.kv.set_item(self._entry_key(doc_id), json.dumps(document))

    def _require(self, index: Dict[str, Any], doc_id: str) -> Dict[str, str]:
        entry = next((e for e in index[self.list_field] if e["id"] == doc_id), None)
        if entry is None:
            raise ValueError(f"{self.id_prefix.capitalize()} {doc_id} not found")
        return entry

    def _empty_document(self) -> Any:
        raise NotImplementedError

    # ---------------- public ----------------

    def entries(self) -> List[Dict[str, str]]:
        """``[{"id", "title"}]`` in index order."""
        return [dict(e) for e in self._load_index()[self.list_field]]

    @property
    def current_id(self) -> Optional[str]:
        return self._load_index().get(self.current_field)

    def create(self, title: str) -> str:
        """Create an empty document, make it current and return its id."""
        index = self._load_index()
        doc_id = self._new_id([e["id"] for e in index[self.list_field]])
        self._write_entry(doc_id, self._empty_document())
        index[self.list_field].append({"id": doc_id, "title": title})
        index[self.current_field] = doc_id
        self._save_index(index)
        logger.debug("Created %s %s", self.id_prefix, doc_id)
        return doc_id

    def rename(self, doc_id: str, title: str) -> None:
        index = self._load_index()
        self._require(index, doc_id)["title"] = title
        self._save_index(index)

    def _load_document(self, doc_id: str) -> Any:
        """Read a document and mark it most recently active."""
        index = self._load_index()
        self._require(index, doc_id)
        document = self._read_entry(doc_id)
        if document is None:
            document = self._empty_document()
        if index.get(self.current_field) != doc_id:
            index[self.current_field] = doc_id
            self._save_index(index)
        return document

    def _save_document(self, doc_id: str, title: Optional[str], document: Any) -> None:
        """Write a document, adding it to the index when new, and make it current."""
        index = self._load_index()
        entry = next((e for e in index[self.list_field] if e["id"] == doc_id), None)
        self._write_entry(doc_id, document)
        if entry is None:
            index[self.list_field].append({"id": doc_id, "title": title or ""})
        elif title is not None:
            entry["title"] = title
        index[self.current_field] = doc_id
        self._save_index(index)

    def delete(self, doc_id: str) -> Optional[str]:
        """
        Delete a document.

        Returns:
            The current id afterwards (None when nothing is left)
        """
        index = self._load_index()
        self._require(index, doc_id)
        self.kv.remove_item(self._entry_key(doc_id))
        index[self.list_field] = [e for e in index[self.list_field] if e["id"] != doc_id]

        if index.get(self.current_field) == doc_id:
            if index[self.list_field]:
                index[self.current_field] = index[self.list_field][0]["id"]
            else:
                index.pop(self.current_field, None)
        self._save_index(index)
        logger.debug("Deleted %s %s", self.id_prefix, doc_id)
        return index.get(self.current_field)

    # ---------------- item helpers ----------------

    def _new_item(self, prefix: str, text: str, items: List[dict]) -> dict:
        text = (text or "").strip()
        if not text:
            raise ValueError("Item text cannot be empty")
        taken = {i["id"] for i in items}
        stamp = self._clock()
        item_id = f"{prefix}_{stamp}"
        while item_id in taken:
            stamp += 1
            item_id = f"{prefix}_{stamp}"
        return {"id": item_id, "text": text, "completed": False}

    @staticmethod
    def _toggle(items: List[dict], item_id: str) -> List[dict]:
        if not any(i["id"] == item_id for i in items):
            raise ValueError(f"Item {item_id} not found")
        return [dict(i, completed=not i["completed"]) if i["id"] == item_id else i for i in items]

    @staticmethod
    def _remove(items: List[dict], item_id: str) -> List[dict]:
        if not any(i["id"] == item_id for i in items):
            raise ValueError(f"Item {item_id} not found")
        return [i for i in items if i["id"] != item_id]

    @staticmethod
    def _move(items: List[dict], from_index: int, to_index: int) -> List[dict]:
        n = len(items)
        if not (0 <= from_index < n and 0 <= to_index < n):
            raise ValueError(f"Move {from_index} -> {to_index} is outside 0..{n - 1}")
        reordered = list(items)
        moved = reordered.pop(from_index)
        reordered.insert(to_index, moved)
        return reordered


class ChecklistStore(IndexedDocumentStore):
    """
    Visual checklists.

    Usage:
        store = ChecklistStore(InMemoryKeyValueStore())
        list_id = store.create("Morning routine")
        item = store.add_item(list_id, "Pack bag")
        store.toggle_item(list_id, item["id"])
    """

    index_key = "working_memory_checklists"
    entry_prefix = "working_memory_checklist_"
    list_field = "lists"
    current_field = "currentListId"
    id_prefix = "list"
    index_schema = CHECKLIST_INDEX_SCHEMA
    entry_schema = CHECKLIST_ITEMS_SCHEMA

    def _empty_document(self) -> List[dict]:
        return []

    def load(self, list_id: str) -> List[dict]:
        return self._load_document(list_id)

    def save(self, list_id: str, items: List[dict], title: Optional[str] = None) -> None:
        self._save_document(list_id, title, items)

    def add_item(self, list_id: str, text: str) -> dict:
        items = self.load(list_id)
        item = self._new_item("item", text, items)
        self.save(list_id, items + [item])
        return item

    def toggle_item(self, list_id: str, item_id: str) -> List[dict]:
        items = self._toggle(self.load(list_id), item_id)
        self.save(list_id, items)
        return items

    def remove_item(self, list_id: str, item_id: str) -> List[dict]:
        items = self._remove(self.load(list_id), item_id)
        self.save(list_id, items)
        return items

    def move_item(self, list_id: str, from_index: int, to_index: int) -> List[dict]:
        items = self._move(self.load(list_id), from_index, to_index)
        self.save(list_id, items)
        return items

    def progress(self, list_id: str) -> float:
        """Fraction of items completed (0 for an empty list)."""
        items = self.load(list_id)
        if not items:
            return 0.0
        return sum(1 for i in items if i["completed"]) / len(items)


# Keyword -> starter steps for a main task; first match wins
STEP_SUGGESTIONS = [
    (("essay", "write"), [
        "Research the topic and gather sources",
        "Create an outline with main points",
        "Write the introduction with thesis statement",
        "Develop each main point in separate paragraphs",
        "Write the conclusion",
        "Review and edit for clarity and grammar",
        "Format according to required style guide",
    ]),
    (("project", "presentation"), [
        "Define project scope and objectives",
        "Research background information",
        "Create outline or storyboard",
        "Gather necessary materials and resources",
        "Create first draft or prototype",
        "Get feedback from peers or teachers",
        "Revise based on feedback",
        "Prepare final version",
    ]),
    (("math", "problem"), [
        "Understand what the problem is asking",
        "Identify the relevant information given",
        "Choose appropriate formula or method",
        "Break down complex problems into smaller steps",
        "Solve each step systematically",
        "Check your work and verify the answer",
    ]),
    (("read", "book"), [
        "Preview the text (title, headings, images)",
        "Set a purpose for reading",
        "Break reading into manageable sections",
        "Take notes on key points",
        "Summarize each section",
        "Review and connect ideas across sections",
        "Reflect on the overall meaning",
    ]),
]

GENERIC_STEPS = [
    "Define the main goal clearly",
    "Break the task into smaller sub-tasks",
    "Prioritize sub-tasks by importance",
    "Estimate time needed for each sub-task",
    "Identify any resources or materials needed",
    "Set deadlines for each sub-task",
    "Plan for potential obstacles",
]


def suggest_steps(main_task: str) -> List[str]:
    """Starter steps for a task, picked by keywords in its description."""
    text = (main_task or "").lower()
    for keywords, steps in STEP_SUGGESTIONS:
        if any(k in text for k in keywords):
            return list(steps)
    return list(GENERIC_STEPS)


class TaskBreakdownStore(IndexedDocumentStore):
    """Task breakdowns: a main task split into ordered, checkable steps."""

    index_key = "working_memory_tasks"
    entry_prefix = "working_memory_task_"
    list_field = "tasks"
    current_field = "currentTaskId"
    id_prefix = "task"
    index_schema = TASK_INDEX_SCHEMA
    entry_schema = TASK_BREAKDOWN_SCHEMA

    def _empty_document(self) -> Dict[str, Any]:
        return {"mainTask": "", "steps": []}

    def load(self, task_id: str) -> Dict[str, Any]:
        return self._load_document(task_id)

    def save(self, task_id: str, main_task: str, steps: List[dict], title: Optional[str] = None) -> None:
        self._save_document(task_id, title, {"mainTask": main_task, "steps": steps})

    def set_main_task(self, task_id: str, main_task: str) -> None:
        document = self.load(task_id)
        self.save(task_id, main_task, document["steps"])

    def _update_steps(self, task_id: str, change: Callable[[List[dict]], List[dict]]) -> List[dict]:
        document = self.load(task_id)
        steps = change(document["steps"])
        self.save(task_id, document["mainTask"], steps)
        return steps

    def add_step(self, task_id: str, text: str) -> dict:
        document = self.load(task_id)
        step = self._new_item("step", text, document["steps"])
        self.save(task_id, document["mainTask"], document["steps"] + [step])
        return step

    def add_suggested_steps(self, task_id: str) -> List[dict]:
        """Append the suggested steps for the task's main task."""
        document = self.load(task_id)
        steps = list(document["steps"])
        for text in suggest_steps(document["mainTask"]):
            steps.append(self._new_item("step", text, steps))
        self.save(task_id, document["mainTask"], steps)
        return steps

    def toggle_step(self, task_id: str, step_id: str) -> List[dict]:
        return self._update_steps(task_id, lambda steps: self._toggle(steps, step_id))

    def remove_step(self, task_id: str, step_id: str) -> List[dict]:
        return self._update_steps(task_id, lambda steps: self._remove(steps, step_id))

    def move_step(self, task_id: str, from_index: int, to_index: int) -> List[dict]:
        return self._update_steps(task_id, lambda steps: self._move(steps, from_index, to_index))
