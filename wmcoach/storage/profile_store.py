"""
Profile persistence.

The engine depends only on the two-method ProfileStore contract; a miss is
``None``, never an error. Write failures surface as PersistenceError and are
not retried here.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from jsonschema import ValidationError

from ..config import config
from ..exceptions import PersistenceError
from ..models.profile import WorkingMemoryProfile

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@-]*$")


class ProfileStore(Protocol):
    def get(self, user_id: str) -> Optional[WorkingMemoryProfile]:
        ...

    def put(self, user_id: str, profile: WorkingMemoryProfile) -> WorkingMemoryProfile:
        ...


class InMemoryProfileStore:
    """Profiles kept as documents in a dict; useful for tests and single-process hosts."""

    def __init__(self):
        self._profiles: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[WorkingMemoryProfile]:
        with self._lock:
            data = self._profiles.get(user_id)
        return WorkingMemoryProfile(data, validate=False) if data is not None else None

    def put(self, user_id: str, profile: WorkingMemoryProfile) -> WorkingMemoryProfile:
        if profile.user_id != user_id:
            raise ValueError(f"Profile belongs to {profile.user_id!r}, not {user_id!r}")
        with self._lock:
            self._profiles[user_id] = profile.to_dict()
        return profile

    def user_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)


class JsonFileProfileStore:
    """
    One validated JSON document per user under ``profiles_dir``.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a reader never sees a half-written profile.
    """

    def __init__(self, profiles_dir: Optional[Path | str] = None, auto_repair: bool = True):
        """
        Args:
            profiles_dir: Directory for profile files (config path if None)
            auto_repair: Repair common problems in stored documents on load
        """
        self.profiles_dir = Path(profiles_dir) if profiles_dir else config.paths.profiles_dir
        self.auto_repair = auto_repair
        self._lock = threading.Lock()

    def _path(self, user_id: str) -> Path:
        if not _SAFE_ID.match(user_id or ""):
            raise ValueError(f"user_id cannot be used as a file name: {user_id!r}")
        return self.profiles_dir / f"{user_id}.json"

    def get(self, user_id: str) -> Optional[WorkingMemoryProfile]:
        """
        Load a profile.

        Returns:
            The profile, or None if the user has no file yet

        Raises:
            PersistenceError: If the file cannot be read or is not a valid profile
        """
        path = self._path(user_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            profile = WorkingMemoryProfile.from_dict(data, auto_repair=self.auto_repair)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(
                f"Failed to load profile for {user_id}", details={"path": str(path), "error": str(e)}
            ) from e

        logger.debug("Loaded profile %s from %s", user_id, path)
        return profile

    def put(self, user_id: str, profile: WorkingMemoryProfile) -> WorkingMemoryProfile:
        """
        Persist a profile atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        if profile.user_id != user_id:
            raise ValueError(f"Profile belongs to {profile.user_id!r}, not {user_id!r}")
        path = self._path(user_id)

        with self._lock:
            tmp_name = None
            try:
                self.profiles_dir.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.profiles_dir, prefix=f".{user_id}.", suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(profile.to_dict(), f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
                tmp_name = None
            except OSError as e:
                raise PersistenceError(
                    f"Failed to save profile for {user_id}", details={"path": str(path), "error": str(e)}
                ) from e
            finally:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.remove(tmp_name)

        logger.debug("Saved profile %s to %s", user_id, path)
        return profile

    def user_ids(self) -> List[str]:
        if not self.profiles_dir.exists():
            return []
        return sorted(p.stem for p in self.profiles_dir.glob("*.json"))
