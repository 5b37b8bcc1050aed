"""
Working-memory coach: the entry point a host application talks to.

Wires the catalogs, the profile store, the session engine and the scratch
storage together. Nothing here is global; construct one coach per process
and pass it where it is needed.

Usage:
    coach = WorkingMemoryCoach(store=JsonFileProfileStore(), scheduler=ManualScheduler())
    session = coach.start_exercise("user-1", "digit_span")
    ...
    result = coach.complete_exercise(session.session_id)
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

import numpy as np

from .catalog import ExerciseCatalog, ExerciseConfig, SupportTool, SupportToolCatalog
from .config import Config, config
from .engine import recommendation
from .engine.detection import detect_challenges
from .engine.profile_updater import fold
from .engine.scheduler import ManualScheduler, Scheduler
from .engine.session import ExerciseSession
from .engine.staircase import Level
from .exceptions import InvalidSessionStateError
from .models.profile import WorkingMemoryProfile, with_updates
from .models.results import SessionResult
from .models.support import ChallengeDetection, InteractionData, SupportConfiguration
from .storage.profile_store import InMemoryProfileStore, ProfileStore
from .storage.scratch import ChecklistStore, InMemoryKeyValueStore, KeyValueStore, TaskBreakdownStore
from .utils.content_load import ContentLoad, assess_content_load
from .utils import progress

logger = logging.getLogger(__name__)

SUPPORT_CONFIG_KEY = "working_memory_support_config_{user_id}"


class WorkingMemoryCoach:
    """
    Facade over profiles, recommendations and exercise sessions.

    At most one session is active per user; starting another records the
    previous one if it already finished and cancels it otherwise.
    """

    def __init__(
        self,
        store: Optional[ProfileStore] = None,
        exercise_catalog: Optional[ExerciseCatalog] = None,
        tool_catalog: Optional[SupportToolCatalog] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
        scratch: Optional[KeyValueStore] = None,
        settings: Optional[Config] = None,
    ):
        """
        Args:
            store: Profile persistence (in-memory if None)
            exercise_catalog: Exercise definitions (built-in registry if None)
            tool_catalog: Support tool definitions (built-in registry if None)
            scheduler: Timer source for sessions (virtual clock the host advances if None)
            rng: Random generator shared by all sessions (seeded from config if None)
            scratch: Key-value storage for checklists, tasks and support settings
            settings: Configuration (global config if None)
        """
        self.settings = settings or config
        self.store = store if store is not None else InMemoryProfileStore()
        self.exercises = exercise_catalog or ExerciseCatalog()
        self.tools = tool_catalog or SupportToolCatalog()
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.rng = rng if rng is not None else np.random.default_rng(self.settings.random.seed())
        self.scratch = scratch if scratch is not None else InMemoryKeyValueStore()
        self.checklists = ChecklistStore(self.scratch)
        self.tasks = TaskBreakdownStore(self.scratch)

        self._sessions: Dict[str, ExerciseSession] = {}
        self._active_by_user: Dict[str, str] = {}

    # ==================== Profiles ====================

    def get_profile(self, user_id: str) -> WorkingMemoryProfile:
        """Stored profile, or a default one (persisted) for a new user."""
        profile = self.store.get(user_id)
        if profile is None:
            logger.info("No profile for %s, creating default", user_id)
            profile = self.store.put(user_id, WorkingMemoryProfile.default(user_id))
        return profile

    # ==================== Recommendations ====================

    def recommend_exercises(self, user_id: str, limit: Optional[int] = None) -> List[ExerciseConfig]:
        return recommendation.recommend_exercises(self.get_profile(user_id), self.exercises, limit)

    def recommend_support_tools(self, user_id: str, limit: Optional[int] = None) -> List[SupportTool]:
        support = self.get_support_configuration(user_id)
        return recommendation.recommend_support_tools(
            self.get_profile(user_id), self.tools, limit, enabled_tools=support.enabled_tools
        )

    def default_exercises(self) -> List[ExerciseConfig]:
        return recommendation.default_exercises(self.exercises)

    def default_support_tools(self) -> List[SupportTool]:
        return recommendation.default_support_tools(self.tools)

    # ==================== Sessions ====================

    def start_exercise(
        self,
        user_id: str,
        exercise_id: Union[str, ExerciseConfig],
        reduce_motion: bool = False,
        initial_level: Optional[Level] = None,
    ) -> ExerciseSession:
        """
        Create and start a session.

        A previous session of the same user that already finished is recorded
        in the profile first; one still running is cancelled. If the new
        session cannot start, the previous one is left as it was.

        Raises:
            ConfigNotFoundError: If the exercise is not in the catalog
            UnsupportedExerciseError: If the exercise family has no generator
            PersistenceError: If a finished previous session cannot be recorded
        """
        exercise = self.exercises.get(exercise_id)
        session = ExerciseSession(
            exercise,
            self.scheduler,
            rng=self.rng,
            user_id=user_id,
            initial_level=initial_level,
            reduce_motion=reduce_motion,
            timing=self.settings.timing,
            staircase_settings=self.settings.staircase,
        )

        previous = self.active_session(user_id)
        if previous is not None and previous.is_finished and not previous.cancelled:
            self.complete_exercise(previous.session_id)
            previous = None

        session.start()

        if previous is not None:
            self._forget(previous)
            previous.cancel()
            logger.info("Cancelled session %s for %s: new session started", previous.session_id, user_id)

        self._sessions[session.session_id] = session
        self._active_by_user[user_id] = session.session_id
        return session

    def get_session(self, session_id: str) -> ExerciseSession:
        """
        Raises:
            InvalidSessionStateError: If no active session has this id
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise InvalidSessionStateError(
                f"No active session {session_id}", details={"session_id": session_id}
            )
        return session

    def active_session(self, user_id: str) -> Optional[ExerciseSession]:
        session_id = self._active_by_user.get(user_id)
        return self._sessions.get(session_id) if session_id else None

    def complete_exercise(self, session_id: str) -> SessionResult:
        """
        Finalize a session (if still running) and fold its result into the profile.

        The session is discarded only after the profile write succeeds, so a
        failed write can be retried.

        Raises:
            InvalidSessionStateError: Unknown session, or already completed
            PersistenceError: If the profile cannot be saved
        """
        session = self.get_session(session_id)
        if session.cancelled:
            raise InvalidSessionStateError(
                f"Session {session_id} was cancelled", details={"session_id": session_id}
            )
        result = session.result if session.is_finished else session.end()

        user_id = session.user_id
        profile = self.get_profile(user_id)
        self.store.put(
            user_id,
            fold(
                profile,
                result,
                session.exercise,
                self.settings.profile,
                bounds=session.bounds,
            ),
        )

        self._forget(session)
        return result

    def cancel_exercise(self, session_id: str) -> None:
        """Discard a session without recording it."""
        session = self.get_session(session_id)
        session.cancel()
        self._forget(session)

    def _forget(self, session: ExerciseSession) -> None:
        self._sessions.pop(session.session_id, None)
        if self._active_by_user.get(session.user_id) == session.session_id:
            del self._active_by_user[session.user_id]

    # ==================== Support ====================

    def get_support_configuration(self, user_id: str) -> SupportConfiguration:
        raw = self.scratch.get_item(SUPPORT_CONFIG_KEY.format(user_id=user_id))
        if raw is None:
            return SupportConfiguration(user_id=user_id, enabled_tools=self.tools.ids())
        return SupportConfiguration.from_dict(json.loads(raw))

    def update_support_configuration(self, user_id: str, /, **changes: Any) -> SupportConfiguration:
        """
        Raises:
            ValueError: For unknown fields, unknown tool ids or invalid values
        """
        current = self.get_support_configuration(user_id)
        allowed = set(SupportConfiguration.__dataclass_fields__) - {"user_id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown support settings: {sorted(unknown)}")
        tools = changes.get("enabled_tools")
        if tools is not None:
            missing = [t for t in tools if t not in self.tools]
            if missing:
                raise ValueError(f"Unknown support tools: {missing}")
        updated = replace(current, **changes)
        self.scratch.set_item(SUPPORT_CONFIG_KEY.format(user_id=user_id), json.dumps(updated.to_dict()))
        return updated

    def detect_challenges(self, user_id: str, interaction: InteractionData) -> ChallengeDetection:
        """
        Detect challenge areas from interaction data and merge them into the profile.

        The profile is left alone when nothing is detected or automatic
        detection is switched off for the user.
        """
        detection = detect_challenges(interaction)
        if not detection.detected_challenges:
            return detection
        if not self.get_support_configuration(user_id).automatic_detection:
            logger.debug("Automatic detection disabled for %s", user_id)
            return detection

        profile = self.get_profile(user_id)
        merged = list(profile.challenge_areas)
        for area in detection.detected_challenges:
            if area not in merged:
                merged.append(area)
        self.store.put(
            user_id,
            with_updates(
                profile,
                challenge_areas=merged,
                recommended_exercises=recommendation.recommended_exercise_families(merged),
                recommended_support_level=detection.recommended_support_level,
            ),
        )
        return detection

    def assess_content_load(self, content: str) -> ContentLoad:
        return assess_content_load(content)

    # ==================== Reporting ====================

    def progress_report(self, user_id: str) -> Dict[str, Any]:
        """Capacities, trend and score analytics for one user."""
        profile = self.get_profile(user_id)
        history = profile.exercise_history
        scores = [r.score for r in history]
        return {
            "user_id": user_id,
            "capacities": {area.value: value for area, value in profile.capacities().items()},
            "overall_capacity": profile.overall_capacity,
            "challenge_areas": [a.value for a in profile.challenge_areas],
            "recommended_support_level": profile.recommended_support_level.value,
            "progress_trend": profile.progress_trend.value,
            "sessions": len(history),
            "score_summary": progress.score_summary(scores),
            "score_histogram": progress.score_histogram(scores),
            "families": progress.family_breakdown(history),
            "score_velocity": progress.score_velocity(history),
        }
