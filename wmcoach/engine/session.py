"""
Exercise Session - timed trial loop with adaptive difficulty.

One ExerciseSession drives a single run of one exercise:

    instruction -> presentation -> recall -> feedback -> instruction ...

Presentation and feedback end on timers; recall ends on user input. An
overall time budget runs alongside and finalizes the session from any phase
when it expires. All timers go through an injected Scheduler, so a session
never sleeps and every pending callback can be revoked.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..catalog import ExerciseConfig
from ..config import SessionTimingConfig, StaircaseConfig, config
from ..exceptions import InvalidSessionStateError
from ..models.results import SessionResult, TrialResult
from ..models.types import SessionPhase
from .scheduler import ScheduledTask, Scheduler
from .scoring import aggregate
from .staircase import Level, next_level
from .stimulus import PresentationStep, Stimulus, family_for

logger = logging.getLogger(__name__)


class ExerciseSession:
    """
    State machine for one timed exercise session.

    Features:
    - Stimulus generated at the staircase's current level on every trial
    - Timed presentation, then recall with a response clock
    - Exact-match scoring, 1-up/1-down level change after each trial
    - Session budget that finalizes from any phase
    - Every timer cancellable; nothing fires after finalization

    Usage:
        session = ExerciseSession(exercise, scheduler, rng=np.random.default_rng(7))
        session.start()
        session.begin_trial()
        scheduler.advance(3.9)           # presentation runs out, recall begins
        for digit in session.stimulus.expected_response:
            session.record_response(digit)
        result = session.end()
    """

    def __init__(
        self,
        exercise: ExerciseConfig,
        scheduler: Scheduler,
        rng: Optional[np.random.Generator] = None,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        initial_level: Optional[Level] = None,
        reduce_motion: bool = False,
        duration: Optional[float] = None,
        timing: Optional[SessionTimingConfig] = None,
        staircase_settings: Optional[StaircaseConfig] = None,
        on_complete: Optional[Callable[[SessionResult], None]] = None,
        on_phase_change: Optional[Callable[[SessionPhase], None]] = None,
    ):
        """
        Initialize a session.

        Args:
            exercise: Catalog entry to run
            scheduler: Timer source for presentation, feedback and budget
            rng: Random generator for stimuli (seeded from config if None)
            user_id: Owner of the session
            session_id: Session ID (auto-generated if None)
            initial_level: Starting level, clamped into the family bounds
                (family minimum if None)
            reduce_motion: Use the slower presentation timings
            duration: Time budget in seconds (exercise duration if None)
            timing: Phase durations (global config if None)
            staircase_settings: Level bounds (global config if None)
            on_complete: Called once with the SessionResult on finalization
            on_phase_change: Called with the new phase on every transition

        Raises:
            UnsupportedExerciseError: If the exercise family has no generator
        """
        self.exercise = exercise
        self.family = family_for(exercise)
        self.bounds = self.family.bounds(staircase_settings)
        self.scheduler = scheduler
        self.rng = rng if rng is not None else np.random.default_rng(config.random.seed())
        self.timing = timing or config.timing
        self.user_id = user_id
        self.session_id = session_id or f"wms-{uuid.uuid4()}"
        self.reduce_motion = reduce_motion
        self.duration = float(exercise.duration if duration is None else duration)
        if self.duration <= 0:
            raise ValueError(f"Session duration must be positive, got {self.duration}")

        self.initial_level = (
            self.bounds.clamp(initial_level) if initial_level is not None else self.bounds.minimum
        )
        self.current_level = self.initial_level

        self.on_complete = on_complete
        self.on_phase_change = on_phase_change

        self.phase = SessionPhase.INSTRUCTION
        self.started_at: Optional[str] = None
        self.ended_at: Optional[str] = None
        self.result: Optional[SessionResult] = None
        self.cancelled = False

        self.stimulus: Optional[Stimulus] = None
        self.visible: Any = None
        self._responses: List[int] = []
        self._trials: List[TrialResult] = []
        self._next_stimulus: Optional[Stimulus] = None

        self._steps: List[PresentationStep] = []
        self._phase_task: Optional[ScheduledTask] = None
        self._budget_task: Optional[ScheduledTask] = None
        self._deadline: Optional[float] = None
        self._recall_started: Optional[float] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._deadline is not None

    @property
    def is_finished(self) -> bool:
        return self.phase == SessionPhase.FINISHED

    @property
    def trial_history(self) -> List[TrialResult]:
        return list(self._trials)

    @property
    def responses(self) -> List[int]:
        return list(self._responses)

    @property
    def last_trial(self) -> Optional[TrialResult]:
        return self._trials[-1] if self._trials else None

    @property
    def time_remaining(self) -> float:
        """Seconds left in the session budget."""
        if self.is_finished:
            return 0.0
        if self._deadline is None:
            return self.duration
        return max(0.0, self._deadline - self.scheduler.now())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the session budget and prepare the first stimulus."""
        self._require_live()
        if self.started:
            raise InvalidSessionStateError(
                f"Session {self.session_id} already started",
                details={"session_id": self.session_id},
            )
        self.started_at = datetime.now(timezone.utc).isoformat()
        self._deadline = self.scheduler.now() + self.duration
        self._budget_task = self.scheduler.call_later(self.duration, self._on_budget_expired)
        self._next_stimulus = self.family.generate(self.rng, self.current_level)
        logger.info(
            "Session %s started: exercise=%s level=%s budget=%.0fs",
            self.session_id, self.exercise.exercise_id.value, self.current_level, self.duration,
        )

    def begin_trial(self) -> Stimulus:
        """
        Present the next stimulus.

        Returns:
            The stimulus being presented

        Raises:
            InvalidSessionStateError: If not started or not in instruction
        """
        if not self.started:
            self._require_live()
            raise InvalidSessionStateError(
                f"Session {self.session_id} has not been started",
                details={"session_id": self.session_id},
            )
        self._require_phase(SessionPhase.INSTRUCTION)

        stimulus = self._next_stimulus
        if stimulus is None:
            stimulus = self.family.generate(self.rng, self.current_level)
        self._next_stimulus = None
        self.stimulus = stimulus
        self._responses = []
        self._steps = self.family.presentation(stimulus, self.timing, self.reduce_motion)

        self._set_phase(SessionPhase.PRESENTATION)
        self._show_step(0)
        return stimulus

    def record_response(self, value) -> List[int]:
        """
        Record one response event: a digit (sequential) or a cell toggle (spatial).

        A sequential trial is scored automatically once the expected number of
        digits is in.

        Returns:
            Responses recorded so far in the trial

        Raises:
            InvalidSessionStateError: If not in recall
            ValueError: If the value is not a valid response for the stimulus
        """
        self._require_phase(SessionPhase.RECALL)
        self._responses = self.family.record(self.stimulus, self._responses, value)
        recorded = list(self._responses)
        if self.family.auto_submit and self.family.is_complete(self.stimulus, self._responses):
            self._score_trial()
        return recorded

    def undo_response(self) -> List[int]:
        """Remove the most recent response (no-op when there is none)."""
        self._require_phase(SessionPhase.RECALL)
        if self._responses:
            self._responses = self._responses[:-1]
        return list(self._responses)

    def submit(self) -> TrialResult:
        """
        Score the current responses.

        The spatial family ends recall this way. For the sequential family it
        scores an incomplete answer, which counts as incorrect.
        """
        self._require_phase(SessionPhase.RECALL)
        return self._score_trial()

    def end(self) -> SessionResult:
        """
        Finalize the session now, from any phase.

        An unfinished trial is discarded.

        Raises:
            InvalidSessionStateError: If the session already finished
        """
        self._require_live()
        return self._finalize()

    def cancel(self) -> None:
        """Discard the session without producing a result. Idempotent."""
        if self.is_finished:
            return
        self._cancel_timers()
        self.cancelled = True
        self.ended_at = datetime.now(timezone.utc).isoformat()
        self._set_phase(SessionPhase.FINISHED)
        logger.info("Session %s cancelled after %d trials", self.session_id, len(self._trials))

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the session for a UI layer."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "exercise_id": self.exercise.exercise_id.value,
            "family": self.exercise.family.value,
            "phase": self.phase.value,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "current_level": self.current_level.to_dict(),
            "time_remaining": self.time_remaining,
            "trials": [t.to_dict() for t in self._trials],
            "responses": list(self._responses),
            "result": self.result.to_dict() if self.result else None,
            "cancelled": self.cancelled,
        }

    # ------------------------------------------------------------------
    # Internal transitions
    # ------------------------------------------------------------------

    def _show_step(self, index: int) -> None:
        self._phase_task = None
        if index >= len(self._steps):
            self._enter_recall()
            return
        step = self._steps[index]
        self.visible = step.visible
        self._phase_task = self.scheduler.call_later(
            step.duration_ms / 1000.0, lambda: self._show_step(index + 1)
        )

    def _enter_recall(self) -> None:
        self.visible = None
        self._recall_started = self.scheduler.now()
        self._set_phase(SessionPhase.RECALL)

    def _score_trial(self) -> TrialResult:
        elapsed_ms = max(0.0, (self.scheduler.now() - self._recall_started) * 1000.0)
        correct = self.stimulus.is_correct(self._responses)
        level_at_trial = self.current_level
        level_after = next_level(
            level_at_trial, correct, self.bounds, adaptive=self.exercise.adaptive_difficulty
        )

        trial = TrialResult(
            correct=correct,
            response_time_ms=elapsed_ms,
            level_at_trial=level_at_trial,
            level_after_trial=level_after,
            attention_lapse=elapsed_ms > self.timing.attention_lapse_ms,
        )
        self._trials.append(trial)
        self.current_level = level_after
        self._next_stimulus = self.family.generate(self.rng, level_after)

        logger.debug(
            "Session %s trial %d: correct=%s level %s -> %s (%.0f ms)",
            self.session_id, len(self._trials), correct, level_at_trial, level_after, elapsed_ms,
        )

        self._set_phase(SessionPhase.FEEDBACK)
        self._phase_task = self.scheduler.call_later(
            self.timing.feedback_ms / 1000.0, self._on_feedback_done
        )
        return trial

    def _on_feedback_done(self) -> None:
        self._phase_task = None
        if self.time_remaining <= 0:
            self._finalize()
        else:
            self._set_phase(SessionPhase.INSTRUCTION)

    def _on_budget_expired(self) -> None:
        self._budget_task = None
        if not self.is_finished:
            logger.info("Session %s ran out of time in %s", self.session_id, self.phase.value)
            self._finalize()

    def _finalize(self) -> SessionResult:
        self._cancel_timers()
        self.visible = None
        self.ended_at = datetime.now(timezone.utc).isoformat()
        self.result = aggregate(
            self._trials,
            self.initial_level,
            self.bounds,
            session_id=self.session_id,
            exercise_id=self.exercise.exercise_id,
            family=self.exercise.family,
            started_at=self.started_at,
            ended_at=self.ended_at,
        )
        self._set_phase(SessionPhase.FINISHED)
        logger.info(
            "Session %s finished: trials=%d score=%d accuracy=%.2f",
            self.session_id, self.result.trials_completed, self.result.score, self.result.accuracy,
        )
        if self.on_complete is not None:
            self.on_complete(self.result)
        return self.result

    def _cancel_timers(self) -> None:
        for task in (self._phase_task, self._budget_task):
            if task is not None:
                task.cancel()
        self._phase_task = None
        self._budget_task = None

    def _set_phase(self, phase: SessionPhase) -> None:
        if phase == self.phase:
            return
        logger.debug("Session %s: %s -> %s", self.session_id, self.phase.value, phase.value)
        self.phase = phase
        if self.on_phase_change is not None:
            self.on_phase_change(phase)

    def _require_live(self) -> None:
        if self.is_finished:
            raise InvalidSessionStateError(
                f"Session {self.session_id} is finished",
                details={"session_id": self.session_id, "cancelled": self.cancelled},
            )

    def _require_phase(self, phase: SessionPhase) -> None:
        self._require_live()
        if self.phase != phase:
            raise InvalidSessionStateError(
                f"Expected phase '{phase.value}', session is in '{self.phase.value}'",
                details={"session_id": self.session_id, "phase": self.phase.value},
            )
