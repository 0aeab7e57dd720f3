"""
Session State Machine - Owns exam lifecycle and section progression.

This is the single writer of an ExamSession. Both the UI and the agent's
section-control tool calls go through apply(), which serializes, de-duplicates
and damps control signals before mutating state.
"""

import logging
import threading
import time
from typing import Callable

from src.config.settings import Settings, get_settings
from src.models.exam_config import ExamTypeConfig
from src.models.results import ErrorKind, ExamError
from src.models.session import (
    ActionContext,
    ActionResult,
    ExamLifecycle,
    ExamSession,
    PendingAction,
    PresentedAudio,
    PresentedImage,
    SectionAction,
    utcnow,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
TransitionListener = Callable[[ExamSession, ActionResult], None]


class StateTransitionError(Exception):
    """Raised when an invalid lifecycle transition is attempted."""
    pass


class SessionStateMachine:
    """
    Drives one exam attempt.

    Lifecycle:
        NOT_STARTED → READY → IN_PROGRESS → COMPLETED

    complete_exam locks progression but keeps the attempt IN_PROGRESS so the
    final evaluation can still be delivered; only end() leaves the attempt.

    Timing rules (windows come from settings, time from the injected clock):
    - identical action+target inside the duplicate window is dropped
    - a different action inside the cooldown window is dropped, except
      complete_exam
    - advance_to_next inside the auto-select suppression window is dropped as
      an echo of the agent's own previous advance
    """

    VALID_TRANSITIONS: dict[ExamLifecycle, list[ExamLifecycle]] = {
        ExamLifecycle.NOT_STARTED: [ExamLifecycle.READY],
        ExamLifecycle.READY: [ExamLifecycle.IN_PROGRESS, ExamLifecycle.COMPLETED],
        ExamLifecycle.IN_PROGRESS: [ExamLifecycle.COMPLETED],
        ExamLifecycle.COMPLETED: [],  # Terminal state
    }

    def __init__(
        self,
        config: ExamTypeConfig,
        session: ExamSession | None = None,
        settings: Settings | None = None,
        clock: Clock = time.monotonic,
    ):
        """
        Args:
            config: Immutable exam type configuration
            session: Existing session handle (a fresh one is created if omitted)
            settings: Timing windows and environment
            clock: Monotonic seconds source, injectable for tests
        """
        self.config = config
        self.settings = settings or get_settings()
        self.clock = clock
        self.session = session or ExamSession(
            exam_type=config.exam_type,
            exam_name=config.name,
            duration_minutes=config.duration_minutes,
            total_sections=config.total_sections,
        )

        self._lock = threading.Lock()
        self._last_action: PendingAction | None = None
        self._suppress_advance_until: float | None = None
        self._listeners: list[TransitionListener] = []

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def transition_lifecycle(self, new_state: ExamLifecycle) -> ExamSession:
        """
        Move the session to a new lifecycle state.

        Raises:
            StateTransitionError: If transition is invalid
        """
        old_state = self.session.lifecycle
        valid_next_states = self.VALID_TRANSITIONS.get(old_state, [])
        if new_state not in valid_next_states:
            raise StateTransitionError(
                f"Invalid transition from {old_state.value} to {new_state.value}. "
                f"Valid transitions: {[s.value for s in valid_next_states]}"
            )

        self.session.lifecycle = new_state
        if new_state == ExamLifecycle.COMPLETED:
            self.session.completed_at = self.session.completed_at or utcnow()

        logger.info(f"Session {self.session.session_id}: {old_state.value} → {new_state.value}")
        return self.session

    def prepare(self) -> ExamSession:
        """Exam type selected: NOT_STARTED → READY."""
        return self.transition_lifecycle(ExamLifecycle.READY)

    def end(self) -> ExamSession:
        """Explicitly leave the attempt."""
        with self._lock:
            if self.session.lifecycle == ExamLifecycle.COMPLETED:
                return self.session
            return self.transition_lifecycle(ExamLifecycle.COMPLETED)

    # =========================================================================
    # ACTION API
    # =========================================================================

    def apply(
        self,
        action: SectionAction | str,
        target: str | int | None = None,
        context: ActionContext | None = None,
    ) -> ActionResult:
        """
        Apply one control action.

        Never raises for expected failures: rejections, duplicates and
        throttling come back as ActionResult.error.
        """
        target = str(target).strip() if target is not None else None
        context = context or ActionContext()

        try:
            action = SectionAction(action)
        except ValueError:
            return self._reject(action, target, ErrorKind.INVALID_ACTION, f"Unknown action: {action}")

        # Concurrent calls are rejected, not queued
        if not self._lock.acquire(blocking=False):
            return self._reject(
                action, target, ErrorKind.DUPLICATE_OR_THROTTLED,
                "Another section action is already being applied"
            )

        try:
            result = self._apply_locked(action, target, context)
        except StateTransitionError as e:
            logger.warning(f"Session {self.session.session_id}: {action.value} rejected: {e}")
            result = self._reject(action, target, ErrorKind.INVALID_ACTION, str(e))
        finally:
            self._lock.release()

        if result.applied:
            self._notify(result)
        return result

    def on_transition(self, callback: TransitionListener) -> None:
        """Register a callback for applied actions."""
        self._listeners.append(callback)

    def record_presentation(
        self,
        audio: PresentedAudio | None = None,
        image: PresentedImage | None = None,
    ) -> ExamSession:
        """
        Remember what the agent last put in front of the candidate.

        Blocks while an action is being applied instead of rejecting.
        """
        with self._lock:
            if audio is not None:
                self.session.last_presented_audio = audio
            if image is not None:
                self.session.last_presented_image = image
        return self.session

    def _apply_locked(
        self,
        action: SectionAction,
        target: str | None,
        context: ActionContext,
    ) -> ActionResult:
        now = self.clock()

        if action.is_admin:
            return self._apply_admin(action, target, context, now)

        if action == SectionAction.START:
            return self._start(now)

        rejection = self._gate(action, target, now)
        if rejection is not None:
            return rejection

        handlers = {
            SectionAction.COMPLETE_CURRENT: self._complete_current,
            SectionAction.ADVANCE_TO_NEXT: self._advance_to_next,
            SectionAction.COMPLETE_AND_ADVANCE: self._complete_and_advance,
            SectionAction.ADVANCE_TO_SECTION: self._advance_to_section,
            SectionAction.COMPLETE_EXAM: self._complete_exam,
        }
        result = handlers[action](target, now)

        if result.error is None:
            self._last_action = PendingAction(action=action, target=target, timestamp=now)
        return result

    def _gate(
        self,
        action: SectionAction,
        target: str | None,
        now: float,
    ) -> ActionResult | None:
        """Lifecycle, terminal lock and timing checks for progression actions."""
        if self.session.lifecycle != ExamLifecycle.IN_PROGRESS:
            return self._reject(
                action, target, ErrorKind.INVALID_ACTION,
                f"Exam is not in progress (state: {self.session.lifecycle.value})"
            )

        if self.session.exam_completed and action != SectionAction.COMPLETE_EXAM:
            return self._reject(
                action, target, ErrorKind.INVALID_ACTION,
                "Exam already completed; progression is locked"
            )

        last = self._last_action
        if last is not None:
            elapsed = now - last.timestamp
            same = last.action == action and last.target == target

            if same and elapsed < self.settings.duplicate_window_seconds:
                logger.info(f"Session {self.session.session_id}: duplicate {action.value} dropped")
                return self._reject(
                    action, target, ErrorKind.DUPLICATE_OR_THROTTLED,
                    f"Duplicate {action.value} ignored"
                )

            if (
                not same
                and action != SectionAction.COMPLETE_EXAM
                and elapsed < self.settings.cooldown_window_seconds
            ):
                logger.info(
                    f"Session {self.session.session_id}: {action.value} dropped "
                    f"{elapsed:.1f}s after {last.action.value}"
                )
                return self._reject(
                    action, target, ErrorKind.DUPLICATE_OR_THROTTLED,
                    f"{action.value} ignored during cooldown after {last.action.value}"
                )

        if (
            action == SectionAction.ADVANCE_TO_NEXT
            and self._suppress_advance_until is not None
            and now < self._suppress_advance_until
        ):
            logger.info(f"Session {self.session.session_id}: advance_to_next echo suppressed")
            return self._reject(
                action, target, ErrorKind.DUPLICATE_OR_THROTTLED,
                "advance_to_next ignored right after subsection auto-selection"
            )

        return None

    # =========================================================================
    # PROGRESSION HANDLERS
    # =========================================================================

    def _start(self, now: float) -> ActionResult:
        if self.session.lifecycle == ExamLifecycle.NOT_STARTED:
            self.prepare()
        self.transition_lifecycle(ExamLifecycle.IN_PROGRESS)

        self.session.started_at = utcnow()
        self._reset_position(now)

        return self._result(
            SectionAction.START, None, True,
            f"{self.config.name} started at {self.session.position_label()}"
        )

    def _complete_current(self, target: str | None, now: float) -> ActionResult:
        self._mark_current_complete()
        return self._result(
            SectionAction.COMPLETE_CURRENT, target, True,
            f"Section {self.session.current_section} marked complete"
        )

    def _advance_to_next(self, target: str | None, now: float) -> ActionResult:
        session = self.session
        section = self.config.get_section(session.current_section)

        if session.current_subsection and section is not None:
            keys = section.subsection_keys()
            if session.current_subsection in keys:
                index = keys.index(session.current_subsection)
                if index + 1 < len(keys):
                    session.completed_subsections.add(session.current_subsection)
                    session.current_subsection = keys[index + 1]
                    return self._result(
                        SectionAction.ADVANCE_TO_NEXT, target, True,
                        f"Advanced to subsection {session.current_subsection}"
                    )

        if session.current_section >= session.total_sections:
            return self._result(
                SectionAction.ADVANCE_TO_NEXT, target, False,
                f"Already at the final section ({session.total_sections})"
            )

        if session.current_subsection:
            session.completed_subsections.add(session.current_subsection)
        self._enter_section(session.current_section + 1, now)
        return self._result(
            SectionAction.ADVANCE_TO_NEXT, target, True,
            f"Advanced to {session.position_label()}"
        )

    def _complete_and_advance(self, target: str | None, now: float) -> ActionResult:
        self._mark_current_complete()

        if self.session.current_section >= self.session.total_sections:
            return self._result(
                SectionAction.COMPLETE_AND_ADVANCE, target, True,
                f"Final section {self.session.current_section} completed; no further sections"
            )

        self._enter_section(self.session.current_section + 1, now)
        return self._result(
            SectionAction.COMPLETE_AND_ADVANCE, target, True,
            f"Section completed, advanced to {self.session.position_label()}"
        )

    def _advance_to_section(self, target: str | None, now: float) -> ActionResult:
        number = self._parse_section(target)
        if number is None:
            return self._reject(
                SectionAction.ADVANCE_TO_SECTION, target, ErrorKind.INVALID_ACTION,
                f"Invalid target section: {target!r}"
            )

        if number < self.session.current_section:
            return self._reject(
                SectionAction.ADVANCE_TO_SECTION, target, ErrorKind.INVALID_ACTION,
                f"Cannot move back from section {self.session.current_section} to {number}"
            )

        if number == self.session.current_section:
            return self._result(
                SectionAction.ADVANCE_TO_SECTION, target, False,
                f"Already in section {number}"
            )

        self._enter_section(number, now)
        return self._result(
            SectionAction.ADVANCE_TO_SECTION, target, True,
            f"Advanced to {self.session.position_label()}"
        )

    def _complete_exam(self, target: str | None, now: float) -> ActionResult:
        if self.session.exam_completed:
            return self._result(
                SectionAction.COMPLETE_EXAM, target, False,
                "Exam already completed"
            )

        self._mark_current_complete()
        self.session.exam_completed = True
        self.session.completed_at = utcnow()

        logger.info(f"Session {self.session.session_id}: exam completed, progression locked")
        return self._result(
            SectionAction.COMPLETE_EXAM, target, True,
            "Exam completed; deliver the final evaluation"
        )

    # =========================================================================
    # ADMIN OVERRIDES
    # =========================================================================

    def _apply_admin(
        self,
        action: SectionAction,
        target: str | None,
        context: ActionContext,
        now: float,
    ) -> ActionResult:
        if not context.is_admin:
            return self._reject(
                action, target, ErrorKind.INVALID_ACTION,
                f"{action.value} requires admin capability"
            )

        if action.is_bulk and self.settings.is_production:
            return self._reject(
                action, target, ErrorKind.INVALID_ACTION,
                f"{action.value} is disabled in production"
            )

        if self.session.lifecycle != ExamLifecycle.IN_PROGRESS:
            return self._reject(
                action, target, ErrorKind.INVALID_ACTION,
                f"Exam is not in progress (state: {self.session.lifecycle.value})"
            )

        if self.session.exam_completed and action != SectionAction.RESET_PROGRESS:
            return self._reject(
                action, target, ErrorKind.INVALID_ACTION,
                "Exam already completed; only reset_progress is allowed"
            )

        session = self.session

        if action == SectionAction.JUMP_TO_SECTION:
            number = self._parse_section(target)
            if number is None:
                return self._reject(
                    action, target, ErrorKind.INVALID_ACTION,
                    f"Invalid target section: {target!r}"
                )
            self._enter_section(number, now)

        elif action == SectionAction.JUMP_TO_SUBSECTION:
            located = self.config.locate_subsection(target or "")
            if located is None:
                return self._reject(
                    action, target, ErrorKind.INVALID_ACTION,
                    f"Unknown subsection: {target!r}"
                )
            section_number, key, _ = located
            session.current_section = section_number
            session.current_subsection = key
            session.visited_sections.add(section_number)

        elif action == SectionAction.COMPLETE_ALL:
            session.completed_sections = set(self.config.sections.keys())
            session.completed_subsections = {
                key
                for section in self.config.sections.values()
                for key in section.subsections
            }
            session.recompute_progress()

        elif action == SectionAction.RESET_PROGRESS:
            session.completed_sections = set()
            session.completed_subsections = set()
            session.exam_completed = False
            session.completed_at = None
            self._last_action = None
            self._reset_position(now)

        logger.info(
            f"Session {session.session_id}: admin {action.value} "
            f"({context.source.value}) → {session.position_label()}"
        )
        return self._result(action, target, True, f"{action.value} applied at {session.position_label()}")

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _reset_position(self, now: float) -> None:
        session = self.session
        session.visited_sections = set()
        session.recompute_progress()
        self._suppress_advance_until = None

        default_subsection = self.config.default_subsection
        located = self.config.locate_subsection(default_subsection) if default_subsection else None
        if located is not None and located[0] == self.config.default_section:
            session.current_section = self.config.default_section
            session.current_subsection = located[1]
            session.visited_sections.add(self.config.default_section)
            return

        self._enter_section(self.config.default_section, now)

    def _enter_section(self, number: int, now: float) -> None:
        """Make a section current and auto-select its first subsection."""
        session = self.session
        session.current_section = number
        session.current_subsection = None
        session.visited_sections.add(number)

        section = self.config.get_section(number)
        first = section.first_subsection() if section else None
        if first is not None:
            session.current_subsection = first
            self._suppress_advance_until = now + self.settings.auto_select_suppression_seconds
            logger.debug(f"Session {session.session_id}: auto-selected subsection {first}")

    def _mark_current_complete(self) -> None:
        session = self.session
        if session.current_section is not None:
            session.completed_sections.add(session.current_section)
        if session.current_subsection:
            session.completed_subsections.add(session.current_subsection)
        session.recompute_progress()

    def _parse_section(self, target: str | None) -> int | None:
        """Parse and bounds-check a section number."""
        if target is None:
            return None
        try:
            number = int(target)
        except ValueError:
            return None
        if 1 <= number <= self.session.total_sections:
            return number
        return None

    def _result(
        self,
        action: SectionAction,
        target: str | None,
        applied: bool,
        message: str,
    ) -> ActionResult:
        return ActionResult(
            action=action,
            target=target,
            applied=applied,
            message=message,
            current_section=self.session.current_section,
            current_subsection=self.session.current_subsection,
        )

    def _reject(
        self,
        action: SectionAction | str,
        target: str | None,
        kind: ErrorKind,
        message: str,
    ) -> ActionResult:
        return ActionResult(
            action=action,
            target=target,
            applied=False,
            error=ExamError(kind=kind, message=message),
            message=message,
            current_section=self.session.current_section,
            current_subsection=self.session.current_subsection,
        )

    def _notify(self, result: ActionResult) -> None:
        for callback in self._listeners:
            try:
                callback(self.session, result)
            except Exception as e:
                logger.error(f"Transition listener error: {e}")
