"""
Exam Orchestrator - Coordinates exam sessions and the agent's tool calls.

Owns a registry of session state machines and composes the policy
components for each candidate turn and tool call:

    candidate message → TopicGuard → RuntimeDirectiveBuilder → prompt fragment
    sectionControl    → SessionStateMachine.apply
    playAudio         → AudioRoutingResolver + PlaybackPolicyResolver
    getAudioTranscript → TranscriptAnswerKeyProvider
"""

import logging
import threading
import time
from typing import Callable
from uuid import uuid4

from src.config.exam_configs import ExamConfigError, ExamConfigRegistry
from src.config.settings import Settings, get_settings
from src.core.audio_routing import AudioRoutingResolver
from src.core.playback_policy import PlaybackPolicyResolver, recording_class_for
from src.core.runtime_directives import RuntimeDirectiveBuilder
from src.core.session_state_machine import Clock, SessionStateMachine
from src.core.topic_guard import TopicGuard
from src.core.transcript_provider import TranscriptAnswerKeyProvider
from src.models.results import ErrorKind, ExamError, TranscriptResult
from src.models.session import (
    ActionContext,
    ActionResult,
    ActionSource,
    ExamLifecycle,
    ExamSession,
    PresentedAudio,
    PresentedImage,
    SectionAction,
)
from src.models.tools import (
    AudioPresentation,
    DisplayImageRequest,
    EndResult,
    ImageLayout,
    ImagePresentation,
    PlayAudioRequest,
    TurnPlan,
)
from src.prompts.examiner import ExaminerPrompts

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when a session id is not registered."""
    pass


class ExamOrchestrator:
    """
    Runs exam sessions for one process.

    Sessions live in memory only and are discarded when the attempt ends or
    is replaced. Each session has its own SessionStateMachine, which is the
    only writer of section progress.
    """

    def __init__(
        self,
        configs: ExamConfigRegistry,
        settings: Settings | None = None,
        clock: Clock = time.monotonic,
        guard: TopicGuard | None = None,
        directives: RuntimeDirectiveBuilder | None = None,
        audio_router: AudioRoutingResolver | None = None,
        playback: PlaybackPolicyResolver | None = None,
        transcripts: TranscriptAnswerKeyProvider | None = None,
        prompts: ExaminerPrompts | None = None,
    ):
        self.configs = configs
        self.settings = settings or get_settings()
        self.clock = clock
        self.guard = guard or TopicGuard()
        self.directives = directives or RuntimeDirectiveBuilder()
        self.audio_router = audio_router or AudioRoutingResolver()
        self.playback = playback or PlaybackPolicyResolver()
        self.transcripts = transcripts or TranscriptAnswerKeyProvider()
        self.prompts = prompts or ExaminerPrompts()

        self._machines: dict[str, SessionStateMachine] = {}
        self._last_audio: dict[str, tuple[str, float]] = {}
        self._registry_lock = threading.Lock()

        self._transition_callbacks: list[Callable[[str, ActionResult], None]] = []

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def create_session(self, exam_type: str, replaces: str | None = None) -> ExamSession:
        """
        Create a session for an exam type and move it to READY.

        Args:
            exam_type: Configuration id or exam type key
            replaces: Session id of a previous attempt to discard

        Raises:
            ExamConfigError: If no configuration exists for the exam type
        """
        config = self.configs.get(exam_type)
        if config is None:
            raise ExamConfigError(f"Unknown exam type: {exam_type}")

        machine = SessionStateMachine(config, settings=self.settings, clock=self.clock)
        machine.on_transition(self._forward_transition)
        machine.prepare()

        with self._registry_lock:
            if replaces:
                self._discard(replaces)
            self._machines[machine.session.session_id] = machine

        logger.info(f"Created exam session {machine.session.session_id} ({config.id})")
        return machine.session

    def get_machine(self, session_id: str) -> SessionStateMachine:
        machine = self._machines.get(session_id)
        if machine is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return machine

    def get_session(self, session_id: str) -> ExamSession:
        return self.get_machine(session_id).session

    def list_sessions(self) -> list[ExamSession]:
        return [machine.session for machine in self._machines.values()]

    def start_session(self, session_id: str) -> ActionResult:
        """Candidate confirmed the start: READY → IN_PROGRESS."""
        return self.get_machine(session_id).apply(
            SectionAction.START, context=ActionContext(source=ActionSource.UI)
        )

    def end_session(self, session_id: str) -> EndResult:
        """
        End the attempt and discard the session.

        The returned evaluator instruction asks for a partial evaluation when
        the exam was not completed.
        """
        machine = self.get_machine(session_id)
        ended_early = not machine.session.exam_completed
        session = machine.end()

        with self._registry_lock:
            self._discard(session_id)

        logger.info(f"Session {session_id} ended ({'early' if ended_early else 'after completion'})")
        return EndResult(
            session=session,
            ended_early=ended_early,
            evaluator_instruction=self.prompts.end_exam_instruction(
                machine.config.name, ended_early
            ),
        )

    def on_transition(self, callback: Callable[[str, ActionResult], None]) -> None:
        """Register a callback for applied section actions of any session."""
        self._transition_callbacks.append(callback)

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def apply_action(
        self,
        session_id: str,
        action: SectionAction | str,
        target: str | int | None = None,
        context: ActionContext | None = None,
    ) -> ActionResult:
        """UI/admin action API."""
        return self.get_machine(session_id).apply(action, target, context)

    def handle_section_control(
        self,
        session_id: str,
        action: str,
        target_section: str | int | None = None,
        reason: str | None = None,
    ) -> ActionResult:
        """sectionControl tool call. The agent never holds admin capability."""
        context = ActionContext(source=ActionSource.AGENT, is_admin=False, reason=reason)
        result = self.get_machine(session_id).apply(action, target_section, context)

        if result.error is not None and not result.error.silent:
            logger.warning(
                f"Session {session_id}: sectionControl {result.action} rejected: {result.error.message}"
            )
        return result

    # =========================================================================
    # TURN PLANNING
    # =========================================================================

    def plan_turn(self, session_id: str, text: str | None) -> TurnPlan:
        """
        Guard and directive pass for one candidate message.

        A blocked message short-circuits the turn: the agent replies with the
        redirect and gets no directive block.
        """
        machine = self.get_machine(session_id)
        session = machine.session
        config = machine.config

        active = session.lifecycle == ExamLifecycle.IN_PROGRESS
        section = session.current_section if active else None
        subsection = session.current_subsection if active else None

        decision = self.guard.evaluate(config.exam_type, section, subsection, text)
        if decision.blocked:
            return TurnPlan(
                blocked=True,
                redirect_message=decision.redirect_message,
                reason=decision.reason,
            )

        directive = None
        if active:
            directive = self.directives.build(
                config.exam_type, section, subsection, text, config.closing_sentence
            )
        return TurnPlan(
            blocked=False,
            directive=directive,
            system_prompt=self.prompts.system_fragment(session, config, directive),
        )

    # =========================================================================
    # PRESENTATION TOOLS
    # =========================================================================

    def present_audio(self, session_id: str, request: PlayAudioRequest) -> AudioPresentation:
        """
        playAudio tool call.

        Defaults the subsection to the current one. A repeat of the same
        recording id inside the de-dup window is skipped.
        """
        machine = self.get_machine(session_id)
        session = machine.session
        config = machine.config

        subsection = request.subsection or session.current_subsection
        routed = self.audio_router.resolve(config, subsection, request.recording_number)
        if not routed.success:
            return AudioPresentation(success=False, error=routed.error)

        descriptor = routed.descriptor
        recording_id = request.recording_id or descriptor.src
        now = self.clock()

        with self._registry_lock:
            previous = self._last_audio.get(session_id)
            if (
                previous is not None
                and previous[0] == recording_id
                and now - previous[1] < self.settings.audio_dedup_window_seconds
            ):
                logger.info(f"Session {session_id}: duplicate playAudio {recording_id} skipped")
                return AudioPresentation(
                    success=False,
                    skipped=True,
                    recording_id=recording_id,
                    descriptor=descriptor,
                    error=ExamError(
                        kind=ErrorKind.DUPLICATE_OR_THROTTLED,
                        message=f"Recording {recording_id} is already being presented",
                    ),
                )
            self._last_audio[session_id] = (recording_id, now)

        policy = self.playback.resolve(
            config.exam_type, recording_class_for(request.is_exam_recording), config
        )

        located = config.locate_subsection(subsection) if subsection else None
        machine.record_presentation(audio=PresentedAudio(
            subsection=located[1] if located else subsection,
            recording_number=descriptor.recording_number,
            recording_id=recording_id,
            source_type=descriptor.source_type,
            is_exam_recording=request.is_exam_recording,
        ))

        return AudioPresentation(
            success=True,
            recording_id=recording_id,
            descriptor=descriptor,
            policy=policy,
        )

    def present_image(self, session_id: str, request: DisplayImageRequest) -> ImagePresentation:
        """displayImage tool call."""
        machine = self.get_machine(session_id)
        session = machine.session

        subsection = request.subsection or session.current_subsection
        if subsection and machine.config.locate_subsection(subsection) is None:
            return ImagePresentation(
                success=False,
                error=ExamError(
                    kind=ErrorKind.CONFIGURATION_MISSING,
                    message=f"Subsection {subsection} is not configured for {machine.config.name}",
                ),
            )

        layout = request.layout
        if layout == ImageLayout.SINGLE and len(request.images) > 1:
            layout = ImageLayout.SIDE_BY_SIDE

        image_set_id = request.image_set_id or f"{subsection or 'images'}-{uuid4().hex[:8]}"
        machine.record_presentation(image=PresentedImage(
            image_set_id=image_set_id,
            title=request.title,
            subsection=subsection,
            image_count=len(request.images),
        ))

        return ImagePresentation(
            success=True,
            image_set_id=image_set_id,
            title=request.title,
            images=list(request.images),
            layout=layout,
        )

    def get_transcript(
        self,
        session_id: str,
        subsection: str | None = None,
        recording_number: int | None = None,
    ) -> TranscriptResult:
        """
        getAudioTranscript tool call, for grading only.

        Omitted arguments default to the last presented recording.
        """
        machine = self.get_machine(session_id)
        last = machine.session.last_presented_audio

        if subsection is None:
            subsection = last.subsection if last else machine.session.current_subsection
        if recording_number is None:
            recording_number = last.recording_number if last else 1

        return self.transcripts.lookup(machine.config, subsection, recording_number)

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _discard(self, session_id: str) -> None:
        self._machines.pop(session_id, None)
        self._last_audio.pop(session_id, None)

    def _forward_transition(self, session: ExamSession, result: ActionResult) -> None:
        for callback in self._transition_callbacks:
            try:
                callback(session.session_id, result)
            except Exception as e:
                logger.error(f"Transition callback error: {e}")
