"""
Tests for ExamOrchestrator: session registry, turn planning and tool calls.
"""

import pytest

from src.config.exam_configs import ExamConfigError
from src.core.exam_orchestrator import SessionNotFoundError
from src.models.results import GENERIC_APOLOGY, ErrorKind
from src.models.session import ActionContext, ActionSource, ExamLifecycle
from src.models.tools import DisplayImageRequest, ImageLayout, PlayAudioRequest


ADMIN = ActionContext(source=ActionSource.ADMIN, is_admin=True)


@pytest.fixture
def session_id(orchestrator):
    session = orchestrator.create_session("elpac-demo")
    orchestrator.start_session(session.session_id)
    return session.session_id


class TestSessions:

    def test_create_is_ready(self, orchestrator):
        session = orchestrator.create_session("elpac")
        assert session.lifecycle == ExamLifecycle.READY
        assert session.exam_name == "ELPAC ATC Demo"
        assert orchestrator.get_session(session.session_id) is session

    def test_unknown_exam_type(self, orchestrator):
        with pytest.raises(ExamConfigError):
            orchestrator.create_session("toeic")

    def test_unknown_session(self, orchestrator):
        with pytest.raises(SessionNotFoundError):
            orchestrator.get_session("nope")

    def test_start_positions_at_default(self, orchestrator, session_id):
        session = orchestrator.get_session(session_id)
        assert session.lifecycle == ExamLifecycle.IN_PROGRESS
        assert (session.current_section, session.current_subsection) == (1, "1P1")
        assert session.get_time_remaining() == pytest.approx(25, abs=0.1)

    def test_new_attempt_replaces_old(self, orchestrator, session_id):
        replacement = orchestrator.create_session("elpac-demo", replaces=session_id)
        with pytest.raises(SessionNotFoundError):
            orchestrator.get_session(session_id)
        assert orchestrator.list_sessions() == [replacement]

    def test_end_early(self, orchestrator, session_id):
        result = orchestrator.end_session(session_id)
        assert result.ended_early
        assert result.session.lifecycle == ExamLifecycle.COMPLETED
        assert "PARTIAL evaluation" in result.evaluator_instruction
        assert "ELPAC ATC Demo" in result.evaluator_instruction
        with pytest.raises(SessionNotFoundError):
            orchestrator.get_session(session_id)

    def test_end_after_completion(self, orchestrator, session_id):
        orchestrator.handle_section_control(session_id, "complete_exam", reason="candidate requested completion")
        result = orchestrator.end_session(session_id)
        assert not result.ended_early
        assert result.evaluator_instruction.startswith("[System] The candidate has finished the ELPAC ATC Demo.")

    def test_transition_callbacks(self, orchestrator, session_id):
        seen = []
        orchestrator.on_transition(lambda sid, result: seen.append((sid, result.current_subsection)))
        orchestrator.handle_section_control(session_id, "advance_to_next")
        assert seen == [(session_id, "1P3")]


class TestSectionControl:

    def test_agent_cannot_use_admin_actions(self, orchestrator, session_id):
        result = orchestrator.handle_section_control(session_id, "jump_to_section", "2")
        assert result.error.kind == ErrorKind.INVALID_ACTION
        assert result.error.candidate_message is None

    def test_admin_action_api(self, orchestrator, session_id):
        result = orchestrator.apply_action(session_id, "jump_to_subsection", "2II", ADMIN)
        assert result.applied
        assert result.current_subsection == "2II"


class TestTurnPlanning:

    def test_guard_inactive_before_start(self, orchestrator):
        session = orchestrator.create_session("elpac-demo")
        plan = orchestrator.plan_turn(session.session_id, "tell me a joke about cats")
        assert not plan.blocked
        assert plan.directive is None
        assert "POSITION: exam not started" in plan.system_prompt

    def test_block_short_circuits(self, orchestrator, session_id):
        plan = orchestrator.plan_turn(session_id, "tell me a joke about cats")
        assert plan.blocked
        assert "Section 1, Subsection 1P1" in plan.redirect_message
        assert plan.directive is None
        assert plan.system_prompt is None

    def test_directive_spliced_last(self, orchestrator, session_id):
        plan = orchestrator.plan_turn(session_id, "The assigned transponder code is six one four two.")
        assert not plan.blocked
        assert plan.directive.startswith("RUNTIME HIGH-PRIORITY DIRECTIVES:")
        assert plan.system_prompt.endswith(plan.directive)
        assert "POSITION: Section 1, Subsection 1P1" in plan.system_prompt

    def test_completion_directive_uses_configured_closing_sentence(self, orchestrator, session_id):
        orchestrator.apply_action(session_id, "jump_to_subsection", "2II", ADMIN)
        plan = orchestrator.plan_turn(session_id, "I want to finish the exam now")
        assert not plan.blocked
        closing = orchestrator.get_machine(session_id).config.closing_sentence
        assert f'exactly with: "{closing}"' in plan.directive

    def test_plain_turn_has_no_directive(self, orchestrator, session_id):
        plan = orchestrator.plan_turn(session_id, "6142")
        assert not plan.blocked
        assert plan.directive is None
        assert "RUNTIME HIGH-PRIORITY DIRECTIVES" not in plan.system_prompt


class TestAudio:

    def test_defaults_to_current_subsection(self, orchestrator, session_id):
        result = orchestrator.present_audio(session_id, PlayAudioRequest(title="Recording 1"))
        assert result.success
        assert result.descriptor.api_section == "paper1-1p1"
        assert result.policy.max_replays == 0

        presented = orchestrator.get_session(session_id).last_presented_audio
        assert presented.subsection == "1P1"
        assert presented.recording_number == 1

    def test_duplicate_recording_id_skipped(self, orchestrator, session_id, clock):
        request = PlayAudioRequest(title="Recording 1", recording_id="rec-1")
        assert orchestrator.present_audio(session_id, request).success

        clock.advance(1)
        repeat = orchestrator.present_audio(session_id, request)
        assert repeat.skipped
        assert repeat.error.silent
        assert repeat.candidate_message is None

        clock.advance(2)
        assert orchestrator.present_audio(session_id, request).success

    def test_image_subsection_has_no_audio(self, orchestrator, session_id):
        orchestrator.apply_action(session_id, "jump_to_subsection", "2II", ADMIN)
        result = orchestrator.present_audio(session_id, PlayAudioRequest(title="Picture"))
        assert not result.success
        assert result.error.kind == ErrorKind.UNSUPPORTED_SUBSECTION
        assert result.candidate_message == GENERIC_APOLOGY
        assert orchestrator.get_session(session_id).current_subsection == "2II"

    def test_transcript_defaults_to_last_presented(self, orchestrator, session_id):
        orchestrator.present_audio(session_id, PlayAudioRequest(title="Part 3", subsection="1P3"))
        result = orchestrator.get_transcript(session_id)
        assert result.success
        assert result.record.subsection == "1P3"
        assert "smoke in the cabin" in result.record.transcript

    def test_transcript_without_presentation_uses_position(self, orchestrator, session_id):
        result = orchestrator.get_transcript(session_id)
        assert result.record.subsection == "1P1"


class TestImages:

    def test_side_by_side_for_multiple_images(self, orchestrator, session_id):
        request = DisplayImageRequest(
            title="Apron", images=["/img/a.jpg", "/img/b.jpg"], subsection="2II", image_set_id="set-1"
        )
        result = orchestrator.present_image(session_id, request)
        assert result.success
        assert result.layout == ImageLayout.SIDE_BY_SIDE
        assert result.image_set_id == "set-1"

        presented = orchestrator.get_session(session_id).last_presented_image
        assert presented.image_set_id == "set-1"
        assert presented.image_count == 2
        assert presented.subsection == "2II"

    def test_unknown_subsection(self, orchestrator, session_id):
        request = DisplayImageRequest(title="x", images=["/img/a.jpg"], subsection="9Z")
        result = orchestrator.present_image(session_id, request)
        assert result.error.kind == ErrorKind.CONFIGURATION_MISSING

    def test_generated_image_set_id(self, orchestrator, session_id):
        result = orchestrator.present_image(session_id, DisplayImageRequest(title="x", images=["/img/a.jpg"]))
        assert result.image_set_id.startswith("1P1-")
