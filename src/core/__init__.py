"""
Core business logic modules for AeroExam

Contains:
- Session State Machine: Exam lifecycle and section progression
- Audio Routing: Recording → playback source resolution
- Playback Policy: Replay/seek/pause rules per exam type
- Transcript Provider: Grading-only transcripts and answer keys
- Topic Guard: Off-topic input blocking
- Runtime Directives: Per-turn examiner instructions
- Exam Orchestrator: Session registry and tool call coordination
"""

from src.core.session_state_machine import SessionStateMachine, StateTransitionError
from src.core.audio_routing import AudioRoutingResolver
from src.core.playback_policy import PlaybackPolicyResolver
from src.core.transcript_provider import TranscriptAnswerKeyProvider
from src.core.topic_guard import TopicGuard
from src.core.runtime_directives import RuntimeDirectiveBuilder
from src.core.exam_orchestrator import ExamOrchestrator, SessionNotFoundError

__all__ = [
    "SessionStateMachine",
    "StateTransitionError",
    "AudioRoutingResolver",
    "PlaybackPolicyResolver",
    "TranscriptAnswerKeyProvider",
    "TopicGuard",
    "RuntimeDirectiveBuilder",
    "ExamOrchestrator",
    "SessionNotFoundError",
]
