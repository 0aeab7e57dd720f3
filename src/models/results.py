"""
Typed results and error taxonomy for AeroExam

Core operations never raise on expected failures; they return one of these
result models so a mid-exam failure can never crash the session.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field


GENERIC_APOLOGY = (
    "I'm sorry, something went wrong on my side. "
    "Let's continue with the current task."
)


class ErrorKind(str, Enum):
    """Failure taxonomy."""

    CONFIGURATION_MISSING = "configuration_missing"
    RECORDING_NOT_FOUND = "recording_not_found"
    UNSUPPORTED_SUBSECTION = "unsupported_subsection"
    INVALID_ACTION = "invalid_action"
    DUPLICATE_OR_THROTTLED = "duplicate_or_throttled"  # No-op signal, not a true error


class ExamError(BaseModel):
    """A typed failure returned to the caller."""

    kind: ErrorKind
    message: str

    @property
    def silent(self) -> bool:
        """Throttle/duplicate signals are never surfaced to the candidate."""
        return self.kind == ErrorKind.DUPLICATE_OR_THROTTLED

    @computed_field
    @property
    def candidate_message(self) -> str | None:
        """
        What (if anything) the candidate may be told about this failure.

        Configuration and lookup failures become a generic apology; action
        rejections and throttling are agent-facing only.
        """
        if self.kind in (ErrorKind.INVALID_ACTION, ErrorKind.DUPLICATE_OR_THROTTLED):
            return None
        return GENERIC_APOLOGY


class SourceType(str, Enum):
    """Where a playable audio asset comes from."""

    SUBSECTION_AUDIO = "subsection-audio"
    SPEAKING_PROMPT = "speaking-prompt"


class AudioDescriptor(BaseModel):
    """Resolved playback source for one recording."""

    source_type: SourceType
    exam_type: str
    section_key: str
    api_section: str
    recording_number: int = Field(..., ge=1)
    title: str = ""
    src: str = Field(..., description="Playback URL served by the audio collaborator")


class AudioRoutingResult(BaseModel):
    """Outcome of audio routing."""

    success: bool
    descriptor: AudioDescriptor | None = None
    error: ExamError | None = None

    @classmethod
    def ok(cls, descriptor: AudioDescriptor) -> "AudioRoutingResult":
        return cls(success=True, descriptor=descriptor)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "AudioRoutingResult":
        return cls(success=False, error=ExamError(kind=kind, message=message))


class TranscriptRecord(BaseModel):
    """
    Transcript and answer key of one recording.

    Grading only: this must never be echoed into the candidate-visible
    transcript.
    """

    subsection: str
    recording_number: int
    title: str = ""
    description: str = ""
    transcript: str
    correct_answers: Any = None


class TranscriptResult(BaseModel):
    """Outcome of a transcript/answer-key lookup."""

    success: bool
    record: TranscriptRecord | None = None
    error: ExamError | None = None

    @classmethod
    def ok(cls, record: TranscriptRecord) -> "TranscriptResult":
        return cls(success=True, record=record)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "TranscriptResult":
        return cls(success=False, error=ExamError(kind=kind, message=message))


class GuardDecision(BaseModel):
    """Topic guard verdict for one candidate utterance."""

    blocked: bool
    redirect_message: str | None = None
    reason: str | None = None
