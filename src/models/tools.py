"""
Agent tool call models for AeroExam

Inputs and outcomes of the tool calls the examiner agent issues, plus the
per-turn plan handed back to the agent runtime.
"""

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from src.models.exam_config import PlaybackPolicy
from src.models.results import AudioDescriptor, ExamError
from src.models.session import ExamSession


class ImageLayout(str, Enum):
    """How a displayImage set is arranged."""

    SINGLE = "single"
    SIDE_BY_SIDE = "side-by-side"
    STACKED = "stacked"


class PlayAudioRequest(BaseModel):
    """playAudio tool call."""

    title: str = ""
    subsection: str | None = None
    recording_number: int | None = None
    is_exam_recording: bool = True
    recording_id: str | None = Field(
        default=None,
        description="Client id of the recording; repeats inside the de-dup window are skipped"
    )


class AudioPresentation(BaseModel):
    """Outcome of playAudio."""

    success: bool
    skipped: bool = False  # Duplicate of the previous call
    recording_id: str | None = None
    descriptor: AudioDescriptor | None = None
    policy: PlaybackPolicy | None = None
    error: ExamError | None = None

    @computed_field
    @property
    def candidate_message(self) -> str | None:
        return self.error.candidate_message if self.error else None


class DisplayImageRequest(BaseModel):
    """displayImage tool call."""

    title: str
    images: list[str] = Field(..., min_length=1, max_length=3)
    subsection: str | None = None
    layout: ImageLayout = ImageLayout.SINGLE
    image_set_id: str | None = None


class ImagePresentation(BaseModel):
    """Outcome of displayImage."""

    success: bool
    image_set_id: str | None = None
    title: str = ""
    images: list[str] = Field(default_factory=list)
    layout: ImageLayout = ImageLayout.SINGLE
    error: ExamError | None = None


class TurnPlan(BaseModel):
    """What the agent runtime should do with one candidate message."""

    blocked: bool
    redirect_message: str | None = None
    reason: str | None = None
    directive: str | None = None
    system_prompt: str | None = None


class EndResult(BaseModel):
    """Final snapshot of an ended attempt."""

    session: ExamSession
    ended_early: bool
    evaluator_instruction: str
