"""
Exam session and state models for AeroExam
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from src.models.results import ExamError, SourceType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExamLifecycle(str, Enum):
    """Exam session lifecycle states."""

    NOT_STARTED = "not_started"  # Exam type not chosen yet
    READY = "ready"              # Exam type chosen, waiting for start confirmation
    IN_PROGRESS = "in_progress"  # Sections running (also after complete_exam)
    COMPLETED = "completed"      # Attempt explicitly ended


class SectionAction(str, Enum):
    """Actions accepted by the session state machine."""

    # Progression (agent tool calls and UI)
    START = "start"
    COMPLETE_CURRENT = "complete_current"
    ADVANCE_TO_NEXT = "advance_to_next"
    COMPLETE_AND_ADVANCE = "complete_and_advance"
    ADVANCE_TO_SECTION = "advance_to_section"
    COMPLETE_EXAM = "complete_exam"

    # Admin overrides
    JUMP_TO_SECTION = "jump_to_section"
    JUMP_TO_SUBSECTION = "jump_to_subsection"
    COMPLETE_ALL = "complete_all"
    RESET_PROGRESS = "reset_progress"

    @property
    def is_admin(self) -> bool:
        return self in {
            SectionAction.JUMP_TO_SECTION,
            SectionAction.JUMP_TO_SUBSECTION,
            SectionAction.COMPLETE_ALL,
            SectionAction.RESET_PROGRESS,
        }

    @property
    def is_bulk(self) -> bool:
        return self in {SectionAction.COMPLETE_ALL, SectionAction.RESET_PROGRESS}


class ActionSource(str, Enum):
    """Who issued an action."""

    AGENT = "agent"
    UI = "ui"
    ADMIN = "admin"


class ActionContext(BaseModel):
    """Caller identity and capabilities for one action."""

    source: ActionSource = ActionSource.AGENT
    is_admin: bool = False
    reason: str | None = None


class PendingAction(BaseModel):
    """Last accepted control action, used for dedup and cooldown."""

    action: SectionAction
    target: str | None = None
    timestamp: float


class PresentedAudio(BaseModel):
    """Effect of the last accepted playAudio call."""

    subsection: str | None = None
    recording_number: int
    recording_id: str
    source_type: SourceType
    is_exam_recording: bool = True
    presented_at: datetime = Field(default_factory=utcnow)


class PresentedImage(BaseModel):
    """Effect of the last accepted displayImage call."""

    image_set_id: str
    title: str
    subsection: str | None = None
    image_count: int = Field(..., ge=1, le=3)
    presented_at: datetime = Field(default_factory=utcnow)


class ExamSession(BaseModel):
    """Complete exam session state."""

    # Identification
    session_id: str = Field(default_factory=lambda: str(uuid4()))
    exam_type: str | None = None
    exam_name: str | None = None

    # Lifecycle
    lifecycle: ExamLifecycle = Field(default=ExamLifecycle.NOT_STARTED)

    # Timing
    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_minutes: int | None = None

    # Position
    total_sections: int = 0
    current_section: int | None = None
    current_subsection: str | None = None

    # Progress
    completed_sections: set[int] = Field(default_factory=set)
    completed_subsections: set[str] = Field(default_factory=set)
    visited_sections: set[int] = Field(default_factory=set)
    progress_percent: float = Field(default=0.0, ge=0, le=100)

    # Set once complete_exam is accepted
    exam_completed: bool = False

    # Presentation effects visible to routing/transcript lookups
    last_presented_audio: PresentedAudio | None = None
    last_presented_image: PresentedImage | None = None

    def recompute_progress(self) -> None:
        """Progress is the share of completed sections."""
        if self.total_sections <= 0:
            self.progress_percent = 0.0
            return
        share = len(self.completed_sections) / self.total_sections * 100
        self.progress_percent = round(min(max(share, 0.0), 100.0), 1)

    def position_label(self) -> str:
        """Human-readable position, e.g. 'Section 2, Subsection 2II'."""
        if self.current_subsection:
            return f"Section {self.current_section}, Subsection {self.current_subsection}"
        return f"Section {self.current_section if self.current_section is not None else 'current'}"

    def get_elapsed_minutes(self) -> float:
        if not self.started_at:
            return 0.0
        end = self.completed_at or utcnow()
        return (end - self.started_at).total_seconds() / 60

    def get_time_remaining(self) -> float | None:
        """Minutes left on the exam clock, floored at zero."""
        if not self.started_at or not self.duration_minutes:
            return None
        return max(self.duration_minutes - self.get_elapsed_minutes(), 0.0)


class ActionResult(BaseModel):
    """Outcome of SessionStateMachine.apply."""

    action: SectionAction | str
    target: str | None = None
    applied: bool
    error: ExamError | None = None
    message: str = ""

    # Position after the action
    current_section: int | None = None
    current_subsection: str | None = None
