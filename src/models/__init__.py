"""
Data models and schemas for AeroExam

Contains Pydantic models for:
- Exam type configuration
- Exam sessions and section actions
- Typed results and errors
- Agent tool calls
"""

from src.models.exam_config import (
    ExamTypeConfig,
    SectionConfig,
    SubsectionConfig,
    AudioFileConfig,
    PlaybackPolicy,
    RecordingClass,
    TaskType,
)
from src.models.results import (
    AudioDescriptor,
    AudioRoutingResult,
    ErrorKind,
    ExamError,
    GuardDecision,
    TranscriptRecord,
    TranscriptResult,
)
from src.models.session import (
    ActionContext,
    ActionResult,
    ExamLifecycle,
    ExamSession,
    SectionAction,
)
from src.models.tools import AudioPresentation, ImagePresentation, TurnPlan

__all__ = [
    # Configuration
    "ExamTypeConfig",
    "SectionConfig",
    "SubsectionConfig",
    "AudioFileConfig",
    "PlaybackPolicy",
    "RecordingClass",
    "TaskType",
    # Results
    "AudioDescriptor",
    "AudioRoutingResult",
    "ErrorKind",
    "ExamError",
    "GuardDecision",
    "TranscriptRecord",
    "TranscriptResult",
    # Session
    "ActionContext",
    "ActionResult",
    "ExamLifecycle",
    "ExamSession",
    "SectionAction",
    # Tools
    "AudioPresentation",
    "ImagePresentation",
    "TurnPlan",
]
