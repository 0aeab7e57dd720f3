"""
Agent tool endpoints

The examiner agent's tool calls land here:
- sectionControl
- playAudio
- displayImage
- getAudioTranscript (grading only, never shown to the candidate)
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.api.dependencies import get_orchestrator
from src.core.exam_orchestrator import ExamOrchestrator, SessionNotFoundError
from src.models.results import TranscriptResult
from src.models.session import ActionResult
from src.models.tools import (
    AudioPresentation,
    DisplayImageRequest,
    ImagePresentation,
    PlayAudioRequest,
)

router = APIRouter()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class SectionControlRequest(BaseModel):
    """sectionControl tool call."""
    action: str
    target_section: str | None = None
    reason: str | None = None


class AudioTranscriptRequest(BaseModel):
    """getAudioTranscript tool call."""
    subsection: str | None = None
    recording_number: int | None = None


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/{session_id}/section-control", response_model=ActionResult)
async def section_control(
    session_id: str,
    request: SectionControlRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> ActionResult:
    try:
        return orchestrator.handle_section_control(
            session_id, request.action, request.target_section, request.reason
        )
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/{session_id}/play-audio", response_model=AudioPresentation)
async def play_audio(
    session_id: str,
    request: PlayAudioRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> AudioPresentation:
    """Resolve a recording and its playback policy."""
    try:
        return orchestrator.present_audio(session_id, request)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/{session_id}/display-image", response_model=ImagePresentation)
async def display_image(
    session_id: str,
    request: DisplayImageRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> ImagePresentation:
    try:
        return orchestrator.present_image(session_id, request)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/{session_id}/audio-transcript", response_model=TranscriptResult)
async def audio_transcript(
    session_id: str,
    request: AudioTranscriptRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> TranscriptResult:
    """
    Transcript and answer key of a recording.

    Defaults to the last presented recording when arguments are omitted.
    """
    try:
        return orchestrator.get_transcript(
            session_id, request.subsection, request.recording_number
        )
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
