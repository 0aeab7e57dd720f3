"""
Exam API endpoints

Handles exam session lifecycle:
- Creating sessions for an exam type
- Starting and ending attempts
- Section actions from the UI and admins
- Per-turn guard and directive planning
"""

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from src.api.dependencies import get_orchestrator
from src.config.exam_configs import ExamConfigError
from src.core.exam_orchestrator import ExamOrchestrator, SessionNotFoundError
from src.models.session import ActionContext, ActionResult, ActionSource, ExamSession
from src.models.tools import EndResult, TurnPlan

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionRequest(BaseModel):
    """Request model for session creation."""
    exam_type: str
    replaces: str | None = None


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    exam_type: str | None
    exam_title: str | None
    lifecycle: str
    current_section: int | None
    current_subsection: str | None
    total_sections: int
    completed_sections: list[int]
    completed_subsections: list[str]
    progress_percent: float
    exam_completed: bool
    time_remaining_minutes: float | None


class ActionRequest(BaseModel):
    """Request model for a section action."""
    action: str
    target: str | None = None
    reason: str | None = None


class TurnRequest(BaseModel):
    """Request model for a candidate turn."""
    text: str


def _status(session: ExamSession) -> SessionStatusResponse:
    return SessionStatusResponse(
        session_id=session.session_id,
        exam_type=session.exam_type,
        exam_title=session.exam_name,
        lifecycle=session.lifecycle.value,
        current_section=session.current_section,
        current_subsection=session.current_subsection,
        total_sections=session.total_sections,
        completed_sections=sorted(session.completed_sections),
        completed_subsections=sorted(session.completed_subsections),
        progress_percent=session.progress_percent,
        exam_completed=session.exam_completed,
        time_remaining_minutes=session.get_time_remaining(),
    )


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/sessions", response_model=SessionStatusResponse)
async def create_session(
    request: CreateSessionRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> SessionStatusResponse:
    """
    Create a new exam session.

    The session is READY; call /start once the candidate confirms.
    """
    try:
        session = orchestrator.create_session(request.exam_type, replaces=request.replaces)
    except ExamConfigError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _status(session)


@router.get("/sessions/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> SessionStatusResponse:
    """Get the current status of an exam session."""
    try:
        session = orchestrator.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    return _status(session)


@router.post("/sessions/{session_id}/start", response_model=ActionResult)
async def start_session(
    session_id: str,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> ActionResult:
    """Start the exam at the configured default position."""
    try:
        result = orchestrator.start_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    if result.error is not None:
        raise HTTPException(status_code=400, detail=result.error.message)
    return result


@router.post("/sessions/{session_id}/end", response_model=EndResult)
async def end_session(
    session_id: str,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> EndResult:
    """
    End the attempt.

    Returns the final snapshot and the instruction for the evaluator
    (partial evaluation when the exam was not completed).
    """
    try:
        return orchestrator.end_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/sessions/{session_id}/actions", response_model=ActionResult)
async def apply_action(
    session_id: str,
    request: ActionRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
    x_admin_token: str | None = Header(default=None),
) -> ActionResult:
    """
    Apply a section action from the UI.

    Rejections come back in the result's error field; admin actions need a
    valid X-Admin-Token header.
    """
    admin_token = orchestrator.settings.admin_token
    is_admin = bool(
        admin_token and x_admin_token and secrets.compare_digest(admin_token, x_admin_token)
    )
    context = ActionContext(
        source=ActionSource.ADMIN if is_admin else ActionSource.UI,
        is_admin=is_admin,
        reason=request.reason,
    )

    try:
        return orchestrator.apply_action(session_id, request.action, request.target, context)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/sessions/{session_id}/turn", response_model=TurnPlan)
async def plan_turn(
    session_id: str,
    request: TurnRequest,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> TurnPlan:
    """Run the topic guard and build the system prompt fragment for one candidate message."""
    try:
        return orchestrator.plan_turn(session_id, request.text)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
