"""
Metadata API endpoints

Provides reference data for:
- Exam types and their section layout
- Playback policies
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.api.dependencies import get_orchestrator
from src.core.exam_orchestrator import ExamOrchestrator
from src.models.exam_config import ExamTypeConfig, PlaybackPolicy, RecordingClass

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class SubsectionInfo(BaseModel):
    """Information about a subsection."""
    id: str
    name: str
    task_type: str
    recordings: int


class SectionInfo(BaseModel):
    """Information about a section."""
    number: int
    name: str
    duration_minutes: int | None
    subsections: list[SubsectionInfo]
    speaking_prompts: int


class ExamTypeInfo(BaseModel):
    """Information about an exam type."""
    id: str
    exam_type: str
    name: str
    duration_minutes: int
    total_sections: int
    sections: list[SectionInfo]


def _exam_type_info(config: ExamTypeConfig) -> ExamTypeInfo:
    sections = []
    for number in sorted(config.sections):
        section = config.sections[number]
        sections.append(SectionInfo(
            number=number,
            name=section.name,
            duration_minutes=section.duration_minutes,
            subsections=[
                SubsectionInfo(
                    id=key,
                    name=section.subsections[key].name,
                    task_type=section.subsections[key].task_type.value,
                    recordings=len(section.subsections[key].audio_files),
                )
                for key in section.subsection_keys()
            ],
            speaking_prompts=len(section.speaking_prompts),
        ))

    return ExamTypeInfo(
        id=config.id,
        exam_type=config.exam_type,
        name=config.name,
        duration_minutes=config.duration_minutes,
        total_sections=config.total_sections,
        sections=sections,
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/exam-types")
async def get_exam_types(
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> list[ExamTypeInfo]:
    """Get all configured exam types."""
    return [_exam_type_info(config) for config in orchestrator.configs.list()]


@router.get("/exam-types/{exam_type_id}/playback-policy")
async def get_playback_policies(
    exam_type_id: str,
    orchestrator: ExamOrchestrator = Depends(get_orchestrator),
) -> dict[str, PlaybackPolicy]:
    """Get the effective playback policy of each recording class."""
    config = orchestrator.configs.get(exam_type_id)
    if config is None:
        raise HTTPException(status_code=404, detail=f"Unknown exam type: {exam_type_id}")

    return {
        recording_class.value: orchestrator.playback.resolve(config.exam_type, recording_class, config)
        for recording_class in RecordingClass
    }
