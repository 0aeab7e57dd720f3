"""
Exam type configuration models for AeroExam

An ExamTypeConfig is loaded once per process and treated as immutable for
the lifetime of every session that references it.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


_SECTION_PREFIX = re.compile(r"^\s*(\d+)")


class TaskType(str, Enum):
    """Kind of task a subsection carries."""

    LISTENING = "listening"              # Recorded audio + comprehension questions
    ROLE_PLAY = "role_play"              # Scripted speaking prompts from section config
    IMAGE_DISCUSSION = "image_discussion"  # Visual only, no playable audio
    INTERVIEW = "interview"              # Free conversation


class RecordingClass(str, Enum):
    """Playback policy classes."""

    EXAM_RECORDING = "exam_recording"
    GENERAL_AUDIO = "general_audio"


class PlaybackPolicy(BaseModel):
    """Replay/seek/pause rules applied by the audio player."""

    model_config = ConfigDict(frozen=True)

    allow_seek: bool = False
    allow_pause: bool = False
    max_replays: int = Field(default=0, ge=0, description="0 = no replay")

    @classmethod
    def strictest(cls) -> "PlaybackPolicy":
        return cls(allow_seek=False, allow_pause=False, max_replays=0)


class AudioFileConfig(BaseModel):
    """A numbered recording with its grading-only answer key."""

    model_config = ConfigDict(frozen=True)

    recording: int | None = Field(
        default=None, ge=1,
        description="Explicit recording number; positional index is used when absent"
    )
    title: str = ""
    description: str = ""

    # Grading only, never shown to the candidate
    transcript: str | None = None
    correct_answers: Any = None


class SpeakingPromptConfig(BaseModel):
    """A scripted role-play prompt driven from section-level config."""

    model_config = ConfigDict(frozen=True)

    prompt: int | None = Field(default=None, ge=1)
    title: str = ""
    script: str = ""


class SubsectionConfig(BaseModel):
    """A subsection of an exam section."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    task_type: TaskType = TaskType.LISTENING
    audio_files: list[AudioFileConfig] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)

    @property
    def has_audio_list(self) -> bool:
        return len(self.audio_files) > 0


class SectionConfig(BaseModel):
    """A top-level exam section."""

    model_config = ConfigDict(frozen=True)

    name: str
    duration_minutes: int | None = Field(default=None, ge=1)
    subsections: dict[str, SubsectionConfig] = Field(default_factory=dict)
    speaking_prompts: list[SpeakingPromptConfig] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)

    def subsection_keys(self) -> list[str]:
        """Subsection keys in progression order."""
        return sorted(self.subsections.keys())

    def first_subsection(self) -> str | None:
        keys = self.subsection_keys()
        return keys[0] if keys else None


class ExamTypeConfig(BaseModel):
    """Complete, immutable configuration of one exam type."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Configuration id, e.g. 'elpac-demo'")
    exam_type: str = Field(..., description="Strategy key, e.g. 'elpac' or 'tea'")
    name: str
    duration_minutes: int = Field(default=180, ge=1)

    sections: dict[int, SectionConfig]
    default_section: int = 1
    default_subsection: str | None = None

    playback_policies: dict[RecordingClass, PlaybackPolicy] = Field(default_factory=dict)

    # Exact sentence the examiner must end the exam with
    closing_sentence: str | None = None

    @model_validator(mode="after")
    def _check_layout(self) -> "ExamTypeConfig":
        if not self.sections:
            raise ValueError(f"Exam type {self.id} defines no sections")

        expected = list(range(1, len(self.sections) + 1))
        if sorted(self.sections.keys()) != expected:
            raise ValueError(
                f"Exam type {self.id} sections must be numbered {expected}, "
                f"got {sorted(self.sections.keys())}"
            )

        if self.default_section not in self.sections:
            raise ValueError(
                f"Exam type {self.id} default section {self.default_section} is not configured"
            )

        if self.default_subsection and self.locate_subsection(self.default_subsection) is None:
            raise ValueError(
                f"Exam type {self.id} default subsection {self.default_subsection} is not configured"
            )
        return self

    @property
    def total_sections(self) -> int:
        return len(self.sections)

    def get_section(self, number: int | None) -> SectionConfig | None:
        if number is None:
            return None
        return self.sections.get(number)

    @staticmethod
    def section_number_of(subsection: str) -> int | None:
        """Leading section digits of a subsection id ("2II" -> 2)."""
        match = _SECTION_PREFIX.match(subsection or "")
        return int(match.group(1)) if match else None

    def locate_subsection(
        self,
        subsection: str,
    ) -> tuple[int, str, SubsectionConfig] | None:
        """
        Find a subsection by id.

        Returns (section number, canonical key, config) or None. Matching is
        exact first, then case-insensitive.
        """
        section_number = self.section_number_of(subsection)
        section = self.get_section(section_number)
        if section is None:
            return None

        if subsection in section.subsections:
            return section_number, subsection, section.subsections[subsection]

        wanted = subsection.strip().upper()
        for key, config in section.subsections.items():
            if key.upper() == wanted:
                return section_number, key, config
        return None
