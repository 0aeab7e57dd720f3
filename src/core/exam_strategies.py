"""
Per-exam-type routing and transcript strategies.

Each exam type lays out its audio differently (subsection listening lists,
paper-level speaking prompts, URL naming). Adding an exam type means
registering a strategy here, not editing the resolvers.
"""

import logging
from typing import Sequence, TypeVar

from src.models.exam_config import (
    AudioFileConfig,
    ExamTypeConfig,
    SectionConfig,
    SpeakingPromptConfig,
    SubsectionConfig,
    TaskType,
)
from src.models.results import (
    AudioDescriptor,
    AudioRoutingResult,
    ErrorKind,
    SourceType,
    TranscriptRecord,
    TranscriptResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", AudioFileConfig, SpeakingPromptConfig)


def _number_of(item: AudioFileConfig | SpeakingPromptConfig) -> int | None:
    if isinstance(item, AudioFileConfig):
        return item.recording
    return item.prompt


def match_numbered(items: Sequence[T], number: int) -> tuple[int, T] | None:
    """
    Find an item by its explicit number, falling back to positional index.

    Returns (effective number, item), or None when the number matches
    neither an explicit field nor a position in 1..len(items).
    """
    for item in items:
        if _number_of(item) == number:
            return number, item

    if 1 <= number <= len(items):
        item = items[number - 1]
        return _number_of(item) or number, item

    return None


class SubsectionAudioStrategy:
    """
    Default strategy: listening recordings live in subsection audio lists,
    role-play prompts live in section-level speaking prompt lists.

    Used as-is for TEA and for any exam type without a dedicated strategy.
    """

    def __init__(self, exam_type: str):
        self.exam_type = exam_type

    # -------------------------------------------------------------------------
    # Naming hooks
    # -------------------------------------------------------------------------

    def api_section(self, section_number: int, subsection_key: str) -> str:
        return subsection_key.lower()

    def prompt_api_section(self, section_number: int) -> str:
        return str(section_number)

    def audio_src(self, api_section: str, recording_number: int) -> str:
        return f"/api/audio?exam={self.exam_type}&section={api_section}&recording={recording_number}"

    def prompt_src(self, api_section: str, prompt_number: int) -> str:
        return f"/api/audio?exam={self.exam_type}&section={api_section}&prompt={prompt_number}"

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def route(
        self,
        config: ExamTypeConfig,
        subsection: str | None,
        recording_number: int,
    ) -> AudioRoutingResult:
        subsection_id = subsection or config.default_subsection

        if not subsection_id:
            section = config.get_section(config.default_section)
            subsection_id = section.first_subsection()
            if subsection_id is None:
                return self._route_section(config, config.default_section, section, recording_number)

        located = config.locate_subsection(subsection_id)
        if located is None:
            section_number = config.section_number_of(subsection_id)
            section = config.get_section(section_number)
            if section is not None and subsection_id.strip() == str(section_number):
                return self._route_section(config, section_number, section, recording_number)
            return AudioRoutingResult.fail(
                ErrorKind.CONFIGURATION_MISSING,
                f"Subsection {subsection_id} is not configured for {config.name}",
            )

        section_number, key, subsection_config = located
        section = config.get_section(section_number)

        if subsection_config.has_audio_list:
            return self._route_recording(config, section_number, key, subsection_config, recording_number)

        if subsection_config.task_type == TaskType.ROLE_PLAY and section.speaking_prompts:
            return self._route_prompt(section_number, section, recording_number)

        return AudioRoutingResult.fail(
            ErrorKind.UNSUPPORTED_SUBSECTION,
            f"Subsection {key} does not define playable audio",
        )

    def _route_section(
        self,
        config: ExamTypeConfig,
        section_number: int,
        section: SectionConfig,
        recording_number: int,
    ) -> AudioRoutingResult:
        """A bare section id: only section-level speaking prompts are playable."""
        if section.speaking_prompts:
            return self._route_prompt(section_number, section, recording_number)
        return AudioRoutingResult.fail(
            ErrorKind.UNSUPPORTED_SUBSECTION,
            f"Section {section_number} of {config.name} does not define playable audio",
        )

    def _route_recording(
        self,
        config: ExamTypeConfig,
        section_number: int,
        key: str,
        subsection_config: SubsectionConfig,
        recording_number: int,
    ) -> AudioRoutingResult:
        matched = match_numbered(subsection_config.audio_files, recording_number)
        if matched is None:
            return AudioRoutingResult.fail(
                ErrorKind.RECORDING_NOT_FOUND,
                f"Recording {recording_number} not found in subsection {key} "
                f"({len(subsection_config.audio_files)} configured)",
            )

        number, entry = matched
        api_section = self.api_section(section_number, key)
        return AudioRoutingResult.ok(AudioDescriptor(
            source_type=SourceType.SUBSECTION_AUDIO,
            exam_type=self.exam_type,
            section_key=str(section_number),
            api_section=api_section,
            recording_number=number,
            title=entry.title,
            src=self.audio_src(api_section, number),
        ))

    def _route_prompt(
        self,
        section_number: int,
        section: SectionConfig,
        prompt_number: int,
    ) -> AudioRoutingResult:
        matched = match_numbered(section.speaking_prompts, prompt_number)
        if matched is None:
            return AudioRoutingResult.fail(
                ErrorKind.RECORDING_NOT_FOUND,
                f"Speaking prompt {prompt_number} not found in section {section_number} "
                f"({len(section.speaking_prompts)} configured)",
            )

        number, prompt = matched
        api_section = self.prompt_api_section(section_number)
        return AudioRoutingResult.ok(AudioDescriptor(
            source_type=SourceType.SPEAKING_PROMPT,
            exam_type=self.exam_type,
            section_key=str(section_number),
            api_section=api_section,
            recording_number=number,
            title=prompt.title,
            src=self.prompt_src(api_section, number),
        ))

    # -------------------------------------------------------------------------
    # Transcript lookup
    # -------------------------------------------------------------------------

    def find_transcript(
        self,
        config: ExamTypeConfig,
        subsection: str,
        recording_number: int,
    ) -> TranscriptResult:
        located = config.locate_subsection(subsection)
        if located is None:
            section = config.get_section(config.section_number_of(subsection))
            if section is not None and section.speaking_prompts:
                return TranscriptResult.fail(
                    ErrorKind.UNSUPPORTED_SUBSECTION,
                    f"Transcript lookup is not available for speaking prompts in {subsection}",
                )
            return TranscriptResult.fail(
                ErrorKind.CONFIGURATION_MISSING,
                f"Audio files not found for subsection {subsection}",
            )

        _, key, subsection_config = located

        if not subsection_config.has_audio_list:
            if subsection_config.task_type == TaskType.ROLE_PLAY:
                return TranscriptResult.fail(
                    ErrorKind.UNSUPPORTED_SUBSECTION,
                    f"Transcript lookup is not available for role-play subsection {key}",
                )
            return TranscriptResult.fail(
                ErrorKind.UNSUPPORTED_SUBSECTION,
                f"Subsection {key} has no recordings",
            )

        matched = match_numbered(subsection_config.audio_files, recording_number)
        if matched is None:
            return TranscriptResult.fail(
                ErrorKind.RECORDING_NOT_FOUND,
                f"Recording {recording_number} not found in subsection {key}",
            )

        number, entry = matched
        if not entry.transcript:
            return TranscriptResult.fail(
                ErrorKind.CONFIGURATION_MISSING,
                f"Transcript not available for {key} recording {number}",
            )

        return TranscriptResult.ok(TranscriptRecord(
            subsection=key,
            recording_number=number,
            title=entry.title,
            description=entry.description,
            transcript=entry.transcript,
            correct_answers=entry.correct_answers,
        ))


class PaperStrategy(SubsectionAudioStrategy):
    """
    Paper-based exams (ELPAC): Paper 1 listening parts and Paper 2 oral
    interaction prompts, served under paper-prefixed section names.
    """

    def api_section(self, section_number: int, subsection_key: str) -> str:
        return f"paper{section_number}-{subsection_key}".lower()

    def prompt_api_section(self, section_number: int) -> str:
        return f"paper{section_number}"


STRATEGIES: dict[str, SubsectionAudioStrategy] = {
    "tea": SubsectionAudioStrategy("tea"),
    "elpac": PaperStrategy("elpac"),
}


def get_strategy(exam_type: str) -> SubsectionAudioStrategy:
    """Strategy for an exam type; unknown types get the default layout."""
    strategy = STRATEGIES.get(exam_type.lower())
    if strategy is None:
        logger.debug(f"No dedicated strategy for exam type {exam_type}, using subsection layout")
        strategy = SubsectionAudioStrategy(exam_type.lower())
    return strategy
