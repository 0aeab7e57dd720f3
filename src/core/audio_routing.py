"""
Audio Routing - Maps an exam position and recording number to a playback
source.

Resolution fails closed: a subsection without an audio list or speaking
prompts never falls back to some other file, because the agent correlates
what was played with the transcript it grades against.
"""

import logging

from src.core.exam_strategies import get_strategy
from src.models.exam_config import ExamTypeConfig
from src.models.results import AudioRoutingResult, ErrorKind

logger = logging.getLogger(__name__)


class AudioRoutingResolver:
    """Resolves playAudio requests to AudioDescriptors."""

    def resolve(
        self,
        config: ExamTypeConfig | None,
        subsection: str | None = None,
        recording_number: int | None = None,
    ) -> AudioRoutingResult:
        """
        Resolve a recording.

        Args:
            config: Exam type configuration of the session
            subsection: Subsection id such as "2A" or "1P3" (exam default if omitted)
            recording_number: 1-based recording number (defaults to 1)

        Returns:
            AudioRoutingResult with a descriptor or a typed error
        """
        if config is None:
            return AudioRoutingResult.fail(
                ErrorKind.CONFIGURATION_MISSING,
                "Unable to access exam configuration",
            )

        number = 1 if recording_number is None else recording_number
        if number < 1:
            return AudioRoutingResult.fail(
                ErrorKind.RECORDING_NOT_FOUND,
                f"Recording numbers start at 1, got {number}",
            )

        subsection = subsection.strip() if subsection else None
        result = get_strategy(config.exam_type).route(config, subsection, number)

        if result.success:
            logger.info(
                f"Routed {config.exam_type} {subsection or 'default'} #{number} "
                f"→ {result.descriptor.src}"
            )
        else:
            logger.warning(
                f"Audio routing failed for {config.exam_type} {subsection or 'default'} "
                f"#{number}: {result.error.message}"
            )
        return result
