"""
Transcript and answer-key lookup for post-hoc grading.

The returned TranscriptRecord is for the agent's internal grading only.
Callers must keep it out of anything the candidate can see.
"""

import logging

from src.core.exam_strategies import get_strategy
from src.models.exam_config import ExamTypeConfig
from src.models.results import ErrorKind, TranscriptResult

logger = logging.getLogger(__name__)


class TranscriptAnswerKeyProvider:
    """Looks up transcripts and correct answers by subsection and recording."""

    def lookup(
        self,
        config: ExamTypeConfig | None,
        subsection: str | None,
        recording_number: int | None,
    ) -> TranscriptResult:
        if config is None:
            return TranscriptResult.fail(
                ErrorKind.CONFIGURATION_MISSING,
                "Unable to access exam configuration",
            )

        if not subsection or not subsection.strip():
            return TranscriptResult.fail(
                ErrorKind.UNSUPPORTED_SUBSECTION,
                "A subsection is required for transcript lookup",
            )

        if recording_number is None or recording_number < 1:
            return TranscriptResult.fail(
                ErrorKind.RECORDING_NOT_FOUND,
                f"Invalid recording number: {recording_number}",
            )

        result = get_strategy(config.exam_type).find_transcript(
            config, subsection.strip(), recording_number
        )
        if not result.success:
            logger.warning(
                f"Transcript lookup failed for {config.exam_type} {subsection} "
                f"#{recording_number}: {result.error.message}"
            )
        return result
