"""
Topic Guard - Blocks off-topic candidate input during an active exam.

Checks run allow-list first: control messages, the start trigger,
completion requests, navigation and task-relevant answers always pass.
Only then are off-topic signals considered.
"""

import logging
import re

from src.core.text_predicates import (
    has_completion_intent,
    has_off_topic_intent,
    is_code_readback,
    is_control_message,
    is_low_signal_reply,
    is_navigation_command,
    is_small_talk,
    is_start_trigger,
    mentions_aviation_vocabulary,
    normalize_text,
)
from src.models.results import GuardDecision

logger = logging.getLogger(__name__)


# Subsections whose answers are codes read back as digits or number words
CODE_READBACK_SUBSECTIONS = {"1P1"}

_CODE_TERMS = re.compile(r"\b(transponder|code|squawk)\b", re.IGNORECASE)

SUBSECTION_KEYWORDS: dict[str, re.Pattern] = {
    "1P3": re.compile(
        r"\b(smoke|problem|request|requested|priority|return|landing|atc|heading|climb|vector"
        r"|emergency|support)\b",
        re.IGNORECASE,
    ),
    "2I": re.compile(
        r"\b(falcon|startup|start-?up|taxi|hold|position|tower|request|fuel|souls|board|stand|gate"
        r"|technical|issue|approved|cleared|roger|copy)\b",
        re.IGNORECASE,
    ),
    "2II": re.compile(
        r"\b(image|situation|risk|ambiguity|blocked|communication|priorit(?:y|ize)|safety|instruction"
        r"|readback|coordination|clarification)\b",
        re.IGNORECASE,
    ),
}

SUBSECTION_NUDGES: dict[str, str] = {
    "1P1": "Please provide the requested short recognition answer.",
    "1P3": "Please answer the listening comprehension question for this part.",
    "2I": "Please respond as the controller in the role-play task.",
    "2II": "Please answer the current image-discussion question.",
}

DEFAULT_NUDGE = "Please continue with the current exam question."


class TopicGuard:
    """
    Decides whether a candidate utterance should reach the examiner.

    Stateless; one instance can serve every session.
    """

    def __init__(
        self,
        keywords: dict[str, re.Pattern] | None = None,
        nudges: dict[str, str] | None = None,
    ):
        self.keywords = SUBSECTION_KEYWORDS if keywords is None else keywords
        self.nudges = SUBSECTION_NUDGES if nudges is None else nudges

    def evaluate(
        self,
        exam_type: str | None,
        section: int | str | None,
        subsection: str | None,
        text: str | None,
    ) -> GuardDecision:
        """
        Evaluate one candidate utterance.

        Args:
            exam_type: Exam type of the session (used in the block reason)
            section: Current section number, None outside an exam
            subsection: Current subsection id, if any
            text: Raw candidate text

        Returns:
            GuardDecision, blocked only on a positive off-topic signal
        """
        if section is None or str(section).strip() == "":
            return GuardDecision(blocked=False)

        normalized = normalize_text(text).lower()
        if not normalized:
            return GuardDecision(blocked=False)

        if self._is_allowed(normalized, subsection):
            return GuardDecision(blocked=False)

        signal = self._off_topic_signal(normalized)
        if signal is None:
            return GuardDecision(blocked=False)

        logger.info(
            f"Blocked {signal} in {self.describe_position(section, subsection)}: {normalized[:80]!r}"
        )
        return GuardDecision(
            blocked=True,
            redirect_message=self.build_redirect(section, subsection),
            reason=f"off-topic input ({signal}) blocked for {exam_type or 'exam'}",
        )

    # =========================================================================
    # Allow-list
    # =========================================================================

    def _is_allowed(self, normalized: str, subsection: str | None) -> bool:
        return (
            is_control_message(normalized)
            or is_start_trigger(normalized)
            or has_completion_intent(normalized)
            or is_navigation_command(normalized)
            or self.is_relevant(normalized, subsection)
        )

    def is_relevant(self, text: str, subsection: str | None) -> bool:
        """Whether text plausibly answers the current subsection's task."""
        key = subsection.strip().upper() if subsection else ""

        if key in CODE_READBACK_SUBSECTIONS:
            return is_code_readback(text) or bool(_CODE_TERMS.search(text))

        if not key:
            return mentions_aviation_vocabulary(text)

        pattern = self.keywords.get(key)
        if pattern is not None:
            return bool(pattern.search(text))

        return mentions_aviation_vocabulary(text)

    # =========================================================================
    # Off-topic signals
    # =========================================================================

    @staticmethod
    def _off_topic_signal(normalized: str) -> str | None:
        if has_off_topic_intent(normalized):
            return "off-topic request"
        if is_small_talk(normalized):
            return "small talk"
        if is_low_signal_reply(normalized):
            return "off-task reply"
        return None

    # =========================================================================
    # Redirect
    # =========================================================================

    @staticmethod
    def describe_position(section: int | str, subsection: str | None) -> str:
        if subsection:
            return f"Section {section}, Subsection {subsection}"
        return f"Section {section}"

    def build_redirect(self, section: int | str, subsection: str | None) -> str:
        key = subsection.strip().upper() if subsection else ""
        nudge = self.nudges.get(key, DEFAULT_NUDGE)
        return (
            f"We are currently in {self.describe_position(section, subsection)}. "
            f"Keep your response focused on the exam task. {nudge}"
        )
