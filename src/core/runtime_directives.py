"""
Runtime Directives - Per-turn instructions spliced into the examiner prompt.

Rules are independent and keyed by exam type. Every matching rule
contributes its lines, in the fixed order the rules are declared, under a
single header. Exam types without rules never get a directive block.
"""

from dataclasses import dataclass
from typing import Callable

from src.core.text_predicates import (
    has_completion_intent,
    is_final_listening_answer,
    is_substantive_listening_answer,
)


DIRECTIVE_HEADER = "RUNTIME HIGH-PRIORITY DIRECTIVES:"

# Opening of Section 2 Task One, output word for word after the last 1P3 answer
ELPAC_SECTION_TWO_KICKOFF = (
    "Let's move on to the next section, which involves a role-play scenario. "
    "You will act as the controller. I will provide the pilot's lines.",
    "You are the aerodrome controller during a busy departure period. A crew requests "
    "start-up and taxi. During the exchange, conditions deteriorate and a second crew "
    "reports a potential technical issue. Manage the interaction clearly using ICAO "
    "phraseology where possible and plain English where needed.",
    'Pilot: "Tower, this is ABC123 requesting start-up and taxi."',
)


@dataclass(frozen=True)
class DirectiveRule:
    """One independent directive rule."""

    name: str
    applies: Callable[[str, str, str], bool]  # (section, subsection, utterance)
    lines: tuple[str, ...]
    closing_line: str | None = None  # Needs the exam's closing sentence, skipped without one

    def render(self, closing_sentence: str | None = None) -> list[str]:
        lines = list(self.lines)
        if self.closing_line and closing_sentence:
            lines.append(self.closing_line.format(closing_sentence=closing_sentence))
        return lines


ELPAC_RULES: tuple[DirectiveRule, ...] = (
    DirectiveRule(
        name="completion_request",
        applies=lambda section, subsection, text: (
            section == "2" and has_completion_intent(text)
        ),
        lines=(
            "Candidate explicitly requested completion in this turn. Immediately call "
            'examSectionControl(action: "complete_exam", reason: "candidate requested completion") '
            "and provide the final evaluation now.",
            "Do not ask additional task questions after this completion request.",
            "Your same assistant turn must include spoken completion text with at least two "
            "complete sentences.",
        ),
        closing_line='End the spoken completion text exactly with: "{closing_sentence}"',
    ),
    DirectiveRule(
        name="listening_answer_received",
        applies=lambda section, subsection, text: (
            section == "1"
            and subsection in ("1P1", "1P3")
            and is_substantive_listening_answer(text)
        ),
        lines=(
            "Candidate already provided a substantive listening answer. "
            'Do not output "Press Play to listen" in this turn.',
            "Briefly acknowledge the answer and continue to the next required question "
            "or section transition.",
        ),
    ),
    DirectiveRule(
        name="section_two_kickoff",
        applies=lambda section, subsection, text: (
            section == "1" and subsection == "1P3" and is_final_listening_answer(text)
        ),
        lines=(
            "After acknowledging this final 1P3 answer, immediately transition to Section 2 Task One.",
            "MANDATORY OUTPUT FORMAT FOR THIS TURN: output the following kickoff block "
            "verbatim and do not paraphrase it.",
            "Do not shorten, restyle, or replace any sentence in this kickoff block.",
        ) + ELPAC_SECTION_TWO_KICKOFF,
    ),
    DirectiveRule(
        name="role_play_voice",
        applies=lambda section, subsection, text: section == "2" and subsection == "2I",
        lines=(
            "In subsection 2I, speak directly as the pilot/interlocutor without line labels.",
            'Do not prefix any utterance with "Pilot:" or "Controller:".',
            'Never include the literal token "Pilot:" anywhere in a 2I examiner turn.',
        ),
    ),
    DirectiveRule(
        name="image_discussion_pacing",
        applies=lambda section, subsection, text: section == "2" and subsection == "2II",
        lines=(
            "In subsection 2II, ask exactly one prompt/question per examiner turn.",
            "Do not combine setup text with the first question in the same sentence.",
            'Never output both "Please describe what you see." and '
            '"Describe the operational situation you see." in the same turn.',
        ),
    ),
)

DIRECTIVE_RULES: dict[str, tuple[DirectiveRule, ...]] = {
    "elpac": ELPAC_RULES,
}


class RuntimeDirectiveBuilder:
    """Builds the runtime directive block for one candidate turn."""

    def __init__(self, rules: dict[str, tuple[DirectiveRule, ...]] | None = None):
        self.rules = DIRECTIVE_RULES if rules is None else rules

    def matching_rules(
        self,
        exam_type: str | None,
        section: int | str | None,
        subsection: str | None,
        utterance: str | None,
    ) -> list[DirectiveRule]:
        rules = self.rules.get((exam_type or "").lower(), ())
        section_key = "" if section is None else str(section).strip()
        subsection_key = (subsection or "").strip().upper()
        text = utterance or ""
        return [rule for rule in rules if rule.applies(section_key, subsection_key, text)]

    def build(
        self,
        exam_type: str | None,
        section: int | str | None,
        subsection: str | None,
        utterance: str | None,
        closing_sentence: str | None = None,
    ) -> str | None:
        """
        Directive block for this turn, or None when no rule applies.

        Pure: the same inputs always produce the same output.

        Args:
            closing_sentence: The exam's configured closing sentence, quoted
                in the completion directive
        """
        directives = [
            line
            for rule in self.matching_rules(exam_type, section, subsection, utterance)
            for line in rule.render(closing_sentence)
        ]
        if not directives:
            return None
        return f"{DIRECTIVE_HEADER}\n- " + "\n- ".join(directives)


def build_runtime_directive(
    exam_type: str | None,
    section: int | str | None,
    subsection: str | None,
    utterance: str | None,
    closing_sentence: str | None = None,
) -> str | None:
    return RuntimeDirectiveBuilder().build(exam_type, section, subsection, utterance, closing_sentence)
