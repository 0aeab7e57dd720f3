"""
Examiner Prompt Templates

Builds the text the core hands to the conversational agent:
- the per-turn system prompt fragment (position context + runtime directives)
- the canonical start-evaluation trigger
- the end-of-exam evaluator instruction
"""

from src.models.exam_config import ExamTypeConfig
from src.models.session import ExamSession


class ExaminerPrompts:
    """
    Prompt fragments for the AI examiner.

    Key principles:
    - The examiner never reads transcripts or answer keys aloud
    - One task at a time, in the configured order
    - Section changes only through the section control tool
    """

    SYSTEM_CONTEXT = """You are a certified aviation English examiner running a timed speaking assessment.

Rules:
- Follow the exam sections and subsections in order
- Use the examSectionControl tool to move between sections; never announce a move without calling it
- Use playAudio for recordings and displayImage for pictures
- Never reveal transcripts, answer keys or scores during the exam
- Keep every turn short and focused on the current task
"""

    def position_context(self, session: ExamSession, config: ExamTypeConfig) -> str:
        """Where the candidate is right now, for the examiner."""
        lines = [f"EXAM: {config.name}"]

        if session.current_section is None:
            lines.append("POSITION: exam not started")
            return "\n".join(lines)

        section = config.get_section(session.current_section)
        section_name = f" ({section.name})" if section else ""
        lines.append(f"POSITION: {session.position_label()}{section_name}")

        if section and session.current_subsection:
            subsection = section.subsections.get(session.current_subsection)
            if subsection is not None:
                lines.append(f"TASK: {subsection.name or session.current_subsection} [{subsection.task_type.value}]")
                lines.extend(f"- {instruction}" for instruction in subsection.instructions)
        elif section:
            lines.extend(f"- {instruction}" for instruction in section.instructions)

        lines.append(f"PROGRESS: {session.progress_percent:.0f}% of {session.total_sections} sections")

        remaining = session.get_time_remaining()
        if remaining is not None:
            lines.append(f"TIME REMAINING: {remaining:.0f} min")

        if session.exam_completed:
            closing = config.closing_sentence
            lines.append("STATUS: exam completed, deliver the final evaluation only")
            if closing:
                lines.append(f'End your final turn exactly with: "{closing}"')

        return "\n".join(lines)

    def system_fragment(
        self,
        session: ExamSession,
        config: ExamTypeConfig,
        directive: str | None = None,
    ) -> str:
        """Per-turn system prompt fragment; the directive block goes last."""
        parts = [self.SYSTEM_CONTEXT.strip(), self.position_context(session, config)]
        if directive:
            parts.append(directive)
        return "\n\n".join(parts)

    @staticmethod
    def end_exam_instruction(exam_name: str, ended_early: bool) -> str:
        """Instruction sent to the examiner when the candidate ends the attempt."""
        if ended_early:
            return (
                f"[System] The candidate has ended the {exam_name} early, before all parts were completed. "
                "Provide a PARTIAL evaluation based only on observed performance so far. "
                "Clearly label it as INCOMPLETE / ENDED EARLY and do not assume completion of missing parts."
            )
        return (
            f"[System] The candidate has finished the {exam_name}. "
            'If exam completion has not yet been triggered, call examSectionControl(action: "complete_exam"), '
            "then provide the final evaluation based on observed performance."
        )
