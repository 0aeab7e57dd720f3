"""
AI prompt templates for AeroExam

Contains structured prompts for:
- The per-turn examiner system prompt
- The end-of-exam evaluator instruction
"""

from src.prompts.examiner import ExaminerPrompts

__all__ = ["ExaminerPrompts"]
