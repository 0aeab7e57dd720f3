"""
AeroExam - Exam session orchestration for aviation English speaking assessments

Drives multi-section exams conducted through a tool-calling examiner agent,
with deterministic section progression, audio routing and topic guarding.
"""

__version__ = "0.1.0"
__author__ = "AeroExam Team"
