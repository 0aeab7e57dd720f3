"""
API layer for AeroExam

Contains FastAPI routers for:
- Exam session lifecycle and turn planning
- Agent tool calls
- Exam type metadata
"""

from src.api.router import api_router

__all__ = ["api_router"]
