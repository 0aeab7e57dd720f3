"""
API endpoint modules for AeroExam
"""

from src.api.endpoints import exam, tools, metadata

__all__ = ["exam", "tools", "metadata"]
