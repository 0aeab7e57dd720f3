"""
API Dependencies

Provides dependency injection for API endpoints.
The orchestrator is created in the application lifespan and kept on
app.state, so tests can build an app with their own orchestrator.
"""

from fastapi import Request

from src.config.exam_configs import ExamConfigRegistry
from src.config.settings import Settings, get_settings
from src.core.exam_orchestrator import ExamOrchestrator


def build_orchestrator(settings: Settings | None = None) -> ExamOrchestrator:
    """Load exam configurations and build the orchestrator."""
    settings = settings or get_settings()
    configs = ExamConfigRegistry.from_file(settings.exam_configs_path)
    return ExamOrchestrator(configs, settings=settings)


def get_orchestrator(request: Request) -> ExamOrchestrator:
    """Get the orchestrator owned by the running application."""
    return request.app.state.orchestrator
