"""
Shared pytest fixtures for the AeroExam test suite.

Exam configurations are built in code (plus the bundled ELPAC demo config),
and every time-dependent component gets a FakeClock so timing windows can be
stepped through deterministically.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.router import api_router
from src.config.exam_configs import ExamConfigRegistry
from src.config.settings import DEFAULT_EXAM_CONFIGS_PATH, Settings
from src.core.exam_orchestrator import ExamOrchestrator
from src.core.session_state_machine import SessionStateMachine
from src.models.exam_config import ExamTypeConfig


ADMIN_TOKEN = "test-admin-token"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def make_three_section_config(**overrides) -> ExamTypeConfig:
    """Section 1 and 3 have no subsections; section 2 has 2A and 2B with two recordings each."""
    data = {
        "id": "three-section",
        "exam_type": "tea",
        "name": "Three Section Test",
        "duration_minutes": 30,
        "default_section": 1,
        "sections": {
            1: {"name": "Interview"},
            2: {
                "name": "Comprehension",
                "subsections": {
                    "2A": {
                        "name": "Non-routine",
                        "task_type": "listening",
                        "audio_files": [
                            {"recording": 1, "title": "Bird strike", "transcript": "Bird strike on climb out.",
                             "correct_answers": ["bird strike"]},
                            {"recording": 2, "title": "Sick passenger", "transcript": "Passenger with chest pain.",
                             "correct_answers": ["chest pain"]},
                        ],
                    },
                    "2B": {
                        "name": "Routine",
                        "task_type": "listening",
                        "audio_files": [
                            {"title": "Runway change"},
                            {"title": "Holding"},
                        ],
                    },
                },
            },
            3: {
                "name": "Discussion",
                "subsections": {},
            },
        },
    }
    data.update(overrides)
    return ExamTypeConfig.model_validate(data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(environment="development", admin_token=ADMIN_TOKEN)


@pytest.fixture
def production_settings():
    return Settings(environment="production", admin_token=ADMIN_TOKEN)


@pytest.fixture
def three_section_config():
    return make_three_section_config()


@pytest.fixture
def bundled_registry():
    return ExamConfigRegistry.from_file(DEFAULT_EXAM_CONFIGS_PATH)


@pytest.fixture
def elpac_config(bundled_registry):
    return bundled_registry.get("elpac-demo")


@pytest.fixture
def tea_config(bundled_registry):
    return bundled_registry.get("tea")


@pytest.fixture
def machine_factory(settings, clock):
    """Build a state machine sharing the test settings and clock."""
    def _make(config: ExamTypeConfig, **kwargs) -> SessionStateMachine:
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("clock", clock)
        return SessionStateMachine(config, **kwargs)
    return _make


@pytest.fixture
def started_machine(machine_factory, three_section_config):
    machine = machine_factory(three_section_config)
    machine.prepare()
    machine.apply("start")
    return machine


@pytest.fixture
def orchestrator(bundled_registry, settings, clock):
    return ExamOrchestrator(bundled_registry, settings=settings, clock=clock)


@pytest.fixture
def client(orchestrator):
    app = FastAPI()
    app.include_router(api_router, prefix="/api")
    app.state.orchestrator = orchestrator
    return TestClient(app)
