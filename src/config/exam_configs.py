"""
Exam type configuration loading.

Configurations are read once at startup from a JSON file and kept in an
ExamConfigRegistry. The core components only ever see validated, frozen
ExamTypeConfig instances.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from src.models.exam_config import ExamTypeConfig

logger = logging.getLogger(__name__)


class ExamConfigError(Exception):
    """Raised when exam configuration is missing or malformed."""
    pass


class ExamConfigRegistry:
    """Exam type configurations keyed by configuration id."""

    def __init__(self, configs: Iterable[ExamTypeConfig] = ()):
        self._configs: dict[str, ExamTypeConfig] = {}
        for config in configs:
            self.register(config)

    def register(self, config: ExamTypeConfig) -> None:
        if config.id in self._configs:
            raise ExamConfigError(f"Duplicate exam configuration id: {config.id}")
        self._configs[config.id] = config

    def get(self, key: str) -> ExamTypeConfig | None:
        """Look up by configuration id, falling back to the first config of that exam type."""
        config = self._configs.get(key)
        if config is not None:
            return config
        for candidate in self._configs.values():
            if candidate.exam_type == key:
                return candidate
        return None

    def list(self) -> list[ExamTypeConfig]:
        return list(self._configs.values())

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._configs)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExamConfigRegistry":
        entries = data.get("exam_types")
        if not isinstance(entries, list):
            raise ExamConfigError("Exam configuration must contain an 'exam_types' list")

        configs = []
        for index, entry in enumerate(entries):
            try:
                configs.append(ExamTypeConfig.model_validate(entry))
            except ValidationError as e:
                entry_id = entry.get("id", index) if isinstance(entry, dict) else index
                raise ExamConfigError(f"Invalid exam configuration {entry_id}: {e}") from e
        return cls(configs)

    @classmethod
    def from_file(cls, path: str | Path) -> "ExamConfigRegistry":
        path = Path(path)
        if not path.is_file():
            raise ExamConfigError(f"Exam configuration file not found: {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ExamConfigError(f"Exam configuration file {path} is not valid JSON: {e}") from e

        registry = cls.from_dict(data)
        logger.info(f"Loaded {len(registry)} exam configuration(s) from {path}")
        return registry
