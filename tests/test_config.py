"""
Tests for exam configuration models, the JSON loader and settings.
"""

import json

import pytest

from src.config.exam_configs import ExamConfigError, ExamConfigRegistry
from src.config.settings import Settings
from src.models.exam_config import ExamTypeConfig, TaskType


def _minimal(**overrides):
    data = {
        "id": "mini",
        "exam_type": "tea",
        "name": "Mini",
        "sections": {"1": {"name": "Only"}},
    }
    data.update(overrides)
    return data


class TestBundledConfigs:

    def test_loads_both_exam_types(self, bundled_registry):
        assert len(bundled_registry) == 2
        assert "tea" in bundled_registry
        assert "elpac-demo" in bundled_registry

    def test_lookup_by_exam_type(self, bundled_registry):
        assert bundled_registry.get("elpac").id == "elpac-demo"

    def test_elpac_layout(self, elpac_config):
        assert elpac_config.total_sections == 2
        assert elpac_config.get_section(1).subsection_keys() == ["1P1", "1P3"]
        assert elpac_config.get_section(2).subsections["2I"].task_type == TaskType.ROLE_PLAY
        assert elpac_config.closing_sentence == "This ELPAC ATC Demo is now complete."

    def test_unknown_lookup(self, bundled_registry):
        assert bundled_registry.get("toeic") is None


class TestValidation:

    def test_sections_must_be_contiguous(self):
        with pytest.raises(ExamConfigError):
            ExamConfigRegistry.from_dict({"exam_types": [_minimal(sections={"1": {"name": "a"}, "3": {"name": "c"}})]})

    def test_default_subsection_must_exist(self):
        with pytest.raises(ExamConfigError):
            ExamConfigRegistry.from_dict({"exam_types": [_minimal(default_subsection="1A")]})

    def test_missing_exam_types_list(self):
        with pytest.raises(ExamConfigError):
            ExamConfigRegistry.from_dict({"exams": []})

    def test_duplicate_ids(self):
        with pytest.raises(ExamConfigError):
            ExamConfigRegistry.from_dict({"exam_types": [_minimal(), _minimal()]})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExamConfigError):
            ExamConfigRegistry.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ExamConfigError):
            ExamConfigRegistry.from_file(path)

    def test_from_file(self, tmp_path):
        path = tmp_path / "exams.json"
        path.write_text(json.dumps({"exam_types": [_minimal()]}), encoding="utf-8")
        registry = ExamConfigRegistry.from_file(path)
        assert registry.get("mini").name == "Mini"


class TestSubsectionLookup:

    def test_section_number_of(self):
        assert ExamTypeConfig.section_number_of("2II") == 2
        assert ExamTypeConfig.section_number_of("12B") == 12
        assert ExamTypeConfig.section_number_of("P1") is None

    def test_locate_subsection(self, elpac_config):
        assert elpac_config.locate_subsection("2ii")[:2] == (2, "2II")
        assert elpac_config.locate_subsection("3A") is None


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.duplicate_window_seconds == 2.0
        assert settings.cooldown_window_seconds == 10.0
        assert settings.auto_select_suppression_seconds == 10.0

    def test_production_flag(self):
        assert Settings(environment="Production").is_production
        assert not Settings(environment="development").is_production

    def test_cors_origins_parsed(self):
        settings = Settings(cors_origins="http://a.test, http://b.test,")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
