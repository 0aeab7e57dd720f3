"""
Tests for AudioRoutingResolver and the per-exam-type strategies.
"""

import pytest

from src.core.audio_routing import AudioRoutingResolver
from src.core.exam_strategies import (
    PaperStrategy,
    SubsectionAudioStrategy,
    get_strategy,
    match_numbered,
)
from src.models.exam_config import AudioFileConfig
from src.models.results import ErrorKind, SourceType

from conftest import make_three_section_config


@pytest.fixture
def resolver():
    return AudioRoutingResolver()


class TestSubsectionAudio:

    @pytest.mark.parametrize("number", [1, 2])
    def test_configured_recordings_resolve(self, resolver, three_section_config, number):
        result = resolver.resolve(three_section_config, "2A", number)
        assert result.success
        descriptor = result.descriptor
        assert descriptor.source_type == SourceType.SUBSECTION_AUDIO
        assert descriptor.section_key == "2"
        assert descriptor.api_section == "2a"
        assert descriptor.recording_number == number
        assert descriptor.src == f"/api/audio?exam=tea&section=2a&recording={number}"

    def test_one_past_the_end_fails(self, resolver, three_section_config):
        result = resolver.resolve(three_section_config, "2A", 3)
        assert not result.success
        assert result.error.kind == ErrorKind.RECORDING_NOT_FOUND

    def test_zero_fails(self, resolver, three_section_config):
        result = resolver.resolve(three_section_config, "2A", 0)
        assert result.error.kind == ErrorKind.RECORDING_NOT_FOUND

    def test_recording_defaults_to_one(self, resolver, three_section_config):
        result = resolver.resolve(three_section_config, "2B")
        assert result.descriptor.recording_number == 1
        assert result.descriptor.title == "Runway change"

    def test_unknown_subsection(self, resolver, three_section_config):
        result = resolver.resolve(three_section_config, "2Z", 1)
        assert result.error.kind == ErrorKind.CONFIGURATION_MISSING

    def test_missing_config(self, resolver):
        result = resolver.resolve(None, "2A", 1)
        assert result.error.kind == ErrorKind.CONFIGURATION_MISSING
        assert result.error.candidate_message is not None

    def test_default_section_without_audio_fails_closed(self, resolver, three_section_config):
        result = resolver.resolve(three_section_config)
        assert result.error.kind == ErrorKind.UNSUPPORTED_SUBSECTION

    def test_explicit_recording_numbers_win(self, resolver):
        config = make_three_section_config(sections={
            1: {
                "name": "Listening",
                "subsections": {
                    "1A": {
                        "audio_files": [
                            {"recording": 2, "title": "Second"},
                            {"recording": 1, "title": "First"},
                        ],
                    },
                },
            },
        })
        assert resolver.resolve(config, "1A", 1).descriptor.title == "First"
        assert resolver.resolve(config, "1A", 2).descriptor.title == "Second"
        assert not resolver.resolve(config, "1A", 3).success


class TestPaperLayout:

    def test_listening_part(self, resolver, elpac_config):
        result = resolver.resolve(elpac_config, "1P3", 1)
        assert result.success
        assert result.descriptor.api_section == "paper1-1p3"
        assert result.descriptor.src == "/api/audio?exam=elpac&section=paper1-1p3&recording=1"

    def test_case_insensitive_subsection(self, resolver, elpac_config):
        assert resolver.resolve(elpac_config, "1p3", 1).success

    def test_exam_default_subsection(self, resolver, elpac_config):
        result = resolver.resolve(elpac_config)
        assert result.descriptor.api_section == "paper1-1p1"

    def test_role_play_uses_speaking_prompts(self, resolver, elpac_config):
        result = resolver.resolve(elpac_config, "2I", 2)
        assert result.success
        assert result.descriptor.source_type == SourceType.SPEAKING_PROMPT
        assert result.descriptor.api_section == "paper2"
        assert result.descriptor.src == "/api/audio?exam=elpac&section=paper2&prompt=2"

    def test_role_play_prompt_out_of_range(self, resolver, elpac_config):
        result = resolver.resolve(elpac_config, "2I", 3)
        assert result.error.kind == ErrorKind.RECORDING_NOT_FOUND

    def test_bare_section_id_routes_prompts(self, resolver, elpac_config):
        result = resolver.resolve(elpac_config, "2", 1)
        assert result.descriptor.source_type == SourceType.SPEAKING_PROMPT

    @pytest.mark.parametrize("number", [1, 2, 5])
    def test_image_discussion_never_plays(self, resolver, elpac_config, number):
        result = resolver.resolve(elpac_config, "2II", number)
        assert not result.success
        assert result.error.kind == ErrorKind.UNSUPPORTED_SUBSECTION
        assert "does not define playable audio" in result.error.message


class TestStrategies:

    def test_known_strategies(self):
        assert isinstance(get_strategy("ELPAC"), PaperStrategy)
        assert type(get_strategy("tea")) is SubsectionAudioStrategy

    def test_unknown_type_gets_default_layout(self):
        strategy = get_strategy("icao")
        assert type(strategy) is SubsectionAudioStrategy
        assert strategy.exam_type == "icao"

    def test_match_numbered_positional_fallback(self):
        items = [AudioFileConfig(title="a"), AudioFileConfig(title="b")]
        assert match_numbered(items, 2) == (2, items[1])
        assert match_numbered(items, 3) is None
