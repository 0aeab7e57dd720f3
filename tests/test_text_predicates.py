"""
Tests for the named text predicates shared by the topic guard and directive builder.
"""

import pytest

from src.core.text_predicates import (
    has_completion_intent,
    has_off_topic_intent,
    is_code_readback,
    is_control_message,
    is_final_listening_answer,
    is_low_signal_reply,
    is_navigation_command,
    is_small_talk,
    is_start_trigger,
    is_substantive_listening_answer,
    mentions_aviation_vocabulary,
    normalize_text,
)


class TestNormalization:

    def test_collapses_whitespace(self):
        assert normalize_text("  ready \n\t now  ") == "ready now"

    def test_none_is_empty(self):
        assert normalize_text(None) == ""


class TestControlAndTriggers:

    @pytest.mark.parametrize("text", ["[System] Finalize the demo now.", "  [admin] skip", "[SYSTEM] x"])
    def test_control_messages(self, text):
        assert is_control_message(text)

    @pytest.mark.parametrize("text", ["System check please", "I said [System] earlier"])
    def test_not_control_messages(self, text):
        assert not is_control_message(text)

    def test_start_trigger_exact_phrase(self):
        assert is_start_trigger("Start the evaluation.   Begin with the first section.")
        assert not is_start_trigger("start the evaluation")


class TestCompletionIntent:

    @pytest.mark.parametrize("text", [
        "Please conclude the exam now.",
        "I want to finish the assessment",
        "I'm done",
        "I am done.",
        "That's all",
        "no more questions",
        "Please provide the final evaluation.",
        "Can we wrap up the demo?",
    ])
    def test_detected(self, text):
        assert has_completion_intent(text)

    @pytest.mark.parametrize("text", [
        "Please continue with the task.",
        "The exam room was quiet",
        "",
        "Press Play.",
    ])
    def test_not_detected(self, text):
        assert not has_completion_intent(text)


class TestNavigationAndCodes:

    @pytest.mark.parametrize("text", ["next section please", "can you repeat", "I'm ready", "let's move on"])
    def test_navigation(self, text):
        assert is_navigation_command(text)

    def test_not_navigation(self):
        assert not is_navigation_command("the aircraft turned left")

    @pytest.mark.parametrize("text", ["6142", "squawk 7-7-0-0", "six one four two", "four oh two"])
    def test_code_readback(self, text):
        assert is_code_readback(text)

    @pytest.mark.parametrize("text", ["42", "six", "after surgery", ""])
    def test_not_code_readback(self, text):
        assert not is_code_readback(text)


class TestOffTopicSignals:

    @pytest.mark.parametrize("text", [
        "tell me a joke about cats",
        "what is the weather in Paris",
        "help me write python code",
    ])
    def test_off_topic_intent(self, text):
        assert has_off_topic_intent(text)

    def test_exam_request_is_not_off_topic(self):
        assert not has_off_topic_intent("tell me the heading again")

    @pytest.mark.parametrize("text", ["hello!", "how are you?", "thanks", "Good morning"])
    def test_small_talk(self, text):
        assert is_small_talk(text)

    def test_greeting_with_content_is_not_small_talk(self):
        assert not is_small_talk("hello tower, ABC123 ready for departure")

    @pytest.mark.parametrize("text", ["yes", "idk", "no way don't give me instructions", "after surgery"])
    def test_low_signal(self, text):
        assert is_low_signal_reply(text)

    @pytest.mark.parametrize("text", ["runway is closed", ""])
    def test_not_low_signal(self, text):
        assert not is_low_signal_reply(text)

    def test_aviation_vocabulary(self):
        assert mentions_aviation_vocabulary("the pilot declared an emergency")
        assert not mentions_aviation_vocabulary("I like pizza")


class TestListeningAnswers:

    @pytest.mark.parametrize("text", [
        "The assigned transponder code is six one four two.",
        "code is 6142",
    ])
    def test_substantive(self, text):
        assert is_substantive_listening_answer(text)

    @pytest.mark.parametrize("text", ["Press Play.", "Ready.", "play it again", "[System] resume", "yes it was", ""])
    def test_not_substantive(self, text):
        assert not is_substantive_listening_answer(text)

    def test_final_listening_answer(self):
        assert is_final_listening_answer("The crew requested priority landing due to smoke in the cabin.")

    @pytest.mark.parametrize("text", ["priority landing", "I think it was about the weather today"])
    def test_not_final_listening_answer(self, text):
        assert not is_final_listening_answer(text)
