"""
Text predicates over candidate utterances.

Small, named checks used by the topic guard and the runtime directive
builder. Every predicate normalizes its input first, so callers may pass raw
transcript text.
"""

import re


START_TRIGGER_PHRASE = "start the evaluation. begin with the first section."

_CONTROL_MESSAGE = re.compile(r"^\s*\[(system|admin)\]", re.IGNORECASE)

_COMPLETION_REQUEST = re.compile(
    r"\b(finish|end|conclude|finali(?:s|z)e|complete|wrap\s*up)\b[^.?!]{0,48}\b(exam|assessment|demo|test)\b"
    r"|\b(i\s*(?:am|'?m)\s*done|that'?s\s*all|no\s*more\s*questions)\b"
    r"|\bprovide\s+the\s+final\s+evaluation\b",
    re.IGNORECASE,
)

_NAVIGATION = re.compile(
    r"\b(next\s+section|next\s+part|continue|repeat|play\s+again|ready|start\s+task|move\s+on|go\s+on|skip)\b",
    re.IGNORECASE,
)

_OFF_TOPIC_INTENT = re.compile(
    r"\b(tell|give|show|write|create|generate|explain|help|what(?:'s|\s+is)|who(?:'s|\s+is)|how\s+do\s+i)\b"
    r"[^.?!]{0,120}"
    r"\b(joke|weather|temperature|news|politic|president|stock|crypto|bitcoin|recipe|movie|series|song|music"
    r"|poem|story|code|program|javascript|typescript|python|translate|email|resume|linkedin|instagram|tiktok)\b",
    re.IGNORECASE,
)

_SMALL_TALK_ONLY = re.compile(
    r"^\s*(hi|hello|hey|good\s+(morning|afternoon|evening)|how\s+are\s+you|what'?s\s+up|thanks|thank\s+you"
    r"|nice\s+to\s+meet\s+you)\s*[!.?]*\s*$",
    re.IGNORECASE,
)

AVIATION_VOCABULARY = re.compile(
    r"\b(atc|pilot|controller|runway|flight|fuel|cabin|emergency|vector|heading|transponder|code|priority"
    r"|landing|takeoff|tower|clearance|communication|phraseology|souls\s+on\s+board|risk|non-routine|section"
    r"|subsection|task|paper|exam|assessment|demo|elpac|tea)\b",
    re.IGNORECASE,
)

_LOW_SIGNAL_REPLY = re.compile(
    r"^\s*(yes|no|ok|okay|sure|maybe|idk|i\s+don'?t\s+know|not\s+sure|nothing(?:\s+nothing)?|huh|what"
    r"|whatever|no\s+way.*)\s*[!.?]*\s*$",
    re.IGNORECASE,
)

_NUMBER_WORD_SEQUENCE = re.compile(
    r"^(zero|one|two|three|four|five|six|seven|eight|nine|oh)"
    r"([\s-]+(zero|one|two|three|four|five|six|seven|eight|nine|oh)){2,7}$",
    re.IGNORECASE,
)

_LISTENING_META_ONLY = re.compile(
    r"^(ready|repeat|play(?:\s+it)?(?:\s+again)?|listen|press\s+play|can\s+you\s+repeat|please\s+repeat"
    r"|start)([.!?])?$",
    re.IGNORECASE,
)

_FINAL_LISTENING_VOCABULARY = re.compile(
    r"\b(atc|heading|climb|vector|support|instruction|emergency\s+services|priority|landing)\b",
    re.IGNORECASE,
)


def normalize_text(text: str | None) -> str:
    """Collapse whitespace runs and trim."""
    return re.sub(r"\s+", " ", text or "").strip()


def word_count(text: str) -> int:
    normalized = normalize_text(text)
    return len(normalized.split(" ")) if normalized else 0


def is_control_message(text: str) -> bool:
    """
    Administrative message injected by the UI.

    True:  "[System] Finalize the demo now."   "[admin] skip"
    False: "System check please"               "I said [System] earlier"
    """
    return bool(_CONTROL_MESSAGE.match(normalize_text(text)))


def is_start_trigger(text: str) -> bool:
    """
    Canonical start-evaluation phrase.

    True:  "Start the evaluation. Begin with the first section."
    False: "start the evaluation"
    """
    return normalize_text(text).lower() == START_TRIGGER_PHRASE


def has_completion_intent(text: str) -> bool:
    """
    Candidate explicitly asks to end the exam now.

    True:  "Please conclude the exam now."   "I'm done"   "Provide the final evaluation."
    False: "Please continue with the task."  "The exam room was quiet"
    """
    normalized = normalize_text(text)
    if not normalized:
        return False
    return bool(_COMPLETION_REQUEST.search(normalized))


def is_navigation_command(text: str) -> bool:
    """
    Short exam navigation request.

    True:  "next section please"   "can you repeat"   "I'm ready"
    False: "the aircraft turned left"
    """
    return bool(_NAVIGATION.search(normalize_text(text)))


def is_code_readback(text: str) -> bool:
    """
    A 3-8 digit code read back as digits or spoken number words.

    True:  "6142"   "squawk 7-7-0-0"   "six one four two"   "four oh two"
    False: "42"     "six"              "after surgery"
    """
    normalized = normalize_text(text)
    if not normalized:
        return False

    digits = re.sub(r"\D", "", normalized)
    if 3 <= len(digits) <= 8:
        return True

    return bool(_NUMBER_WORD_SEQUENCE.match(normalized))


def mentions_aviation_vocabulary(text: str) -> bool:
    """
    True:  "cleared for takeoff runway two seven"   "the pilot declared an emergency"
    False: "after surgery"                          "I like pizza"
    """
    return bool(AVIATION_VOCABULARY.search(normalize_text(text)))


def has_off_topic_intent(text: str) -> bool:
    """
    Explicit request for something outside the exam domain.

    True:  "tell me a joke about cats"   "what is the weather in Paris"   "help me write python code"
    False: "tell me the heading again"
    """
    return bool(_OFF_TOPIC_INTENT.search(normalize_text(text)))


def is_small_talk(text: str) -> bool:
    """
    Greeting or pleasantry with nothing else in it.

    True:  "hello!"   "how are you?"   "thanks"
    False: "hello tower, ABC123 ready for departure"
    """
    return bool(_SMALL_TALK_ONLY.match(normalize_text(text)))


def is_low_signal_reply(text: str) -> bool:
    """
    Closed filler reply, or a very short reply without exam vocabulary.

    True:  "yes"   "idk"   "no way don't give me instructions"   "after surgery"
    False: "runway is closed"   ""
    """
    normalized = normalize_text(text)
    if not normalized:
        return False

    if _LOW_SIGNAL_REPLY.match(normalized):
        return True

    return word_count(normalized) <= 5 and not mentions_aviation_vocabulary(normalized)


def is_substantive_listening_answer(text: str) -> bool:
    """
    An actual answer to a listening item rather than playback chatter.

    True:  "The assigned transponder code is six one four two."   "code is 6142"
    False: "Press Play."   "Ready."   "[System] resume"   "yes it was"
    """
    normalized = normalize_text(text)
    if not normalized or is_control_message(normalized):
        return False

    if _LISTENING_META_ONLY.match(normalized):
        return False

    words = word_count(normalized)
    if words >= 5:
        return True

    return words >= 3 and bool(re.search(r"\d", normalized))


def is_final_listening_answer(text: str) -> bool:
    """
    A full answer to the last listening item (six words or more with
    operational vocabulary).

    True:  "The crew requested priority landing due to smoke in the cabin."
    False: "priority landing"   "I think it was about the weather today"
    """
    normalized = normalize_text(text)
    if not normalized or is_control_message(normalized):
        return False
    return word_count(normalized) >= 6 and bool(_FINAL_LISTENING_VOCABULARY.search(normalized))
