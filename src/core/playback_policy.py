"""
Playback policy lookup.

Total and fail-safe-strict: any (exam type, recording class) pair nobody
authored gets no seek, no pause and zero replays.
"""

from src.models.exam_config import ExamTypeConfig, PlaybackPolicy, RecordingClass


# Authored per exam type; an ExamTypeConfig's own table takes precedence
DEFAULT_POLICIES: dict[tuple[str, RecordingClass], PlaybackPolicy] = {
    # ELPAC recordings play exactly once, like the live exam
    ("elpac", RecordingClass.EXAM_RECORDING): PlaybackPolicy(
        allow_seek=False, allow_pause=False, max_replays=0,
    ),
    # TEA allows pausing and a single replay of each recording
    ("tea", RecordingClass.EXAM_RECORDING): PlaybackPolicy(
        allow_seek=False, allow_pause=True, max_replays=1,
    ),
    ("tea", RecordingClass.GENERAL_AUDIO): PlaybackPolicy(
        allow_seek=True, allow_pause=True, max_replays=3,
    ),
}


def recording_class_for(is_exam_recording: bool) -> RecordingClass:
    return RecordingClass.EXAM_RECORDING if is_exam_recording else RecordingClass.GENERAL_AUDIO


class PlaybackPolicyResolver:
    """Maps (exam type, recording class) to replay/seek/pause rules."""

    def __init__(self, policies: dict[tuple[str, RecordingClass], PlaybackPolicy] | None = None):
        self.policies = DEFAULT_POLICIES if policies is None else policies

    def resolve(
        self,
        exam_type: str | None,
        recording_class: RecordingClass,
        config: ExamTypeConfig | None = None,
    ) -> PlaybackPolicy:
        if config is not None and recording_class in config.playback_policies:
            return config.playback_policies[recording_class]

        if exam_type:
            policy = self.policies.get((exam_type.lower(), recording_class))
            if policy is not None:
                return policy

        return PlaybackPolicy.strictest()
