"""Data models for the media transcoder."""

from media_transcoder.models.command import (
    BitrateDistribution,
    HardwareDevice,
    TranscodeCommand,
    TranscodeJob,
)
from media_transcoder.models.media import (
    AudioStreamInfo,
    ProbeResult,
    VideoStreamInfo,
)
from media_transcoder.models.results import (
    TranscodeAttempt,
    TranscodeOutcome,
    TranscodeState,
)

__all__ = [
    # Media models
    "AudioStreamInfo",
    "ProbeResult",
    "VideoStreamInfo",
    # Command models
    "BitrateDistribution",
    "HardwareDevice",
    "TranscodeCommand",
    "TranscodeJob",
    # Result models
    "TranscodeAttempt",
    "TranscodeOutcome",
    "TranscodeState",
]
