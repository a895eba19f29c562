"""Process execution and management."""

from media_transcoder.executor.subprocess import (
    AsyncFFmpegProcess,
    FFmpegEncoder,
    run_ffprobe_async,
)

__all__ = [
    "AsyncFFmpegProcess",
    "FFmpegEncoder",
    "run_ffprobe_async",
]
