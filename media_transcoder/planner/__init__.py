"""Stream selection and transcode policy evaluation."""

from .policy import is_target_container, is_transcode_required
from .streams import select_audio_stream, select_video_stream

__all__ = [
    "is_target_container",
    "is_transcode_required",
    "select_audio_stream",
    "select_video_stream",
]
