"""
Primary stream selection from probe output.
"""

from typing import Optional, Sequence

from ..models import AudioStreamInfo, VideoStreamInfo


def select_video_stream(streams: Sequence[VideoStreamInfo]) -> Optional[VideoStreamInfo]:
    """
    Pick the longest video stream.

    Ties go to the stream that appears first.

    Args:
        streams: Video streams in probe order

    Returns:
        Primary video stream, or None if there are no video streams
    """
    primary: Optional[VideoStreamInfo] = None
    for stream in streams:
        if primary is None or stream.length > primary.length:
            primary = stream
    return primary


def select_audio_stream(streams: Sequence[AudioStreamInfo]) -> Optional[AudioStreamInfo]:
    """Pick the first audio stream, if any."""
    return streams[0] if streams else None
