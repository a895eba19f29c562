"""
Transcode policy evaluation.

Decides whether an asset needs re-encoding at all. Evaluation never raises:
unknown configuration values resolve to "not required".
"""

from typing import Optional

from ..config import (
    TARGET_AUDIO_CODEC,
    TARGET_CONTAINERS,
    ResolvedConfig,
    TranscodePolicy,
)
from ..models import AudioStreamInfo, VideoStreamInfo
from ..utils import get_logger

logger = get_logger(__name__)


def is_target_container(format_name: str) -> bool:
    """Check if the container already belongs to the MP4/MOV family."""
    return format_name in TARGET_CONTAINERS


def is_transcode_required(
    config: ResolvedConfig,
    video: Optional[VideoStreamInfo],
    audio: Optional[AudioStreamInfo],
    format_name: str,
) -> bool:
    """
    Evaluate the transcode policy for one asset.

    Args:
        config: Resolved configuration
        video: Primary video stream, if any
        audio: Primary audio stream, if any
        format_name: Container format reported by the probe

    Returns:
        True if the asset should be transcoded
    """
    policy = config.transcode

    if policy == TranscodePolicy.DISABLED:
        return False

    if policy is None:
        logger.warning("Skipping transcode, transcode policy is not recognised")
        return False

    if video is None:
        logger.debug("Skipping transcode, no video stream")
        return False

    if not video.width or not video.height:
        logger.error("Skipping transcode, height or width undefined for video stream")
        return False

    if config.target_video_codec is None:
        logger.warning("Skipping transcode, target video codec is not recognised")
        return False

    if policy == TranscodePolicy.ALL:
        return True

    is_target_video_codec = video.codec == config.target_video_codec.value
    is_target_audio_codec = audio is None or audio.codec == TARGET_AUDIO_CODEC
    is_container_ok = is_target_container(format_name)

    target_height = config.target_height
    is_larger_than_target = target_height is not None and video.short_edge > target_height

    logger.debug(
        f"Video codec matches: {is_target_video_codec}, audio codec matches: "
        f"{is_target_audio_codec}, container matches: {is_container_ok}, "
        f"larger than target: {is_larger_than_target}"
    )

    return not (
        is_target_video_codec and is_target_audio_codec and is_container_ok
    ) or is_larger_than_target
