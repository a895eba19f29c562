"""Configuration management for the media transcoder."""

from media_transcoder.config.manager import (
    ConfigManager,
    get_config,
    get_config_manager,
)
from media_transcoder.config.models import (
    DEFAULT_PRESET,
    ORIGINAL_RESOLUTION,
    PRESETS,
    TARGET_AUDIO_CODEC,
    TARGET_CONTAINERS,
    ResolvedConfig,
    TranscodeHWAccel,
    TranscodePolicy,
    VideoCodec,
)

__all__ = [
    # Manager
    "ConfigManager",
    "get_config",
    "get_config_manager",
    # Models
    "ResolvedConfig",
    "TranscodeHWAccel",
    "TranscodePolicy",
    "VideoCodec",
    # Constants
    "DEFAULT_PRESET",
    "ORIGINAL_RESOLUTION",
    "PRESETS",
    "TARGET_AUDIO_CODEC",
    "TARGET_CONTAINERS",
]
