"""
Encoder command building and transcode orchestration.
"""

from .bitrate import (
    BITRATE_EFFICIENCY_RATIO,
    TARGET_BITRATE_DIVISOR,
    calculate_bitrates,
    eligible_for_two_pass,
    is_bitrate_constrained,
)
from .options import (
    CODEC_BUILDERS,
    BaseCodecConfig,
    BaseHWConfig,
    H264Config,
    HEVCConfig,
    NVENCConfig,
    QSVConfig,
    VAAPIConfig,
    VP9Config,
    build_command,
    get_codec_config,
)
from .orchestrator import AssetStore, Encoder, TranscodeOrchestrator

__all__ = [
    # Bitrate
    "BITRATE_EFFICIENCY_RATIO",
    "TARGET_BITRATE_DIVISOR",
    "calculate_bitrates",
    "eligible_for_two_pass",
    "is_bitrate_constrained",
    # Options
    "CODEC_BUILDERS",
    "BaseCodecConfig",
    "BaseHWConfig",
    "H264Config",
    "HEVCConfig",
    "NVENCConfig",
    "QSVConfig",
    "VAAPIConfig",
    "VP9Config",
    "build_command",
    "get_codec_config",
    # Orchestration
    "AssetStore",
    "Encoder",
    "TranscodeOrchestrator",
]
