"""
Media Transcoder

Decides whether a media asset needs re-encoding, builds the FFmpeg command
for the configured codec and hardware backend, and runs it with a single
fallback from hardware to software encoding.
"""

__version__ = "0.1.0"

from media_transcoder.config import ResolvedConfig
from media_transcoder.models import (
    ProbeResult,
    TranscodeCommand,
    TranscodeJob,
    TranscodeOutcome,
    TranscodeState,
)
from media_transcoder.transcoder import TranscodeOrchestrator, build_command
from media_transcoder.utils import (
    ConfigurationError,
    TranscoderError,
    get_logger,
    setup_logger,
)

__all__ = [
    "__version__",
    # Models
    "ProbeResult",
    "ResolvedConfig",
    "TranscodeCommand",
    "TranscodeJob",
    "TranscodeOutcome",
    "TranscodeState",
    # Transcoding
    "TranscodeOrchestrator",
    "build_command",
    # Utils
    "ConfigurationError",
    "TranscoderError",
    "get_logger",
    "setup_logger",
]
