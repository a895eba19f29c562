"""Shared utilities: errors, logging and parsing helpers."""

from media_transcoder.utils.errors import (
    ConfigurationError,
    FFmpegError,
    HardwareError,
    MediaInspectionError,
    ProcessTimeoutError,
    TranscoderError,
    UnsupportedCodecError,
)
from media_transcoder.utils.helpers import parse_bitrate, parse_device_number, parse_resolution
from media_transcoder.utils.logger import get_logger, log_performance, setup_logger

__all__ = [
    # Errors
    "ConfigurationError",
    "FFmpegError",
    "HardwareError",
    "MediaInspectionError",
    "ProcessTimeoutError",
    "TranscoderError",
    "UnsupportedCodecError",
    # Helpers
    "parse_bitrate",
    "parse_device_number",
    "parse_resolution",
    # Logging
    "get_logger",
    "log_performance",
    "setup_logger",
]
