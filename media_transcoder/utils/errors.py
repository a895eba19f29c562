"""
Exception hierarchy of the media transcoder.

Only failures that stop a job are raised. Bad configuration values are
resolved to defaults when the configuration is loaded and never surface
here.
"""

from typing import Optional


class TranscoderError(Exception):
    """Root of every error raised by this package."""


class ConfigurationError(TranscoderError):
    """A configuration file could not be read, parsed or written."""


class HardwareError(TranscoderError):
    """No usable accelerator device, or the device could not be listed."""


class UnsupportedCodecError(TranscoderError):
    """The acceleration backend has no encoder for the target codec."""

    def __init__(self, codec: str, accel: str):
        super().__init__(f"Codec '{codec}' is not supported by '{accel}' acceleration")
        self.codec = codec
        self.accel = accel


class MediaInspectionError(TranscoderError):
    """The source could not be probed."""


class FFmpegError(TranscoderError):
    """
    An FFmpeg or FFprobe invocation failed.

    Attributes:
        command: argv of the failed invocation, if it was started
        stderr: captured diagnostic output, if any
    """

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        stderr: Optional[str] = None,
    ):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class ProcessTimeoutError(TranscoderError):
    """An invocation ran longer than its allowed number of seconds."""

    def __init__(self, message: str, timeout: float):
        super().__init__(message)
        self.timeout = timeout
