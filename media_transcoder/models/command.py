"""
Data models for encoder invocations.

A TranscodeCommand is the only thing handed to the encoder. Token order is
significant: FFmpeg parses flags positionally, so builders must emit the
filter chain before the rate-control flags that depend on it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class BitrateDistribution:
    """Capped-VBR bitrate values sharing a single unit suffix."""

    max: int
    target: int
    min: int
    unit: str

    def format(self, value: int) -> str:
        """Render a value with the unit suffix (e.g. '4500k')."""
        return f"{value}{self.unit}"


@dataclass(frozen=True)
class HardwareDevice:
    """Accelerator device selected for a hardware command."""

    name: str
    path: Optional[str] = None  # None for backends addressed by index (CUDA)
    index: Optional[int] = None


@dataclass(frozen=True)
class TranscodeCommand:
    """Encoder arguments split around the input file."""

    input_options: tuple[str, ...] = field(default_factory=tuple)
    output_options: tuple[str, ...] = field(default_factory=tuple)
    two_pass: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_options", tuple(self.input_options))
        object.__setattr__(self, "output_options", tuple(self.output_options))

    def to_args(
        self,
        input_path: str | Path,
        output_path: str | Path,
        binary: str = "ffmpeg",
    ) -> list[str]:
        """
        Build a single-pass FFmpeg argument list.

        Args:
            input_path: Source media file
            output_path: Destination file
            binary: FFmpeg executable

        Returns:
            Full argv for the encoder
        """
        return [
            binary,
            "-y",
            *self.input_options,
            "-i",
            str(input_path),
            *self.output_options,
            str(output_path),
        ]


@dataclass(frozen=True)
class TranscodeJob:
    """Asset identity and paths handed over by the job layer."""

    asset_id: str
    source_path: Path
    output_path: Path
