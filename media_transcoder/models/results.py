"""
Data models for transcoding outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from media_transcoder.models.command import TranscodeCommand


class TranscodeState(str, Enum):
    """States of a single transcode invocation."""

    NOT_REQUIRED = "not_required"
    BUILDING_COMMAND = "building_command"
    INVOKING_HARDWARE = "invoking_hardware"
    INVOKING_SOFTWARE = "invoking_software"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are possible."""
        return self in (TranscodeState.NOT_REQUIRED, TranscodeState.DONE, TranscodeState.FAILED)


@dataclass
class TranscodeAttempt:
    """Record of one encoder invocation."""

    state: TranscodeState
    """INVOKING_HARDWARE or INVOKING_SOFTWARE."""

    command: TranscodeCommand
    """Command handed to the encoder."""

    error: Optional[Exception] = None
    """Error raised by the encoder, if any."""

    duration: float = 0.0
    """Wall time of the invocation in seconds."""

    @property
    def success(self) -> bool:
        """Whether the invocation succeeded."""
        return self.error is None


@dataclass
class TranscodeOutcome:
    """Result of running the orchestrator for one asset."""

    state: TranscodeState
    """Terminal state reached."""

    attempts: list[TranscodeAttempt] = field(default_factory=list)
    """Encoder invocations in order; at most two."""

    output_path: Optional[Path] = None
    """Encoded file, set only when DONE."""

    error: Optional[Exception] = None
    """Cause of a FAILED outcome."""

    hardware_fallback: bool = False
    """Whether the hardware path was abandoned for software."""

    @property
    def success(self) -> bool:
        """A skipped asset counts as success; only FAILED does not."""
        return self.state != TranscodeState.FAILED

    @property
    def command(self) -> Optional[TranscodeCommand]:
        """Last command handed to the encoder, if any."""
        return self.attempts[-1].command if self.attempts else None
