"""
Data models for probed media information.

Probe results are produced once per asset and consumed read-only, so every
model here is frozen.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VideoStreamInfo:
    """Information about a video stream."""

    index: int
    codec: str
    width: int
    height: int
    rotation: int = 0
    frame_count: int = 0
    duration: float = 0.0

    @property
    def length(self) -> float:
        """Proxy used to pick the longest stream: frame count, else duration."""
        if self.frame_count > 0:
            return float(self.frame_count)
        return self.duration

    @property
    def is_rotated(self) -> bool:
        """Check if the stream is displayed rotated by a quarter turn."""
        return self.rotation % 180 == 90

    @property
    def is_vertical(self) -> bool:
        """Check if the stream is displayed in portrait orientation."""
        return self.height > self.width or self.is_rotated

    @property
    def short_edge(self) -> int:
        """Smaller of width and height."""
        return min(self.width, self.height)

    @property
    def resolution(self) -> str:
        """Get resolution as string (e.g., '1920x1080')."""
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class AudioStreamInfo:
    """Information about an audio stream."""

    index: int
    codec: str


@dataclass(frozen=True)
class ProbeResult:
    """Stream-level facts about a media file."""

    video_streams: tuple[VideoStreamInfo, ...] = field(default_factory=tuple)
    audio_streams: tuple[AudioStreamInfo, ...] = field(default_factory=tuple)
    format_name: str = ""

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples
        object.__setattr__(self, "video_streams", tuple(self.video_streams))
        object.__setattr__(self, "audio_streams", tuple(self.audio_streams))

    @property
    def has_video(self) -> bool:
        """Check if media has video streams."""
        return len(self.video_streams) > 0

    @property
    def has_audio(self) -> bool:
        """Check if media has audio streams."""
        return len(self.audio_streams) > 0
