"""
Media inspection using FFprobe.

This module runs ffprobe against a source file and maps its JSON report onto
a ProbeResult: the video and audio streams plus the container format name.
"""

import json
from pathlib import Path
from typing import Any

from ..executor import run_ffprobe_async
from ..models import AudioStreamInfo, ProbeResult, VideoStreamInfo
from ..utils import FFmpegError, MediaInspectionError, get_logger, log_performance

logger = get_logger(__name__)


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class MediaInspector:
    """
    Inspects media files using FFprobe to extract stream information.
    """

    PROBE_ARGS = ["-print_format", "json", "-show_format", "-show_streams"]

    def __init__(self, ffprobe_path: str = "ffprobe"):
        """
        Initialize media inspector.

        Args:
            ffprobe_path: Path to ffprobe executable (default: "ffprobe")
        """
        self._ffprobe_path = ffprobe_path

    @log_performance(logger)
    async def inspect(self, input_file: Path) -> ProbeResult:
        """
        Inspect media file and extract stream information.

        Args:
            input_file: Path to media file to inspect

        Returns:
            Probe result

        Raises:
            MediaInspectionError: If file doesn't exist or inspection fails
        """
        if not input_file.exists():
            raise MediaInspectionError(f"File not found: {input_file}")

        if not input_file.is_file():
            raise MediaInspectionError(f"Not a file: {input_file}")

        logger.info(f"Inspecting media file: {input_file.name}")

        try:
            output = await run_ffprobe_async(input_file, self.PROBE_ARGS, self._ffprobe_path)
        except FFmpegError as e:
            raise MediaInspectionError(f"FFprobe execution failed: {e}") from e

        try:
            probe_data = json.loads(output)
        except json.JSONDecodeError as e:
            raise MediaInspectionError(f"Failed to parse FFprobe output: {e}") from e

        result = self.parse_probe(probe_data)
        logger.debug(
            f"Found {len(result.video_streams)} video and "
            f"{len(result.audio_streams)} audio streams in {result.format_name!r}"
        )
        return result

    def parse_probe(self, probe_data: dict) -> ProbeResult:
        """
        Map FFprobe JSON output onto a ProbeResult.

        Args:
            probe_data: Parsed output of ffprobe -show_format -show_streams

        Returns:
            Probe result
        """
        video_streams = []
        audio_streams = []

        for stream in probe_data.get("streams", []):
            codec_type = str(stream.get("codec_type", "")).lower()
            if codec_type == "video":
                video_streams.append(self._parse_video_stream(stream))
            elif codec_type == "audio":
                audio_streams.append(self._parse_audio_stream(stream))

        format_data = probe_data.get("format", {})
        return ProbeResult(
            video_streams=video_streams,
            audio_streams=audio_streams,
            format_name=format_data.get("format_name", ""),
        )

    def _parse_video_stream(self, stream: dict) -> VideoStreamInfo:
        return VideoStreamInfo(
            index=_to_int(stream.get("index")),
            codec=stream.get("codec_name", ""),
            width=_to_int(stream.get("width")),
            height=_to_int(stream.get("height")),
            rotation=self._parse_rotation(stream),
            frame_count=_to_int(stream.get("nb_frames")),
            duration=_to_float(stream.get("duration")),
        )

    def _parse_audio_stream(self, stream: dict) -> AudioStreamInfo:
        return AudioStreamInfo(
            index=_to_int(stream.get("index")),
            codec=stream.get("codec_name", ""),
        )

    def _parse_rotation(self, stream: dict) -> int:
        """
        Rotation in degrees from the rotate tag or the display matrix.

        Older muxers write a rotate tag; newer FFprobe versions only report the
        display matrix side data.
        """
        tags = stream.get("tags", {})
        if "rotate" in tags:
            return _to_int(tags["rotate"])

        for side_data in stream.get("side_data_list", []):
            if "rotation" in side_data:
                return _to_int(side_data["rotation"])

        return 0

