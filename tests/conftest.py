"""
Shared fixtures for media transcoder tests.
"""

from pathlib import Path

import pytest

from media_transcoder.config import ResolvedConfig
from media_transcoder.models import (
    AudioStreamInfo,
    ProbeResult,
    TranscodeJob,
    VideoStreamInfo,
)


@pytest.fixture
def uhd_video():
    """3840x2160 H.264 video stream."""
    return VideoStreamInfo(
        index=0, codec="h264", width=3840, height=2160, frame_count=900, duration=30.0
    )


@pytest.fixture
def aac_audio():
    """AAC audio stream."""
    return AudioStreamInfo(index=1, codec="aac")


@pytest.fixture
def uhd_probe(uhd_video, aac_audio):
    """Probe of a single-stream 4K MP4."""
    return ProbeResult(
        video_streams=[uhd_video],
        audio_streams=[aac_audio],
        format_name="mov,mp4,m4a,3gp,3g2,mj2",
    )


@pytest.fixture
def default_config():
    """Configuration with built-in defaults."""
    return ResolvedConfig()


@pytest.fixture
def job(tmp_path):
    """Transcode job writing into a temporary directory."""
    return TranscodeJob(
        asset_id="asset-1",
        source_path=Path(tmp_path / "source.mkv"),
        output_path=Path(tmp_path / "encoded.mp4"),
    )
