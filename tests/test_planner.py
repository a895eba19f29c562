"""
Tests for stream selection and transcode policy.
"""

import pytest

from media_transcoder.config import ResolvedConfig
from media_transcoder.models import AudioStreamInfo, VideoStreamInfo
from media_transcoder.planner import (
    is_target_container,
    is_transcode_required,
    select_audio_stream,
    select_video_stream,
)

MP4 = "mov,mp4,m4a,3gp,3g2,mj2"


def make_video(codec="h264", width=1280, height=720, **kwargs):
    return VideoStreamInfo(index=0, codec=codec, width=width, height=height, **kwargs)


class TestStreamSelection:
    """Test primary stream selection."""

    def test_longest_video_by_frame_count(self):
        """Test the stream with the most frames wins."""
        short = VideoStreamInfo(index=0, codec="h264", width=1920, height=1080, frame_count=10)
        long = VideoStreamInfo(index=1, codec="hevc", width=1280, height=720, frame_count=900)

        assert select_video_stream([short, long]) is long

    def test_duration_used_without_frame_count(self):
        """Test duration is the fallback length."""
        cover = VideoStreamInfo(index=0, codec="mjpeg", width=600, height=600, duration=0.04)
        main = VideoStreamInfo(index=1, codec="h264", width=1920, height=1080, duration=60.0)

        assert select_video_stream([cover, main]) is main

    def test_tie_goes_to_first(self):
        """Test equal lengths keep probe order."""
        first = VideoStreamInfo(index=0, codec="h264", width=1920, height=1080, frame_count=50)
        second = VideoStreamInfo(index=1, codec="hevc", width=1920, height=1080, frame_count=50)

        assert select_video_stream([first, second]) is first

    def test_no_streams(self):
        """Test empty probes select nothing."""
        assert select_video_stream([]) is None
        assert select_audio_stream([]) is None

    def test_first_audio_stream(self):
        """Test the first audio stream is primary."""
        streams = [AudioStreamInfo(index=1, codec="opus"), AudioStreamInfo(index=2, codec="aac")]

        assert select_audio_stream(streams).codec == "opus"


class TestPolicy:
    """Test is_transcode_required."""

    def test_target_containers(self):
        """Test MP4/MOV family detection."""
        assert is_target_container(MP4)
        assert is_target_container("mov")
        assert not is_target_container("matroska,webm")

    @pytest.mark.parametrize(
        "video",
        [make_video(), make_video(codec="vp9"), make_video(width=3840, height=2160)],
    )
    def test_disabled_never_transcodes(self, video):
        """Test policy=disabled skips every input."""
        config = ResolvedConfig(transcode="disabled")

        assert not is_transcode_required(config, video, None, "avi")

    def test_all_always_transcodes(self):
        """Test policy=all transcodes even matching media."""
        config = ResolvedConfig(transcode="all")
        audio = AudioStreamInfo(index=1, codec="aac")

        assert is_transcode_required(config, make_video(), audio, MP4)

    def test_optimal_skips_matching_media(self):
        """Test matching codec, container, audio and height is skipped."""
        audio = AudioStreamInfo(index=1, codec="aac")

        assert not is_transcode_required(ResolvedConfig(), make_video(), audio, MP4)

    def test_optimal_without_audio(self):
        """Test a silent video only needs matching video and container."""
        assert not is_transcode_required(ResolvedConfig(), make_video(), None, MP4)

    @pytest.mark.parametrize(
        "video,audio_codec,format_name",
        [
            (make_video(codec="hevc"), "aac", MP4),
            (make_video(), "mp3", MP4),
            (make_video(), "aac", "matroska,webm"),
            (make_video(width=1920, height=1080), "aac", MP4),
        ],
    )
    def test_optimal_transcodes_mismatches(self, video, audio_codec, format_name):
        """Test any mismatch or oversize triggers a transcode."""
        audio = AudioStreamInfo(index=1, codec=audio_codec)

        assert is_transcode_required(ResolvedConfig(), video, audio, format_name)

    def test_optimal_uses_short_edge(self):
        """Test portrait video at the target width is not oversized."""
        portrait = make_video(width=720, height=1280)
        audio = AudioStreamInfo(index=1, codec="aac")

        assert not is_transcode_required(ResolvedConfig(), portrait, audio, MP4)

    def test_optimal_original_resolution(self):
        """Test target 'original' never counts as oversized."""
        config = ResolvedConfig(target_resolution="original")
        video = make_video(width=3840, height=2160)

        assert not is_transcode_required(config, video, None, MP4)

    def test_unknown_policy(self):
        """Test unrecognised policies skip."""
        config = ResolvedConfig(transcode="whenever")

        assert not is_transcode_required(config, make_video(codec="vp9"), None, "avi")

    def test_unknown_codec(self):
        """Test unrecognised target codecs skip."""
        config = ResolvedConfig(transcode="all", target_video_codec="av2")

        assert not is_transcode_required(config, make_video(), None, MP4)

    def test_missing_video(self):
        """Test audio-only assets skip."""
        assert not is_transcode_required(ResolvedConfig(transcode="all"), None, None, MP4)

    def test_zero_dimensions(self):
        """Test streams without dimensions skip."""
        config = ResolvedConfig(transcode="all")

        assert not is_transcode_required(config, make_video(width=0, height=0), None, MP4)
