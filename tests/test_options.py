"""
Tests for FFmpeg option building.
"""

import pytest

from media_transcoder.config import ResolvedConfig, TranscodeHWAccel, VideoCodec
from media_transcoder.models import HardwareDevice, VideoStreamInfo
from media_transcoder.transcoder import (
    CODEC_BUILDERS,
    H264Config,
    NVENCConfig,
    VP9Config,
    build_command,
    calculate_bitrates,
    get_codec_config,
)
from media_transcoder.utils import HardwareError, UnsupportedCodecError

RENDER_NODE = HardwareDevice(name="renderD128", path="/dev/dri/renderD128")
CARD = HardwareDevice(name="card0", path="/dev/dri/card0")
CUDA = HardwareDevice(name="cuda", index=0)

NVENC_TUNING = [
    "-tune",
    "hq",
    "-qmin",
    "0",
    "-g",
    "250",
    "-bf",
    "3",
    "-b_ref_mode",
    "middle",
    "-temporal-aq",
    "1",
    "-rc-lookahead",
    "20",
    "-i_qfactor",
    "0.75",
    "-b_qfactor",
    "1.1",
]


def base_options(encoder):
    return [
        "-vcodec",
        encoder,
        "-acodec",
        "aac",
        "-movflags",
        "faststart",
        "-fps_mode",
        "passthrough",
    ]


def build(video, device=None, **overrides):
    """Build a command from config overrides."""
    config = ResolvedConfig.from_overrides(overrides)
    return build_command(config, video, calculate_bitrates(config.max_bitrate), device)


@pytest.fixture
def hd_video():
    """1280x720 stream that needs no scaling."""
    return VideoStreamInfo(index=0, codec="hevc", width=1280, height=720)


class TestSoftwareH264:
    """Test software H.264/HEVC options."""

    def test_constant_quality(self, uhd_video):
        """Test 4K source with defaults: scale, preset and CRF only."""
        command = build(uhd_video)

        assert command.input_options == ()
        assert list(command.output_options) == base_options("h264") + [
            "-vf",
            "scale=-2:720",
            "-preset",
            "ultrafast",
            "-crf",
            "23",
        ]
        assert command.two_pass is False
        assert "-b:v" not in command.output_options
        assert "-maxrate" not in command.output_options

    def test_two_pass(self, uhd_video):
        """Test two-pass rate control with a 4500k ceiling."""
        command = build(uhd_video, max_bitrate="4500k", two_pass=True)

        assert list(command.output_options) == base_options("h264") + [
            "-vf",
            "scale=-2:720",
            "-preset",
            "ultrafast",
            "-b:v",
            "3104k",
            "-minrate",
            "1552k",
            "-maxrate",
            "4500k",
        ]
        assert "-bufsize" not in command.output_options
        assert "-crf" not in command.output_options
        assert command.two_pass is True

    def test_capped_single_pass(self, uhd_video):
        """Test CRF with a bitrate ceiling."""
        command = build(uhd_video, max_bitrate="4500k")

        assert list(command.output_options[-6:]) == [
            "-crf",
            "23",
            "-maxrate",
            "4500k",
            "-bufsize",
            "9000k",
        ]
        assert command.two_pass is False

    def test_threads(self, hd_video):
        """Test thread count disables x264 thread pools."""
        command = build(hd_video, threads=4)

        assert list(command.output_options) == base_options("h264") + [
            "-preset",
            "ultrafast",
            "-threads",
            "4",
            "-x264-params",
            "pools=none",
            "-x264-params",
            "frame-threads=4",
            "-crf",
            "23",
        ]

    @pytest.mark.parametrize("threads", [0, -2])
    def test_no_threads(self, hd_video, threads):
        """Test non-positive thread counts omit threading flags."""
        command = build(hd_video, threads=threads)

        assert "-threads" not in command.output_options
        assert "-x264-params" not in command.output_options

    def test_hevc(self, hd_video):
        """Test HEVC uses x265 parameters."""
        command = build(hd_video, target_video_codec="hevc", threads=2, preset="slow")

        assert list(command.output_options) == base_options("hevc") + [
            "-preset",
            "slow",
            "-threads",
            "2",
            "-x265-params",
            "pools=none",
            "-x265-params",
            "frame-threads=2",
            "-crf",
            "23",
        ]

    def test_invalid_preset_omitted(self, hd_video):
        """Test unknown presets are dropped, not defaulted."""
        command = build(hd_video, preset="placebo")

        assert "-preset" not in command.output_options
        assert list(command.output_options) == base_options("h264") + ["-crf", "23"]

    def test_two_pass_without_ceiling(self, uhd_video):
        """Test two-pass without a ceiling equals single pass."""
        assert build(uhd_video, two_pass=True) == build(uhd_video, two_pass=False)


class TestScaling:
    """Test scale filter selection."""

    def test_portrait(self):
        """Test portrait sources constrain the width."""
        video = VideoStreamInfo(index=0, codec="h264", width=1080, height=1920)

        assert build(video).output_options[9] == "scale=720:-2"

    def test_rotated(self):
        """Test sources rotated a quarter turn are portrait."""
        video = VideoStreamInfo(index=0, codec="h264", width=1920, height=1080, rotation=-90)

        assert build(video).output_options[9] == "scale=720:-2"

    @pytest.mark.parametrize("rotation", [90, 270, -270])
    def test_rotate_tag_values(self, rotation):
        """Test every quarter-turn rotate tag value counts as portrait."""
        video = VideoStreamInfo(index=0, codec="h264", width=3840, height=2160, rotation=rotation)

        assert video.is_rotated
        assert build(video).output_options[9] == "scale=720:-2"

    def test_landscape(self):
        """Test landscape sources constrain the height."""
        video = VideoStreamInfo(index=0, codec="h264", width=1920, height=1080, rotation=180)

        assert build(video).output_options[9] == "scale=-2:720"

    def test_no_upscale(self, hd_video):
        """Test sources at or below the target are not scaled."""
        assert "-vf" not in build(hd_video).output_options

    def test_original_resolution(self, uhd_video):
        """Test target 'original' disables scaling."""
        assert "-vf" not in build(uhd_video, target_resolution="original").output_options

    def test_custom_target(self, uhd_video):
        """Test other targets are honored."""
        assert build(uhd_video, target_resolution="1080p").output_options[9] == "scale=-2:1080"


class TestSoftwareVP9:
    """Test libvpx-vp9 options."""

    def test_constant_quality(self, uhd_video):
        """Test CRF with explicit zero bitrate."""
        command = build(uhd_video, target_video_codec="vp9")

        assert list(command.output_options) == base_options("vp9") + [
            "-vf",
            "scale=-2:720",
            "-cpu-used",
            "5",
            "-row-mt",
            "1",
            "-crf",
            "23",
            "-b:v",
            "0",
        ]

    def test_capped(self, hd_video):
        """Test constrained quality uses the ceiling as bitrate."""
        command = build(hd_video, target_video_codec="vp9", max_bitrate="4500k")

        assert list(command.output_options[-4:]) == ["-crf", "23", "-b:v", "4500k"]

    def test_two_pass(self, hd_video):
        """Test two-pass VP9 rate control."""
        command = build(hd_video, target_video_codec="vp9", max_bitrate="4500k", two_pass=True)

        assert list(command.output_options[-6:]) == [
            "-b:v",
            "3104k",
            "-minrate",
            "1552k",
            "-maxrate",
            "4500k",
        ]
        assert command.two_pass is True

    def test_preset_and_threads(self, hd_video):
        """Test speed mapping and thread count."""
        command = build(hd_video, target_video_codec="vp9", preset="medium", threads=2)

        assert list(command.output_options[8:]) == [
            "-cpu-used",
            "3",
            "-row-mt",
            "1",
            "-threads",
            "2",
            "-crf",
            "23",
            "-b:v",
            "0",
        ]

    def test_invalid_preset(self, hd_video):
        """Test unknown presets omit the speed flag."""
        command = build(hd_video, target_video_codec="vp9", preset="placebo")

        assert "-cpu-used" not in command.output_options
        assert "-row-mt" in command.output_options


class TestNVENC:
    """Test NVENC options."""

    def test_constant_quality(self, uhd_video):
        """Test tuning block, CUDA filters and CQ."""
        command = build(uhd_video, device=CUDA, accel="nvenc")

        assert list(command.input_options) == [
            "-init_hw_device",
            "cuda=cuda:0",
            "-filter_hw_device",
            "cuda",
        ]
        assert list(command.output_options) == base_options("h264_nvenc") + NVENC_TUNING + [
            "-vf",
            "hwupload_cuda,scale_cuda=-2:720",
            "-preset",
            "p1",
            "-cq:v",
            "23",
        ]
        assert command.two_pass is False

    def test_capped(self, hd_video):
        """Test CQ with a ceiling uses the target as buffer size."""
        command = build(hd_video, device=CUDA, accel="nvenc", max_bitrate="4500k")

        assert list(command.output_options[-6:]) == [
            "-cq:v",
            "23",
            "-maxrate",
            "4500k",
            "-bufsize",
            "3104k",
        ]

    def test_multipass(self, hd_video):
        """Test two-pass maps to NVENC multipass in one invocation."""
        command = build(
            hd_video, device=CUDA, accel="nvenc", max_bitrate="4500k", two_pass=True
        )

        assert list(command.output_options[-10:]) == [
            "-b:v",
            "3104k",
            "-minrate",
            "1552k",
            "-maxrate",
            "4500k",
            "-bufsize",
            "3104k",
            "-multipass",
            "2",
        ]
        assert command.two_pass is False

    def test_two_pass_without_ceiling(self, hd_video):
        """Test two-pass without a ceiling stays constant quality."""
        command = build(hd_video, device=CUDA, accel="nvenc", two_pass=True)

        assert list(command.output_options[-2:]) == ["-cq:v", "23"]

    def test_hevc_preset_and_no_threads(self, hd_video):
        """Test HEVC encoder name, preset mapping and thread flags."""
        command = build(
            hd_video,
            device=CUDA,
            accel="nvenc",
            target_video_codec="hevc",
            preset="medium",
            threads=8,
        )

        assert command.output_options[1] == "hevc_nvenc"
        assert ["-vf", "hwupload_cuda", "-preset", "p4"] == list(command.output_options[26:30])
        assert "-threads" not in command.output_options

    def test_vp9_unsupported(self, hd_video):
        """Test NVENC cannot encode VP9."""
        with pytest.raises(UnsupportedCodecError) as exc_info:
            build(hd_video, device=CUDA, accel="nvenc", target_video_codec="vp9")

        assert exc_info.value.codec == "vp9"
        assert exc_info.value.accel == "nvenc"


class TestQSV:
    """Test Quick Sync options."""

    def test_constant_quality(self, uhd_video):
        """Test upload chain, preset and global quality."""
        command = build(uhd_video, device=RENDER_NODE, accel="qsv")

        assert list(command.input_options) == [
            "-init_hw_device",
            "qsv=accel:/dev/dri/renderD128",
            "-filter_hw_device",
            "accel",
        ]
        assert list(command.output_options) == base_options("h264_qsv") + [
            "-vf",
            "format=nv12,hwupload=extra_hw_frames=64,scale_qsv=-2:720",
            "-preset",
            "7",
            "-global_quality",
            "23",
        ]

    def test_capped(self, uhd_video):
        """Test a ceiling only adds the max rate."""
        command = build(uhd_video, device=RENDER_NODE, accel="qsv", max_bitrate="10000k")

        assert list(command.output_options[-4:]) == ["-global_quality", "23", "-maxrate", "10000k"]
        assert "-bufsize" not in command.output_options

    def test_vp9_low_power(self, hd_video):
        """Test VP9 runs in low power mode with -q:v."""
        command = build(
            hd_video, device=RENDER_NODE, accel="qsv", target_video_codec="vp9", preset="veryslow"
        )

        assert list(command.output_options) == base_options("vp9_qsv") + [
            "-low_power",
            "1",
            "-vf",
            "format=nv12,hwupload=extra_hw_frames=64",
            "-preset",
            "1",
            "-q:v",
            "23",
        ]

    def test_requires_device(self, hd_video):
        """Test QSV without a device is a hardware error."""
        with pytest.raises(HardwareError):
            build(hd_video, accel="qsv")


class TestVAAPI:
    """Test VA-API options."""

    def test_constant_quality(self, uhd_video):
        """Test upload chain, compression level and CQP."""
        command = build(uhd_video, device=CARD, accel="vaapi")

        assert list(command.input_options) == [
            "-init_hw_device",
            "vaapi=accel:/dev/dri/card0",
            "-filter_hw_device",
            "accel",
        ]
        assert list(command.output_options) == base_options("h264_vaapi") + [
            "-vf",
            "format=nv12,hwupload,scale_vaapi=-2:720",
            "-compression_level",
            "7",
            "-qp",
            "23",
            "-global_quality",
            "23",
            "-rc_mode",
            "1",
        ]

    def test_capped(self, hd_video):
        """Test a ceiling switches to VBR."""
        command = build(
            hd_video, device=CARD, accel="vaapi", max_bitrate="4500k", target_video_codec="hevc"
        )

        assert command.output_options[1] == "hevc_vaapi"
        assert list(command.output_options[-8:]) == [
            "-b:v",
            "3104k",
            "-maxrate",
            "4500k",
            "-minrate",
            "1552k",
            "-rc_mode",
            "3",
        ]

    def test_compression_level_always_present(self, hd_video):
        """Test unknown presets use the default compression level."""
        medium = build(hd_video, device=CARD, accel="vaapi", preset="medium")
        unknown = build(hd_video, device=CARD, accel="vaapi", preset="placebo")

        assert list(medium.output_options[10:12]) == ["-compression_level", "4"]
        assert list(unknown.output_options[10:12]) == ["-compression_level", "7"]

    def test_requires_device(self, hd_video):
        """Test VA-API without a device is a hardware error."""
        with pytest.raises(HardwareError):
            build(hd_video, accel="vaapi", target_video_codec="vp9")


class TestRegistry:
    """Test builder lookup."""

    def test_software_pairings(self):
        """Test software builders per codec."""
        config = ResolvedConfig()
        vp9 = config.model_copy(update={"target_video_codec": VideoCodec.VP9})

        assert isinstance(get_codec_config(config), H264Config)
        assert isinstance(get_codec_config(vp9), VP9Config)

    def test_hardware_pairings(self):
        """Test every hardware backend has H.264 and HEVC."""
        for accel in (TranscodeHWAccel.NVENC, TranscodeHWAccel.QSV, TranscodeHWAccel.VAAPI):
            assert (accel, VideoCodec.H264) in CODEC_BUILDERS
            assert (accel, VideoCodec.HEVC) in CODEC_BUILDERS
        assert CODEC_BUILDERS[(TranscodeHWAccel.NVENC, VideoCodec.H264)] is NVENCConfig

    def test_unknown_codec(self, hd_video):
        """Test a missing codec is unsupported."""
        config = ResolvedConfig(target_video_codec="av2")

        with pytest.raises(UnsupportedCodecError):
            build_command(config, hd_video)

    def test_deterministic(self, uhd_video):
        """Test identical inputs give identical commands."""
        overrides = {"max_bitrate": "4500k", "threads": 4, "target_video_codec": "hevc"}

        first = build(uhd_video, **overrides)
        second = build(uhd_video, **overrides)

        assert first == second
        assert first.to_args("in.mkv", "out.mp4") == second.to_args("in.mkv", "out.mp4")
