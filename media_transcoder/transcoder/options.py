"""
FFmpeg option building per target codec and acceleration backend.

Each (backend, codec) pairing maps to a builder class. Every builder emits
the same skeleton in the same order:

    codec/container flags, backend quality block, -vf filter chain,
    preset flags, thread flags, rate-control flags

Builders are pure: identical inputs always yield identical token sequences.
"""

from typing import Dict, List, Optional, Tuple, Type

from ..config import (
    DEFAULT_PRESET,
    PRESETS,
    TARGET_AUDIO_CODEC,
    ResolvedConfig,
    TranscodeHWAccel,
    VideoCodec,
)
from ..models import BitrateDistribution, HardwareDevice, TranscodeCommand, VideoStreamInfo
from ..utils import HardwareError, UnsupportedCodecError, get_logger
from .bitrate import eligible_for_two_pass, hardware_vbr_bufsize, single_pass_bufsize

logger = get_logger(__name__)


class BaseCodecConfig:
    """Software encoding options shared by every codec."""

    def __init__(self, config: ResolvedConfig, device: Optional[HardwareDevice] = None):
        """
        Initialize option builder.

        Args:
            config: Resolved configuration
            device: Accelerator device (hardware builders only)
        """
        self.config = config
        self.device = device

    @property
    def codec(self) -> VideoCodec:
        """Target video codec."""
        if self.config.target_video_codec is None:
            raise UnsupportedCodecError("unknown", self._accel_name)
        return self.config.target_video_codec

    @property
    def _accel_name(self) -> str:
        return self.config.accel.value if self.config.accel else "unknown"

    def get_options(
        self,
        video: VideoStreamInfo,
        bitrates: Optional[BitrateDistribution],
    ) -> TranscodeCommand:
        """
        Build the encoder command for a video stream.

        Args:
            video: Primary video stream
            bitrates: Bitrate distribution, None for constant quality

        Returns:
            Encoder command
        """
        output = self.get_base_output_options()

        filters = self.get_filter_options(video)
        if filters:
            output.extend(["-vf", ",".join(filters)])

        output.extend(self.get_preset_options())
        output.extend(self.get_thread_options())
        output.extend(self.get_bitrate_options(bitrates))

        return TranscodeCommand(
            input_options=self.get_base_input_options(),
            output_options=output,
            two_pass=self.eligible_for_two_pass(bitrates),
        )

    def get_video_codec(self) -> str:
        """Encoder name passed to -vcodec."""
        return self.codec.value

    def get_base_input_options(self) -> List[str]:
        return []

    def get_base_output_options(self) -> List[str]:
        return [
            "-vcodec",
            self.get_video_codec(),
            "-acodec",
            TARGET_AUDIO_CODEC,
            "-movflags",
            "faststart",
            "-fps_mode",
            "passthrough",
        ]

    def get_filter_options(self, video: VideoStreamInfo) -> List[str]:
        if self.should_scale(video):
            return [f"scale={self.get_scaling(video)}"]
        return []

    def get_preset_options(self) -> List[str]:
        if self.config.preset_index < 0:
            logger.debug(f"Omitting unknown preset: {self.config.preset}")
            return []
        return ["-preset", self.config.preset]

    def get_thread_options(self) -> List[str]:
        if self.config.threads <= 0:
            return []
        return ["-threads", str(self.config.threads)]

    def get_bitrate_options(self, bitrates: Optional[BitrateDistribution]) -> List[str]:
        if bitrates is None:
            return ["-crf", str(self.config.crf)]

        if self.eligible_for_two_pass(bitrates):
            return [
                "-b:v",
                bitrates.format(bitrates.target),
                "-minrate",
                bitrates.format(bitrates.min),
                "-maxrate",
                bitrates.format(bitrates.max),
            ]

        # -bufsize is the peak bitrate at any moment, -maxrate the max rolling average
        return [
            "-crf",
            str(self.config.crf),
            "-maxrate",
            bitrates.format(bitrates.max),
            "-bufsize",
            bitrates.format(single_pass_bufsize(bitrates)),
        ]

    def eligible_for_two_pass(self, bitrates: Optional[BitrateDistribution]) -> bool:
        return bitrates is not None and eligible_for_two_pass(self.config)

    def should_scale(self, video: VideoStreamInfo) -> bool:
        """Only downscale, and only when the short edge exceeds the target."""
        target = self.config.target_height
        return target is not None and video.short_edge > target

    def get_scaling(self, video: VideoStreamInfo) -> str:
        """Constrain the short edge to the target, keeping aspect ratio."""
        target = self.config.target_height
        if video.is_vertical:
            return f"{target}:-2"
        return f"-2:{target}"


class H264Config(BaseCodecConfig):
    """libx264 options."""

    PARAMS_FLAG = "-x264-params"

    def get_thread_options(self) -> List[str]:
        if self.config.threads <= 0:
            return []
        return [
            *super().get_thread_options(),
            self.PARAMS_FLAG,
            "pools=none",
            self.PARAMS_FLAG,
            f"frame-threads={self.config.threads}",
        ]


class HEVCConfig(H264Config):
    """libx265 options."""

    PARAMS_FLAG = "-x265-params"


class VP9Config(BaseCodecConfig):
    """libvpx-vp9 options."""

    def get_preset_options(self) -> List[str]:
        index = self.config.preset_index
        if index < 0:
            return []
        # speeds above 5 switch libvpx to realtime mode, which overrides -crf and -b:v
        return ["-cpu-used", str(min(index, 5))]

    def get_thread_options(self) -> List[str]:
        return ["-row-mt", "1", *super().get_thread_options()]

    def get_bitrate_options(self, bitrates: Optional[BitrateDistribution]) -> List[str]:
        if bitrates is not None and self.eligible_for_two_pass(bitrates):
            return [
                "-b:v",
                bitrates.format(bitrates.target),
                "-minrate",
                bitrates.format(bitrates.min),
                "-maxrate",
                bitrates.format(bitrates.max),
            ]
        # -b:v 0 puts libvpx in constant quality mode, a ceiling makes it constrained quality
        max_bitrate = bitrates.format(bitrates.max) if bitrates is not None else "0"
        return ["-crf", str(self.config.crf), "-b:v", max_bitrate]


class BaseHWConfig(BaseCodecConfig):
    """Options shared by hardware encoders."""

    ENCODER_SUFFIX = ""

    def get_video_codec(self) -> str:
        return f"{self.codec.value}_{self.ENCODER_SUFFIX}"

    def get_thread_options(self) -> List[str]:
        return []

    def eligible_for_two_pass(self, bitrates: Optional[BitrateDistribution]) -> bool:
        return False

    def require_device_path(self) -> str:
        """
        Path of the DRI device node.

        Raises:
            HardwareError: If no device was selected
        """
        if self.device is None or not self.device.path:
            raise HardwareError(f"No {self.ENCODER_SUFFIX.upper()} device selected")
        return self.device.path

    def clamped_preset_index(self, index: int) -> int:
        """Map the preset index onto the 1-7 range hardware encoders use."""
        return min(6, index) + 1


class NVENCConfig(BaseHWConfig):
    """NVIDIA NVENC options."""

    ENCODER_SUFFIX = "nvenc"

    def get_base_input_options(self) -> List[str]:
        index = self.device.index if self.device and self.device.index is not None else 0
        return ["-init_hw_device", f"cuda=cuda:{index}", "-filter_hw_device", "cuda"]

    def get_base_output_options(self) -> List[str]:
        return [
            *super().get_base_output_options(),
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

    def get_filter_options(self, video: VideoStreamInfo) -> List[str]:
        filters = ["hwupload_cuda"]
        if self.should_scale(video):
            filters.append(f"scale_cuda={self.get_scaling(video)}")
        return filters

    def get_preset_options(self) -> List[str]:
        index = self.config.preset_index
        if index < 0:
            return []
        # p1 is the fastest and p7 the slowest, so the index is reversed
        return ["-preset", f"p{7 - min(6, index)}"]

    def get_bitrate_options(self, bitrates: Optional[BitrateDistribution]) -> List[str]:
        if bitrates is None:
            return ["-cq:v", str(self.config.crf)]

        bufsize = bitrates.format(hardware_vbr_bufsize(bitrates))
        if self.config.two_pass:
            return [
                "-b:v",
                bitrates.format(bitrates.target),
                "-minrate",
                bitrates.format(bitrates.min),
                "-maxrate",
                bitrates.format(bitrates.max),
                "-bufsize",
                bufsize,
                "-multipass",
                "2",
            ]
        return [
            "-cq:v",
            str(self.config.crf),
            "-maxrate",
            bitrates.format(bitrates.max),
            "-bufsize",
            bufsize,
        ]


class QSVConfig(BaseHWConfig):
    """Intel Quick Sync options."""

    ENCODER_SUFFIX = "qsv"

    def get_base_input_options(self) -> List[str]:
        return [
            "-init_hw_device",
            f"qsv=accel:{self.require_device_path()}",
            "-filter_hw_device",
            "accel",
        ]

    def get_base_output_options(self) -> List[str]:
        options = super().get_base_output_options()
        if self.codec == VideoCodec.VP9:
            # the VP9 QSV encoder only exists in low power mode
            options.extend(["-low_power", "1"])
        return options

    def get_filter_options(self, video: VideoStreamInfo) -> List[str]:
        filters = ["format=nv12", "hwupload=extra_hw_frames=64"]
        if self.should_scale(video):
            filters.append(f"scale_qsv={self.get_scaling(video)}")
        return filters

    def get_preset_options(self) -> List[str]:
        index = self.config.preset_index
        if index < 0:
            return []
        return ["-preset", str(self.clamped_preset_index(index))]

    def get_bitrate_options(self, bitrates: Optional[BitrateDistribution]) -> List[str]:
        quality_flag = "-q:v" if self.codec == VideoCodec.VP9 else "-global_quality"
        options = [quality_flag, str(self.config.crf)]
        if bitrates is not None:
            options.extend(["-maxrate", bitrates.format(bitrates.max)])
        return options


class VAAPIConfig(BaseHWConfig):
    """VA-API options."""

    ENCODER_SUFFIX = "vaapi"

    # rc_mode values of the VA-API encoders
    RC_MODE_CQP = "1"
    RC_MODE_VBR = "3"

    def get_base_input_options(self) -> List[str]:
        return [
            "-init_hw_device",
            f"vaapi=accel:{self.require_device_path()}",
            "-filter_hw_device",
            "accel",
        ]

    def get_filter_options(self, video: VideoStreamInfo) -> List[str]:
        filters = ["format=nv12", "hwupload"]
        if self.should_scale(video):
            filters.append(f"scale_vaapi={self.get_scaling(video)}")
        return filters

    def get_preset_options(self) -> List[str]:
        index = self.config.preset_index
        if index < 0:
            index = PRESETS.index(DEFAULT_PRESET)
        return ["-compression_level", str(self.clamped_preset_index(index))]

    def get_bitrate_options(self, bitrates: Optional[BitrateDistribution]) -> List[str]:
        # VA-API cannot combine a quality target with a bitrate ceiling
        if bitrates is None:
            crf = str(self.config.crf)
            return ["-qp", crf, "-global_quality", crf, "-rc_mode", self.RC_MODE_CQP]
        return [
            "-b:v",
            bitrates.format(bitrates.target),
            "-maxrate",
            bitrates.format(bitrates.max),
            "-minrate",
            bitrates.format(bitrates.min),
            "-rc_mode",
            self.RC_MODE_VBR,
        ]


CODEC_BUILDERS: Dict[Tuple[TranscodeHWAccel, VideoCodec], Type[BaseCodecConfig]] = {
    (TranscodeHWAccel.DISABLED, VideoCodec.H264): H264Config,
    (TranscodeHWAccel.DISABLED, VideoCodec.HEVC): HEVCConfig,
    (TranscodeHWAccel.DISABLED, VideoCodec.VP9): VP9Config,
    (TranscodeHWAccel.NVENC, VideoCodec.H264): NVENCConfig,
    (TranscodeHWAccel.NVENC, VideoCodec.HEVC): NVENCConfig,
    (TranscodeHWAccel.QSV, VideoCodec.H264): QSVConfig,
    (TranscodeHWAccel.QSV, VideoCodec.HEVC): QSVConfig,
    (TranscodeHWAccel.QSV, VideoCodec.VP9): QSVConfig,
    (TranscodeHWAccel.VAAPI, VideoCodec.H264): VAAPIConfig,
    (TranscodeHWAccel.VAAPI, VideoCodec.HEVC): VAAPIConfig,
    (TranscodeHWAccel.VAAPI, VideoCodec.VP9): VAAPIConfig,
}


def get_codec_config(
    config: ResolvedConfig,
    device: Optional[HardwareDevice] = None,
) -> BaseCodecConfig:
    """
    Look up the option builder for the configured codec and backend.

    Raises:
        UnsupportedCodecError: If the pairing has no builder
    """
    codec = config.target_video_codec
    accel = config.accel
    builder = CODEC_BUILDERS.get((accel, codec)) if codec and accel else None
    if builder is None:
        raise UnsupportedCodecError(
            codec.value if codec else "unknown", accel.value if accel else "unknown"
        )
    return builder(config, device)


def build_command(
    config: ResolvedConfig,
    video: VideoStreamInfo,
    bitrates: Optional[BitrateDistribution] = None,
    device: Optional[HardwareDevice] = None,
) -> TranscodeCommand:
    """
    Build the encoder command for the configured codec and backend.

    Args:
        config: Resolved configuration
        video: Primary video stream
        bitrates: Bitrate distribution, None for constant quality
        device: Selected accelerator device

    Returns:
        Encoder command

    Raises:
        UnsupportedCodecError: If the codec/backend pairing is unsupported
        HardwareError: If a hardware builder has no device to target
    """
    command = get_codec_config(config, device).get_options(video, bitrates)
    logger.debug(f"Built command: {' '.join(command.output_options)}")
    return command
