"""
Configuration models using Pydantic.

This module defines the resolved transcoding configuration. Persisted
overrides are merged onto built-in defaults once per job. Validators are
lenient: an invalid value never fails a job, it is mapped to a safe value
and logged.
"""

from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from media_transcoder.utils import get_logger, parse_bitrate, parse_resolution

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)

TARGET_AUDIO_CODEC = "aac"
TARGET_CONTAINERS = ("mov,mp4,m4a,3gp,3g2,mj2", "mp4", "mov")
ORIGINAL_RESOLUTION = "original"
DEFAULT_PRESET = "ultrafast"

PRESETS = [
    "veryslow",
    "slower",
    "slow",
    "medium",
    "fast",
    "faster",
    "veryfast",
    "superfast",
    "ultrafast",
]


class TranscodePolicy(str, Enum):
    """When an asset should be re-encoded."""

    DISABLED = "disabled"
    ALL = "all"
    OPTIMAL = "optimal"


class VideoCodec(str, Enum):
    """Target video codecs."""

    H264 = "h264"
    HEVC = "hevc"
    VP9 = "vp9"


class TranscodeHWAccel(str, Enum):
    """Hardware acceleration backends."""

    DISABLED = "disabled"
    NVENC = "nvenc"
    QSV = "qsv"
    VAAPI = "vaapi"


def _lenient_enum(enum_cls: Type[E], value: Any, field: str) -> Optional[E]:
    """Map a raw value onto an enum member, or None if it is not one."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Ignoring invalid value for {field}: {value!r}")
        return None


def _lenient_int(value: Any, field: str, default: int) -> int:
    """Coerce a raw value to int, falling back to default."""
    if isinstance(value, bool):
        logger.warning(f"Invalid value for {field}: {value!r}, using {default}")
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning(f"Invalid value for {field}: {value!r}, using {default}")
        return default


class ResolvedConfig(BaseModel):
    """
    Snapshot of the transcoding configuration for a single job.

    Enum fields hold None when the persisted value was not recognised; the
    policy resolver treats that as "do not transcode".
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    transcode: Optional[TranscodePolicy] = Field(
        default=TranscodePolicy.OPTIMAL, description="Transcode policy: disabled, all, optimal"
    )
    target_video_codec: Optional[VideoCodec] = Field(
        default=VideoCodec.H264, description="Target video codec: h264, hevc, vp9"
    )
    target_resolution: str = Field(
        default="720", description="Target height (e.g. 720, 1080p) or 'original'"
    )
    max_bitrate: str = Field(
        default="0", description="Maximum bitrate with unit suffix (e.g. 4500k), 0 to disable"
    )
    two_pass: bool = Field(default=False, description="Two-pass encoding (needs max_bitrate)")
    preset: str = Field(default=DEFAULT_PRESET, description="Encoder speed/quality preset")
    crf: int = Field(default=23, description="Constant rate factor / quality value (0-51)")
    threads: int = Field(default=0, description="Encoder thread count, 0 for automatic")
    accel: Optional[TranscodeHWAccel] = Field(
        default=TranscodeHWAccel.DISABLED,
        description="Hardware acceleration: disabled, nvenc, qsv, vaapi",
    )

    @field_validator("transcode", mode="before")
    @classmethod
    def validate_transcode(cls, v: Any) -> Optional[TranscodePolicy]:
        """Map unknown policies to None."""
        return _lenient_enum(TranscodePolicy, v, "transcode")

    @field_validator("target_video_codec", mode="before")
    @classmethod
    def validate_target_video_codec(cls, v: Any) -> Optional[VideoCodec]:
        """Map unknown codecs to None."""
        return _lenient_enum(VideoCodec, v, "target_video_codec")

    @field_validator("accel", mode="before")
    @classmethod
    def validate_accel(cls, v: Any) -> Optional[TranscodeHWAccel]:
        """Map unknown backends to None."""
        return _lenient_enum(TranscodeHWAccel, v, "accel")

    @field_validator("target_resolution", mode="before")
    @classmethod
    def validate_target_resolution(cls, v: Any) -> str:
        """Normalize to 'original' or a bare height."""
        text = str(v).strip().lower()
        if text == ORIGINAL_RESOLUTION:
            return ORIGINAL_RESOLUTION
        height = parse_resolution(text)
        if height is None:
            logger.warning(f"Invalid target resolution {v!r}, using 720")
            return "720"
        return str(height)

    @field_validator("max_bitrate", mode="before")
    @classmethod
    def validate_max_bitrate(cls, v: Any) -> str:
        """Malformed or non-positive bitrates disable the bitrate ceiling."""
        text = "" if v is None else str(v).strip()
        value, unit = parse_bitrate(text)
        if value == 0:
            if text not in ("", "0"):
                logger.warning(f"Invalid max bitrate {v!r}, bitrate ceiling disabled")
            return "0"
        return f"{value}{unit}"

    @field_validator("two_pass", mode="before")
    @classmethod
    def validate_two_pass(cls, v: Any) -> bool:
        """Accept booleans and their common string spellings."""
        if isinstance(v, bool):
            return v
        text = str(v).strip().lower()
        if text in ("true", "1", "yes", "on"):
            return True
        if text not in ("false", "0", "no", "off", ""):
            logger.warning(f"Invalid value for two_pass: {v!r}, using false")
        return False

    @field_validator("preset", mode="before")
    @classmethod
    def validate_preset(cls, v: Any) -> str:
        """Normalize case; membership is checked per encoder."""
        return str(v).strip().lower()

    @field_validator("crf", mode="before")
    @classmethod
    def validate_crf(cls, v: Any) -> int:
        """Keep CRF within the 0-51 range encoders accept."""
        crf = _lenient_int(v, "crf", 23)
        if not 0 <= crf <= 51:
            logger.warning(f"CRF {crf} out of range, using 23")
            return 23
        return crf

    @field_validator("threads", mode="before")
    @classmethod
    def validate_threads(cls, v: Any) -> int:
        """Coerce thread count to int."""
        return _lenient_int(v, "threads", 0)

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Any]] = None) -> "ResolvedConfig":
        """
        Merge persisted overrides onto the built-in defaults.

        Args:
            overrides: Mapping of field name to raw value; None values are skipped

        Returns:
            Resolved configuration
        """
        values: dict[str, Any] = {}
        for key, value in (overrides or {}).items():
            if key not in cls.model_fields:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            if value is not None:
                values[key] = value
        return cls(**values)

    @property
    def target_height(self) -> Optional[int]:
        """Target height in pixels, or None to keep the original resolution."""
        if self.target_resolution == ORIGINAL_RESOLUTION:
            return None
        return int(self.target_resolution)

    @property
    def preset_index(self) -> int:
        """Position of the preset in PRESETS, -1 if it is not a known preset."""
        try:
            return PRESETS.index(self.preset)
        except ValueError:
            return -1

    def with_accel(self, accel: TranscodeHWAccel) -> "ResolvedConfig":
        """Return a copy of this configuration using another backend."""
        return self.model_copy(update={"accel": accel})
