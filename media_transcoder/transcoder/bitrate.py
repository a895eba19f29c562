"""
Bitrate arithmetic for capped-VBR rate control.

The configured max bitrate is a peak; the sustained (target) bitrate leaves
headroom below it. Values keep the unit suffix of the configured value,
except M and G ceilings, which are expressed in k.
"""

import math
from typing import Optional

from ..config import ResolvedConfig, TranscodeHWAccel
from ..models import BitrateDistribution
from ..utils import parse_bitrate

# Target bitrate = ceil(max / divisor); recommended for VP9 VOD encoding and
# applied to every codec. Recalibrate here only.
TARGET_BITRATE_DIVISOR = 1.45
BITRATE_EFFICIENCY_RATIO = 1 / TARGET_BITRATE_DIVISOR

# M and G ceilings are rescaled to k before the ratio is applied
UNIT_TO_KILOBITS = {"M": 1000, "G": 1000 * 1000}


def calculate_bitrates(max_bitrate: str) -> Optional[BitrateDistribution]:
    """
    Derive target, min and max bitrate from the configured ceiling.

    Args:
        max_bitrate: Ceiling such as "4500k"; "0" or "" disables it

    Returns:
        Bitrate distribution, or None when rate control is constant quality
    """
    max_value, unit = parse_bitrate(max_bitrate)
    if max_value <= 0:
        return None

    if unit in UNIT_TO_KILOBITS:
        max_value *= UNIT_TO_KILOBITS[unit]
        unit = "k"

    target = math.ceil(max_value / TARGET_BITRATE_DIVISOR)
    return BitrateDistribution(max=max_value, target=target, min=target // 2, unit=unit)


def is_bitrate_constrained(config: ResolvedConfig) -> bool:
    """Check if a max bitrate is configured."""
    return parse_bitrate(config.max_bitrate)[0] > 0


def eligible_for_two_pass(config: ResolvedConfig) -> bool:
    """
    Check if the encoder should run in two passes.

    Two-pass only applies to software encoders with a bitrate ceiling;
    without one it silently degrades to single-pass constant quality.
    """
    if not config.two_pass or config.target_video_codec is None:
        return False
    if config.accel != TranscodeHWAccel.DISABLED:
        return False
    return is_bitrate_constrained(config)


def single_pass_bufsize(bitrates: BitrateDistribution) -> int:
    """Buffer size for single-pass capped software modes."""
    return bitrates.max * 2


def hardware_vbr_bufsize(bitrates: BitrateDistribution) -> int:
    """Buffer size for NVENC CQ/VBR and multipass modes."""
    return bitrates.target
