"""
Helper functions for the media transcoder.

This module contains parsing utilities used by configuration and planning.
"""

import re
from typing import Any, Optional

BITRATE_PATTERN = re.compile(r"^(\d+)([a-zA-Z]*)$")
RESOLUTION_PATTERN = re.compile(r"^(\d+)p?$")


def parse_bitrate(value: Any) -> tuple[int, str]:
    """
    Split a bitrate string into its numeric value and unit suffix.

    Examples: "4500k" -> (4500, "k"), "10M" -> (10, "M"), "" -> (0, "").
    Malformed strings and non-positive values yield (0, "").

    Args:
        value: Bitrate string such as "4500k"

    Returns:
        Tuple of (value, unit)
    """
    if value is None:
        return 0, ""

    match = BITRATE_PATTERN.match(str(value).strip())
    if not match:
        return 0, ""

    number = int(match.group(1))
    if number <= 0:
        return 0, ""
    return number, match.group(2)


def parse_resolution(value: Any) -> Optional[int]:
    """
    Parse a target resolution such as "720" or "1080p" into a pixel height.

    Args:
        value: Resolution string

    Returns:
        Height in pixels, or None if the value is not a valid height
    """
    match = RESOLUTION_PATTERN.match(str(value).strip().lower())
    if not match:
        return None
    height = int(match.group(1))
    return height if height > 0 else None


def parse_device_number(name: str, prefix: str) -> Optional[int]:
    """
    Extract the trailing number from a device node name.

    Args:
        name: Device entry such as "renderD128"
        prefix: Expected prefix such as "renderD"

    Returns:
        Device number, or None if the name does not match the prefix
    """
    if not name.startswith(prefix):
        return None
    suffix = name[len(prefix) :]
    return int(suffix) if suffix.isdigit() else None
