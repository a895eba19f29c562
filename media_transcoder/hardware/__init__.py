"""
Hardware device selection for video encoding acceleration.
"""

from .devices import (
    DEVICE_PREFERENCES,
    HardwareDeviceSelector,
    first_by_prefix,
    list_device_dir,
    prefer_card_then_render,
    prefer_render_node,
)

__all__ = [
    "DEVICE_PREFERENCES",
    "HardwareDeviceSelector",
    "first_by_prefix",
    "list_device_dir",
    "prefer_card_then_render",
    "prefer_render_node",
]
