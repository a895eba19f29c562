"""
Accelerator device selection for hardware encoding.

QSV and VAAPI address a DRI device node; NVENC addresses a CUDA device by
index. Which node a backend prefers is a ranking function per backend, so
platforms with other naming schemes can plug in their own.
"""

import asyncio
import os
from typing import Awaitable, Callable, Dict, Iterable, Optional, Sequence

from ..config import TranscodeHWAccel
from ..models import HardwareDevice
from ..utils import HardwareError, get_logger, parse_device_number

logger = get_logger(__name__)

DEFAULT_DEVICE_DIR = "/dev/dri"
CUDA_DEVICE_INDEX = 0

DeviceLister = Callable[[str], Awaitable[list[str]]]
DevicePreference = Callable[[Sequence[str]], Optional[str]]


async def list_device_dir(path: str) -> list[str]:
    """List a device directory without blocking the event loop."""
    return await asyncio.to_thread(os.listdir, path)


def first_by_prefix(names: Iterable[str], prefixes: Sequence[str]) -> Optional[str]:
    """
    Pick the lowest-numbered device of the most preferred class.

    Args:
        names: Directory entries
        prefixes: Device name prefixes, most preferred first

    Returns:
        Selected entry, or None if nothing matches
    """
    candidates = list(names)
    for prefix in prefixes:
        numbered = []
        for name in candidates:
            number = parse_device_number(name, prefix)
            if number is not None:
                numbered.append((number, name))
        if numbered:
            return min(numbered)[1]
    return None


def prefer_render_node(names: Sequence[str]) -> Optional[str]:
    """Lowest-numbered render node."""
    return first_by_prefix(names, ("renderD",))


def prefer_card_then_render(names: Sequence[str]) -> Optional[str]:
    """Card device first, else the lowest-numbered render node."""
    return first_by_prefix(names, ("card", "renderD"))


DEVICE_PREFERENCES: Dict[TranscodeHWAccel, DevicePreference] = {
    TranscodeHWAccel.QSV: prefer_render_node,
    TranscodeHWAccel.VAAPI: prefer_card_then_render,
}


class HardwareDeviceSelector:
    """
    Selects the accelerator device a hardware command should target.

    The only filesystem access is listing the device directory.
    """

    def __init__(
        self,
        list_devices: DeviceLister = list_device_dir,
        device_dir: str = DEFAULT_DEVICE_DIR,
        preferences: Optional[Dict[TranscodeHWAccel, DevicePreference]] = None,
    ):
        """
        Initialize device selector.

        Args:
            list_devices: Awaitable directory listing
            device_dir: Directory holding DRI device nodes
            preferences: Ranking function per backend (defaults to DEVICE_PREFERENCES)
        """
        self.list_devices = list_devices
        self.device_dir = device_dir
        self.preferences = preferences or DEVICE_PREFERENCES

    async def select(self, accel: TranscodeHWAccel) -> Optional[HardwareDevice]:
        """
        Select a device for the given backend.

        Args:
            accel: Hardware acceleration backend

        Returns:
            Selected device, or None for software encoding

        Raises:
            HardwareError: If no usable device is available
        """
        if accel == TranscodeHWAccel.DISABLED:
            return None

        if accel == TranscodeHWAccel.NVENC:
            return HardwareDevice(name="cuda", index=CUDA_DEVICE_INDEX)

        preference = self.preferences.get(accel)
        if preference is None:
            raise HardwareError(f"No device preference defined for {accel.value}")

        try:
            entries = await self.list_devices(self.device_dir)
        except OSError as e:
            raise HardwareError(f"Failed to list devices in {self.device_dir}: {e}") from e

        name = preference(entries)
        if name is None:
            raise HardwareError(f"No {accel.value.upper()} device found in {self.device_dir}")

        device = HardwareDevice(name=name, path=f"{self.device_dir}/{name}")
        logger.debug(f"Selected {accel.value} device: {device.path}")
        return device
