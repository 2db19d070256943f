"""
Backends module - one encoder command builder per capture driver.

The driver is chosen once from the host platform and reused for every
session.
"""

import sys
from enum import Enum
from typing import Optional

from .base import BuildOptions, CaptureBackend, even_dimensions
from .avfoundation import AVFoundationBackend
from .gdigrab import GdigrabBackend
from .x11grab import X11GrabBackend


class CaptureDriver(str, Enum):
    DESKTOP_COMPOSITOR = "gdigrab"
    NATIVE_WINDOWING = "avfoundation"
    X11 = "x11grab"


_BACKENDS = {
    CaptureDriver.DESKTOP_COMPOSITOR: GdigrabBackend,
    CaptureDriver.NATIVE_WINDOWING: AVFoundationBackend,
    CaptureDriver.X11: X11GrabBackend,
}


def detect_driver(platform: Optional[str] = None) -> CaptureDriver:
    """Pick the capture driver for a ``sys.platform`` value.

    Unknown platforms get x11grab, the most portable choice.
    """
    platform = platform or sys.platform
    if platform == "win32":
        return CaptureDriver.DESKTOP_COMPOSITOR
    if platform == "darwin":
        return CaptureDriver.NATIVE_WINDOWING
    return CaptureDriver.X11


def get_backend(driver: CaptureDriver) -> CaptureBackend:
    return _BACKENDS[driver]()


__all__ = [
    "BuildOptions",
    "CaptureBackend",
    "CaptureDriver",
    "AVFoundationBackend",
    "GdigrabBackend",
    "X11GrabBackend",
    "detect_driver",
    "even_dimensions",
    "get_backend",
]
