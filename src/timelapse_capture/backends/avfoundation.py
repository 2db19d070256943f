"""
Native windowing backend - macOS AVFoundation.

AVFoundation captures whole screens by device index: 0 is usually the
camera, so screen N is device N + 1. Windows are recorded through the
primary screen's device.
"""

from typing import List, Tuple

from ..core.types import CaptureTarget, QualityProfile
from .base import BuildOptions, CaptureBackend

SCREEN_DEVICE_OFFSET = 1


def screen_device_index(target: CaptureTarget) -> int:
    """AVFoundation device index for the screen a target lives on."""
    if target.is_screen and target.id.startswith("screen:"):
        try:
            return int(target.id.split(":", 1)[1]) + SCREEN_DEVICE_OFFSET
        except ValueError:
            pass
    return SCREEN_DEVICE_OFFSET


class AVFoundationBackend(CaptureBackend):
    name = "avfoundation"

    def input_args(
        self,
        target: CaptureTarget,
        profile: QualityProfile,
        size: Tuple[int, int],
        options: BuildOptions,
    ) -> List[str]:
        return [
            "-f", "avfoundation",
            "-thread_queue_size", str(profile.thread_queue_size),
            "-framerate", str(profile.frame_rate),
            "-capture_cursor", "1" if options.show_cursor else "0",
            "-pixel_format", "uyvy422",
            *self.video_size(size),
            "-i", f"{screen_device_index(target)}:none",
        ]
