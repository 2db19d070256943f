"""
X11 backend - x11grab on Unix-like desktops.

Also the fallback for platforms we do not recognise.
"""

from typing import List, Tuple

from ..core.types import CaptureTarget, QualityProfile
from .base import BuildOptions, CaptureBackend


class X11GrabBackend(CaptureBackend):
    name = "x11grab"

    def input_args(
        self,
        target: CaptureTarget,
        profile: QualityProfile,
        size: Tuple[int, int],
        options: BuildOptions,
    ) -> List[str]:
        x = max(0, target.geometry.x)
        y = max(0, target.geometry.y)
        return [
            "-f", "x11grab",
            "-thread_queue_size", str(profile.thread_queue_size),
            "-framerate", str(profile.frame_rate),
            "-draw_mouse", "1" if options.show_cursor else "0",
            *self.video_size(size),
            "-i", f"{options.display}+{x},{y}",
        ]
