"""
Desktop compositor backend - Windows gdigrab.

Windows are captured by title when the title is safe to hand to gdigrab;
screens, and windows whose titles gdigrab cannot match reliably, are
captured by desktop coordinates.
"""

import re
from typing import List, Tuple

from ..core.types import CaptureTarget, QualityProfile
from .base import BuildOptions, CaptureBackend

# Printable ASCII minus characters that break gdigrab's title= matching
_UNSAFE_TITLE = re.compile(r"""[^\x20-\x7e]|["'=\\|:]""")


def is_title_safe(title: str) -> bool:
    return bool(title.strip()) and _UNSAFE_TITLE.search(title) is None


class GdigrabBackend(CaptureBackend):
    name = "gdigrab"

    def input_args(
        self,
        target: CaptureTarget,
        profile: QualityProfile,
        size: Tuple[int, int],
        options: BuildOptions,
    ) -> List[str]:
        args = [
            "-f", "gdigrab",
            "-rtbufsize", profile.buffer_size,
            "-thread_queue_size", str(profile.thread_queue_size),
            "-framerate", str(profile.frame_rate),
            "-draw_mouse", "1" if options.show_cursor else "0",
            *self.video_size(size),
        ]

        by_title = (
            not target.is_screen
            and not options.use_coordinates
            and is_title_safe(target.display_name)
        )
        if by_title:
            args.extend(["-i", f"title={target.display_name}"])
        else:
            args.extend([
                "-offset_x", str(target.geometry.x),
                "-offset_y", str(target.geometry.y),
                "-i", "desktop",
            ])
        return args
