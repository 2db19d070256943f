"""
Base backend - shared pieces of every encoder invocation.

An invocation is laid out as:
    global flags, input driver flags, -video_size WxH, input locator,
    codec/quality flags, output path
Backends only supply the driver flags and the input locator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from ..core.config import (
    FALLBACK_HEIGHT,
    FALLBACK_WIDTH,
    FFMPEG_LOG_LEVEL,
    MIN_CAPTURE_HEIGHT,
    MIN_CAPTURE_WIDTH,
    SHOW_CURSOR,
    X11_DISPLAY,
)
from ..core.types import CaptureTarget, EncoderInvocation, QualityProfile


@dataclass(frozen=True)
class BuildOptions:
    """Caller options that are not part of the quality tier."""
    show_cursor: bool = SHOW_CURSOR
    log_level: str = FFMPEG_LOG_LEVEL
    display: str = X11_DISPLAY
    # Capture windows by their known offset instead of by title
    use_coordinates: bool = False


def even_dimensions(width: int, height: int) -> Tuple[int, int]:
    """Round down to even numbers; tiny or bogus sizes become 1920x1080.

    libx264 with yuv420p rejects odd frame sizes.
    """
    try:
        width, height = int(width), int(height)
    except (TypeError, ValueError):
        return FALLBACK_WIDTH, FALLBACK_HEIGHT
    width -= width % 2
    height -= height % 2
    if width < MIN_CAPTURE_WIDTH or height < MIN_CAPTURE_HEIGHT:
        return FALLBACK_WIDTH, FALLBACK_HEIGHT
    return width, height


class CaptureBackend(ABC):
    """Builds encoder invocations for one capture driver."""

    name = "base"

    @abstractmethod
    def input_args(
        self,
        target: CaptureTarget,
        profile: QualityProfile,
        size: Tuple[int, int],
        options: BuildOptions,
    ) -> List[str]:
        """Driver flags, ``-video_size`` and the ``-i`` locator."""
        pass

    def global_args(self, options: BuildOptions) -> List[str]:
        return ["-hide_banner", "-loglevel", options.log_level]

    def output_args(self, profile: QualityProfile, size: Tuple[int, int]) -> List[str]:
        args = [
            "-c:v", "libx264",
            "-preset", profile.encoder_preset,
            "-crf", str(profile.quality_level),
            "-pix_fmt", "yuv420p",
        ]
        if profile.scale != 1.0:
            scaled_width, scaled_height = (
                int(dim * profile.scale) // 2 * 2 for dim in size
            )
            args.extend(["-vf", f"scale={scaled_width}:{scaled_height}"])
        args.extend(["-movflags", "+faststart", "-y"])
        return args

    def build(
        self,
        target: CaptureTarget,
        output_path: Path,
        profile: QualityProfile,
        options: BuildOptions,
        binary: str,
    ) -> EncoderInvocation:
        size = even_dimensions(target.geometry.width, target.geometry.height)
        args = [
            *self.global_args(options),
            *self.input_args(target, profile, size, options),
            *self.output_args(profile, size),
            str(output_path),
        ]
        return EncoderInvocation(binary=binary, args=tuple(args))

    @staticmethod
    def video_size(size: Tuple[int, int]) -> List[str]:
        return ["-video_size", f"{size[0]}x{size[1]}"]
