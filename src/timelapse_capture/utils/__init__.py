"""
Utils module - shared utilities.
"""

from .window_manager import (
    list_windows,
    check_dependencies,
    get_platform,
    WindowManagerError,
    DependencyMissingError,
)
from .ffmpeg import (
    encoder_version,
    get_media_info,
)

__all__ = [
    # Window manager
    "list_windows",
    "check_dependencies",
    "get_platform",
    "WindowManagerError",
    "DependencyMissingError",
    # FFmpeg
    "encoder_version",
    "get_media_info",
]
