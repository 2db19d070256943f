"""
Capture sources - raw screens and windows with low-resolution previews.

The enumerator works on whatever a SourceProvider returns, so tests and other
hosts can swap the desktop implementation out.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import mss
from mss.exception import ScreenShotError
from PIL import Image

from ..core.config import FALLBACK_HEIGHT, FALLBACK_WIDTH
from ..core.types import Geometry, WindowInfo
from ..utils.window_manager import WindowManagerError, list_windows

logger = logging.getLogger(__name__)

SCREEN_PREFIX = "screen:"
WINDOW_PREFIX = "window:"


@dataclass
class CaptureSource:
    """One entry of the underlying source list."""
    id: str
    name: str
    preview: Optional[Any] = field(default=None, repr=False)
    geometry: Optional[Geometry] = None

    @property
    def is_screen(self) -> bool:
        return self.id.startswith(SCREEN_PREFIX)

    @property
    def preview_size(self) -> Tuple[int, int]:
        if self.preview is None:
            return (0, 0)
        return tuple(self.preview.size)


class SourceProvider(ABC):
    """Abstract provider of screens and windows."""

    @abstractmethod
    def display_resolution(self) -> Tuple[int, int]:
        """Return the primary display size in pixels."""
        pass

    @abstractmethod
    def get_sources(self, preview_size: Tuple[int, int], scale: int) -> List[CaptureSource]:
        """Return screen and window sources.

        Screen previews fit inside ``preview_size``; window previews are the
        window bitmap shrunk by ``scale``.
        """
        pass


def _to_image(shot) -> Image.Image:
    return Image.frombytes("RGB", shot.size, shot.bgra, "raw", "BGRX")


class DesktopSourceProvider(SourceProvider):
    """Screens via mss, windows via the native window list."""

    def display_resolution(self) -> Tuple[int, int]:
        with mss.mss() as sct:
            monitors = sct.monitors
            primary = monitors[1] if len(monitors) > 1 else monitors[0]
            width, height = primary.get("width", 0), primary.get("height", 0)
        if width <= 0 or height <= 0:
            logger.warning("Primary display reported no size, using 1920x1080")
            return FALLBACK_WIDTH, FALLBACK_HEIGHT
        return width, height

    def get_sources(self, preview_size: Tuple[int, int], scale: int) -> List[CaptureSource]:
        sources = []
        with mss.mss() as sct:
            for index, monitor in enumerate(sct.monitors[1:]):
                preview = _to_image(sct.grab(monitor))
                preview.thumbnail(preview_size)
                sources.append(CaptureSource(
                    id=f"{SCREEN_PREFIX}{index}",
                    name=f"Screen {index + 1}",
                    preview=preview,
                    geometry=Geometry(
                        x=monitor["left"],
                        y=monitor["top"],
                        width=monitor["width"],
                        height=monitor["height"],
                    ),
                ))

            try:
                windows = list_windows()
            except WindowManagerError as e:
                logger.warning(f"Window list unavailable, offering screens only: {e}")
                windows = []

            for window in windows:
                sources.append(CaptureSource(
                    id=f"{WINDOW_PREFIX}{window.window_id}",
                    name=window.title,
                    preview=self._window_preview(sct, window, scale),
                    geometry=window.bounds,
                ))

        logger.info(f"Enumerated {len(sources)} capture sources")
        return sources

    def _window_preview(self, sct, window: WindowInfo, scale: int) -> Optional[Image.Image]:
        bounds = window.bounds
        if bounds is None or bounds.width <= 0 or bounds.height <= 0:
            return None
        region = {
            "left": bounds.x,
            "top": bounds.y,
            "width": bounds.width,
            "height": bounds.height,
        }
        try:
            image = _to_image(sct.grab(region))
        except ScreenShotError as e:
            logger.debug(f"No preview for window {window.title!r}: {e}")
            return None
        return image.resize((max(1, bounds.width // scale), max(1, bounds.height // scale)))
