"""
Target enumeration - capturable screens and windows.

Window sources go through an ordered filter pipeline before they are offered.
Each stage is a plain predicate so the heuristics can be tested without any
display or capture backend.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from ..core.config import APP_NAME, FALLBACK_HEIGHT, FALLBACK_WIDTH
from ..core.types import CaptureTarget, Geometry, TargetKind
from .sources import CaptureSource, DesktopSourceProvider, SourceProvider

logger = logging.getLogger(__name__)

# Previews are requested at 1/PREVIEW_SCALE of the display size
PREVIEW_SCALE = 4
MIN_PREVIEW_SIZE = 20

MIN_WINDOW_WIDTH = 640
MIN_WINDOW_HEIGHT = 480
DEFAULT_WINDOW_WIDTH = 1280
DEFAULT_WINDOW_HEIGHT = 720

PRIMARY_SCREEN_ID = "screen:0"
SCREEN_LABEL = "Entire screen"

DENY_LIST = (
    APP_NAME,
    "program manager",
    "window host",
    "task manager",
    "settings",
    "control panel",
)

# Names that show up as substrings of unrelated titles ("zoomit", "steams").
# A window mentioning one is only offered if that app really has a window.
AMBIGUOUS_APPS = (
    "zoom",
    "teams",
    "whatsapp",
)


# =============================================================================
# Filter pipeline
# =============================================================================

def is_exact_app_match(title: str, app_name: str) -> bool:
    """True if ``app_name`` appears in ``title`` as a whole space-delimited word.

    Covers titles equal to the name, starting with it ("Zoom Meeting") and
    containing it as a separate token ("Meeting - Zoom").
    """
    pattern = rf"(?:^|\s){re.escape(app_name.lower())}(?:\s|$)"
    return re.search(pattern, title.strip().lower()) is not None


@dataclass
class FilterContext:
    deny_list: Sequence[str]
    ambiguous_apps: Sequence[str]
    present_apps: Set[str] = field(default_factory=set)
    seen_ids: Set[str] = field(default_factory=set)


def _has_title(source: CaptureSource, ctx: FilterContext) -> bool:
    return bool(source.name and source.name.strip())


def _not_denied(source: CaptureSource, ctx: FilterContext) -> bool:
    title = source.name.lower()
    return not any(pattern.lower() in title for pattern in ctx.deny_list)


def _is_rendering(source: CaptureSource, ctx: FilterContext) -> bool:
    width, height = source.preview_size
    return width >= MIN_PREVIEW_SIZE and height >= MIN_PREVIEW_SIZE


def _first_of_id(source: CaptureSource, ctx: FilterContext) -> bool:
    if source.id in ctx.seen_ids:
        return False
    ctx.seen_ids.add(source.id)
    return True


def _ambiguous_app_present(source: CaptureSource, ctx: FilterContext) -> bool:
    title = source.name.lower()
    for app in ctx.ambiguous_apps:
        if app.lower() in title and app.lower() not in ctx.present_apps:
            return False
    return True


WindowFilter = Callable[[CaptureSource, FilterContext], bool]

WINDOW_FILTERS: Tuple[Tuple[str, WindowFilter], ...] = (
    ("has_title", _has_title),
    ("not_denied", _not_denied),
    ("is_rendering", _is_rendering),
    ("first_of_id", _first_of_id),
    ("ambiguous_app_present", _ambiguous_app_present),
)


def find_present_apps(sources: Iterable[CaptureSource],
                      ambiguous_apps: Sequence[str]) -> Set[str]:
    """Ambiguous app names that have an exact-match window among ``sources``."""
    present = set()
    for source in sources:
        if not source.name:
            continue
        for app in ambiguous_apps:
            if is_exact_app_match(source.name, app):
                present.add(app.lower())
    return present


def filter_window_sources(
    sources: Sequence[CaptureSource],
    deny_list: Sequence[str] = DENY_LIST,
    ambiguous_apps: Sequence[str] = AMBIGUOUS_APPS,
) -> List[CaptureSource]:
    """Run window sources through WINDOW_FILTERS, keeping source order."""
    windows = [s for s in sources if not s.is_screen]
    ctx = FilterContext(
        deny_list=deny_list,
        ambiguous_apps=ambiguous_apps,
        present_apps=find_present_apps(windows, ambiguous_apps),
    )

    kept = []
    for source in windows:
        rejected_by = next(
            (name for name, accept in WINDOW_FILTERS if not accept(source, ctx)),
            None,
        )
        if rejected_by:
            logger.debug(f"Skipping window {source.name!r}: {rejected_by}")
            continue
        kept.append(source)
    return kept


def estimate_window_geometry(preview_width: int, preview_height: int,
                             scale: int = PREVIEW_SCALE,
                             x: int = 0, y: int = 0) -> Geometry:
    """Scale a preview back up to an approximate window size."""
    width = preview_width * scale
    height = preview_height * scale
    if width < MIN_WINDOW_WIDTH or height < MIN_WINDOW_HEIGHT:
        width, height = DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT
    return Geometry(x=x, y=y, width=width, height=height)


# =============================================================================
# Enumerator
# =============================================================================

class TargetEnumerator:
    """Lists capture targets; never raises."""

    def __init__(
        self,
        provider: Optional[SourceProvider] = None,
        deny_list: Sequence[str] = DENY_LIST,
        ambiguous_apps: Sequence[str] = AMBIGUOUS_APPS,
    ):
        self.provider = provider or DesktopSourceProvider()
        self.deny_list = deny_list
        self.ambiguous_apps = ambiguous_apps

    def display_resolution(self) -> Tuple[int, int]:
        """Primary display size, or 1920x1080 if it cannot be read."""
        try:
            width, height = self.provider.display_resolution()
        except Exception as e:
            logger.warning(f"Could not read display resolution, using default: {e}")
            return FALLBACK_WIDTH, FALLBACK_HEIGHT
        if width <= 0 or height <= 0:
            return FALLBACK_WIDTH, FALLBACK_HEIGHT
        return width, height

    def fallback_target(self) -> CaptureTarget:
        width, height = self.display_resolution()
        return CaptureTarget(
            id=PRIMARY_SCREEN_ID,
            display_name=SCREEN_LABEL,
            kind=TargetKind.SCREEN,
            geometry=Geometry(x=0, y=0, width=width, height=height),
        )

    def list_targets(self) -> List[CaptureTarget]:
        """Screens first, then the windows that survive filtering."""
        width, height = self.display_resolution()
        preview_size = (max(1, width // PREVIEW_SCALE), max(1, height // PREVIEW_SCALE))

        try:
            sources = self.provider.get_sources(preview_size, PREVIEW_SCALE)
            targets = self._build_targets(sources, width, height)
        except Exception as e:
            logger.warning(f"Target enumeration failed, offering full screen only: {e}")
            return [self.fallback_target()]

        logger.info(
            f"Offering {len(targets)} targets "
            f"({sum(1 for t in targets if t.is_screen)} screens)"
        )
        return targets

    def find_target(self, target_id: str,
                    display_name: Optional[str] = None) -> CaptureTarget:
        """Resolve a target id, falling back to the whole screen if it is gone."""
        targets = self.list_targets()
        for target in targets:
            if target.id == target_id:
                return target
        if display_name:
            for target in targets:
                if target.display_name == display_name:
                    return target
        logger.warning(f"Target {target_id!r} not found, recording full screen instead")
        return targets[0]

    def _build_targets(self, sources: Sequence[CaptureSource],
                       width: int, height: int) -> List[CaptureTarget]:
        screens = []
        for source in sources:
            if not source.is_screen:
                continue
            geometry = source.geometry
            if source.id == PRIMARY_SCREEN_ID or geometry is None:
                geometry = Geometry(
                    x=geometry.x if geometry else 0,
                    y=geometry.y if geometry else 0,
                    width=width,
                    height=height,
                )
            screens.append(CaptureTarget(
                id=source.id,
                display_name=SCREEN_LABEL if source.id == PRIMARY_SCREEN_ID else source.name,
                kind=TargetKind.SCREEN,
                geometry=geometry,
                preview_image=source.preview,
            ))

        if not any(t.id == PRIMARY_SCREEN_ID for t in screens):
            screens.insert(0, self.fallback_target())
        else:
            screens.sort(key=lambda t: t.id != PRIMARY_SCREEN_ID)

        windows = []
        for source in filter_window_sources(sources, self.deny_list, self.ambiguous_apps):
            preview_width, preview_height = source.preview_size
            origin = source.geometry
            windows.append(CaptureTarget(
                id=source.id,
                display_name=source.name,
                kind=TargetKind.WINDOW,
                geometry=estimate_window_geometry(
                    preview_width, preview_height, PREVIEW_SCALE,
                    x=origin.x if origin else 0,
                    y=origin.y if origin else 0,
                ),
                preview_image=source.preview,
            ))

        return screens + windows
