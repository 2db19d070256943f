"""
Capture module - target enumeration, command building, process supervision
and status fan-out.
"""

from .artifact import validate_artifact
from .broadcaster import StatusBroadcaster
from .commands import CommandBuilder, build_invocation
from .orchestrator import CaptureOrchestrator
from .sources import CaptureSource, DesktopSourceProvider, SourceProvider
from .targets import (
    TargetEnumerator,
    estimate_window_geometry,
    filter_window_sources,
    is_exact_app_match,
)

__all__ = [
    "CaptureOrchestrator",
    "CaptureSource",
    "CommandBuilder",
    "DesktopSourceProvider",
    "SourceProvider",
    "StatusBroadcaster",
    "TargetEnumerator",
    "build_invocation",
    "estimate_window_geometry",
    "filter_window_sources",
    "is_exact_app_match",
    "validate_artifact",
]
