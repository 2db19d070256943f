"""
Core module - shared types, errors and configuration.
"""

from .types import (
    ACTIVE_STATES,
    CaptureSession,
    CaptureTarget,
    EncoderInvocation,
    ErrorEvent,
    Geometry,
    LogEvent,
    QualityProfile,
    SessionState,
    SessionStoppedEvent,
    SignalEvent,
    StatusEvent,
    TargetKind,
    VideoArtifact,
    WindowInfo,
)
from .errors import (
    CaptureError,
    BinaryNotFound,
    SpawnFailure,
    RuntimeExit,
    ShutdownEscalationFailure,
    InvalidArtifact,
)
from .config import (
    get_captures_dir,
    get_ffmpeg_path,
    get_ffprobe_path,
    get_quality_profile,
    get_session_output_path,
    QUALITY_PROFILES,
)

__all__ = [
    # Types
    "ACTIVE_STATES",
    "CaptureSession",
    "CaptureTarget",
    "EncoderInvocation",
    "ErrorEvent",
    "Geometry",
    "LogEvent",
    "QualityProfile",
    "SessionState",
    "SessionStoppedEvent",
    "SignalEvent",
    "StatusEvent",
    "TargetKind",
    "VideoArtifact",
    "WindowInfo",
    # Errors
    "CaptureError",
    "BinaryNotFound",
    "SpawnFailure",
    "RuntimeExit",
    "ShutdownEscalationFailure",
    "InvalidArtifact",
    # Config
    "get_captures_dir",
    "get_ffmpeg_path",
    "get_ffprobe_path",
    "get_quality_profile",
    "get_session_output_path",
    "QUALITY_PROFILES",
]
