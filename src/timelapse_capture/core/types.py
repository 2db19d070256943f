"""
Core types - shared dataclasses used across the project.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple


class TargetKind(str, Enum):
    SCREEN = "screen"
    WINDOW = "window"


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


ACTIVE_STATES = (SessionState.STARTING, SessionState.RECORDING, SessionState.STOPPING)


@dataclass(frozen=True)
class Geometry:
    """Target position and size."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class CaptureTarget:
    """A screen or window the user may record.

    Targets are rebuilt on every enumeration; ids are not stable across
    refreshes except for ``screen:N``.
    """
    id: str
    display_name: str
    kind: TargetKind
    geometry: Geometry
    preview_image: Optional[Any] = field(default=None, compare=False, repr=False)

    @property
    def is_screen(self) -> bool:
        return self.kind is TargetKind.SCREEN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "kind": self.kind.value,
            "geometry": {
                "x": self.geometry.x,
                "y": self.geometry.y,
                "width": self.geometry.width,
                "height": self.geometry.height,
            },
        }


@dataclass
class WindowInfo:
    """A native window as reported by the platform window list."""
    title: str
    window_id: str
    pid: Optional[int]
    bounds: Optional[Geometry]
    app_name: Optional[str] = None


@dataclass(frozen=True)
class QualityProfile:
    """Named bundle of encoder tuning knobs."""
    name: str
    frame_rate: int
    encoder_preset: str
    quality_level: int
    buffer_size: str
    thread_queue_size: int
    scale: float = 1.0


@dataclass(frozen=True)
class EncoderInvocation:
    """Resolved binary plus the ordered argument list.

    The last argument is always the output path.
    """
    binary: str
    args: Tuple[str, ...]

    @property
    def output_path(self) -> Path:
        return Path(self.args[-1])

    @property
    def command(self) -> List[str]:
        return [self.binary, *self.args]


@dataclass(frozen=True)
class VideoArtifact:
    """Result of validating a recorded file."""
    path: Path
    size_bytes: int
    valid: bool


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class StatusEvent:
    """Capture status as seen by the work-session collaborator."""
    is_capturing: bool
    duration: int
    error: Optional[str] = None
    artifact: Optional[VideoArtifact] = None

    def to_dict(self) -> dict:
        data = {"isCapturing": self.is_capturing, "duration": self.duration}
        if self.error is not None:
            data["error"] = self.error
        if self.artifact is not None:
            data["artifact"] = {
                "path": str(self.artifact.path),
                "sizeBytes": self.artifact.size_bytes,
                "valid": self.artifact.valid,
            }
        return data


@dataclass(frozen=True)
class LogEvent:
    """One line of encoder stderr output."""
    line: str


@dataclass(frozen=True)
class ErrorEvent:
    """Structured failure (spawn rejection, runtime exit, escalation error...)."""
    kind: str
    message: str
    exit_code: Optional[int] = None


@dataclass(frozen=True)
class SignalEvent:
    """A shutdown step was sent to the encoder: quit, terminate or kill."""
    step: str


@dataclass(frozen=True)
class SessionStoppedEvent:
    """The encoder process has exited and shutdown bookkeeping is complete."""
    state: SessionState
    exit_code: Optional[int]
    artifact: VideoArtifact


# =============================================================================
# Session
# =============================================================================

@dataclass
class CaptureSession:
    """The single active recording owned by the orchestrator."""
    target: CaptureTarget
    output_path: Path
    started_at: datetime
    state: SessionState = SessionState.IDLE
    process: Optional[asyncio.subprocess.Process] = None
    invocation: Optional[EncoderInvocation] = None
    stop_requested_at: Optional[datetime] = None
    exit_code: Optional[int] = None
    artifact: Optional[VideoArtifact] = None
    timers: List[asyncio.TimerHandle] = field(default_factory=list)
    tasks: List[asyncio.Task] = field(default_factory=list)
    signals_sent: List[str] = field(default_factory=list)
    finished: asyncio.Event = field(default_factory=asyncio.Event)

    def is_active(self) -> bool:
        """Check if the session still holds an encoder process."""
        return self.state in ACTIVE_STATES

    def elapsed_seconds(self, until: Optional[datetime] = None) -> int:
        end = until or self.stop_requested_at or datetime.now()
        return max(0, int((end - self.started_at).total_seconds()))

    def cancel_timers(self) -> None:
        for handle in self.timers:
            handle.cancel()
        self.timers.clear()
