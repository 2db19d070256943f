"""
Capture errors - failure taxonomy for the capture session lifecycle.

Only BinaryNotFound is ever raised to callers of the orchestrator. The other
errors are turned into error events and published to observers.
"""

from pathlib import Path
from typing import Optional


class CaptureError(Exception):
    """Base exception for capture errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class BinaryNotFound(CaptureError):
    """Encoder executable is missing at the expected path."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"ffmpeg not found at {path}"
        else:
            message = (
                "ffmpeg not found. Please install:\n"
                "  macOS: brew install ffmpeg\n"
                "  Ubuntu/Debian: sudo apt install ffmpeg\n"
                "  Windows: choco install ffmpeg\n"
                "or point FFMPEG_PATH at the executable."
            )
        super().__init__(message)


class SpawnFailure(CaptureError):
    """The OS could not create the encoder process."""
    pass


class RuntimeExit(CaptureError):
    """Encoder exited while it was still supposed to be recording."""

    def __init__(self, exit_code: Optional[int]):
        self.exit_code = exit_code
        super().__init__(f"Encoder exited unexpectedly with code {exit_code}")


class ShutdownEscalationFailure(CaptureError):
    """Sending a stop request or signal to the encoder failed."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Failed to send {step} to encoder: {cause}")


class InvalidArtifact(CaptureError):
    """The recorded file is missing or too small to hold real frames."""

    def __init__(self, path: Path, size_bytes: int):
        self.path = path
        self.size_bytes = size_bytes
        super().__init__(
            f"Recorded file {path} is missing or corrupt ({size_bytes} bytes)"
        )
