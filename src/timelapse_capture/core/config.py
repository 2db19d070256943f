"""
Core configuration - environment, paths, encoder resolution and quality tiers.
"""

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import BinaryNotFound
from .types import QualityProfile


# Environment variables for configuration
MCP_HOST = os.environ.get("MCP_HOST", "127.0.0.1")
MCP_PORT = int(os.environ.get("MCP_PORT", 8080))

CAPTURES_DIR = Path(os.environ.get(
    "CAPTURE_DIR",
    os.path.join(os.path.expanduser("~"), "Documents", "timelapse-capture", "captures"),
))
FFMPEG_LOG_LEVEL = os.environ.get("CAPTURE_FFMPEG_LOGLEVEL", "info")
DEFAULT_QUALITY = os.environ.get("CAPTURE_QUALITY", "low")
SHOW_CURSOR = os.environ.get("CAPTURE_SHOW_CURSOR", "1").lower() not in ("0", "false", "no")
X11_DISPLAY = os.environ.get("DISPLAY", ":0.0")

# Name used to keep our own windows out of the target list
APP_NAME = "timelapse-capture"

# Geometry
FALLBACK_WIDTH = 1920
FALLBACK_HEIGHT = 1080
MIN_CAPTURE_WIDTH = 320
MIN_CAPTURE_HEIGHT = 240

# Shutdown escalation (seconds)
QUIT_TIMEOUT = 3.0
TERMINATE_TIMEOUT = 3.0
STATUS_INTERVAL = 1.0

# Artifacts smaller than this never contain real frames
MIN_ARTIFACT_BYTES = 10_000


QUALITY_PROFILES = {
    # Cheap to encode, generous buffers so slow machines do not drop input
    "low": QualityProfile(
        name="low",
        frame_rate=15,
        encoder_preset="ultrafast",
        quality_level=32,
        buffer_size="4000M",
        thread_queue_size=8192,
    ),
    "high": QualityProfile(
        name="high",
        frame_rate=30,
        encoder_preset="veryfast",
        quality_level=23,
        buffer_size="2000M",
        thread_queue_size=4096,
    ),
    "ultralight": QualityProfile(
        name="ultralight",
        frame_rate=10,
        encoder_preset="veryfast",
        quality_level=40,
        buffer_size="1000M",
        thread_queue_size=1024,
        scale=0.5,
    ),
}


def get_quality_profile(name: Optional[str] = None) -> QualityProfile:
    """Look up a quality tier by name, falling back to the configured default."""
    key = (name or DEFAULT_QUALITY).lower()
    return QUALITY_PROFILES.get(key, QUALITY_PROFILES["low"])


def get_captures_dir() -> Path:
    """Get the directory recordings are written to."""
    CAPTURES_DIR.mkdir(parents=True, exist_ok=True)
    return CAPTURES_DIR


def get_session_output_path(started_at: Optional[datetime] = None,
                            captures_dir: Optional[Path] = None) -> Path:
    """Build ``session_<timestamp>.mp4`` inside the captures directory."""
    started_at = started_at or datetime.now()
    stamp = started_at.isoformat(timespec="milliseconds").replace(":", "-")
    base = captures_dir or CAPTURES_DIR
    return (base / f"session_{stamp}.mp4").resolve()


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def get_ffmpeg_path(explicit: Optional[str] = None) -> str:
    """Find the ffmpeg executable.

    An explicit path (argument or FFMPEG_PATH) must exist; there is no
    fallback search in that case.

    Raises:
        BinaryNotFound: If ffmpeg is not found.
    """
    explicit = explicit or os.environ.get("FFMPEG_PATH")
    if explicit:
        if _is_executable(explicit):
            return explicit
        raise BinaryNotFound(explicit)

    # Common paths to check
    paths = [
        "/opt/homebrew/bin/ffmpeg",  # macOS Homebrew (Apple Silicon)
        "/usr/local/bin/ffmpeg",      # macOS Homebrew (Intel) / Linux manual install
        "/usr/bin/ffmpeg",            # Linux package manager
    ]
    for path in paths:
        if _is_executable(path):
            return path

    found = shutil.which("ffmpeg")
    if found:
        return found
    raise BinaryNotFound()


def get_ffprobe_path(ffmpeg: Optional[str] = None) -> str:
    """Find ffprobe executable (usually alongside ffmpeg)."""
    ffmpeg = Path(ffmpeg or get_ffmpeg_path())
    return str(ffmpeg.with_name(ffmpeg.name.replace("ffmpeg", "ffprobe")))
