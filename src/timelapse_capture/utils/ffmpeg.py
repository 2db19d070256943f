"""
FFmpeg utilities - probing helpers for finished recordings.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Optional

from ..core.config import get_ffprobe_path
from ..core.errors import BinaryNotFound

logger = logging.getLogger(__name__)


def encoder_version(ffmpeg: str) -> Optional[str]:
    """Return the first line of ``ffmpeg -version`` or None if it cannot run."""
    try:
        result = subprocess.run(
            [ffmpeg, "-version"], capture_output=True, text=True, timeout=10
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Could not run {ffmpeg} -version: {e}")
        return None
    if result.returncode != 0:
        return None
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else None


def get_media_info(path: Path, ffmpeg: Optional[str] = None) -> Optional[dict]:
    """Get basic media information for a recorded file.

    Returns dict with:
    - duration: float (seconds)
    - size_mb: float
    - video: dict with width, height, fps, codec (if a video stream exists)

    Returns None when the file is missing or ffprobe cannot read it.
    """
    if not path.exists():
        return None

    try:
        ffprobe = get_ffprobe_path(ffmpeg)
    except BinaryNotFound:
        return None

    cmd = [
        ffprobe, "-v", "quiet",
        "-print_format", "json",
        "-show_format", "-show_streams",
        str(path)
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"ffprobe failed for {path}: {e}")
        return None

    if result.returncode != 0:
        return None

    try:
        info = json.loads(result.stdout)
    except json.JSONDecodeError:
        return None
    fmt = info.get("format", {})
    streams = info.get("streams", [])

    output = {
        "duration": float(fmt.get("duration", 0)),
        "size_mb": int(fmt.get("size", 0)) / (1024 * 1024),
    }

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
    if video_stream:
        output["video"] = {
            "width": video_stream.get("width"),
            "height": video_stream.get("height"),
            "fps": video_stream.get("r_frame_rate"),
            "codec": video_stream.get("codec_name"),
        }

    return output
