"""
Artifact validation - decide whether a finished recording is usable.
"""

import logging
from pathlib import Path
from typing import Union

from ..core.config import MIN_ARTIFACT_BYTES
from ..core.types import VideoArtifact

logger = logging.getLogger(__name__)


def validate_artifact(path: Union[str, Path]) -> VideoArtifact:
    """Check the recorded file exists and is big enough to hold frames.

    Never raises. Anything under MIN_ARTIFACT_BYTES means the encoder was
    stopped before it wrote a usable header.
    """
    path = Path(path)
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        logger.error(f"Recorded file does not exist: {path}")
        return VideoArtifact(path=path, size_bytes=0, valid=False)
    except OSError as e:
        logger.error(f"Could not inspect recorded file {path}: {e}")
        return VideoArtifact(path=path, size_bytes=0, valid=False)

    if size < MIN_ARTIFACT_BYTES:
        logger.error(f"Recorded file is too small ({size} bytes), likely corrupt: {path}")
        return VideoArtifact(path=path, size_bytes=size, valid=False)

    logger.info(f"Recorded file OK: {path} ({size} bytes)")
    return VideoArtifact(path=path, size_bytes=size, valid=True)
