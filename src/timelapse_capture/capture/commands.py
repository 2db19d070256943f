"""
Command builder - turn a target and quality tier into an ffmpeg invocation.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from ..backends import BuildOptions, CaptureDriver, detect_driver, get_backend
from ..core.types import CaptureTarget, EncoderInvocation, QualityProfile

logger = logging.getLogger(__name__)


def prepare_output_dir(output_path: Path) -> None:
    """Create the output directory so ffmpeg never fails on a missing folder."""
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Could not create capture directory {output_path.parent}: {e}")


def build_invocation(
    target: CaptureTarget,
    platform: Optional[str],
    output_path: Union[str, Path],
    profile: QualityProfile,
    options: Optional[BuildOptions] = None,
    binary: str = "ffmpeg",
) -> EncoderInvocation:
    """Build the encoder invocation for ``target`` on ``platform``.

    The returned argument list always ends with the output path.
    """
    output_path = Path(output_path)
    prepare_output_dir(output_path)
    backend = get_backend(detect_driver(platform))
    invocation = backend.build(target, output_path, profile, options or BuildOptions(), binary)
    logger.info(f"Encoder command ({backend.name}): {' '.join(invocation.command)}")
    return invocation


class CommandBuilder:
    """Command builder bound to a single capture driver."""

    def __init__(self, platform: Optional[str] = None,
                 options: Optional[BuildOptions] = None):
        self.platform = platform or sys.platform
        self.driver: CaptureDriver = detect_driver(self.platform)
        self.backend = get_backend(self.driver)
        self.options = options or BuildOptions()

    def build(
        self,
        target: CaptureTarget,
        output_path: Union[str, Path],
        profile: QualityProfile,
        binary: str,
        options: Optional[BuildOptions] = None,
    ) -> EncoderInvocation:
        output_path = Path(output_path)
        prepare_output_dir(output_path)
        invocation = self.backend.build(
            target, output_path, profile, options or self.options, binary
        )
        logger.info(f"Encoder command ({self.backend.name}): {' '.join(invocation.command)}")
        return invocation
