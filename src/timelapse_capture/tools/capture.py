"""
Capture tools - start, stop and inspect capture sessions.
"""

import asyncio
from pathlib import Path
from typing import Optional

from ..core.config import QUALITY_PROFILES, get_captures_dir, get_ffmpeg_path
from ..core.errors import BinaryNotFound


def register_capture_tools(mcp, orchestrator):
    """Register capture session tools with the MCP server."""

    @mcp.tool(description="Start capturing a screen or window. Use list_targets() for IDs; defaults to the primary screen.")
    async def start_capture(target_id: str = "screen:0", display_name: str = None,
                            quality: str = None) -> str:
        """Start a capture session.

        Args:
            target_id: Target ID from list_targets() (e.g. "screen:0", "window:0x04200007").
            display_name: Name of the target, used to match when the ID has gone stale.
            quality: "low", "high" or "ultralight". Defaults to CAPTURE_QUALITY.
        """
        if quality and quality.lower() not in QUALITY_PROFILES:
            return (
                f"ERROR: Unknown quality '{quality}'.\n"
                f"Choose one of: {', '.join(QUALITY_PROFILES)}"
            )

        try:
            session = await orchestrator.start_by_id(target_id, display_name, quality)
        except BinaryNotFound as e:
            return f"Capture failed: {e}"

        if session.invocation is None or session.process is None:
            status = orchestrator.status()
            return f"Capture failed: {status.error or 'encoder did not start'}"

        g = session.target.geometry
        return (
            f"Capture started!\n"
            f"Target: {session.target.display_name} ({session.target.id})\n"
            f"Output: {session.output_path}\n"
            f"Area: {g.width}x{g.height} at ({g.x}, {g.y})\n"
            f"Started at: {session.started_at.strftime('%H:%M:%S')}\n\n"
            f"Use 'stop_capture' when done."
        )

    @mcp.tool(description="Stop the current capture and finalize the video file.")
    async def stop_capture(timeout: float = 10.0) -> str:
        """Stop the capture session and wait for the encoder to exit.

        Args:
            timeout: Seconds to wait for the encoder to finish writing.
        """
        session = orchestrator.session
        if session is None or not orchestrator.is_capturing():
            return "No capture in progress."

        await orchestrator.stop()
        try:
            artifact = await orchestrator.wait_stopped(timeout)
        except asyncio.TimeoutError:
            return (
                f"Stop requested, encoder still shutting down.\n"
                f"Signals sent: {', '.join(session.signals_sent) or 'none'}\n"
                f"Use 'capture_status' to check again."
            )

        status = orchestrator.status()
        output = (
            f"Capture stopped!\n"
            f"Output: {artifact.path.name}\n"
            f"Duration: {status.duration} seconds\n"
            f"File size: {artifact.size_bytes / (1024 * 1024):.2f} MB\n"
            f"Signals sent: {', '.join(session.signals_sent)}\n"
        )
        if not artifact.valid:
            output += f"\nWARNING: {status.error}\n"
        return output

    @mcp.tool(description="Check whether a capture is in progress and how long it has run.")
    async def capture_status() -> str:
        """Get capture status."""
        session = orchestrator.session
        status = orchestrator.status()

        if session is None:
            return "No capture in progress."

        if status.is_capturing:
            return (
                f"Capture in progress\n"
                f"Target: {session.target.display_name} ({session.target.id})\n"
                f"Output: {session.output_path.name}\n"
                f"Duration: {status.duration} seconds"
            )

        output = f"No capture in progress.\nLast session: {session.state.value}\n"
        if session.exit_code is not None:
            output += f"Exit code: {session.exit_code}\n"
        if status.error:
            output += f"Error: {status.error}\n"
        if session.artifact:
            output += f"Last output: {session.artifact.path}\n"
        return output

    @mcp.tool(description="Validate a recorded video file and show its media info.")
    async def artifact_info(file_path: Optional[str] = None) -> str:
        """Check a recorded file.

        Args:
            file_path: Path to the video. Defaults to the last session's output.
        """
        from ..capture.artifact import validate_artifact
        from ..utils.ffmpeg import get_media_info

        if file_path:
            path = Path(file_path)
        elif orchestrator.session is not None:
            path = orchestrator.session.output_path
        else:
            return "No file given and no capture has been made yet."

        artifact = validate_artifact(path)
        output = (
            f"File: {artifact.path}\n"
            f"Size: {artifact.size_bytes} bytes\n"
            f"Valid: {'Yes' if artifact.valid else 'No'}\n"
        )

        info = await asyncio.to_thread(get_media_info, artifact.path, orchestrator.ffmpeg_path)
        if info:
            output += f"Duration: {info['duration']:.2f} seconds\n"
            if "video" in info:
                v = info["video"]
                output += f"Video: {v['width']}x{v['height']} {v['codec']} @ {v['fps']}\n"
        return output

    @mcp.tool(description="Check that ffmpeg is installed and show which capture driver will be used.")
    async def encoder_check() -> str:
        """Report the encoder binary and capture driver."""
        from ..utils.ffmpeg import encoder_version

        builder = orchestrator.builder
        output = "Encoder Status\n"
        output += f"{'=' * 40}\n\n"
        output += f"Platform: {builder.platform}\n"
        output += f"Capture driver: {builder.driver.value}\n"
        output += f"Captures: {orchestrator.captures_dir or get_captures_dir()}\n"

        try:
            ffmpeg = get_ffmpeg_path(orchestrator.ffmpeg_path)
        except BinaryNotFound as e:
            return output + f"ffmpeg: not found\n\n{e}"

        version = await asyncio.to_thread(encoder_version, ffmpeg)
        output += f"ffmpeg: {ffmpeg}\n"
        output += f"Version: {version or 'unknown'}\n"
        return output
