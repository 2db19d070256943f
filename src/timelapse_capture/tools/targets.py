"""
Target tools - list what can be recorded.
"""

import asyncio


def register_target_tools(mcp, orchestrator):
    """Register target listing tools with the MCP server."""

    @mcp.tool(description="List screens and windows that can be recorded. Use the ID with start_capture().")
    async def list_targets() -> str:
        """List capture targets, screens first."""
        targets = await asyncio.to_thread(orchestrator.enumerator.list_targets)

        output = f"Found {len(targets)} capture targets:\n\n"
        for i, target in enumerate(targets, 1):
            g = target.geometry
            output += f"{i}. {target.display_name}\n"
            output += f"   ID: {target.id}\n"
            output += f"   Kind: {target.kind.value}\n"
            output += f"   Geometry: x={g.x}, y={g.y}, w={g.width}, h={g.height}\n\n"
        return output

    @mcp.tool(description="Check availability of window listing tools (wmctrl on Linux).")
    async def window_tools() -> str:
        """Check window listing tool availability."""
        from ..utils.window_manager import check_dependencies

        deps = check_dependencies()

        output = "Window Listing Status\n"
        output += f"{'=' * 40}\n\n"
        output += f"Platform: {deps['platform']}\n"
        output += f"Available: {'Yes' if deps['available'] else 'No'}\n"
        output += f"Message: {deps['message']}\n"

        if deps['missing']:
            output += f"\nMissing tools: {', '.join(deps['missing'])}\n"
            output += "Only whole screens can be listed until they are installed.\n"

        return output
