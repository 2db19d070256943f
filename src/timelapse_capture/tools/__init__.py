"""
Tools module - MCP tool definitions organized by category.

All tools are registered with the FastMCP server in server.py.
"""

from .capture import register_capture_tools
from .targets import register_target_tools


def register_all_tools(mcp, orchestrator):
    """Register all tools with the MCP server.

    Args:
        mcp: FastMCP server instance.
        orchestrator: CaptureOrchestrator shared by every tool.
    """
    register_target_tools(mcp, orchestrator)
    register_capture_tools(mcp, orchestrator)


__all__ = [
    "register_all_tools",
    "register_capture_tools",
    "register_target_tools",
]
