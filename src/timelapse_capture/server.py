#!/usr/bin/env python3
"""
timelapse-capture - FastMCP Server for capture sessions

Provides tools for:
- Listing screens and windows that can be recorded
- Starting and stopping an ffmpeg capture session
- Checking status, the recorded file and the encoder install

One orchestrator is shared by every tool, so at most one capture runs at a
time.
"""

import logging

from fastmcp import FastMCP

from .capture import CaptureOrchestrator
from .core.config import APP_NAME
from .tools import register_all_tools

logger = logging.getLogger(__name__)

# Create the FastMCP server
mcp = FastMCP(APP_NAME)

# Shared capture orchestrator
orchestrator = CaptureOrchestrator()

register_all_tools(mcp, orchestrator)


# =============================================================================
# Entry Points
# =============================================================================

def run():
    """Entry point for STDIO transport (default)."""
    logging.basicConfig(level=logging.INFO)
    logger.info(f"Starting {APP_NAME} MCP server ({orchestrator.builder.driver.value})")
    mcp.run()


def main():
    """Entry point for HTTP transport."""
    from .core.config import MCP_HOST, MCP_PORT

    logging.basicConfig(level=logging.INFO)
    logger.info(f"Starting {APP_NAME} MCP server on {MCP_HOST}:{MCP_PORT}")
    logger.info(f"SSE endpoint: http://{MCP_HOST}:{MCP_PORT}/sse")
    mcp.run(transport="sse", host=MCP_HOST, port=MCP_PORT)


if __name__ == "__main__":
    run()
