#!/usr/bin/env python3
"""
HTTP Server for timelapse-capture

Plain JSON endpoints for the work-session side: list targets, send start and
stop commands, and poll the capture status.

Usage:
    python -m timelapse_capture.http_server
    # or
    timelapse-capture-http
"""

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from .capture import CaptureOrchestrator
from .core.config import APP_NAME, QUALITY_PROFILES
from .core.errors import BinaryNotFound

logger = logging.getLogger(__name__)

# Shared capture orchestrator
orchestrator = CaptureOrchestrator()


@asynccontextmanager
async def lifespan(app):
    """Application lifespan context manager."""
    logger.info(f"Starting {APP_NAME} HTTP server ({orchestrator.builder.driver.value})")

    yield

    if orchestrator.is_capturing():
        logger.info("Shutting down, stopping active capture...")
        try:
            await orchestrator.shutdown(timeout=10.0)
        except asyncio.TimeoutError:
            logger.error("Encoder did not exit during shutdown")


def _session_info(session) -> dict:
    return {
        "state": session.state.value,
        "target": session.target.to_dict(),
        "outputPath": str(session.output_path),
        "startedAt": session.started_at.isoformat(),
        "exitCode": session.exit_code,
        "signalsSent": list(session.signals_sent),
    }


async def health_check(request):
    """Health check endpoint."""
    return JSONResponse({
        "status": "healthy",
        "service": APP_NAME,
        "driver": orchestrator.builder.driver.value,
        "capturing": orchestrator.is_capturing(),
    })


async def targets_list(request):
    """List capture targets, screens first."""
    targets = await asyncio.to_thread(orchestrator.enumerator.list_targets)
    return JSONResponse({
        "targets": [t.to_dict() for t in targets],
        "count": len(targets),
    })


async def capture_start(request):
    """Start command: {"targetId": ..., "displayName": ..., "quality": ...}."""
    try:
        body = await request.json()
    except json.JSONDecodeError:
        body = {}
    if not isinstance(body, dict):
        return JSONResponse({"error": "Request body must be a JSON object"}, status_code=400)

    quality = body.get("quality")
    if quality and str(quality).lower() not in QUALITY_PROFILES:
        return JSONResponse(
            {"error": f"Unknown quality '{quality}'", "choices": list(QUALITY_PROFILES)},
            status_code=400,
        )

    try:
        session = await orchestrator.start_by_id(
            body.get("targetId") or "screen:0", body.get("displayName"), quality
        )
    except BinaryNotFound as e:
        logger.error(str(e))
        return JSONResponse({"error": str(e), "kind": e.kind}, status_code=503)

    status = orchestrator.status()
    code = 200 if status.is_capturing else 500
    return JSONResponse(
        {"status": status.to_dict(), "session": _session_info(session)},
        status_code=code,
    )


async def capture_stop(request):
    """Stop command; returns once shutdown has been initiated."""
    await orchestrator.stop()
    session = orchestrator.session
    return JSONResponse({
        "status": orchestrator.status().to_dict(),
        "session": _session_info(session) if session else None,
    })


async def capture_status(request):
    """Current status, as the once-per-second tick reports it."""
    session = orchestrator.session
    return JSONResponse({
        "status": orchestrator.status().to_dict(),
        "session": _session_info(session) if session else None,
    })


app = Starlette(
    debug=os.environ.get("DEBUG", "false").lower() == "true",
    lifespan=lifespan,
    routes=[
        Route("/health", endpoint=health_check),
        Route("/targets", endpoint=targets_list),
        Route("/capture/start", endpoint=capture_start, methods=["POST"]),
        Route("/capture/stop", endpoint=capture_stop, methods=["POST"]),
        Route("/capture/status", endpoint=capture_status),
    ],
)


def main():
    """Run the HTTP server."""
    import uvicorn

    from .core.config import MCP_HOST, MCP_PORT

    logging.basicConfig(level=logging.INFO)
    logger.info(f"Starting {APP_NAME} HTTP server on {MCP_HOST}:{MCP_PORT}")

    uvicorn.run(
        app,
        host=MCP_HOST,
        port=MCP_PORT,
        log_level="info",
        access_log=True
    )


if __name__ == "__main__":
    main()
