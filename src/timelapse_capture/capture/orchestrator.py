"""
Capture orchestrator - owns the single active capture session.

State machine:

    Idle --start()--> Starting --spawn ok--> Recording
    Starting --spawn error--> Failed
    Recording --stop()--> Stopping --process exit--> Stopped
    Recording --process exits unexpectedly--> Failed

start() and stop() are serialized, so a stop() issued while Starting runs
once the spawn has completed, and a second start() only begins after the
first has a process it can kill.

Stopping escalates: ``q`` on stdin, then SIGTERM after QUIT_TIMEOUT, then
SIGKILL after TERMINATE_TIMEOUT. The timer handles live on the session and
are cancelled as soon as the process exits, so a late timer never signals a
dead process.

Only BinaryNotFound escapes start(); every other failure is published as an
event to the observers.
"""

import asyncio
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..backends import BuildOptions
from ..core.config import (
    QUIT_TIMEOUT,
    TERMINATE_TIMEOUT,
    get_ffmpeg_path,
    get_quality_profile,
    get_session_output_path,
)
from ..core.errors import (
    InvalidArtifact,
    RuntimeExit,
    ShutdownEscalationFailure,
    SpawnFailure,
)
from ..core.types import (
    CaptureSession,
    CaptureTarget,
    ErrorEvent,
    LogEvent,
    QualityProfile,
    SessionState,
    SessionStoppedEvent,
    SignalEvent,
    StatusEvent,
    VideoArtifact,
)
from .artifact import validate_artifact
from .broadcaster import Observer, StatusBroadcaster
from .commands import CommandBuilder
from .targets import TargetEnumerator

logger = logging.getLogger(__name__)

QUIT_COMMAND = b"q\n"

# stderr lines that mean the capture driver refused to start
SPAWN_REJECTED = re.compile(
    r"Permission denied|Operation not permitted|Can't find window|Could not find window"
    r"|cannot open display|Unknown input format|Input/output error|No such file or directory",
    re.IGNORECASE,
)
_LINE_SPLIT = re.compile(rb"[\r\n]+")
# stderr without line breaks is relayed as a line once it passes this size
MAX_PENDING_BYTES = 64 * 1024


class CaptureOrchestrator:
    """Starts, supervises and stops the encoder process."""

    def __init__(
        self,
        enumerator: Optional[TargetEnumerator] = None,
        builder: Optional[CommandBuilder] = None,
        broadcaster: Optional[StatusBroadcaster] = None,
        ffmpeg_path: Optional[str] = None,
        captures_dir: Optional[Path] = None,
        quit_timeout: float = QUIT_TIMEOUT,
        terminate_timeout: float = TERMINATE_TIMEOUT,
    ):
        self.enumerator = enumerator or TargetEnumerator()
        self.builder = builder or CommandBuilder()
        self.broadcaster = broadcaster or StatusBroadcaster()
        self.ffmpeg_path = ffmpeg_path
        self.captures_dir = captures_dir
        self.quit_timeout = quit_timeout
        self.terminate_timeout = terminate_timeout
        self._session: Optional[CaptureSession] = None
        # Held by start() through the spawn and by stop(), so neither sees Starting
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        return self.broadcaster.subscribe(observer)

    def is_capturing(self) -> bool:
        return self._session is not None and self._session.is_active()

    def status(self) -> StatusEvent:
        session = self._session
        if session is not None and session.state is SessionState.RECORDING:
            return StatusEvent(is_capturing=True, duration=session.elapsed_seconds())
        return self.broadcaster.last_status

    # =========================================================================
    # Start
    # =========================================================================

    async def start_by_id(
        self,
        target_id: str,
        display_name: Optional[str] = None,
        quality: Optional[str] = None,
    ) -> CaptureSession:
        """Start command from the work-session side: resolve the id, then start."""
        target = await asyncio.to_thread(self.enumerator.find_target, target_id, display_name)
        return await self.start(target, get_quality_profile(quality))

    async def start(
        self,
        target: CaptureTarget,
        profile: Optional[QualityProfile] = None,
        options: Optional[BuildOptions] = None,
    ) -> CaptureSession:
        """Spawn the encoder for ``target``.

        Returns once the process is spawned (or failed to spawn); the rest is
        reported through events. Overlapping start() and stop() calls run one
        after the other, in call order.

        Raises:
            BinaryNotFound: If ffmpeg is missing. Nothing is spawned.
        """
        async with self._lock:
            return await self._start(target, profile, options)

    async def _start(
        self,
        target: CaptureTarget,
        profile: Optional[QualityProfile],
        options: Optional[BuildOptions],
    ) -> CaptureSession:
        previous = self._session
        if previous is not None and previous.is_active():
            logger.info(f"Capture already running for {previous.target.id}, killing it")
            self._abort(previous)

        binary = get_ffmpeg_path(self.ffmpeg_path)
        profile = profile or get_quality_profile()

        started_at = datetime.now()
        session = CaptureSession(
            target=target,
            output_path=get_session_output_path(started_at, self.captures_dir),
            started_at=started_at,
            state=SessionState.STARTING,
        )
        self._session = session
        session.invocation = self.builder.build(
            target, session.output_path, profile, binary, options
        )
        logger.info(
            f"Starting capture of {target.display_name!r} ({target.id}) "
            f"-> {session.output_path} [{profile.name}]"
        )

        try:
            session.process = await asyncio.create_subprocess_exec(
                *session.invocation.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._fail_spawn(session, SpawnFailure(f"Could not start ffmpeg: {e}"))
            return session

        session.state = SessionState.RECORDING
        loop = asyncio.get_running_loop()
        reader = loop.create_task(self._relay_stderr(session))
        session.tasks.append(reader)
        session.tasks.append(loop.create_task(self._watch_exit(session, reader)))

        logger.info(f"Capture recording (pid {session.process.pid})")
        self.broadcaster.publish(StatusEvent(is_capturing=True, duration=0))
        self.broadcaster.start_ticking(session)
        return session

    def _fail_spawn(self, session: CaptureSession, error: SpawnFailure) -> None:
        logger.error(str(error))
        session.state = SessionState.FAILED
        session.process = None
        session.finished.set()
        self.broadcaster.publish(ErrorEvent(kind=error.kind, message=str(error)))
        self.broadcaster.publish(StatusEvent(is_capturing=False, duration=0, error=str(error)))

    def _abort(self, session: CaptureSession) -> None:
        """Kill a session outright, skipping the graceful escalation."""
        session.cancel_timers()
        if session is self._session:
            self.broadcaster.stop_ticking()
        session.state = SessionState.STOPPING
        session.stop_requested_at = datetime.now()
        self._send_signal(session, "kill")

    # =========================================================================
    # Stop
    # =========================================================================

    async def stop(self) -> None:
        """Begin graceful shutdown of the active session.

        Returns right after the quit request is written; a
        SessionStoppedEvent is published once the encoder has exited. A
        session still starting is stopped as soon as its spawn completes.
        """
        async with self._lock:
            await self._stop()

    async def _stop(self) -> None:
        session = self._session
        if session is None or session.state is not SessionState.RECORDING:
            logger.debug("stop() with no recording session, ignoring")
            return

        session.state = SessionState.STOPPING
        session.stop_requested_at = datetime.now()
        self.broadcaster.stop_ticking()
        logger.info(f"Stopping capture of {session.target.id}")

        await self._send_quit(session)
        if session.finished.is_set():
            return
        session.timers.append(asyncio.get_running_loop().call_later(
            self.quit_timeout, self._escalate_terminate, session
        ))

    async def wait_stopped(self, timeout: Optional[float] = None) -> Optional[VideoArtifact]:
        """Wait until the current session has fully shut down."""
        session = self._session
        if session is None:
            return None
        await asyncio.wait_for(session.finished.wait(), timeout)
        return session.artifact

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop any recording and wait for the encoder to exit."""
        await self.stop()
        if self._session is not None and not self._session.finished.is_set():
            await self.wait_stopped(timeout)

    async def _send_quit(self, session: CaptureSession) -> None:
        stdin = session.process.stdin if session.process else None
        if stdin is None or stdin.is_closing():
            logger.warning("Encoder stdin unavailable, waiting for signal escalation")
            return
        session.signals_sent.append("quit")
        self.broadcaster.publish(SignalEvent(step="quit"))
        try:
            stdin.write(QUIT_COMMAND)
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError, OSError) as e:
            logger.warning(str(ShutdownEscalationFailure("quit", e)))

    def _escalate_terminate(self, session: CaptureSession) -> None:
        if self._exited(session):
            return
        logger.warning(f"Encoder still running after {self.quit_timeout}s, sending SIGTERM")
        self._send_signal(session, "terminate")
        if self._exited(session):
            return
        session.timers.append(asyncio.get_running_loop().call_later(
            self.terminate_timeout, self._escalate_kill, session
        ))

    def _escalate_kill(self, session: CaptureSession) -> None:
        if self._exited(session):
            return
        logger.warning("Encoder still running after SIGTERM, sending SIGKILL")
        if not self._send_signal(session, "kill"):
            # Nothing left to wait for
            self._finish(session, None)

    def _send_signal(self, session: CaptureSession, step: str) -> bool:
        process = session.process
        if process is None:
            return False
        session.signals_sent.append(step)
        self.broadcaster.publish(SignalEvent(step=step))
        try:
            if step == "terminate":
                process.terminate()
            else:
                process.kill()
        except (ProcessLookupError, OSError) as e:
            logger.error(str(ShutdownEscalationFailure(step, e)))
            return False
        return True

    @staticmethod
    def _exited(session: CaptureSession) -> bool:
        return (
            session.finished.is_set()
            or session.process is None
            or session.process.returncode is not None
        )

    # =========================================================================
    # Process supervision
    # =========================================================================

    async def _relay_stderr(self, session: CaptureSession) -> None:
        stream = session.process.stderr
        pending = b""
        try:
            while True:
                chunk = await stream.read(4096)
                if not chunk:
                    break
                lines = _LINE_SPLIT.split(pending + chunk)
                pending = lines.pop()
                if len(pending) > MAX_PENDING_BYTES:
                    lines.append(pending)
                    pending = b""
                for line in lines:
                    self._relay_line(line)
        except Exception as e:
            logger.error(f"Error reading encoder output: {e}")
        if pending:
            self._relay_line(pending)

    def _relay_line(self, raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            return
        logger.debug(f"ffmpeg: {line}")
        self.broadcaster.publish(LogEvent(line=line))
        if SPAWN_REJECTED.search(line):
            logger.error(f"Encoder rejected capture: {line}")
            self.broadcaster.publish(ErrorEvent(kind="spawn_rejected", message=line))

    async def _watch_exit(self, session: CaptureSession, reader: asyncio.Task) -> None:
        exit_code = await session.process.wait()
        session.cancel_timers()
        try:
            await asyncio.wait_for(asyncio.shield(reader), timeout=1.0)
        except asyncio.TimeoutError:
            reader.cancel()
        self._finish(session, exit_code)

    def _finish(self, session: CaptureSession, exit_code: Optional[int]) -> None:
        """Exit bookkeeping; runs exactly once per session."""
        if session.finished.is_set():
            return
        session.cancel_timers()
        session.exit_code = exit_code
        current = session is self._session
        if current:
            self.broadcaster.stop_ticking()

        unexpected = session.state is SessionState.RECORDING
        session.state = SessionState.FAILED if unexpected else SessionState.STOPPED
        session.artifact = validate_artifact(session.output_path)
        session.process = None
        session.finished.set()
        logger.info(
            f"Encoder exited with code {exit_code}; session {session.state.value}, "
            f"signals sent: {session.signals_sent or 'none'}"
        )

        if current:
            if unexpected:
                error = RuntimeExit(exit_code)
                logger.error(str(error))
                self.broadcaster.publish(
                    ErrorEvent(kind=error.kind, message=str(error), exit_code=exit_code)
                )
                self.broadcaster.publish(
                    StatusEvent(is_capturing=False, duration=0, error=str(error),
                                artifact=session.artifact)
                )
            else:
                error = None
                if not session.artifact.valid:
                    error = str(InvalidArtifact(session.artifact.path, session.artifact.size_bytes))
                self.broadcaster.publish(StatusEvent(
                    is_capturing=False,
                    duration=session.elapsed_seconds(),
                    error=error,
                    artifact=session.artifact,
                ))

        self.broadcaster.publish(SessionStoppedEvent(
            state=session.state, exit_code=exit_code, artifact=session.artifact
        ))
