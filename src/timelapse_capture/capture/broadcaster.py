"""
Status broadcaster - fan capture events out to observers.

While a session records, a status event with the elapsed seconds is
published once per second.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional

from ..core.config import STATUS_INTERVAL
from ..core.types import CaptureSession, SessionState, StatusEvent

logger = logging.getLogger(__name__)

Observer = Callable[[Any], None]


class StatusBroadcaster:
    """Observer registry plus the once-per-second status tick."""

    def __init__(self, interval: float = STATUS_INTERVAL):
        self.interval = interval
        self.last_status = StatusEvent(is_capturing=False, duration=0)
        self._observers: List[Observer] = []
        self._tick_task: Optional[asyncio.Task] = None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that removes it again."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: Any) -> None:
        """Deliver ``event`` to every observer in registration order."""
        if isinstance(event, StatusEvent):
            self.last_status = event
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception(f"Observer {observer!r} failed on {type(event).__name__}")

    def start_ticking(self, session: CaptureSession) -> None:
        self.stop_ticking()
        self._tick_task = asyncio.get_running_loop().create_task(self._tick(session))

    def stop_ticking(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    @property
    def ticking(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    async def _tick(self, session: CaptureSession) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            next_tick += self.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if session.state is not SessionState.RECORDING:
                return
            self.publish(StatusEvent(is_capturing=True, duration=session.elapsed_seconds()))
