from __future__ import annotations

import logging
import signal
import threading
from typing import Any, Dict, Iterable, Optional

from .sampler import SamplerThread

logger = logging.getLogger(__name__)

STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGPIPE") if hasattr(signal, name)
)


class ShutdownController:
    """Turns termination signals into a single stop event."""

    def __init__(self) -> None:
        self.event = threading.Event()
        self.reason: Optional[str] = None
        self._previous: Dict[int, Any] = {}

    @property
    def stop_requested(self) -> bool:
        return self.event.is_set()

    def request_stop(self, reason: str = "requested") -> None:
        if self.event.is_set():
            return
        self.reason = reason
        logger.info("Stopping acquisition (%s)", reason)
        self.event.set()

    def install(self, signals: Iterable[int] = STOP_SIGNALS) -> None:
        """Register handlers; must be called from the main thread."""
        for signum in signals:
            self._previous[signum] = signal.signal(signum, self._handle)

    def restore(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _handle(self, signum: int, _frame: object) -> None:
        self.request_stop(signal.Signals(signum).name)

    def __enter__(self) -> "ShutdownController":
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.restore()


def run_until_stopped(
    thread: SamplerThread,
    controller: ShutdownController,
    join_timeout: Optional[float] = None,
    poll: float = 1.0,
) -> None:
    """
    Start the sampler thread and block until a stop is requested or the
    sampler exits on its own. A tick in progress is allowed to finish; the
    sampler's fatal error, if any, is raised here.
    """
    if thread.stop_event is not controller.event:
        raise ValueError("Sampler thread must share the controller's stop event")
    thread.start()
    # timed waits keep the main thread responsive to signal handlers
    while not controller.event.wait(poll):
        pass
    thread.join(join_timeout)
    if thread.is_alive():
        logger.warning("Sampler still busy after %.1fs, abandoning it", join_timeout or 0.0)
    if thread.last_exception is not None:
        raise thread.last_exception
