"""Cooperative shutdown flag driven by SIGTERM."""

from __future__ import annotations

import signal
import threading

import structlog


class ShutdownCoordinator:
    """Process-wide stop flag polled at loop boundaries.

    Nothing is interrupted: an in-flight remote call always finishes before
    the flag is looked at again.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.logger = structlog.get_logger("relister.shutdown")

    @property
    def stop_requested(self) -> bool:
        return self._event.is_set()

    def request_stop(self, reason: str = "manual") -> None:
        if not self._event.is_set():
            self.logger.info("shutdown_requested", reason=reason)
        self._event.set()

    def install(self) -> None:
        """Route SIGTERM to the flag; only valid from the main thread."""

        signal.signal(signal.SIGTERM, self._handle_signal)

    def _handle_signal(self, signum, frame) -> None:
        self.request_stop(reason=signal.Signals(signum).name)


__all__ = ["ShutdownCoordinator"]
