"""Signal handling for foreground watch sessions."""

from __future__ import annotations

import signal
import sys
import threading
from typing import Callable, Optional

from redeploy.utils.logging import get_logger


class ShutdownHandler:
    """
    Blocks the foreground process until a signal or an internal failure.

    Example:
        handler = ShutdownHandler()
        handler.on_shutdown(session.stop)
        handler.install()
        handler.wait_for_shutdown()
        sys.exit(1 if handler.failed else 0)
    """

    def __init__(self) -> None:
        self._shutdown_callbacks: list[Callable[[], None]] = []
        self._shutdown_event = threading.Event()
        self._installed = False
        self._previous: dict[int, object] = {}
        self.error: Optional[BaseException] = None
        self.logger = get_logger("redeploy.shutdown")

    def on_shutdown(self, callback: Callable[[], None]) -> ShutdownHandler:
        """
        Register a callback to run when shutdown is triggered.

        Returns:
            self for method chaining.
        """
        self._shutdown_callbacks.append(callback)
        return self

    def install(self) -> ShutdownHandler:
        """
        Install SIGINT/SIGTERM handlers. Must run on the main thread.

        Returns:
            self for method chaining.
        """
        if self._installed:
            return self

        signals = [signal.SIGINT, signal.SIGTERM]
        if sys.platform == "win32" and hasattr(signal, "SIGBREAK"):
            signals.append(signal.SIGBREAK)
        for signum in signals:
            self._previous[signum] = signal.signal(signum, self._signal_handler)

        self._installed = True
        self.logger.debug("Shutdown handlers installed")
        return self

    def uninstall(self) -> None:
        """Restore the signal handlers that were active before install()."""
        if not self._installed:
            return
        for signum, previous in self._previous.items():
            signal.signal(signum, previous)
        self._previous.clear()
        self._installed = False

    def _signal_handler(self, signum: int, frame) -> None:
        """Handle shutdown signals."""
        sig_name = signal.Signals(signum).name
        self.logger.info(f"Received {sig_name}, stopping watch session...")
        self.trigger_shutdown()

    def trigger_shutdown(self, error: Optional[BaseException] = None) -> None:
        """Trigger shutdown, recording the error if it was caused by one."""
        if self._shutdown_event.is_set():
            return  # Already shutting down

        self.error = error
        self._shutdown_event.set()

        for callback in self._shutdown_callbacks:
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Shutdown callback error: {e}")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for shutdown to be triggered.

        Args:
            timeout: Maximum seconds to wait (None = forever).

        Returns:
            True if shutdown was triggered, False if timeout.
        """
        return self._shutdown_event.wait(timeout)

    @property
    def is_shutting_down(self) -> bool:
        """Check if shutdown has been triggered."""
        return self._shutdown_event.is_set()

    @property
    def failed(self) -> bool:
        """True if shutdown was caused by an error."""
        return self.error is not None
