"""Signal and exit coordination guaranteeing a single playback teardown."""

from __future__ import annotations

import atexit
import logging
import signal
import threading
from types import FrameType
from typing import Any, Callable, Optional

SHUTDOWN_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


class ShutdownCoordinator:
    """Runs ``teardown`` exactly once on interrupt, termination, hangup or exit.

    Use as a context manager around the scheduler run: entering installs the
    signal handlers and the atexit hook, leaving (normally or by exception)
    runs the teardown and restores the previous handlers. A signal runs the
    teardown and then exits the process with ``exit_code``.
    """

    def __init__(
        self,
        teardown: Callable[[], None],
        *,
        exit_code: int = 0,
        logger: Optional[logging.Logger] = None,
    ):
        self._teardown = teardown
        self._exit_code = exit_code
        self._logger = logger or logging.getLogger("runtime")
        self._lock = threading.Lock()
        self._done = False
        self._previous_handlers: dict[int, Any] = {}
        self._installed = False

    @property
    def has_run(self) -> bool:
        return self._done

    def install(self) -> None:
        if self._installed:
            return
        for name in SHUTDOWN_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)
        atexit.register(self.run_teardown)
        self._installed = True

    def uninstall(self) -> None:
        if not self._installed:
            return
        atexit.unregister(self.run_teardown)
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()
        self._installed = False

    def run_teardown(self) -> bool:
        """Run the teardown once; later or concurrent calls return False."""
        if not self._lock.acquire(blocking=False):
            return False
        try:
            if self._done:
                return False
            self._done = True
            try:
                self._teardown()
            except Exception as error:
                self._logger.error("Teardown failed: %s", error, exc_info=True)
            return True
        finally:
            self._lock.release()

    def _handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        if self._lock.locked():
            # Teardown already in progress on this thread; let it finish.
            return
        signal_name = signal.Signals(signum).name
        self._logger.info("%s received, stopping", signal_name)
        self.run_teardown()
        raise SystemExit(self._exit_code)

    def __enter__(self) -> "ShutdownCoordinator":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.run_teardown()
        finally:
            self.uninstall()
        return False
