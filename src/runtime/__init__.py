"""Runtime lifecycle exports."""

from .lifecycle import SHUTDOWN_SIGNALS, ShutdownCoordinator

__all__ = ["SHUTDOWN_SIGNALS", "ShutdownCoordinator"]
