"""Common error types raised by the launcher."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .service import ServiceExitStatus


class LauncherError(RuntimeError):
    """Base class for launcher failures."""


class ReadinessError(LauncherError):
    """Raised when a backend stops before answering its readiness check."""

    def __init__(self, message: str, *, exit_status: Optional["ServiceExitStatus"] = None) -> None:
        super().__init__(message)
        self.exit_status = exit_status


class LaunchError(LauncherError):
    """Raised by ``Launcher.start`` when the stack could not be brought up.

    The message lists one termination cause per line, node first.
    """

    def __init__(
        self,
        message: str,
        *,
        node: Optional["ServiceExitStatus"] = None,
        wallet: Optional["ServiceExitStatus"] = None,
    ) -> None:
        super().__init__(message)
        self.node = node
        self.wallet = wallet


class SingleInstanceError(LauncherError):
    """Raised when another launcher already owns the state directory."""


__all__ = ["LaunchError", "LauncherError", "ReadinessError", "SingleInstanceError"]
