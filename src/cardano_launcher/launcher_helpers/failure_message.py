"""Render the combined termination causes of the node and wallet."""

from __future__ import annotations

from typing import Iterable, Optional

from ..service_helpers import ServiceExitStatus


def format_exit_failures(statuses: Iterable[Optional[ServiceExitStatus]]) -> str:
    """
    One ``"<exe> exited with status <code-or-signal>"`` line per service that ran.

    Services that never spawned (empty record) or have no record yet are left out.
    """
    lines = [status.describe() for status in statuses if status is not None and status.has_exited]
    return "\n".join(lines)


def launch_failure_message(node: Optional[ServiceExitStatus], wallet: Optional[ServiceExitStatus]) -> str:
    """Node first, then wallet."""
    message = format_exit_failures((node, wallet))
    return message or "Launcher was stopped before the wallet API became ready"


__all__ = ["format_exit_failures", "launch_failure_message"]
