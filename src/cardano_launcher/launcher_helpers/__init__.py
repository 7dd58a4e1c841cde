"""Helpers for the ``Launcher`` orchestration layer."""

from .failure_message import format_exit_failures, launch_failure_message
from .signal_handlers import DEFAULT_SIGNALS, install_signal_handlers

__all__ = [
    "DEFAULT_SIGNALS",
    "format_exit_failures",
    "install_signal_handlers",
    "launch_failure_message",
]
