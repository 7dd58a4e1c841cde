from __future__ import annotations

"""Shared helpers for inspecting child processes and local ports."""

import logging
import signal
import socket
from typing import Optional

import psutil

logger = logging.getLogger(__name__)

LOCALHOST = "127.0.0.1"


def signal_name(signum: int) -> str:
    """Return the conventional name (``SIGTERM``) for a signal number."""
    try:
        return signal.Signals(signum).name
    except ValueError:  # policy_guard: allow-silent-handler
        return f"SIG{signum}"


def split_returncode(returncode: Optional[int]) -> tuple[Optional[int], Optional[str]]:
    """Split an asyncio returncode into ``(exit_code, signal_name)``.

    asyncio reports death by signal N as ``-N``.
    """
    if returncode is None:
        return None, None
    if returncode < 0:
        return None, signal_name(-returncode)
    return returncode, None


def pid_is_running(pid: Optional[int]) -> bool:
    """Return True when ``pid`` names a live, non-zombie process."""
    if pid is None:
        return False
    try:
        proc = psutil.Process(pid)
        return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
    except (psutil.NoSuchProcess, psutil.ZombieProcess):  # policy_guard: allow-silent-handler
        return False
    except psutil.AccessDenied:  # policy_guard: allow-silent-handler
        # Exists, but owned by someone else
        return True


def find_free_port(host: str = LOCALHOST) -> int:
    """Ask the OS for an unused TCP port on ``host``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        port = sock.getsockname()[1]
    logger.debug("Picked free port %s on %s", port, host)
    return port


__all__ = ["LOCALHOST", "find_free_port", "pid_is_running", "signal_name", "split_returncode"]
