from __future__ import annotations

"""Run the launcher's event loop while holding its state directory.

Two launchers sharing a state directory would fight over the chain database
and the node socket, so the directory is guarded by an exclusive ``flock``
on ``<state_dir>/cardano-launcher.lock``. The lock file holds a small JSON
description of its owner (pid, state directory, wallet API port once the
API is up) which is what a refused launcher reports.
"""

import asyncio
import json
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Coroutine, Dict, Iterator, Optional

from .errors import SingleInstanceError

try:
    import fcntl
except ImportError:  # pragma: no cover - fcntl unavailable on non-POSIX platforms  # policy_guard: allow-silent-handler
    fcntl = None

LOCK_FILENAME = "cardano-launcher.lock"

logger = logging.getLogger(__name__)


def read_lock_owner(lock_path: Path) -> Dict[str, Any]:
    """Return the owner description stored in ``lock_path``, or ``{}`` if unreadable."""
    try:
        owner = json.loads(lock_path.read_text() or "{}")
    except (OSError, ValueError):  # policy_guard: allow-silent-handler
        # Owner is between truncate and write, or the file is gone
        return {}
    return owner if isinstance(owner, dict) else {}


def _in_use_message(state_dir: Path, owner: Dict[str, Any]) -> str:
    details = []
    if owner.get("pid"):
        details.append(f"PID {owner['pid']}")
    if owner.get("api_port"):
        details.append(f"wallet API on port {owner['api_port']}")
    suffix = f" ({', '.join(details)})" if details else ""
    return f"State directory '{state_dir}' is already in use by another launcher{suffix}."


class StateDirLock:
    """Exclusive lock on one launcher state directory."""

    def __init__(self, state_dir: Path | str) -> None:
        self.state_dir = Path(state_dir)
        self.lock_path = self.state_dir / LOCK_FILENAME
        self._fd: Optional[int] = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Take the lock and record this process as its owner.

        Raises:
            SingleInstanceError: If another launcher holds the directory
        """
        if fcntl is None:  # pragma: no cover - non-POSIX platforms
            raise SingleInstanceError("Guarding the state directory requires fcntl on this platform.")

        self.state_dir.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            os.close(fd)
            raise SingleInstanceError(_in_use_message(self.state_dir, read_lock_owner(self.lock_path))) from exc

        self._fd = fd
        self._write_owner(api_port=None)
        logger.debug("Locked state directory %s", self.state_dir)

    def record_api_port(self, api_port: int) -> None:
        """Add the wallet API port to the owner description."""
        if self._fd is not None:
            self._write_owner(api_port=api_port)

    def _write_owner(self, *, api_port: Optional[int]) -> None:
        owner = {"pid": os.getpid(), "state_dir": str(self.state_dir.resolve()), "api_port": api_port}
        os.ftruncate(self._fd, 0)
        os.lseek(self._fd, 0, os.SEEK_SET)
        os.write(self._fd, json.dumps(owner).encode("utf-8"))

    def release(self) -> None:
        """Remove the lock file and drop the lock; safe to call twice."""
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Could not remove %s: %s", self.lock_path, exc)
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)


@contextmanager
def state_dir_lock(state_dir: Path | str) -> Iterator[StateDirLock]:
    """Hold the state directory lock for the duration of the block."""
    lock = StateDirLock(state_dir)
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()


ServiceFactory = Callable[[StateDirLock], Coroutine[Any, Any, int]]


def run_async_service(
    factory: ServiceFactory,
    *,
    state_dir: Path | str,
    shutdown_message: Optional[str] = None,
) -> int:
    """Run ``factory(lock)`` under the state directory lock and return its exit code.

    Ctrl+C that reaches this level (before signal handlers are installed) is
    reported as an interruption with exit code 130.
    """
    try:
        with state_dir_lock(state_dir) as lock:
            try:
                return asyncio.run(factory(lock))
            except KeyboardInterrupt:  # policy_guard: allow-silent-handler
                logger.info(shutdown_message or "cardano-launcher interrupted by user")
                return 130
    except SingleInstanceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1


__all__ = ["LOCK_FILENAME", "StateDirLock", "read_lock_owner", "run_async_service", "state_dir_lock"]
