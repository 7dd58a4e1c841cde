"""
Supervision of a single OS process.

A ``Service`` owns at most one child process for its whole lifetime and moves
through ``Stopped -> Started -> [Stopping ->] Stopped``. ``start`` and ``stop``
return awaitables that every caller shares, so repeated or concurrent calls
never spawn twice, never signal twice and always agree on the exit record.

Usage:
    service = setup_service(StartService("cat"))
    pid = await service.start()
    status = await service.stop(2)
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any, Awaitable, Mapping, Optional, Sequence, Set

from .config import LauncherSettings, get_settings
from .events import EventEmitter
from .log import Logger, StdlibLogger, safe_log
from .process_utils import pid_is_running
from .service_helpers import ServiceExitStatus, forward_stream

STATUS_CHANGED = "statusChanged"

_SPAWN_ERRORS = (OSError, ValueError)


class ServiceStatus(Enum):
    """Lifecycle states of a supervised process"""

    STARTED = "Started"  # spawn issued, outcome pending or process running
    STOPPING = "Stopping"  # stop requested, waiting for the process to exit
    STOPPED = "Stopped"  # initial and terminal state


@dataclass(frozen=True)
class StartService:
    """
    How to launch one process.

    Attributes:
        command: Executable path or name looked up on ``PATH``
        args: Command line arguments
        cwd: Working directory, ``None`` for the current one
        env: Environment overrides merged over the supervisor's environment
        supports_clean_shutdown: Process exits by itself once its stdin is
            closed; otherwise the graceful stop step sends ``SIGTERM``
    """

    command: str
    args: Sequence[str] = field(default_factory=tuple)
    cwd: Optional[str] = None
    env: Optional[Mapping[str, str]] = None
    supports_clean_shutdown: bool = True

    def command_line(self) -> str:
        return " ".join([self.command, *self.args])


class Service:
    """State machine wrapping one OS process."""

    def __init__(
        self,
        config: StartService,
        logger: Optional[Logger] = None,
        *,
        output: Optional[IO[Any]] = None,
        settings: Optional[LauncherSettings] = None,
    ) -> None:
        self.config = config
        self.exe = os.path.basename(config.command)
        self.events = EventEmitter()
        self._logger: Logger = logger or StdlibLogger(logging.getLogger(__name__))
        self._output = output
        self._default_stop_timeout = (settings or get_settings()).stop_timeout_seconds
        self._status = ServiceStatus.STOPPED
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._pid_future: Optional[asyncio.Future] = None
        self._exit_future: Optional[asyncio.Future] = None
        self._stop_task: Optional[asyncio.Task] = None
        self._exit_status: Optional[ServiceExitStatus] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def status(self) -> ServiceStatus:
        return self._status

    @property
    def exit_status(self) -> Optional[ServiceExitStatus]:
        """The exit record once the service reached its terminal state."""
        return self._exit_status

    def get_process(self) -> Optional[asyncio.subprocess.Process]:
        """Return the child process while it is running."""
        proc = self._proc
        if proc is None or proc.returncode is not None or not pid_is_running(proc.pid):
            return None
        return proc

    def start(self) -> Awaitable[Optional[int]]:
        """
        Spawn the process unless that already happened.

        The ``Started`` notification fires before this returns. The awaitable
        resolves to the child's pid, or to ``None`` when spawning failed (the
        error is in the exit record). Once a spawn error has been recorded,
        further calls return an awaitable raising that error.
        """
        loop = asyncio.get_running_loop()

        if self._pid_future is not None:
            spawn_error = self._exit_status.err if self._exit_status else None
            if spawn_error is not None:
                failed = loop.create_future()
                failed.set_exception(spawn_error)
                return failed
            return asyncio.shield(self._pid_future)

        self._pid_future = loop.create_future()
        if self._exit_status is not None:
            self._debug("Service.start: already stopped, not spawning")
            self._pid_future.set_result(None)
            return asyncio.shield(self._pid_future)

        self._track(loop.create_task(self._spawn()))
        self._set_status(ServiceStatus.STARTED)
        return asyncio.shield(self._pid_future)

    def stop(self, timeout_seconds: Optional[float] = None) -> Awaitable[ServiceExitStatus]:
        """
        Stop the process, escalating to ``SIGKILL`` after ``timeout_seconds``.

        Safe to call any number of times: every call resolves to the one exit
        record, and only the first call while running sends signals.
        """
        loop = asyncio.get_running_loop()

        if self._exit_status is not None:
            return asyncio.shield(self._exit_waiter())
        if self._stop_task is not None:
            return asyncio.shield(self._stop_task)

        if self._status is ServiceStatus.STOPPED:
            self._debug("Service.stop: was not running")
            self._record_exit(ServiceExitStatus(exe=self.exe))
            return asyncio.shield(self._exit_waiter())

        timeout = self._default_stop_timeout if timeout_seconds is None else timeout_seconds
        self._stop_task = loop.create_task(self._stop_process(timeout))
        self._set_status(ServiceStatus.STOPPING)
        return asyncio.shield(self._stop_task)

    def wait_for_exit(self) -> Awaitable[ServiceExitStatus]:
        """Resolve with the exit record whenever the process ends, without stopping it."""
        return asyncio.shield(self._exit_waiter())

    async def _spawn(self) -> None:
        cfg = self.config
        env = {**os.environ, **cfg.env} if cfg.env else None
        pipe_output = asyncio.subprocess.PIPE if self._output is not None else None
        # Only clean-shutdown children get a stdin pipe; closing it is their stop request
        stdin = asyncio.subprocess.PIPE if cfg.supports_clean_shutdown else asyncio.subprocess.DEVNULL
        self._info(f"Service.start: trying to start {cfg.command_line()}", {"cwd": cfg.cwd, "env": dict(cfg.env or {})})

        try:
            proc = await asyncio.create_subprocess_exec(
                cfg.command,
                *cfg.args,
                stdin=stdin,
                stdout=pipe_output,
                stderr=pipe_output,
                cwd=cfg.cwd,
                env=env,
            )
        except _SPAWN_ERRORS as err:
            safe_log(self._logger.error, f"Service.start: failed to spawn {self.exe}", {"error": str(err)})
            self._record_exit(ServiceExitStatus.from_spawn_error(self.exe, err))
            self._resolve_pid(None)
            return

        self._proc = proc
        self._debug(f"Service.start: {self.exe} running with pid {proc.pid}")
        if self._output is not None:
            self._track(asyncio.ensure_future(forward_stream(proc.stdout, self._output, label=f"{self.exe} stdout")))
            self._track(asyncio.ensure_future(forward_stream(proc.stderr, self._output, label=f"{self.exe} stderr")))
        self._resolve_pid(proc.pid)
        self._track(asyncio.ensure_future(self._watch(proc)))

    async def _watch(self, proc: asyncio.subprocess.Process) -> None:
        returncode = await proc.wait()
        if proc.stdin is not None and not proc.stdin.is_closing():
            proc.stdin.close()
        status = ServiceExitStatus.from_returncode(self.exe, returncode)
        self._debug(f"Service: {status.describe()}", status.to_dict())
        self._record_exit(status)

    async def _stop_process(self, timeout: float) -> ServiceExitStatus:
        await asyncio.shield(self._pid_future)
        exit_waiter = self._exit_waiter()
        if exit_waiter.done():
            return exit_waiter.result()

        proc = self._proc
        self._request_shutdown(proc)
        try:
            return await asyncio.wait_for(asyncio.shield(exit_waiter), timeout)
        except asyncio.TimeoutError:  # policy_guard: allow-silent-handler
            self._info(f"Service.stop: {self.exe} still running after {timeout}s; sending SIGKILL")

        try:
            proc.kill()
        except ProcessLookupError:  # policy_guard: allow-silent-handler
            self._debug(f"Service.stop: {self.exe} exited before SIGKILL")
        return await exit_waiter

    def _request_shutdown(self, proc: asyncio.subprocess.Process) -> None:
        if self.config.supports_clean_shutdown and proc.stdin is not None:
            self._debug(f"Service.stop: closing stdin of {self.exe} (pid {proc.pid})")
            proc.stdin.close()
            return

        self._debug(f"Service.stop: sending SIGTERM to {self.exe} (pid {proc.pid})")
        try:
            proc.send_signal(signal.SIGTERM)
        except ProcessLookupError:  # policy_guard: allow-silent-handler
            self._debug(f"Service.stop: {self.exe} exited before SIGTERM")

    def _record_exit(self, status: ServiceExitStatus) -> None:
        if self._exit_status is not None:
            return
        self._exit_status = status
        self._proc = None
        waiter = self._exit_waiter()
        if not waiter.done():
            waiter.set_result(status)
        if self._status is not ServiceStatus.STOPPED:
            self._set_status(ServiceStatus.STOPPED)

    def _exit_waiter(self) -> asyncio.Future:
        if self._exit_future is None:
            self._exit_future = asyncio.get_running_loop().create_future()
            if self._exit_status is not None:
                self._exit_future.set_result(self._exit_status)
        return self._exit_future

    def _resolve_pid(self, pid: Optional[int]) -> None:
        if self._pid_future is not None and not self._pid_future.done():
            self._pid_future.set_result(pid)

    def _set_status(self, status: ServiceStatus) -> None:
        self._status = status
        self._debug(f"Service: {self.exe} status changed to {status.value}")
        self.events.emit(STATUS_CHANGED, status)

    def _track(self, task: asyncio.Future) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _debug(self, message: str, payload: Any = None) -> None:
        safe_log(self._logger.debug, message, payload)

    def _info(self, message: str, payload: Any = None) -> None:
        safe_log(self._logger.info, message, payload)


def setup_service(
    config: StartService,
    logger: Optional[Logger] = None,
    *,
    output: Optional[IO[Any]] = None,
    settings: Optional[LauncherSettings] = None,
) -> Service:
    """Create a ``Service`` for ``config``; nothing is spawned until ``start``."""
    return Service(config, logger, output=output, settings=settings)


__all__ = [
    "STATUS_CHANGED",
    "Service",
    "ServiceExitStatus",
    "ServiceStatus",
    "StartService",
    "setup_service",
]
