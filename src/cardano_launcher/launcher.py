"""
Orchestration of the node + wallet stack.

The ``Launcher`` owns one node ``Service`` and one wallet ``Service``. It
starts them in dependency order, waits for the wallet API, and tears the
whole stack down when either process dies. Its ``exit`` event fires exactly
once per instance, whoever asked for the shutdown and however often.

Usage:
    launcher = Launcher(LaunchConfig(state_dir, "self", JormungandrConfig(config_dir)))
    api = await launcher.start()
    ...
    await launcher.stop()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Optional

from .api import Api
from .backends import NodeBackend, NodeConfig, make_backend
from .config import LauncherSettings, get_settings
from .errors import LaunchError
from .events import EventEmitter
from .launcher_helpers import launch_failure_message
from .log import Logger, StdlibLogger, prepend_name, safe_log
from .process_utils import find_free_port
from .readiness import wait_for_api
from .service import STATUS_CHANGED, Service, ServiceExitStatus, ServiceStatus, setup_service

READY_EVENT = "ready"
EXIT_EVENT = "exit"


@dataclass
class LaunchConfig:
    """
    Everything needed to run one node + wallet stack.

    Attributes:
        state_dir: Directory for node chain data, wallet databases and sockets
        network_name: Name of the network, used in logs and backend lookups
        node_config: Backend-specific node configuration (``kind`` selects the backend)
        api_port: Wallet API port, picked from free ports when unset
        child_process_log_write_stream: Writable sink receiving both children's stdout/stderr
        stop_timeout_seconds: Default per-service grace period of ``Launcher.stop``
    """

    state_dir: str
    network_name: str
    node_config: NodeConfig
    api_port: Optional[int] = None
    child_process_log_write_stream: Optional[IO[Any]] = None
    stop_timeout_seconds: Optional[float] = None


@dataclass(frozen=True)
class LauncherExitStatus:
    """Exit records of both services, carried by the ``exit`` event."""

    wallet: ServiceExitStatus
    node: ServiceExitStatus
    requested: bool = True  # False when the stack came down because a service died

    def describe(self) -> str:
        return launch_failure_message(self.node, self.wallet)


class WalletBackend:
    """Public event surface of a launcher: ``ready`` (``Api``) and ``exit`` (``LauncherExitStatus``)."""

    def __init__(self) -> None:
        self.events = EventEmitter()


class Launcher:
    """Supervisor of the node/wallet pair."""

    def __init__(
        self,
        config: LaunchConfig,
        logger: Optional[Logger] = None,
        *,
        backend: Optional[NodeBackend] = None,
        settings: Optional[LauncherSettings] = None,
    ) -> None:
        self.config = config
        self.settings = settings or get_settings()
        self.logger: Logger = logger or StdlibLogger(logging.getLogger(__name__))
        self.state_dir = Path(config.state_dir)
        self.backend = backend or make_backend(
            config.node_config,
            self.state_dir,
            config.network_name,
            logger=prepend_name(self.logger, "backend"),
        )
        self.api = Api(port=config.api_port or find_free_port())

        output = config.child_process_log_write_stream
        node_cfg = self.backend.node_service_config()
        wallet_cfg = self.backend.wallet_service_config(self.api.port)
        self.node_service: Service = setup_service(
            node_cfg, prepend_name(self.logger, "node"), output=output, settings=self.settings
        )
        self.wallet_service: Service = setup_service(
            wallet_cfg, prepend_name(self.logger, "wallet"), output=output, settings=self.settings
        )
        self.wallet_backend = WalletBackend()

        self._start_task: Optional[asyncio.Task] = None
        self._stop_task: Optional[asyncio.Task] = None
        self._running = False
        self._stop_requested = False
        self._exit_emitted = False

        self.node_service.events.on(STATUS_CHANGED, self._status_listener(self.node_service))
        self.wallet_service.events.on(STATUS_CHANGED, self._status_listener(self.wallet_service))

    @property
    def events(self) -> EventEmitter:
        return self.wallet_backend.events

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stop_requested(self) -> bool:
        """True once a caller asked for the stack to stop (``stop`` or ``request_stop``)."""
        return self._stop_requested

    async def start(self) -> Api:
        """
        Bring up node then wallet and wait for the wallet API.

        Raises:
            LaunchError: If either process exits before the API is ready; by
                then the surviving process has been stopped
        """
        if self._start_task is None:
            if self._stop_task is not None:
                raise LaunchError("Launcher was stopped before it started")
            self._start_task = asyncio.ensure_future(self._start())
        return await asyncio.shield(self._start_task)

    async def stop(self, timeout_seconds: Optional[float] = None) -> LauncherExitStatus:
        """Stop wallet then node. Every call resolves to the same ``LauncherExitStatus``."""
        self._stop_requested = True
        return await asyncio.shield(self._begin_stop(timeout_seconds, requested=True))

    def request_stop(self, timeout_seconds: Optional[float] = None) -> asyncio.Task:
        """Schedule ``stop`` without waiting for it."""
        self._stop_requested = True
        return self._begin_stop(timeout_seconds, requested=True)

    async def _start(self) -> Api:
        self._info(f"Launcher.start: starting {self.backend.kind} stack", self.backend.describe())
        self.state_dir.mkdir(parents=True, exist_ok=True)

        bring_up = asyncio.ensure_future(self._bring_up())
        failure = asyncio.ensure_future(self._first_exit())
        try:
            done, _pending = await asyncio.wait({bring_up, failure}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            failure.cancel()

        if bring_up in done and bring_up.exception() is None and self._stop_task is None and not self._any_exited():
            api = bring_up.result()
            self._running = True
            self._info(f"Launcher.start: wallet API ready at {api.base_url}")
            self.wallet_backend.events.emit(READY_EVENT, api)
            return api

        cause: Optional[BaseException] = None
        if bring_up.done() and not bring_up.cancelled():
            cause = bring_up.exception()
        else:
            bring_up.cancel()
            await asyncio.gather(bring_up, return_exceptions=True)

        status = await self._begin_stop(None, requested=False)
        message = launch_failure_message(status.node, status.wallet)
        self._error(f"Launcher.start: failed to start\n{message}")
        raise LaunchError(message, node=status.node, wallet=status.wallet) from cause

    async def _bring_up(self) -> Api:
        await self.node_service.start()
        await self.backend.wait_for_node(self.node_service, settings=self.settings)
        await self.wallet_service.start()
        return await wait_for_api(
            self.api,
            self.wallet_service,
            logger=prepend_name(self.logger, "readiness"),
            settings=self.settings,
        )

    async def _first_exit(self) -> ServiceExitStatus:
        waiters = {
            asyncio.ensure_future(self.node_service.wait_for_exit()),
            asyncio.ensure_future(self.wallet_service.wait_for_exit()),
        }
        try:
            done, _pending = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            return done.pop().result()
        finally:
            for waiter in waiters:
                waiter.cancel()

    def _any_exited(self) -> bool:
        return self.node_service.exit_status is not None or self.wallet_service.exit_status is not None

    def _begin_stop(self, timeout_seconds: Optional[float], *, requested: bool) -> asyncio.Task:
        if self._stop_task is None:
            self._stop_task = asyncio.ensure_future(self._stop(timeout_seconds, requested))
        return self._stop_task

    async def _stop(self, timeout_seconds: Optional[float], requested: bool) -> LauncherExitStatus:
        timeout = timeout_seconds
        if timeout is None:
            timeout = self.config.stop_timeout_seconds
        if timeout is None:
            timeout = self.settings.launcher_stop_timeout_seconds
        self._info("Launcher.stop: stopping wallet and node", {"timeout_seconds": timeout})

        wallet = await self.wallet_service.stop(timeout)
        node = await self.node_service.stop(timeout)
        self._running = False

        status = LauncherExitStatus(wallet=wallet, node=node, requested=requested)
        self._info("Launcher.stop: stack stopped", {"wallet": wallet.to_dict(), "node": node.to_dict()})
        self._emit_exit(status)
        return status

    def _emit_exit(self, status: LauncherExitStatus) -> None:
        if self._exit_emitted:
            return
        self._exit_emitted = True
        self.wallet_backend.events.emit(EXIT_EVENT, status)

    def _status_listener(self, service: Service):
        def _on_status(status: ServiceStatus) -> None:
            if status is not ServiceStatus.STOPPED or not self._running or self._stop_task is not None:
                return
            exit_status = service.exit_status
            described = exit_status.describe() if exit_status else service.exe
            self._error(f"Launcher: {described} unexpectedly; stopping the stack")
            self._begin_stop(None, requested=False)

        return _on_status

    def _info(self, message: str, payload: Any = None) -> None:
        safe_log(self.logger.info, message, payload)

    def _error(self, message: str, payload: Any = None) -> None:
        safe_log(self.logger.error, message, payload)


__all__ = [
    "EXIT_EVENT",
    "LaunchConfig",
    "Launcher",
    "LauncherExitStatus",
    "READY_EVENT",
    "WalletBackend",
]
