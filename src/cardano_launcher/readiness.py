"""
Readiness checks: "is the freshly spawned backend able to serve yet?"

Every check polls on a fixed interval and is bounded by the lifecycle of the
service it watches rather than by a clock: the moment that service reports
``Stopped`` the check fails with ``ReadinessError``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

import aiohttp

from .api import Api
from .config import LauncherSettings, get_settings
from .errors import ReadinessError
from .log import Logger, StdlibLogger, safe_log
from .service import Service, ServiceStatus

NETWORK_INFORMATION_ENDPOINT = "network/information"
_HTTP_OK = 200

logger = logging.getLogger(__name__)
_DEFAULT_LOG = StdlibLogger(logger)

CHECK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)

Check = Callable[[], Awaitable[bool]]


def _service_is_down(service: Service) -> bool:
    return service.exit_status is not None or service.status is ServiceStatus.STOPPED


def _not_ready_error(service: Service, description: str) -> ReadinessError:
    exit_status = service.exit_status
    if exit_status is not None and exit_status.has_exited:
        return ReadinessError(f"{exit_status.describe()} before {description}", exit_status=exit_status)
    return ReadinessError(f"{service.exe} is not running; cannot wait for {description}", exit_status=exit_status)


async def poll_while_running(
    service: Service,
    check: Check,
    *,
    interval: float,
    description: str,
    logger: Optional[Logger] = None,
) -> int:
    """
    Run ``check`` every ``interval`` seconds until it returns True.

    Returns:
        Number of attempts made

    Raises:
        ReadinessError: If ``service`` stops before ``check`` succeeds
    """
    log = logger or _DEFAULT_LOG
    exit_waiter = asyncio.ensure_future(service.wait_for_exit())
    attempts = 0
    try:
        while True:
            if _service_is_down(service):
                raise _not_ready_error(service, description)

            attempts += 1
            attempt = asyncio.ensure_future(check())
            done, _pending = await asyncio.wait({attempt, exit_waiter}, return_when=asyncio.FIRST_COMPLETED)
            if attempt not in done:
                attempt.cancel()
                await asyncio.gather(attempt, return_exceptions=True)
                raise _not_ready_error(service, description)
            if attempt.result():
                safe_log(log.debug, f"{description} ready after {attempts} attempt(s)")
                return attempts

            await asyncio.wait({exit_waiter}, timeout=interval)
    finally:
        exit_waiter.cancel()


async def _check_http(session: aiohttp.ClientSession, url: str) -> bool:
    try:
        async with session.get(url) as response:
            if response.status == _HTTP_OK:
                return True
            logger.debug("Readiness check %s answered HTTP %s", url, response.status)
            return False
    except CHECK_ERRORS as exc:  # policy_guard: allow-silent-handler
        logger.debug("Readiness check %s failed: %s", url, exc)
        return False


async def wait_for_api(
    api: Api,
    wallet_service: Service,
    *,
    logger: Optional[Logger] = None,
    settings: Optional[LauncherSettings] = None,
    endpoint: str = NETWORK_INFORMATION_ENDPOINT,
) -> Api:
    """
    Poll the wallet API until it answers ``200``.

    Raises:
        ReadinessError: If the wallet process stops first
    """
    settings = settings or get_settings()
    log = logger or _DEFAULT_LOG
    url = api.url_for(endpoint)
    safe_log(log.info, f"Waiting for wallet API at {url}")

    timeout = aiohttp.ClientTimeout(total=settings.api_request_timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        await poll_while_running(
            wallet_service,
            lambda: _check_http(session, url),
            interval=settings.api_poll_interval_seconds,
            description="wallet API",
            logger=log,
        )
    safe_log(log.info, f"Wallet API is ready at {api.base_url}")
    return api


async def wait_for_path(
    path: Path,
    service: Service,
    *,
    logger: Optional[Logger] = None,
    settings: Optional[LauncherSettings] = None,
) -> None:
    """Wait until ``service`` has created ``path`` (e.g. its IPC socket)."""
    settings = settings or get_settings()

    async def _exists() -> bool:
        return path.exists()

    await poll_while_running(
        service,
        _exists,
        interval=settings.node_poll_interval_seconds,
        description=f"{service.exe} socket {path}",
        logger=logger,
    )


__all__ = [
    "NETWORK_INFORMATION_ENDPOINT",
    "poll_while_running",
    "wait_for_api",
    "wait_for_path",
]
