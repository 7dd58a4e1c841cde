"""Stop the stack when the supervising process is asked to terminate."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from ..process_utils import signal_name

if TYPE_CHECKING:
    from ..launcher import Launcher

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_signal_handlers(
    launcher: "Launcher",
    *,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    signals: Iterable[int] = DEFAULT_SIGNALS,
) -> Callable[[], None]:
    """
    Route ``signals`` of this process to ``launcher.request_stop()``.

    Returns:
        Callable that removes the installed handlers
    """
    event_loop = loop or asyncio.get_running_loop()
    installed: List[int] = []

    def _handle(signum: int) -> None:
        logger.info("Received %s; stopping wallet and node", signal_name(signum))
        launcher.request_stop()

    for signum in signals:
        try:
            event_loop.add_signal_handler(signum, _handle, signum)
        except (NotImplementedError, RuntimeError, ValueError) as exc:  # policy_guard: allow-silent-handler
            # Not available on this platform or outside the main thread
            logger.debug("Cannot install handler for %s: %s", signal_name(signum), exc)
            continue
        installed.append(signum)

    def _remove() -> None:
        for signum in installed:
            event_loop.remove_signal_handler(signum)
        installed.clear()

    return _remove


__all__ = ["DEFAULT_SIGNALS", "install_signal_handlers"]
