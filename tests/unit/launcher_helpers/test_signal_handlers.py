import asyncio
import os
import signal
from unittest.mock import MagicMock

import pytest

from cardano_launcher.launcher_helpers import install_signal_handlers


class _StubLauncher:
    def __init__(self):
        self.stop_requests = 0
        self.requested = asyncio.Event()

    def request_stop(self):
        self.stop_requests += 1
        self.requested.set()


@pytest.mark.asyncio
async def test_signal_requests_stop_until_removed():
    launcher = _StubLauncher()
    remove = install_signal_handlers(launcher, signals=(signal.SIGUSR1,))
    try:
        os.kill(os.getpid(), signal.SIGUSR1)
        await asyncio.wait_for(launcher.requested.wait(), 5)
    finally:
        remove()

    assert launcher.stop_requests == 1


def test_unsupported_platform_is_tolerated():
    loop = MagicMock()
    loop.add_signal_handler.side_effect = NotImplementedError

    remove = install_signal_handlers(MagicMock(), loop=loop)
    remove()

    assert loop.add_signal_handler.call_count == 2
    loop.remove_signal_handler.assert_not_called()
