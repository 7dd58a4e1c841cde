"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from typing import List

import pytest

# Poll quickly so readiness tests stay fast
os.environ.setdefault("CARDANO_LAUNCHER_API_POLL_INTERVAL_SECONDS", "0.05")
os.environ.setdefault("CARDANO_LAUNCHER_NODE_POLL_INTERVAL_SECONDS", "0.05")
os.environ.setdefault("CARDANO_LAUNCHER_API_REQUEST_TIMEOUT_SECONDS", "1")

from cardano_launcher.service import STATUS_CHANGED, Service, ServiceStatus  # noqa: E402
from helpers.mock_logger import MockLogger  # noqa: E402


@pytest.fixture
def mock_logger() -> MockLogger:
    return MockLogger()


def collect_events(service: Service) -> List[ServiceStatus]:
    """Return a list that fills with the service's status changes as they occur."""
    events: List[ServiceStatus] = []
    service.events.on(STATUS_CHANGED, events.append)
    return events


@pytest.fixture
def events_of():
    return collect_events
