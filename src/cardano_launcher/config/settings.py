"""Timing knobs shared by the service supervisor and the launcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial

from .runtime import env_seconds

# Grace period between the graceful shutdown request and SIGKILL for a single service
DEFAULT_STOP_TIMEOUT_SECONDS = 5.0
# Grace period applied to each service when the whole stack is stopped
DEFAULT_LAUNCHER_STOP_TIMEOUT_SECONDS = 60.0
# Delay between wallet API readiness requests
DEFAULT_API_POLL_INTERVAL_SECONDS = 0.25
# Per-request budget of a single readiness request
DEFAULT_API_REQUEST_TIMEOUT_SECONDS = 5.0
# Delay between node readiness checks (port / socket file)
DEFAULT_NODE_POLL_INTERVAL_SECONDS = 0.25


@dataclass(frozen=True)
class LauncherSettings:
    """
    Environment-overridable timing configuration.

    Attributes:
        stop_timeout_seconds: Default escalation grace period for ``Service.stop``
        launcher_stop_timeout_seconds: Default grace period for ``Launcher.stop``
        api_poll_interval_seconds: Interval between wallet readiness requests
        api_request_timeout_seconds: Timeout of one readiness request
        node_poll_interval_seconds: Interval between node readiness checks
    """

    stop_timeout_seconds: float = field(
        default_factory=partial(env_seconds, "CARDANO_LAUNCHER_STOP_TIMEOUT_SECONDS", DEFAULT_STOP_TIMEOUT_SECONDS)
    )
    launcher_stop_timeout_seconds: float = field(
        default_factory=partial(
            env_seconds,
            "CARDANO_LAUNCHER_LAUNCHER_STOP_TIMEOUT_SECONDS",
            DEFAULT_LAUNCHER_STOP_TIMEOUT_SECONDS,
        )
    )
    api_poll_interval_seconds: float = field(
        default_factory=partial(env_seconds, "CARDANO_LAUNCHER_API_POLL_INTERVAL_SECONDS", DEFAULT_API_POLL_INTERVAL_SECONDS)
    )
    api_request_timeout_seconds: float = field(
        default_factory=partial(
            env_seconds,
            "CARDANO_LAUNCHER_API_REQUEST_TIMEOUT_SECONDS",
            DEFAULT_API_REQUEST_TIMEOUT_SECONDS,
        )
    )
    node_poll_interval_seconds: float = field(
        default_factory=partial(env_seconds, "CARDANO_LAUNCHER_NODE_POLL_INTERVAL_SECONDS", DEFAULT_NODE_POLL_INTERVAL_SECONDS)
    )


def get_settings() -> LauncherSettings:
    """Build settings from the current environment."""
    return LauncherSettings()


__all__ = [
    "DEFAULT_API_POLL_INTERVAL_SECONDS",
    "DEFAULT_API_REQUEST_TIMEOUT_SECONDS",
    "DEFAULT_LAUNCHER_STOP_TIMEOUT_SECONDS",
    "DEFAULT_NODE_POLL_INTERVAL_SECONDS",
    "DEFAULT_STOP_TIMEOUT_SECONDS",
    "LauncherSettings",
    "get_settings",
]
