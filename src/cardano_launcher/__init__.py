"""Supervise a blockchain node and its wallet backend as one stack."""

from .api import Api
from .backends import ByronNodeConfig, JormungandrConfig, NodeBackend
from .errors import LaunchError, LauncherError, ReadinessError, SingleInstanceError
from .events import EventEmitter
from .launcher import LaunchConfig, Launcher, LauncherExitStatus
from .log import Logger, StdlibLogger, prepend_name
from .service import Service, ServiceExitStatus, ServiceStatus, StartService, setup_service

__all__ = [
    "Api",
    "ByronNodeConfig",
    "EventEmitter",
    "JormungandrConfig",
    "LaunchConfig",
    "LaunchError",
    "Launcher",
    "LauncherError",
    "LauncherExitStatus",
    "Logger",
    "NodeBackend",
    "ReadinessError",
    "Service",
    "ServiceExitStatus",
    "ServiceStatus",
    "SingleInstanceError",
    "StartService",
    "StdlibLogger",
    "prepend_name",
    "setup_service",
]
