"""Node backend variants, selected by the ``kind`` field of a node config."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..config import ConfigurationError
from ..log import Logger
from .base import NodeBackend
from .byron import ByronBackend, ByronNetwork, ByronNodeConfig
from .jormungandr import JormungandrBackend, JormungandrConfig, JormungandrNetwork

NodeConfig = Union[JormungandrConfig, ByronNodeConfig]

BackendFactory = Callable[..., NodeBackend]

BACKENDS: Dict[str, BackendFactory] = {
    JormungandrBackend.kind: JormungandrBackend,
    ByronBackend.kind: ByronBackend,
}


def make_backend(node_config: Any, state_dir: Path, network_name: str, *, logger: Optional[Logger] = None) -> NodeBackend:
    """Build the backend registered for ``node_config.kind``."""
    kind = getattr(node_config, "kind", None)
    factory = BACKENDS.get(kind)
    if factory is None:
        raise ConfigurationError.unknown_backend(str(kind))
    return factory(node_config, Path(state_dir), network_name, logger=logger)


__all__ = [
    "BACKENDS",
    "ByronBackend",
    "ByronNetwork",
    "ByronNodeConfig",
    "JormungandrBackend",
    "JormungandrConfig",
    "JormungandrNetwork",
    "NodeBackend",
    "NodeConfig",
    "make_backend",
]
