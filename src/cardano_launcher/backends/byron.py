"""cardano-node (Byron) with cardano-wallet-byron."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional, Sequence

from ..config import ConfigurationError
from ..log import Logger, safe_log
from ..process_utils import find_free_port
from ..readiness import wait_for_path
from ..service import StartService
from .base import NodeBackend

if TYPE_CHECKING:
    from ..config import LauncherSettings
    from ..service import Service

NODE_EXE = "cardano-node"
WALLET_EXE = "cardano-wallet-byron"
SOCKET_FILENAME = "cardano-node.socket"


@dataclass(frozen=True)
class ByronNetwork:
    """
    Static parameters of a Byron network.

    ``genesis_file`` is set for test networks; the wallet needs it to learn
    the protocol magic. Mainnet is selected with ``--mainnet``.
    """

    config_file: str
    topology_file: str
    genesis_file: Optional[str] = None


networks: Dict[str, ByronNetwork] = {
    "mainnet": ByronNetwork(
        config_file="configuration-mainnet.yaml",
        topology_file="topology-mainnet.json",
    ),
    "testnet": ByronNetwork(
        config_file="configuration-testnet.yaml",
        topology_file="topology-testnet.json",
        genesis_file="genesis-testnet.json",
    ),
}


@dataclass(frozen=True)
class ByronNodeConfig:
    """
    Attributes:
        configuration_dir: Directory holding configuration/topology/genesis files
        network: Network parameters, or a key of ``networks``
        listen_port: Node peer-to-peer port, picked from free ports when unset
        socket_file: IPC socket path, ``<state_dir>/cardano-node.socket`` when unset
        extra_args: Appended to the node command line
    """

    configuration_dir: str
    network: ByronNetwork | str = "mainnet"
    listen_port: Optional[int] = None
    socket_file: Optional[str] = None
    extra_args: Sequence[str] = field(default_factory=tuple)
    kind: str = "byron"


def resolve_network(network: ByronNetwork | str) -> ByronNetwork:
    if isinstance(network, ByronNetwork):
        return network
    if network not in networks:
        raise ConfigurationError.unknown_network("byron", network, networks)
    return networks[network]


class ByronBackend(NodeBackend):
    """Runs cardano-node; the wallet talks to it over the node's IPC socket."""

    kind = "byron"
    node_exe = NODE_EXE
    wallet_exe = WALLET_EXE

    def __init__(self, config: ByronNodeConfig, state_dir: Path, network_name: str, *, logger: Optional[Logger] = None) -> None:
        super().__init__(state_dir, network_name, logger=logger)
        self.config = config
        self.network = resolve_network(config.network)
        self.listen_port = config.listen_port or find_free_port()
        self.socket_path = Path(config.socket_file) if config.socket_file else self.state_dir / SOCKET_FILENAME

    def _config_path(self, name: str) -> str:
        return str(Path(self.config.configuration_dir) / name)

    def node_service_config(self) -> StartService:
        args = [
            "run",
            "--config",
            self._config_path(self.network.config_file),
            "--topology",
            self._config_path(self.network.topology_file),
            "--database-path",
            str(self.node_db_dir),
            "--socket-path",
            str(self.socket_path),
            "--port",
            str(self.listen_port),
            *self.config.extra_args,
        ]
        return StartService(command=NODE_EXE, args=tuple(args), supports_clean_shutdown=False)

    def wallet_service_config(self, api_port: int) -> StartService:
        args = [
            "serve",
            "--shutdown-handler",
            "--port",
            str(api_port),
            "--database",
            str(self.wallet_db_dir),
            "--node-socket",
            str(self.socket_path),
        ]
        if self.network.genesis_file:
            args += ["--testnet", self._config_path(self.network.genesis_file)]
        else:
            args.append("--mainnet")
        return StartService(command=WALLET_EXE, args=tuple(args), supports_clean_shutdown=True)

    async def wait_for_node(self, node_service: "Service", *, settings: Optional["LauncherSettings"] = None) -> None:
        """Wait for the node to create its IPC socket."""
        safe_log(self.logger.debug, f"byron: waiting for node socket {self.socket_path}")
        await wait_for_path(self.socket_path, node_service, logger=self.logger, settings=settings)


__all__ = ["ByronBackend", "ByronNetwork", "ByronNodeConfig", "networks", "resolve_network"]
