"""jormungandr node with cardano-wallet-jormungandr."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..config import ConfigurationError
from ..log import Logger
from ..process_utils import LOCALHOST, find_free_port
from ..service import StartService
from .base import NodeBackend

NODE_EXE = "jormungandr"
WALLET_EXE = "cardano-wallet-jormungandr"


@dataclass(frozen=True)
class JormungandrNetwork:
    """
    Static parameters of a jormungandr network.

    Exactly one of ``genesis_block_file`` (run our own block0) and
    ``genesis_block_hash`` (fetch block0 from peers) is set.
    """

    config_file: str
    genesis_block_file: Optional[str] = None
    genesis_block_hash: Optional[str] = None
    secret_files: Sequence[str] = ()


networks: Dict[str, JormungandrNetwork] = {
    "self": JormungandrNetwork(
        config_file="config.yaml",
        genesis_block_file="block0.bin",
        secret_files=("secret.yaml",),
    ),
    "itn_rewards_v1": JormungandrNetwork(
        config_file="config.yaml",
        genesis_block_hash="8e4d2a343f3dcf9330ad9035b3e8d168e6728904262f2c434a4f8f934ec7b676",
    ),
}


@dataclass(frozen=True)
class JormungandrConfig:
    """
    Attributes:
        configuration_dir: Directory holding the network's config/genesis/secret files
        network: Network parameters, or a key of ``networks``
        rest_port: Node REST port, picked from free ports when unset
        extra_args: Appended to the node command line
    """

    configuration_dir: str
    network: JormungandrNetwork | str = "self"
    rest_port: Optional[int] = None
    extra_args: Sequence[str] = field(default_factory=tuple)
    kind: str = "jormungandr"


def resolve_network(network: JormungandrNetwork | str) -> JormungandrNetwork:
    if isinstance(network, JormungandrNetwork):
        return network
    if network not in networks:
        raise ConfigurationError.unknown_network("jormungandr", network, networks)
    return networks[network]


class JormungandrBackend(NodeBackend):
    """Runs jormungandr; the wallet talks to the node REST port."""

    kind = "jormungandr"
    node_exe = NODE_EXE
    wallet_exe = WALLET_EXE

    def __init__(self, config: JormungandrConfig, state_dir: Path, network_name: str, *, logger: Optional[Logger] = None) -> None:
        super().__init__(state_dir, network_name, logger=logger)
        self.config = config
        self.network = resolve_network(config.network)
        self.rest_port = config.rest_port or find_free_port()

    def _config_path(self, name: str) -> str:
        return str(Path(self.config.configuration_dir) / name)

    def node_service_config(self) -> StartService:
        network = self.network
        args = [
            "--config",
            self._config_path(network.config_file),
            "--storage",
            str(self.node_db_dir),
            "--rest-listen",
            f"{LOCALHOST}:{self.rest_port}",
        ]
        if network.genesis_block_file:
            args += ["--genesis-block", self._config_path(network.genesis_block_file)]
        elif network.genesis_block_hash:
            args += ["--genesis-block-hash", network.genesis_block_hash]
        for secret in network.secret_files:
            args += ["--secret", self._config_path(secret)]
        args += list(self.config.extra_args)
        # jormungandr ignores stdin; stop it with SIGTERM
        return StartService(command=NODE_EXE, args=tuple(args), supports_clean_shutdown=False)

    def wallet_service_config(self, api_port: int) -> StartService:
        args = [
            "serve",
            "--shutdown-handler",
            "--port",
            str(api_port),
            "--database",
            str(self.wallet_db_dir),
            "--node-port",
            str(self.rest_port),
        ]
        if self.network.genesis_block_hash:
            args += ["--genesis-block-hash", self.network.genesis_block_hash]
        return StartService(command=WALLET_EXE, args=tuple(args), supports_clean_shutdown=True)


__all__ = ["JormungandrBackend", "JormungandrConfig", "JormungandrNetwork", "networks", "resolve_network"]
