"""Backend strategy interface: how to run and await one kind of node plus its wallet."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..log import Logger, StdlibLogger, safe_log
from ..service import StartService

if TYPE_CHECKING:
    from ..config import LauncherSettings
    from ..service import Service

NODE_DB_DIRNAME = "chain"
WALLET_DB_DIRNAME = "wallets"


class NodeBackend(ABC):
    """
    One node/wallet flavour.

    Subclasses build the two command lines and decide when the node is ready
    to accept the wallet.
    """

    kind: str = ""

    def __init__(self, state_dir: Path, network_name: str, *, logger: Optional[Logger] = None) -> None:
        self.state_dir = Path(state_dir)
        self.network_name = network_name
        self.logger: Logger = logger or StdlibLogger(logging.getLogger(__name__))

    @property
    def node_db_dir(self) -> Path:
        return self.state_dir / NODE_DB_DIRNAME

    @property
    def wallet_db_dir(self) -> Path:
        return self.state_dir / WALLET_DB_DIRNAME

    @abstractmethod
    def node_service_config(self) -> StartService:
        """Command line of the node process."""

    @abstractmethod
    def wallet_service_config(self, api_port: int) -> StartService:
        """Command line of the wallet process serving its API on ``api_port``."""

    async def wait_for_node(self, node_service: "Service", *, settings: Optional["LauncherSettings"] = None) -> None:
        """Return once the node can take a wallet connection; no wait by default."""
        safe_log(self.logger.debug, f"{self.kind}: wallet connects to the node on its own")

    def describe(self) -> dict:
        return {"kind": self.kind, "network": self.network_name, "state_dir": str(self.state_dir)}


__all__ = ["NODE_DB_DIRNAME", "NodeBackend", "WALLET_DB_DIRNAME"]
