from __future__ import annotations

"""Connection descriptor of a running wallet API."""

from dataclasses import dataclass
from urllib.parse import urljoin

from .process_utils import LOCALHOST


@dataclass(frozen=True)
class Api:
    """
    Where the wallet backend serves its REST API.

    Attributes:
        port: TCP port of the API
        hostname: Host the API listens on
        protocol: URL scheme
        base_path: Path prefix of the versioned API
    """

    port: int
    hostname: str = LOCALHOST
    protocol: str = "http"
    base_path: str = "/v2/"

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.hostname}:{self.port}{self.base_path}"

    def url_for(self, path: str) -> str:
        """Resolve an endpoint relative to the API base (``"network/information"``)."""
        return urljoin(self.base_url, path.lstrip("/"))


__all__ = ["Api"]
