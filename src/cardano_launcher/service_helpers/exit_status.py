"""Immutable record of how a supervised process ended."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..process_utils import split_returncode


@dataclass(frozen=True)
class ServiceExitStatus:
    """
    Exit record of one supervised process.

    At most one of ``code``, ``signal`` and ``err`` is set. All three are
    ``None`` only for a service that was stopped before it ever spawned.

    Attributes:
        exe: Executable name (basename of the command)
        code: Exit code for a normal termination
        signal: Signal name (``"SIGKILL"``) for an abnormal termination
        err: Exception raised while spawning
    """

    exe: str
    code: Optional[int] = None
    signal: Optional[str] = None
    err: Optional[BaseException] = None

    @classmethod
    def from_returncode(cls, exe: str, returncode: Optional[int]) -> "ServiceExitStatus":
        code, signal_name = split_returncode(returncode)
        return cls(exe=exe, code=code, signal=signal_name)

    @classmethod
    def from_spawn_error(cls, exe: str, err: BaseException) -> "ServiceExitStatus":
        return cls(exe=exe, err=err)

    @property
    def has_exited(self) -> bool:
        """True when a process was actually attempted and has ended."""
        return self.code is not None or self.signal is not None or self.err is not None

    def status_text(self) -> str:
        if self.code is not None:
            return str(self.code)
        if self.signal is not None:
            return self.signal
        if self.err is not None:
            return str(self.err)
        return "unknown"

    def describe(self) -> str:
        return f"{self.exe} exited with status {self.status_text()}"

    def to_dict(self) -> Dict[str, Any]:
        return {"exe": self.exe, "code": self.code, "signal": self.signal, "err": self.err}


__all__ = ["ServiceExitStatus"]
