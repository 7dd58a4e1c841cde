"""Helpers for the process ``Service`` supervisor."""

from .exit_status import ServiceExitStatus
from .output_pipe import forward_stream

__all__ = ["ServiceExitStatus", "forward_stream"]
