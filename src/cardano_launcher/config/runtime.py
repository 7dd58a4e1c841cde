from __future__ import annotations

"""Environment lookups for the launcher's tunables.

Values come from the process environment first, then from the first
``.env``-style file that defines them (``./.env``, then
``~/.cardano-launcher.env``). Files are read once per process; call
``reset_default_values`` after changing them.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".cardano-launcher.env")

_DEFAULT_VALUES: Optional[Dict[str, str]] = None


def parse_dotenv(text: str) -> Dict[str, str]:
    """Parse ``KEY=value`` lines; ``export`` prefixes, quotes and ``#`` comments are allowed."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw = line.split("=", 1)
        key = key.removeprefix("export ").strip()
        if key:
            values[key] = raw.strip().strip("'\"")
    return values


def _load_default_values() -> Dict[str, str]:
    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is not None:
        return _DEFAULT_VALUES

    defaults: Dict[str, str] = {}
    for path in _DOTENV_CANDIDATES:
        if not path.is_file():
            continue
        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigurationError(f"Failed to read launcher settings from {path}") from exc
        logger.debug("Loaded launcher defaults from %s", path)
        for key, value in parse_dotenv(text).items():
            defaults.setdefault(key, value)

    _DEFAULT_VALUES = defaults
    return defaults


def reset_default_values() -> None:
    """Forget cached .env defaults so the next lookup re-reads them."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def _lookup(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    if value:
        return value
    fallback = _load_default_values().get(name, "").strip()
    return fallback or None


def env_bool(name: str, or_value: bool = False) -> bool:
    """Read a yes/no switch such as ``CARDANO_LAUNCHER_LOG_APPEND``."""
    raw = _lookup(name)
    if raw is None:
        return or_value
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError.invalid_value(name, raw, f"Expected one of {sorted(_TRUE_VALUES | _FALSE_VALUES)}")


def env_seconds(name: str, or_value: float) -> float:
    """Read a non-negative duration in (fractional) seconds."""
    raw = _lookup(name)
    if raw is None:
        return or_value
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_value(name, raw, "Expected a number of seconds") from exc
    if value < 0:
        raise ConfigurationError.invalid_value(name, raw, "Durations cannot be negative")
    return value
