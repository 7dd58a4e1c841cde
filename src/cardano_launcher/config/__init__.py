"""Environment-backed launcher settings."""

from .errors import ConfigurationError
from .runtime import env_bool, env_seconds, parse_dotenv, reset_default_values
from .settings import LauncherSettings, get_settings

__all__ = [
    "ConfigurationError",
    "LauncherSettings",
    "env_bool",
    "env_seconds",
    "get_settings",
    "parse_dotenv",
    "reset_default_values",
]
