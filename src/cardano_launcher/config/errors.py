from __future__ import annotations

"""Exception types for configuration handling."""


class ConfigurationError(RuntimeError):
    """Raised when configuration values are missing or malformed."""

    @classmethod
    def invalid_value(cls, param_name: str, value, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg)

    @classmethod
    def unknown_network(cls, kind: str, network_name: str, known) -> "ConfigurationError":
        """Create error for a network name missing from a backend's network table."""
        return cls(f"Unknown {kind} network {network_name!r}. Known networks: {sorted(known)}")

    @classmethod
    def unknown_backend(cls, kind: str) -> "ConfigurationError":
        """Create error for an unsupported node backend kind."""
        return cls(f"Unsupported node backend kind {kind!r}")


__all__ = ["ConfigurationError"]
