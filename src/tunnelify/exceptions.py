"""Custom exceptions for tunnelify."""


class TunnelifyError(Exception):
    """Base exception for all tunnelify errors."""
    pass


class ConfigurationError(TunnelifyError, ValueError):
    """Raised when tunnel configuration is invalid."""
    pass


class SpawnError(TunnelifyError):
    """Raised when the ssh client cannot be started."""
    pass


class TunnelEstablishError(TunnelifyError):
    """Raised when the ssh client exits non-zero while opening a tunnel."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
