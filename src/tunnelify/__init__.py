"""tunnelify - open ssh local port forwards from Python."""

from .api import managed_tunnel, managed_tunnel_sync, open_tunnel
from .command import SshCommandBuilder
from .config import TunnelConfig
from .context import ResourceLeakDetector
from .exceptions import (
    ConfigurationError,
    SpawnError,
    TunnelEstablishError,
    TunnelifyError,
)
from .logging import get_logger, setup_logging
from .process import SshProcessRunner
from .tunnel import Tunnel, TunnelState

__version__ = "0.1.0"


__all__ = [
    # High-level API
    "open_tunnel",
    "managed_tunnel",
    "managed_tunnel_sync",
    # Tunnel management
    "Tunnel",
    "TunnelConfig",
    "TunnelState",
    "SshCommandBuilder",
    "SshProcessRunner",
    "ResourceLeakDetector",
    # Exceptions
    "TunnelifyError",
    "ConfigurationError",
    "SpawnError",
    "TunnelEstablishError",
    # Logging
    "get_logger",
    "setup_logging",
]
