"""Utility functions for tunnelify."""

import os
import tempfile
import uuid

MIN_PORT = 1
MAX_PORT = 65535

CONTROL_SOCKET_PREFIX = "tunnelify-"


def validate_port(port: int, port_name: str = "Port") -> int:
    """Validate port number range.

    Args:
        port: Port number to validate
        port_name: Name of the port for error messages

    Returns:
        The validated port

    Raises:
        ValueError: If port is not in valid range (1-65535)
    """
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError(f"{port_name} must be an integer")
    if not (MIN_PORT <= port <= MAX_PORT):
        raise ValueError(f"{port_name} must be between {MIN_PORT} and {MAX_PORT}")
    return port


def validate_non_empty_string(value: str, field_name: str) -> str:
    """Validate that a string is not empty or only whitespace.

    Args:
        value: String value to validate
        field_name: Name of the field for error messages

    Returns:
        Stripped string value

    Raises:
        ValueError: If string is empty or only whitespace
    """
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value.strip()


def control_socket_path(directory: str | None = None) -> str:
    """Return a fresh, unused path for an ssh control socket.

    Nothing is created on disk; ssh binds the socket when the master
    connection starts.

    Args:
        directory: Parent directory (defaults to the system temp directory)

    Returns:
        Absolute path that does not exist yet
    """
    base = directory or tempfile.gettempdir()
    while True:
        path = os.path.join(base, f"{CONTROL_SOCKET_PREFIX}{uuid.uuid4().hex[:16]}")
        if not os.path.exists(path):
            return path


def validate_host(host: str) -> str:
    """Validate an ssh destination.

    Args:
        host: Host name, ``user@host`` or ssh config alias

    Returns:
        The validated host

    Raises:
        ValueError: If the host is empty, starts with ``-`` (ssh would
            parse it as an option) or contains control characters
    """
    host = validate_non_empty_string(host, "Host")
    if host.startswith("-"):
        raise ValueError("Host cannot start with '-'")
    if any(ord(char) < 32 or ord(char) == 127 for char in host):
        raise ValueError("Host cannot contain control characters")
    return host
