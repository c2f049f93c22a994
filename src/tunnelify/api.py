"""High-level API for tunnelify.

This module provides simple functions for the common case of forwarding a
few ports for the duration of a block of code.
"""

from collections.abc import AsyncIterator, Iterator, Mapping, Sequence
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from .logging import get_logger
from .tunnel import Tunnel

logger = get_logger(__name__)


async def open_tunnel(
    host: str,
    *,
    port: int | None = None,
    ports: Sequence[int] | None = None,
    tunnels: Mapping[str | int, str | int] | None = None,
    **options: Any,
) -> Tunnel:
    """Create a tunnel and wait until its forwards are up.

    The caller owns the returned tunnel and must ``await tunnel.close()``.

    Args:
        host: ssh destination
        port: Single port forwarded to the same port on the host
        ports: Ports forwarded to the same ports on the host
        tunnels: Local port to remote ``host:port`` mapping
        **options: Additional ``TunnelConfig`` options (verbose, quiet, ssh_binary)

    Returns:
        Tunnel: The open tunnel

    Example:
        >>> tunnel = await open_tunnel("remote-server", port=3000)
        >>> ...
        >>> await tunnel.close()
    """
    tunnel = Tunnel(host=host, port=port, ports=ports, tunnels=tunnels, **options)
    await tunnel.open()
    logger.info("Tunnel opened", host=host, forwards=list(tunnel.forward_specs))
    return tunnel


@asynccontextmanager
async def managed_tunnel(
    host: str,
    *,
    port: int | None = None,
    ports: Sequence[int] | None = None,
    tunnels: Mapping[str | int, str | int] | None = None,
    **options: Any,
) -> AsyncIterator[Tunnel]:
    """Open a tunnel for the duration of an ``async with`` block.

    The ssh master is asked to exit when the block ends, even if an
    exception occurs.

    Example:
        >>> async with managed_tunnel("remote-server", ports=[3000, 5432]) as tunnel:
        ...     ...  # use localhost:3000 and localhost:5432
    """
    tunnel = Tunnel(host=host, port=port, ports=ports, tunnels=tunnels, **options)
    async with tunnel:
        logger.info("Managed tunnel opened", host=host, forwards=list(tunnel.forward_specs))
        try:
            yield tunnel
        finally:
            logger.info("Managed tunnel closing", host=host)


@contextmanager
def managed_tunnel_sync(
    host: str,
    *,
    port: int | None = None,
    ports: Sequence[int] | None = None,
    tunnels: Mapping[str | int, str | int] | None = None,
    **options: Any,
) -> Iterator[Tunnel]:
    """Blocking counterpart of :func:`managed_tunnel`.

    Example:
        >>> with managed_tunnel_sync("remote-server", port=3000):
        ...     requests.get("http://localhost:3000")
    """
    tunnel = Tunnel(host=host, port=port, ports=ports, tunnels=tunnels, **options)
    with tunnel:
        logger.info("Managed tunnel opened", host=host, forwards=list(tunnel.forward_specs))
        try:
            yield tunnel
        finally:
            logger.info("Managed tunnel closing", host=host)
