"""Tests for the high-level API."""

import asyncio

import pytest

from tunnelify.api import managed_tunnel, managed_tunnel_sync, open_tunnel
from tunnelify.exceptions import ConfigurationError, TunnelEstablishError
from tunnelify.tunnel import TunnelState


class TestOpenTunnel:
    def test_open_tunnel_returns_open_tunnel(self, mock_exec):
        tunnel = asyncio.run(open_tunnel("remote-server", port=3000))

        assert tunnel.is_open
        assert tunnel.forward_specs == ("3000:localhost:3000",)
        assert mock_exec.call_count == 1

    def test_open_tunnel_with_tunnels_mapping(self, mock_exec):
        tunnel = asyncio.run(open_tunnel("bastion", tunnels={8080: "web.internal:80"}))

        assert tunnel.forward_specs == ("8080:web.internal:80",)
        assert "8080:web.internal:80" in mock_exec.call_args.args

    def test_open_tunnel_passes_options(self, mock_exec):
        tunnel = asyncio.run(open_tunnel("remote-server", port=3000, verbose=True))

        assert tunnel.config.verbose is True
        assert mock_exec.call_args.args[-1] == "-v"

    def test_open_tunnel_invalid_config(self, mock_exec):
        with pytest.raises(ConfigurationError):
            asyncio.run(open_tunnel("remote-server", port=3000, ports=[3001]))

        mock_exec.assert_not_called()

    def test_open_tunnel_failure(self, mock_exec, mock_process):
        mock_process.wait.return_value = 1

        with pytest.raises(TunnelEstablishError):
            asyncio.run(open_tunnel("remote-server", port=3000))


class TestManagedTunnel:
    def test_managed_tunnel_opens_and_closes(self, mock_exec):
        async def main():
            async with managed_tunnel("remote-server", ports=[3000, 5432]) as tunnel:
                assert tunnel.is_open
            return tunnel

        tunnel = asyncio.run(main())

        assert tunnel.state is TunnelState.CLOSED
        assert mock_exec.call_count == 2

    def test_managed_tunnel_closes_on_error(self, mock_exec):
        opened = []

        async def main():
            async with managed_tunnel("remote-server", port=3000) as tunnel:
                opened.append(tunnel)
                raise ValueError("request failed")

        with pytest.raises(ValueError, match="request failed"):
            asyncio.run(main())

        assert opened[0].state is TunnelState.CLOSED

    def test_managed_tunnel_sync(self, mock_run):
        with managed_tunnel_sync("remote-server", port=3000) as tunnel:
            assert tunnel.is_open

        assert tunnel.state is TunnelState.CLOSED
        assert mock_run.call_count == 2
