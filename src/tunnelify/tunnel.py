"""Tunnel session: opens and closes ssh port forwards through a control socket."""

import asyncio
from collections.abc import Callable, Coroutine
from enum import Enum
from types import TracebackType
from typing import Any, Literal

from .command import SshCommandBuilder
from .config import TunnelConfig
from .context import ResourceLeakDetector
from .exceptions import ConfigurationError, TunnelEstablishError, TunnelifyError
from .logging import get_logger
from .process import SshProcessRunner
from .utils import control_socket_path

logger = get_logger(__name__)

OpenCallback = Callable[[TunnelifyError | None, "Tunnel | None"], None]
CloseCallback = Callable[[TunnelifyError | None], None]

ESTABLISH_FAILURE_MESSAGE = (
    "Unable to establish tunnel(s). Retry with verbose=True to see what's going on."
)


class TunnelState(str, Enum):
    """Tunnel lifecycle state."""

    CLOSED = "closed"
    STARTING = "starting"
    OPEN = "open"


class Tunnel:
    """Local port forwards to one host, run by a backgrounded ssh master.

    The tunnel starts ``closed``. :meth:`open` moves it to ``starting`` while
    ssh authenticates and binds the forwards, then to ``open`` if ssh
    reports success; any failure puts it back to ``closed``. :meth:`close`
    asks the master to exit through the control socket.

    Example:
        >>> async with Tunnel(host="remote-server", port=3000) as tunnel:
        ...     ...  # localhost:3000 now reaches remote-server:3000

    Args:
        config: Tunnel configuration; alternatively pass its fields as
            keyword options
        callback: If given, ``open`` is scheduled on the running event loop
            and ``callback(error, tunnel)`` is called with its outcome
        **options: ``TunnelConfig`` fields when ``config`` is omitted

    Raises:
        ConfigurationError: If the configuration is invalid
    """

    def __init__(
        self,
        config: TunnelConfig | None = None,
        callback: OpenCallback | None = None,
        **options: Any,
    ) -> None:
        if config is None:
            config = TunnelConfig.from_options(**options)
        elif options:
            raise ConfigurationError(
                "Pass either a TunnelConfig or keyword options, not both"
            )

        self.config = config
        self.forward_specs = config.forward_specs
        self.control_socket = control_socket_path()

        self._state = TunnelState.CLOSED
        self._opening: asyncio.Future["Tunnel"] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._commands = SshCommandBuilder(config, self.control_socket)
        self._runner = SshProcessRunner(inherit_stdio=config.inherit_stdio)

        logger.debug(
            "Tunnel created",
            host=config.host,
            forwards=list(self.forward_specs),
            control_socket=self.control_socket,
        )

        if callback is not None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise ConfigurationError(
                    "An open callback requires a running event loop"
                ) from e
            loop.call_soon(self._auto_open, callback)

    def __repr__(self) -> str:
        return (
            f"Tunnel(host={self.config.host!r}, forwards={list(self.forward_specs)!r}, "
            f"state={self._state.value!r})"
        )

    @property
    def state(self) -> TunnelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is TunnelState.OPEN

    @property
    def starting(self) -> bool:
        return self._state is TunnelState.STARTING

    def _set_state(self, state: TunnelState) -> None:
        if state is not self._state:
            logger.info(
                "Tunnel state changed",
                host=self.config.host,
                old=self._state.value,
                new=state.value,
            )
        self._state = state

    def _finish_open(self, returncode: int) -> "Tunnel":
        if returncode != 0:
            self._set_state(TunnelState.CLOSED)
            raise TunnelEstablishError(ESTABLISH_FAILURE_MESSAGE, returncode=returncode)

        self._set_state(TunnelState.OPEN)
        ResourceLeakDetector.register_resource(self)
        return self

    def _finish_close(self, returncode: int) -> None:
        if returncode != 0:
            logger.debug(
                "ssh exit request returned non-zero, ignoring",
                host=self.config.host,
                returncode=returncode,
            )
        self._set_state(TunnelState.CLOSED)
        ResourceLeakDetector.unregister_resource(self)

    async def open(self) -> "Tunnel":
        """Start the forwarding session.

        Concurrent calls while the tunnel is starting share one ssh
        invocation and its outcome.

        Returns:
            This tunnel, now open

        Raises:
            SpawnError: If ssh cannot be started
            TunnelEstablishError: If ssh exits non-zero
        """
        if self._state is TunnelState.OPEN:
            return self

        if self._opening is None:
            self._set_state(TunnelState.STARTING)
            self._opening = asyncio.ensure_future(self._establish())
        return await asyncio.shield(self._opening)

    async def _establish(self) -> "Tunnel":
        try:
            returncode = await self._runner.run(self._commands.open_command())
        except BaseException:
            self._set_state(TunnelState.CLOSED)
            raise
        finally:
            self._opening = None

        return self._finish_open(returncode)

    async def close(self) -> None:
        """Ask the ssh master to exit.

        The exit code of the control command is not inspected; a tunnel that
        was never opened closes without error.

        Raises:
            SpawnError: If ssh cannot be started
        """
        returncode = await self._runner.run(self._commands.close_command())
        self._finish_close(returncode)

    def open_blocking(self) -> "Tunnel":
        """Blocking counterpart of :meth:`open`."""
        if self._state is TunnelState.OPEN:
            return self
        if self._state is TunnelState.STARTING:
            raise TunnelifyError("Tunnel is already being opened")

        self._set_state(TunnelState.STARTING)
        try:
            returncode = self._runner.run_blocking(self._commands.open_command())
        except BaseException:
            self._set_state(TunnelState.CLOSED)
            raise

        return self._finish_open(returncode)

    def close_blocking(self) -> None:
        """Blocking counterpart of :meth:`close`."""
        returncode = self._runner.run_blocking(self._commands.close_command())
        self._finish_close(returncode)

    def _spawn_task(self, coro: Coroutine[Any, Any, None]) -> "asyncio.Task[None]":
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def open_with_callback(self, callback: OpenCallback) -> "asyncio.Task[None]":
        """Open in the background and report through ``callback(error, tunnel)``.

        The callback is invoked exactly once, with ``(None, tunnel)`` on
        success or ``(error, None)`` on failure.
        """

        async def _run() -> None:
            try:
                tunnel = await self.open()
            except TunnelifyError as e:
                callback(e, None)
                return
            callback(None, tunnel)

        return self._spawn_task(_run())

    def close_with_callback(self, callback: CloseCallback) -> "asyncio.Task[None]":
        """Close in the background and report through ``callback(error)``."""

        async def _run() -> None:
            try:
                await self.close()
            except TunnelifyError as e:
                callback(e)
                return
            callback(None)

        return self._spawn_task(_run())

    def _auto_open(self, callback: OpenCallback) -> None:
        if self._state is not TunnelState.CLOSED:
            logger.debug("Skipping scheduled open", state=self._state.value)
            return
        self.open_with_callback(callback)

    async def __aenter__(self) -> "Tunnel":
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        if self._state is not TunnelState.CLOSED:
            try:
                await self.close()
            except TunnelifyError as e:
                logger.error("Error closing tunnel", host=self.config.host, error=str(e))
        return False

    def __enter__(self) -> "Tunnel":
        return self.open_blocking()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        if self._state is not TunnelState.CLOSED:
            try:
                self.close_blocking()
            except TunnelifyError as e:
                logger.error("Error closing tunnel", host=self.config.host, error=str(e))
        return False
