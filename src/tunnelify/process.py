"""Process management for the ssh client binary."""

import asyncio
import subprocess
from typing import Any

from .command import format_command
from .exceptions import SpawnError
from .logging import get_logger

logger = get_logger(__name__)


class SshProcessRunner:
    """Runs ssh to completion and reports its exit code.

    Output handling is fixed per runner: either ssh shares this process's
    standard streams, or all three are redirected to the null device.
    """

    def __init__(self, inherit_stdio: bool = False) -> None:
        self.inherit_stdio = inherit_stdio

    def _stdio(self) -> dict[str, Any]:
        if self.inherit_stdio:
            return {"stdin": None, "stdout": None, "stderr": None}
        return {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
        }

    async def run(self, command: list[str]) -> int:
        """Spawn ``command`` and wait for it to exit.

        Args:
            command: Argument list, executable first

        Returns:
            Process exit code

        Raises:
            SpawnError: If the executable cannot be started
        """
        logger.debug("Spawning ssh", command=format_command(command))
        try:
            process = await asyncio.create_subprocess_exec(*command, **self._stdio())
        except (OSError, ValueError) as e:
            logger.error("Failed to start ssh", binary=command[0], error=str(e))
            raise SpawnError(f"Failed to start {command[0]}: {e}") from e

        returncode = await process.wait()
        logger.debug("ssh exited", pid=process.pid, returncode=returncode)
        return returncode

    def run_blocking(self, command: list[str]) -> int:
        """Blocking counterpart of :meth:`run` for callers without a loop."""
        logger.debug("Spawning ssh", command=format_command(command))
        try:
            completed = subprocess.run(command, check=False, **self._stdio())
        except (OSError, ValueError) as e:
            logger.error("Failed to start ssh", binary=command[0], error=str(e))
            raise SpawnError(f"Failed to start {command[0]}: {e}") from e

        logger.debug("ssh exited", returncode=completed.returncode)
        return completed.returncode
