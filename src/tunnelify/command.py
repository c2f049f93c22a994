"""ssh command line construction for opening and closing tunnels."""

import shlex

from .config import TunnelConfig

EXIT_ON_FORWARD_FAILURE = "ExitOnForwardFailure=yes"


class SshCommandBuilder:
    """Builds ssh argument lists bound to one control socket."""

    def __init__(self, config: TunnelConfig, control_socket: str) -> None:
        self.config = config
        self.control_socket = control_socket

    def open_command(self) -> list[str]:
        """Command that starts a backgrounded master connection with forwards.

        ssh forks into the background once every forward is bound (``-f``
        together with ``ExitOnForwardFailure``), so the exit code of the
        foreground process tells whether the tunnels are up.

        Returns:
            Full argument list, executable first
        """
        command = [
            self.config.ssh_binary,
            "-f",
            "-N",
            "-o",
            EXIT_ON_FORWARD_FAILURE,
            "-M",
            "-S",
            self.control_socket,
        ]
        for spec in self.config.forward_specs:
            command.extend(["-L", spec])

        command.append(self.config.host)

        if self.config.verbose:
            command.append("-v")

        return command

    def close_command(self) -> list[str]:
        """Command asking the master behind the control socket to exit."""
        return [
            self.config.ssh_binary,
            "-S",
            self.control_socket,
            "-O",
            "exit",
            self.config.host,
        ]


def format_command(command: list[str]) -> str:
    """Render an argument list as a copy-pasteable shell command."""
    return shlex.join(command)
