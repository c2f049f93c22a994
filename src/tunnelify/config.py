"""Tunnel configuration model using Pydantic for validation."""

from collections.abc import Mapping
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigurationError
from .utils import validate_host, validate_non_empty_string, validate_port

FORWARD_FIELDS = ("port", "ports", "tunnels")


class TunnelConfig(BaseModel):
    """Immutable description of a set of local port forwards to one host.

    Exactly one of ``port``, ``ports`` or ``tunnels`` selects what gets
    forwarded:

    - ``port=3000`` forwards local 3000 to ``localhost:3000`` on the host
    - ``ports=[3000, 5432]`` does the same for each port, in order
    - ``tunnels={"8080": "db.internal:5432"}`` maps a local port (or
      ``bind_address:port``) to an arbitrary endpoint reachable from the host
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    host: str = Field(min_length=1, description="Target host (ssh destination)")
    port: int | None = Field(
        default=None, ge=1, le=65535, description="Single port forwarded to itself"
    )
    ports: tuple[int, ...] | None = Field(
        default=None, min_length=1, description="Ports forwarded to themselves"
    )
    tunnels: dict[str, str] | None = Field(
        default=None, min_length=1, description="Local port to remote endpoint"
    )
    verbose: bool = Field(default=False, description="Pass -v and show ssh output")
    quiet: bool | None = Field(
        default=None, description="Suppress ssh output (defaults to not verbose)"
    )
    ssh_binary: str = Field(
        default="ssh", min_length=1, description="ssh client executable"
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid tunnel configuration: {e}") from e

    @field_validator("host")
    @classmethod
    def validate_host_field(cls, v: str) -> str:
        return validate_host(v)

    @model_validator(mode="after")
    def normalize_output_mode(self) -> "TunnelConfig":
        """Resolve ``quiet`` from ``verbose``; both at once is an error."""
        if self.verbose and self.quiet is True:
            raise ValueError("cannot be both verbose and quiet")

        if self.quiet is None:
            # frozen model: fill the derived default in place
            object.__setattr__(self, "quiet", not self.verbose)
        return self

    @field_validator("ports")
    @classmethod
    def validate_ports(cls, v: tuple[int, ...] | None) -> tuple[int, ...] | None:
        """Ensure every listed port is in range."""
        if v is not None:
            for index, port in enumerate(v):
                validate_port(port, f"ports[{index}]")
        return v

    @field_validator("tunnels", mode="before")
    @classmethod
    def stringify_tunnels(cls, v: Any) -> Any:
        """Accept integer keys and values, e.g. ``{8080: 80}``."""
        if isinstance(v, Mapping):
            return {str(key): str(value) for key, value in v.items()}
        return v

    @field_validator("tunnels")
    @classmethod
    def validate_tunnels(cls, v: dict[str, str] | None) -> dict[str, str] | None:
        if v is None:
            return v

        validated: dict[str, str] = {}
        for local, remote in v.items():
            local = validate_non_empty_string(local, "Tunnel local port")
            remote = validate_non_empty_string(remote, f"Tunnel endpoint for {local}")
            validated[local] = remote
        return validated

    @model_validator(mode="after")
    def validate_single_forward_field(self) -> "TunnelConfig":
        """Exactly one forwarding field must be set."""
        provided = [name for name in FORWARD_FIELDS if getattr(self, name) is not None]

        if not provided:
            raise ValueError("one of port, ports or tunnels is required")

        if len(provided) > 1:
            raise ValueError(
                f"port, ports and tunnels are mutually exclusive (got {', '.join(provided)})"
            )

        return self

    @classmethod
    def from_options(cls, **options: Any) -> "TunnelConfig":
        """Build a config from keyword options.

        Raises:
            ConfigurationError: If the options are invalid
        """
        return cls(**options)

    @property
    def forward_specs(self) -> tuple[str, ...]:
        """Forward specs in ``local:host:remote`` form, one per ``-L`` flag."""
        if self.port is not None:
            return (f"{self.port}:localhost:{self.port}",)

        if self.ports is not None:
            return tuple(f"{port}:localhost:{port}" for port in self.ports)

        assert self.tunnels is not None
        return tuple(f"{local}:{remote}" for local, remote in self.tunnels.items())

    @property
    def inherit_stdio(self) -> bool:
        """Whether ssh should share this process's stdin/stdout/stderr."""
        return self.verbose or not self.quiet
