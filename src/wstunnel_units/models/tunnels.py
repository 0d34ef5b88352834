"""Top-level configuration snapshot and generation options."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .client import ClientConfig
from .server import ServerConfig


class TunnelsConfig(BaseModel):
    """Immutable input snapshot: named servers and clients behind one gate."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable: bool = Field(default=False, description="Generate any services at all")
    servers: dict[str, ServerConfig] = Field(default_factory=dict)
    clients: dict[str, ClientConfig] = Field(default_factory=dict)


class FailurePolicy(str, Enum):
    """What to do when one entry cannot be compiled."""

    ABORT = "abort"
    SKIP = "skip"


class RestartPolicy(str, Enum):
    """Supervisor restart policy applied to every generated service."""

    NO = "no"
    ON_FAILURE = "on-failure"
    ALWAYS = "always"


class GenerationOptions(BaseModel):
    """Knobs for one generation pass."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    server_prefix: str = Field(default="wstunnel-server-", min_length=1)
    client_prefix: str = Field(default="wstunnel-client-", min_length=1)
    on_missing_certificate: FailurePolicy = Field(default=FailurePolicy.ABORT)
    restart: RestartPolicy = Field(default=RestartPolicy.NO)

    @model_validator(mode="after")
    def check_prefixes(self) -> "GenerationOptions":
        """Prefixes may only contain characters valid in unit names."""
        for prefix in (self.server_prefix, self.client_prefix):
            if not all(char.isalnum() or char in ":_.-" for char in prefix):
                raise ValueError(f"Invalid service name prefix '{prefix}'")
        return self
