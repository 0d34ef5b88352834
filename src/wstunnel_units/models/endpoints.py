"""Endpoint value types shared by server and client entries."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.utils import MAX_PORT, MIN_PORT


class Endpoint(BaseModel):
    """A host/port pair; immutable and compared by value."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    host: str = Field(min_length=1, description="Hostname or address")
    port: int = Field(ge=MIN_PORT, le=MAX_PORT, description="TCP/UDP port")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject whitespace inside the host, which would break host:port rendering."""
        if any(char.isspace() for char in v):
            raise ValueError("Host must not contain whitespace")
        return v

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class ForwardingRule(BaseModel):
    """One local listener relayed to a remote address through the tunnel."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    local: Endpoint = Field(description="Local address and port to listen on")
    remote: Endpoint = Field(description="Address and port on the remote side")

    def __str__(self) -> str:
        return f"{self.local}:{self.remote}"
