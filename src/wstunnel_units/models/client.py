"""Configuration model for a wstunnel client entry."""

from typing import Any

from pydantic import Field, field_validator, model_validator

from .base import EntryConfig, default_port
from .endpoints import Endpoint, ForwardingRule

DEFAULT_UDP_TIMEOUT = 30
NO_UDP_TIMEOUT = -1


class ClientConfig(EntryConfig):
    """A tunnel client connecting to a wstunnel server."""

    connect_to: Endpoint = Field(description="Server address and port")
    enable_https: bool = Field(default=True, description="Connect with wss://")
    forwarding_rules: tuple[ForwardingRule, ...] = Field(
        default=(), description="Local listeners forwarded to remote addresses"
    )
    dynamic_forward: Endpoint | None = Field(
        default=None, description="Local SOCKS5 proxy listener"
    )
    udp: bool = Field(default=False, description="Forward UDP instead of TCP")
    udp_timeout_seconds: int = Field(
        default=DEFAULT_UDP_TIMEOUT,
        ge=NO_UDP_TIMEOUT,
        description="Idle UDP timeout in seconds, -1 for none",
    )
    http_proxy: str | None = Field(
        default=None, description="Proxy for the server connection (USER:PASS@HOST:PORT)"
    )
    so_mark: int | None = Field(default=None, ge=0, description="SO_MARK for sockets")
    upgrade_path_prefix: str | None = Field(
        default=None, description="HTTP path prefix of the upgrade request"
    )
    host_header: str | None = Field(default=None, description="Override Host header")
    tls_sni: str | None = Field(default=None, description="Override TLS SNI")
    tls_verify_certificate: bool = Field(
        default=True, description="Verify the server certificate"
    )
    websocket_ping_interval: int | None = Field(
        default=None, ge=0, description="Heartbeat ping every N seconds"
    )
    upgrade_credentials: str | None = Field(
        default=None, description="Basic auth for the upgrade request (USER:[PASS])"
    )
    custom_headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers for the upgrade request"
    )
    expand_environment: bool = Field(
        default=False,
        description=(
            "Let the supervisor substitute $NAME / ${NAME} in http_proxy and "
            "upgrade_credentials, e.g. from environment_file"
        ),
    )

    @model_validator(mode="before")
    @classmethod
    def fill_connect_port(cls, data: Any) -> Any:
        """A connect_to without a port uses 443 (HTTPS) or 80."""
        if isinstance(data, dict):
            connect_to = data.get("connect_to")
            if isinstance(connect_to, dict) and "port" not in connect_to:
                return {**data, "connect_to": {**connect_to, "port": default_port(data)}}
        return data

    @field_validator("custom_headers")
    @classmethod
    def validate_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Header names must be non-empty tokens; no line breaks anywhere."""
        for name, value in v.items():
            if not name.strip() or ":" in name:
                raise ValueError(f"Invalid header name '{name}'")
            if any(char in "\r\n" for char in name + value):
                raise ValueError(f"Header '{name}' must not contain line breaks")
        return v

    @property
    def local_ports(self) -> list[int]:
        """Ports the client listens on locally."""
        ports = [rule.local.port for rule in self.forwarding_rules]
        if self.dynamic_forward is not None:
            ports.append(self.dynamic_forward.port)
        return ports
