"""Configuration model for a wstunnel server entry."""

from pathlib import Path
from typing import Any

from pydantic import Field, model_validator

from .base import DEFAULT_LISTEN_HOST, EntryConfig, default_port
from .endpoints import Endpoint


class ServerConfig(EntryConfig):
    """A tunnel server accepting websocket connections."""

    listen: Endpoint = Field(description="Address and port to listen on")
    restrict_to: Endpoint | None = Field(
        default=None, description="Only forward accepted traffic to this address"
    )
    enable_https: bool = Field(default=True, description="Serve wss:// instead of ws://")
    tls_certificate: Path | None = Field(default=None, description="TLS certificate file")
    tls_key: Path | None = Field(default=None, description="TLS private key file")
    use_acme_host: str | None = Field(
        default=None, min_length=1, description="Use the managed certificate of this host"
    )

    @model_validator(mode="before")
    @classmethod
    def fill_listen_defaults(cls, data: Any) -> Any:
        """Default to 0.0.0.0 on 443 (HTTPS) or 80, filling a partial listen."""
        if not isinstance(data, dict):
            return data

        default = {"host": DEFAULT_LISTEN_HOST, "port": default_port(data)}
        listen = data.get("listen")
        if listen is None:
            return {**data, "listen": default}
        if isinstance(listen, dict):
            return {**data, "listen": {**default, **listen}}
        return data

    @property
    def has_explicit_tls(self) -> bool:
        """True if either TLS file is set."""
        return self.tls_certificate is not None or self.tls_key is not None
