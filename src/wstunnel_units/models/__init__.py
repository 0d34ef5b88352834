"""Typed configuration models."""

from .base import EntryConfig
from .client import ClientConfig
from .endpoints import Endpoint, ForwardingRule
from .server import ServerConfig
from .tunnels import FailurePolicy, GenerationOptions, RestartPolicy, TunnelsConfig

__all__ = [
    "Endpoint",
    "ForwardingRule",
    "EntryConfig",
    "ServerConfig",
    "ClientConfig",
    "TunnelsConfig",
    "GenerationOptions",
    "FailurePolicy",
    "RestartPolicy",
]
