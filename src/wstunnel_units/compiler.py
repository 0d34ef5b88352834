"""Compile tunnel entries into wstunnel argument vectors and capability sets.

Rendering is deterministic: identical entries always produce identical
argument vectors. Options are rendered as ``--name`` for true flags (false
flags are dropped) and ``--name=value`` otherwise. Tokens are kept raw here;
quoting for the supervisor happens in :func:`render_exec_start`.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .certificates import CertificateRegistry
from .common.exceptions import MissingCertificateReferenceError
from .common.logging import get_logger
from .common.utils import is_privileged_port, sanitize_command_line
from .models import ClientConfig, Endpoint, ServerConfig
from .validation import SERVERS, entry_path

logger = get_logger(__name__)


class CapabilityFlag(str, Enum):
    """Linux capabilities a tunnel process may be granted at launch."""

    BIND_PRIVILEGED_PORT = "CAP_NET_BIND_SERVICE"
    MARK_PACKETS = "CAP_NET_ADMIN"


class CompiledInvocation(BaseModel):
    """Argument vector and privileges needed to run one entry."""

    model_config = ConfigDict(frozen=True)

    command_line: tuple[str, ...] = Field(description="Raw argument vector")
    capabilities: frozenset[CapabilityFlag] = Field(default=frozenset())
    supplementary_groups: tuple[str, ...] = Field(default=())
    expanded_arguments: frozenset[int] = Field(
        default=frozenset(),
        description="Positions of tokens whose environment references the supervisor expands",
    )


def render_flag(name: str, value: Any) -> list[str]:
    """Render one option.

    Args:
        name: Option name without leading dashes
        value: True for a bare flag, None/False to omit, anything else is
            rendered with ``str()``

    Returns:
        Zero or one token
    """
    if value is None or value is False:
        return []
    if value is True:
        return [f"--{name}"]
    return [f"--{name}={value}"]


def render_extra_args(extra_args: Mapping[str, bool | str]) -> list[str]:
    """Render pass-through options in insertion order, without deduplication."""
    tokens = []
    for name, value in extra_args.items():
        tokens.extend(render_flag(name, value))
    return tokens


def target_uri(enable_https: bool, endpoint: Endpoint) -> str:
    scheme = "wss" if enable_https else "ws"
    return f"{scheme}://{endpoint}"


def server_capabilities(server: ServerConfig) -> frozenset[CapabilityFlag]:
    """Capabilities a server needs, derived from its listen port only."""
    if is_privileged_port(server.listen.port):
        return frozenset({CapabilityFlag.BIND_PRIVILEGED_PORT})
    return frozenset()


def client_capabilities(client: ClientConfig) -> frozenset[CapabilityFlag]:
    """Capabilities a client needs for its local listeners and socket marks."""
    capabilities = set()
    if any(is_privileged_port(port) for port in client.local_ports):
        capabilities.add(CapabilityFlag.BIND_PRIVILEGED_PORT)
    if client.so_mark is not None:
        capabilities.add(CapabilityFlag.MARK_PACKETS)
    return frozenset(capabilities)


def compile_server(
    name: str,
    server: ServerConfig,
    certificates: CertificateRegistry | None = None,
) -> CompiledInvocation:
    """Compile a server entry.

    Args:
        name: Entry name, used in error messages
        server: Validated server entry
        certificates: Registry consulted when ``use_acme_host`` is set

    Returns:
        The compiled invocation

    Raises:
        MissingCertificateReferenceError: If ``use_acme_host`` names a host
            without a managed certificate
    """
    tls_certificate = server.tls_certificate
    tls_key = server.tls_key
    groups: tuple[str, ...] = ()

    if server.use_acme_host is not None:
        certificate = (
            certificates.lookup(server.use_acme_host) if certificates is not None else None
        )
        if certificate is None:
            raise MissingCertificateReferenceError(
                entry_path(SERVERS, name), server.use_acme_host
            )
        tls_certificate = certificate.certificate_path
        tls_key = certificate.key_path
        groups = (certificate.group,)

    command_line = [server.executable, "--server"]
    command_line += render_flag("restrictTo", server.restrict_to)
    command_line += render_flag("tlsCertificate", tls_certificate)
    command_line += render_flag("tlsKey", tls_key)
    command_line += render_flag("verbose", server.verbose_logging)
    command_line += render_extra_args(server.extra_args)
    command_line.append(target_uri(server.enable_https, server.listen))

    return CompiledInvocation(
        command_line=tuple(command_line),
        capabilities=server_capabilities(server),
        supplementary_groups=groups,
    )


def compile_client(client: ClientConfig) -> CompiledInvocation:
    """Compile a client entry. Total over validated entries."""
    command_line = [client.executable]
    for rule in client.forwarding_rules:
        command_line += render_flag("localToRemote", rule)
    for header, value in client.custom_headers.items():
        command_line += render_flag("customHeaders", f"{header}: {value}")
    command_line += render_flag("dynamicToRemote", client.dynamic_forward)
    command_line += render_flag("udp", client.udp)
    expanded_arguments = set()
    if client.expand_environment and client.http_proxy is not None:
        expanded_arguments.add(len(command_line))
    command_line += render_flag("httpProxy", client.http_proxy)
    command_line += render_flag("soMark", client.so_mark)
    command_line += render_flag("upgradePathPrefix", client.upgrade_path_prefix)
    command_line += render_flag("hostHeader", client.host_header)
    command_line += render_flag("tlsSNI", client.tls_sni)
    command_line += render_flag("tlsVerifyCertificate", client.tls_verify_certificate)
    # wstunnel calls the interval a frequency
    command_line += render_flag("websocketPingFrequency", client.websocket_ping_interval)
    if client.expand_environment and client.upgrade_credentials is not None:
        expanded_arguments.add(len(command_line))
    command_line += render_flag("upgradeCredentials", client.upgrade_credentials)
    command_line += render_flag("udpTimeoutSec", client.udp_timeout_seconds)
    command_line += render_flag("verbose", client.verbose_logging)
    command_line += render_extra_args(client.extra_args)
    command_line.append(target_uri(client.enable_https, client.connect_to))

    return CompiledInvocation(
        command_line=tuple(command_line),
        capabilities=client_capabilities(client),
        expanded_arguments=frozenset(expanded_arguments),
    )


def compile_invocation(
    name: str,
    entry: ServerConfig | ClientConfig,
    certificates: CertificateRegistry | None = None,
) -> CompiledInvocation:
    """Compile a server or client entry.

    Raises:
        MissingCertificateReferenceError: See :func:`compile_server`
        TypeError: If ``entry`` is neither a server nor a client
    """
    if isinstance(entry, ServerConfig):
        invocation = compile_server(name, entry, certificates)
    elif isinstance(entry, ClientConfig):
        invocation = compile_client(entry)
    else:
        raise TypeError(f"Cannot compile entry of type {type(entry).__name__}")

    logger.debug(
        "Compiled invocation",
        name=name,
        command_line=sanitize_command_line(invocation.command_line),
        capabilities=sorted(flag.value for flag in invocation.capabilities),
    )
    return invocation
