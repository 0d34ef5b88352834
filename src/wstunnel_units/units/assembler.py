"""Turn a validated configuration into the registry of tunnel services."""

from pydantic import BaseModel, Field

from ..certificates import CertificateRegistry
from ..common.exceptions import Diagnostic, MissingCertificateReferenceError
from ..common.logging import get_logger
from ..compiler import CompiledInvocation, compile_invocation
from ..models import (
    ClientConfig,
    FailurePolicy,
    GenerationOptions,
    ServerConfig,
    TunnelsConfig,
)
from ..validation import CLIENTS, SERVERS, entry_path
from .descriptor import ServiceDescriptor
from .registry import ServiceRegistry

logger = get_logger(__name__)


class GenerationResult(BaseModel):
    """Registry produced by one pass, plus diagnostics for skipped entries."""

    registry: ServiceRegistry = Field(default_factory=ServiceRegistry)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def services(self) -> dict[str, ServiceDescriptor]:
        return self.registry.services


def build_descriptor(
    service_name: str,
    description: str,
    entry: ServerConfig | ClientConfig,
    invocation: CompiledInvocation,
    options: GenerationOptions,
) -> ServiceDescriptor:
    """Wrap a compiled invocation into a service with the baseline sandbox."""
    return ServiceDescriptor(
        name=service_name,
        description=description,
        command_line=invocation.command_line,
        working_directory=entry.working_directory,
        capabilities=invocation.capabilities,
        supplementary_groups=invocation.supplementary_groups,
        auto_start=entry.auto_start,
        restart=options.restart,
        environment_file=entry.environment_file,
        expanded_arguments=invocation.expanded_arguments,
    )


def _add_entry(
    result: GenerationResult,
    section: str,
    name: str,
    entry: ServerConfig | ClientConfig,
    certificates: CertificateRegistry | None,
    options: GenerationOptions,
) -> None:
    qualified = entry_path(section, name)
    try:
        invocation = compile_invocation(name, entry, certificates)
    except MissingCertificateReferenceError as exc:
        if options.on_missing_certificate is FailurePolicy.ABORT:
            raise
        logger.warning("Skipping entry", entry=qualified, host=exc.host, reason="no certificate")
        result.diagnostics.extend(exc.diagnostics)
        return

    if section == SERVERS:
        service_name, role = f"{options.server_prefix}{name}", "server"
    else:
        service_name, role = f"{options.client_prefix}{name}", "client"

    descriptor = build_descriptor(
        service_name, f"wstunnel {role} - {name}", entry, invocation, options
    )
    result.registry.add_service(qualified, descriptor)


def assemble(
    config: TunnelsConfig,
    certificates: CertificateRegistry | None = None,
    options: GenerationOptions | None = None,
) -> GenerationResult:
    """Build services for every enabled entry, servers first.

    Args:
        config: Validated configuration snapshot
        certificates: Managed certificate lookup for ``use_acme_host``
        options: Naming, restart and failure policies

    Returns:
        The registry and any diagnostics for skipped entries

    Raises:
        MissingCertificateReferenceError: Under the ``abort`` policy
        DuplicateServiceNameError: If two entries map to the same name
    """
    options = options or GenerationOptions()
    result = GenerationResult()

    if not config.enable:
        logger.info("Tunnel services disabled, nothing generated")
        return result

    for name, server in config.servers.items():
        if server.enabled:
            _add_entry(result, SERVERS, name, server, certificates, options)
    for name, client in config.clients.items():
        if client.enabled:
            _add_entry(result, CLIENTS, name, client, certificates, options)

    logger.info(
        "Generated tunnel services",
        services=len(result.registry),
        skipped=len(result.diagnostics),
    )
    return result
