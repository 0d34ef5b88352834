"""wstunnel-units - compile wstunnel tunnel definitions into supervised services."""

__version__ = "0.1.0"

# High-level API
from .api import generate, load_config_file

# Certificates
from .certificates import (
    CertificateRegistry,
    DirectoryCertificateRegistry,
    ManagedCertificate,
    StaticCertificateRegistry,
)

# Common utilities
from .common.escaping import (
    escape_exec_arg,
    escape_specifiers,
    render_exec_start,
    split_exec_args,
)
from .common.exceptions import (
    ConfigurationError,
    Diagnostic,
    DuplicateServiceNameError,
    ErrorKind,
    MissingCertificateReferenceError,
    SchemaViolationError,
    WstunnelUnitsError,
)
from .common.logging import configure_library_logging, get_logger, setup_logging

# Compilation
from .compiler import CapabilityFlag, CompiledInvocation, compile_invocation

# Configuration models
from .models import (
    ClientConfig,
    Endpoint,
    FailurePolicy,
    ForwardingRule,
    GenerationOptions,
    RestartPolicy,
    ServerConfig,
    TunnelsConfig,
)

# Services
from .units import (
    GenerationResult,
    SandboxProfile,
    ServiceDescriptor,
    ServiceRegistry,
    assemble,
)
from .validation import check_invariants, validate_config

# Route events through stdlib logging; output stays off until configured
configure_library_logging()

__all__ = [
    # High-level API
    "generate",
    "load_config_file",
    # Models
    "Endpoint",
    "ForwardingRule",
    "ServerConfig",
    "ClientConfig",
    "TunnelsConfig",
    "GenerationOptions",
    "FailurePolicy",
    "RestartPolicy",
    # Pipeline
    "validate_config",
    "check_invariants",
    "compile_invocation",
    "CompiledInvocation",
    "CapabilityFlag",
    "assemble",
    "GenerationResult",
    "ServiceDescriptor",
    "SandboxProfile",
    "ServiceRegistry",
    # Certificates
    "CertificateRegistry",
    "ManagedCertificate",
    "StaticCertificateRegistry",
    "DirectoryCertificateRegistry",
    # Escaping
    "escape_exec_arg",
    "escape_specifiers",
    "render_exec_start",
    "split_exec_args",
    # Exceptions
    "WstunnelUnitsError",
    "ConfigurationError",
    "SchemaViolationError",
    "MissingCertificateReferenceError",
    "DuplicateServiceNameError",
    "Diagnostic",
    "ErrorKind",
    # Logging
    "configure_library_logging",
    "get_logger",
    "setup_logging",
]
