"""Common utilities and shared functionality."""

from .escaping import (
    escape_exec_arg,
    escape_specifiers,
    render_exec_start,
    split_exec_args,
)
from .exceptions import (
    ConfigurationError,
    Diagnostic,
    DuplicateServiceNameError,
    ErrorKind,
    MissingCertificateReferenceError,
    SchemaViolationError,
    WstunnelUnitsError,
)
from .logging import configure_library_logging, get_logger, setup_logging
from .utils import (
    MAX_PORT,
    MIN_PORT,
    PRIVILEGED_PORT_LIMIT,
    has_control_characters,
    is_privileged_port,
    mask_sensitive_data,
    sanitize_command_line,
)

__all__ = [
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
    # Utils
    "is_privileged_port",
    "mask_sensitive_data",
    "sanitize_command_line",
    "has_control_characters",
    "MIN_PORT",
    "MAX_PORT",
    "PRIVILEGED_PORT_LIMIT",
]
