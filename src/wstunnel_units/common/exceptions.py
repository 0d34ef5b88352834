"""Custom exceptions for wstunnel unit generation."""

from enum import Enum
from typing import NamedTuple


class ErrorKind(str, Enum):
    """Kinds of problems reported while generating services."""

    SCHEMA_VIOLATION = "schema_violation"
    MISSING_CERTIFICATE_REFERENCE = "missing_certificate_reference"
    DUPLICATE_SERVICE_NAME = "duplicate_service_name"


class Diagnostic(NamedTuple):
    """One reported problem, attributed to a qualified entry name."""

    entry: str
    kind: ErrorKind
    message: str


class WstunnelUnitsError(Exception):
    """Base exception for all wstunnel-units errors."""

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None):
        super().__init__(message)
        self.diagnostics: list[Diagnostic] = list(diagnostics or [])


class ConfigurationError(WstunnelUnitsError):
    """Raised when a configuration file cannot be read."""
    pass


class SchemaViolationError(WstunnelUnitsError):
    """Raised when one or more entries fail schema or invariant checks."""

    def __init__(self, diagnostics: list[Diagnostic]):
        lines = [f"{d.entry}: {d.message}" for d in diagnostics]
        super().__init__(
            f"{len(diagnostics)} configuration problem(s):\n" + "\n".join(lines),
            diagnostics,
        )


class MissingCertificateReferenceError(WstunnelUnitsError):
    """Raised when a server references a managed certificate that does not exist."""

    def __init__(self, entry: str, host: str):
        message = f"No managed certificate found for host '{host}'"
        super().__init__(
            f"{entry}: {message}",
            [Diagnostic(entry, ErrorKind.MISSING_CERTIFICATE_REFERENCE, message)],
        )
        self.entry = entry
        self.host = host


class DuplicateServiceNameError(WstunnelUnitsError):
    """Raised when two entries compile to the same service name."""

    def __init__(self, entry: str, service_name: str):
        message = f"Service name '{service_name}' is already registered"
        super().__init__(
            f"{entry}: {message}",
            [Diagnostic(entry, ErrorKind.DUPLICATE_SERVICE_NAME, message)],
        )
        self.entry = entry
        self.service_name = service_name
