"""Schema parsing and cross-field checks for tunnel configurations.

Validation is all-or-nothing: every entry is parsed and checked, every
problem is collected, and a single :class:`SchemaViolationError` reports
them together so an operator sees the complete list in one pass.
"""

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from .common.exceptions import Diagnostic, ErrorKind, SchemaViolationError
from .common.logging import get_logger
from .models import ClientConfig, ServerConfig, TunnelsConfig

logger = get_logger(__name__)

ROOT_ENTRY = "<root>"
SERVERS = "servers"
CLIENTS = "clients"

# Characters systemd accepts in unit names, minus the template marker '@'
ENTRY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9:_.\-]+$")


def entry_path(section: str, name: str) -> str:
    """Qualified name used to attribute diagnostics, e.g. ``servers.wg``."""
    return f"{section}.{name}"


def _violation(entry: str, message: str) -> Diagnostic:
    return Diagnostic(entry, ErrorKind.SCHEMA_VIOLATION, message)


def _from_validation_error(entry: str, exc: ValidationError) -> list[Diagnostic]:
    diagnostics = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = f"{location}: {error['msg']}" if location else error["msg"]
        diagnostics.append(_violation(entry, message))
    return diagnostics


def check_entry_name(section: str, name: str) -> list[Diagnostic]:
    """Entry names become part of service names and must be unit-name safe."""
    if ENTRY_NAME_PATTERN.match(name):
        return []
    return [
        _violation(
            entry_path(section, name),
            f'{section}."{name}" is not a valid name: use letters, digits, ":", "_", "." or "-"',
        )
    ]


def check_server(name: str, server: ServerConfig) -> list[Diagnostic]:
    """Check the TLS invariants of one server entry."""
    entry = entry_path(SERVERS, name)
    diagnostics = []

    if server.use_acme_host is not None and server.has_explicit_tls:
        diagnostics.append(
            _violation(
                entry,
                f'Options servers."{name}".use_acme_host and '
                f'servers."{name}".{{tls_certificate, tls_key}} are mutually exclusive.',
            )
        )

    if server.has_explicit_tls and (server.tls_certificate is None or server.tls_key is None):
        diagnostics.append(
            _violation(
                entry,
                f'servers."{name}".tls_certificate and servers."{name}".tls_key '
                "need to be set together.",
            )
        )

    return diagnostics


def check_client(name: str, client: ClientConfig) -> list[Diagnostic]:
    """A client must forward something: rules, a SOCKS5 listener, or both."""
    if client.forwarding_rules or client.dynamic_forward is not None:
        return []
    return [
        _violation(
            entry_path(CLIENTS, name),
            f'Either one of clients."{name}".forwarding_rules or '
            f'clients."{name}".dynamic_forward must be set.',
        )
    ]


def check_invariants(config: TunnelsConfig) -> list[Diagnostic]:
    """Run the cross-field checks on every entry, enabled or not.

    Returns:
        All violations found; empty if the configuration is acceptable
    """
    diagnostics: list[Diagnostic] = []
    for name, server in config.servers.items():
        diagnostics.extend(check_entry_name(SERVERS, name))
        diagnostics.extend(check_server(name, server))
    for name, client in config.clients.items():
        diagnostics.extend(check_entry_name(CLIENTS, name))
        diagnostics.extend(check_client(name, client))
    return diagnostics


def _parse_section(
    raw: Mapping[str, Any],
    section: str,
    model: type[BaseModel],
    diagnostics: list[Diagnostic],
) -> dict[str, Any]:
    entries = raw.get(section)
    if entries is None:
        return {}
    if not isinstance(entries, Mapping):
        diagnostics.append(
            _violation(ROOT_ENTRY, f"{section}: expected a mapping of names to entries")
        )
        return {}

    parsed = {}
    for name, data in entries.items():
        try:
            parsed[str(name)] = model.model_validate(data)
        except ValidationError as exc:
            diagnostics.extend(_from_validation_error(entry_path(section, str(name)), exc))
    return parsed


def _parse(raw: Mapping[str, Any]) -> tuple[TunnelsConfig, list[Diagnostic]]:
    diagnostics: list[Diagnostic] = []

    known = set(TunnelsConfig.model_fields)
    for key in raw:
        if key not in known:
            diagnostics.append(_violation(ROOT_ENTRY, f"{key}: Extra inputs are not permitted"))

    servers = _parse_section(raw, SERVERS, ServerConfig, diagnostics)
    clients = _parse_section(raw, CLIENTS, ClientConfig, diagnostics)

    try:
        config = TunnelsConfig(
            enable=raw.get("enable", False), servers=servers, clients=clients
        )
    except ValidationError as exc:
        diagnostics.extend(_from_validation_error(ROOT_ENTRY, exc))
        config = TunnelsConfig(servers=servers, clients=clients)

    return config, diagnostics


def validate_config(raw: Mapping[str, Any] | TunnelsConfig) -> TunnelsConfig:
    """Parse and check a configuration tree.

    Args:
        raw: Raw mapping (``enable``, ``servers``, ``clients``) or an already
            parsed snapshot

    Returns:
        The validated snapshot

    Raises:
        SchemaViolationError: With every problem found across all entries
    """
    if isinstance(raw, TunnelsConfig):
        config, diagnostics = raw, []
    elif isinstance(raw, Mapping):
        config, diagnostics = _parse(raw)
    else:
        raise SchemaViolationError(
            [_violation(ROOT_ENTRY, "Configuration must be a mapping")]
        )

    diagnostics.extend(check_invariants(config))
    if diagnostics:
        logger.info("Configuration rejected", problems=len(diagnostics))
        raise SchemaViolationError(diagnostics)

    logger.debug(
        "Configuration accepted",
        enable=config.enable,
        servers=len(config.servers),
        clients=len(config.clients),
    )
    return config
