"""High-level API for wstunnel-units.

This module composes validation, compilation and assembly into single calls.
"""

import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .certificates import CertificateRegistry
from .common.exceptions import ConfigurationError
from .common.logging import get_logger
from .models import GenerationOptions, TunnelsConfig
from .units import GenerationResult, assemble
from .validation import validate_config

logger = get_logger(__name__)


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a raw configuration tree from a TOML or JSON file.

    Args:
        path: File ending in ``.toml`` or ``.json``

    Returns:
        The raw mapping, not yet validated

    Raises:
        ConfigurationError: If the file is missing, unparsable, of an
            unsupported type, or not a mapping at the top level
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in (".toml", ".json"):
        raise ConfigurationError(f"Unsupported configuration format '{suffix}': {path}")

    try:
        if suffix == ".toml":
            with path.open("rb") as f:
                data = tomllib.load(f)
        else:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")

    logger.debug("Loaded configuration file", path=str(path))
    return data


def generate(
    raw: Mapping[str, Any] | TunnelsConfig,
    certificates: CertificateRegistry | None = None,
    options: GenerationOptions | None = None,
) -> GenerationResult:
    """Validate a configuration and build its tunnel services.

    Args:
        raw: Raw configuration tree or a parsed snapshot
        certificates: Managed certificate lookup for ``use_acme_host``
        options: Naming, restart and failure policies

    Returns:
        GenerationResult with the service registry

    Raises:
        SchemaViolationError: If any entry is invalid
        MissingCertificateReferenceError: Under the ``abort`` policy

    Example:
        >>> result = generate({
        ...     "enable": True,
        ...     "servers": {"wg": {"listen": {"host": "0.0.0.0", "port": 8080}}},
        ... })
        >>> list(result.services)
        ['wstunnel-server-wg']
    """
    config = validate_config(raw)
    return assemble(config, certificates, options)
