"""Lookup of externally managed (ACME) certificates.

Servers may refer to a certificate by host name instead of by file path.
Issuance and renewal happen elsewhere; this module only resolves a host to
the directory holding ``fullchain.pem`` / ``key.pem`` and the group allowed
to read them.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from .common.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ACME_DIRECTORY = Path("/var/lib/acme")
CERTIFICATE_FILE = "fullchain.pem"
KEY_FILE = "key.pem"


class ManagedCertificate(BaseModel):
    """Location and owning group of a managed certificate."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    directory: Path = Field(description="Directory holding the certificate files")
    group: str = Field(min_length=1, description="Group allowed to read the key")

    @property
    def certificate_path(self) -> Path:
        """Full certificate chain"""
        return self.directory / CERTIFICATE_FILE

    @property
    def key_path(self) -> Path:
        """Private key"""
        return self.directory / KEY_FILE


class CertificateRegistry(Protocol):
    """Protocol for resolving a host to its managed certificate."""

    def lookup(self, host: str) -> ManagedCertificate | None:
        """Return the certificate for ``host``, or None if none is managed."""
        ...


class StaticCertificateRegistry:
    """In-memory registry, e.g. built from a deployment's certificate list."""

    def __init__(self, certificates: Mapping[str, ManagedCertificate] | None = None):
        self._certificates = dict(certificates or {})

    def lookup(self, host: str) -> ManagedCertificate | None:
        return self._certificates.get(host)


class DirectoryCertificateRegistry:
    """Registry backed by an ACME state directory with one subdirectory per host.

    Args:
        base_directory: ACME state directory (default: /var/lib/acme)
        group: Group to report for every certificate; when None the owning
            group of the host directory is used
    """

    def __init__(
        self,
        base_directory: Path | str = DEFAULT_ACME_DIRECTORY,
        group: str | None = None,
    ):
        self.base_directory = Path(base_directory)
        self.group = group

    def lookup(self, host: str) -> ManagedCertificate | None:
        # Host names never contain path separators
        if not host or "/" in host or host in (".", ".."):
            return None

        directory = self.base_directory / host
        if not directory.is_dir():
            logger.debug("No managed certificate directory", host=host, path=str(directory))
            return None

        return ManagedCertificate(directory=directory, group=self.group or owning_group(directory))


def owning_group(path: Path) -> str:
    """Name of the group owning ``path``, or its numeric gid if it has no name."""
    try:
        return path.group()
    except KeyError:
        gid = str(path.stat().st_gid)
        logger.debug("Group has no name, using gid", path=str(path), gid=gid)
        return gid
