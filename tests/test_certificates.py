"""Tests for managed certificate lookup."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from wstunnel_units.certificates import (
    DirectoryCertificateRegistry,
    ManagedCertificate,
    StaticCertificateRegistry,
)


class TestManagedCertificate:
    """Test certificate file locations."""

    def test_paths(self):
        """Test certificate and key live in the managed directory."""
        certificate = ManagedCertificate(directory="/var/lib/acme/example.com", group="acme")

        assert certificate.certificate_path == Path("/var/lib/acme/example.com/fullchain.pem")
        assert certificate.key_path == Path("/var/lib/acme/example.com/key.pem")

    def test_group_required(self):
        """Test the owning group cannot be empty."""
        with pytest.raises(ValidationError):
            ManagedCertificate(directory="/var/lib/acme/example.com", group="")


class TestStaticCertificateRegistry:
    """Test the in-memory registry."""

    def test_lookup(self, certificates):
        """Test known hosts resolve and unknown hosts do not."""
        assert certificates.lookup("example.com").group == "acme"
        assert certificates.lookup("example.org") is None

    def test_empty(self):
        """Test an empty registry resolves nothing."""
        assert StaticCertificateRegistry().lookup("example.com") is None


class TestDirectoryCertificateRegistry:
    """Test the ACME state directory registry."""

    def test_defaults(self):
        """Test the default state directory."""
        registry = DirectoryCertificateRegistry()
        assert registry.base_directory == Path("/var/lib/acme")
        assert registry.group is None

    def test_lookup_existing_host(self, tmp_path):
        """Test a host directory resolves with the configured group."""
        (tmp_path / "example.com").mkdir()
        registry = DirectoryCertificateRegistry(tmp_path, group="acme")

        certificate = registry.lookup("example.com")

        assert certificate is not None
        assert certificate.directory == tmp_path / "example.com"
        assert certificate.certificate_path == tmp_path / "example.com" / "fullchain.pem"
        assert certificate.group == "acme"

    def test_lookup_uses_directory_group(self, tmp_path, monkeypatch):
        """Test the directory's owning group is used without an override."""
        (tmp_path / "example.com").mkdir()
        monkeypatch.setattr(type(tmp_path), "group", lambda self: "certs")

        certificate = DirectoryCertificateRegistry(tmp_path).lookup("example.com")
        assert certificate.group == "certs"

    def test_lookup_unnamed_group_uses_gid(self, tmp_path, monkeypatch):
        """Test a gid without a group name is reported numerically."""
        (tmp_path / "example.com").mkdir()

        def no_group_name(self):
            raise KeyError(f"getgrgid(): gid not found: {self.stat().st_gid}")

        monkeypatch.setattr(type(tmp_path), "group", no_group_name)

        certificate = DirectoryCertificateRegistry(tmp_path).lookup("example.com")
        assert certificate.group == str((tmp_path / "example.com").stat().st_gid)

    def test_lookup_missing_host(self, tmp_path):
        """Test a host without a directory is not found."""
        assert DirectoryCertificateRegistry(tmp_path, group="acme").lookup("example.com") is None

    def test_file_is_not_a_certificate_directory(self, tmp_path):
        """Test a plain file named after the host is ignored."""
        (tmp_path / "example.com").write_text("")
        assert DirectoryCertificateRegistry(tmp_path, group="acme").lookup("example.com") is None

    @pytest.mark.parametrize("host", ["", ".", "..", "../etc", "a/b"])
    def test_lookup_rejects_paths(self, tmp_path, host):
        """Test hosts cannot escape the state directory."""
        (tmp_path / "a" / "b").mkdir(parents=True)
        assert DirectoryCertificateRegistry(tmp_path, group="acme").lookup(host) is None
