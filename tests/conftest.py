"""Shared pytest fixtures for wstunnel-units tests."""

import logging
from pathlib import Path

import pytest
import structlog

from wstunnel_units.certificates import ManagedCertificate, StaticCertificateRegistry
from wstunnel_units.common.logging import configure_library_logging


@pytest.fixture
def server_data():
    """Raw server entry listening on an unprivileged port.

    Returns:
        dict: Server entry as it would appear in a config file
    """
    return {
        "listen": {"host": "0.0.0.0", "port": 8080},
        "restrict_to": {"host": "127.0.0.1", "port": 51820},
    }


@pytest.fixture
def client_data():
    """Raw client entry with one forwarding rule.

    Returns:
        dict: Client entry as it would appear in a config file
    """
    return {
        "connect_to": {"host": "example.com", "port": 443},
        "forwarding_rules": [
            {
                "local": {"host": "127.0.0.1", "port": 8080},
                "remote": {"host": "127.0.0.1", "port": 9090},
            }
        ],
    }


@pytest.fixture
def raw_config(server_data, client_data):
    """Enabled configuration with one server and one client.

    Returns:
        dict: Raw configuration tree
    """
    return {
        "enable": True,
        "servers": {"wg": server_data},
        "clients": {"wg": client_data},
    }


@pytest.fixture
def certificates():
    """Registry with one managed certificate for example.com.

    Returns:
        StaticCertificateRegistry: Registry resolving example.com
    """
    return StaticCertificateRegistry(
        {
            "example.com": ManagedCertificate(
                directory=Path("/var/lib/acme/example.com"), group="acme"
            )
        }
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore the import-time logging configuration after each test.

    The CLI installs handlers on the root logger bound to the runner's
    streams; drop them so later tests do not write to closed streams.
    """
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
    structlog.reset_defaults()
    configure_library_logging()
