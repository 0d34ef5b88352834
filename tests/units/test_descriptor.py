"""Tests for service descriptors and unit file rendering."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from wstunnel_units.common.escaping import split_exec_args
from wstunnel_units.compiler import CapabilityFlag
from wstunnel_units.models import RestartPolicy
from wstunnel_units.units.descriptor import (
    BASELINE_SANDBOX,
    SandboxProfile,
    ServiceDescriptor,
)


@pytest.fixture
def descriptor():
    return ServiceDescriptor(
        name="wstunnel-server-web",
        description="wstunnel server - web",
        command_line=("wstunnel", "--server", "--tlsKey=/var/lib/acme/a b/key.pem", "wss://0.0.0.0:443"),
        capabilities=frozenset({CapabilityFlag.MARK_PACKETS, CapabilityFlag.BIND_PRIVILEGED_PORT}),
        supplementary_groups=("acme",),
        environment_file=Path("/run/secrets/wstunnel.env"),
    )


class TestSandboxProfile:
    """Test the baseline sandbox."""

    def test_baseline(self):
        """Test the baseline locks the process down."""
        assert BASELINE_SANDBOX == SandboxProfile()
        assert BASELINE_SANDBOX.dynamic_user is True
        assert BASELINE_SANDBOX.no_new_privileges is True
        assert BASELINE_SANDBOX.protect_system == "strict"
        assert BASELINE_SANDBOX.restrict_namespaces == "uts ipc pid user cgroup"

    def test_directives(self):
        """Test every setting maps to one systemd directive."""
        directives = dict(BASELINE_SANDBOX.directives())

        assert len(directives) == 11
        assert directives["DynamicUser"] == "true"
        assert directives["PrivateTmp"] == "true"
        assert directives["ProtectSystem"] == "strict"
        assert directives["RestrictSUIDSGID"] == "true"

    def test_disabled_setting(self):
        """Test booleans render as false when turned off."""
        assert dict(SandboxProfile(private_devices=False).directives())["PrivateDevices"] == "false"


class TestServiceDescriptor:
    """Test descriptor fields and serialization."""

    def test_defaults(self):
        """Test start conditions and policies default sensibly."""
        descriptor = ServiceDescriptor(name="svc", command_line=("wstunnel",))

        assert descriptor.auto_start is True
        assert descriptor.restart == RestartPolicy.NO
        assert descriptor.requires == ("network.target", "network-online.target")
        assert descriptor.after == ("network.target", "network-online.target")
        assert descriptor.sandbox == BASELINE_SANDBOX
        assert descriptor.wanted_by == ("multi-user.target",)

    def test_requires_command(self):
        """Test a descriptor needs at least the executable."""
        with pytest.raises(ValidationError):
            ServiceDescriptor(name="svc", command_line=())

    def test_immutable(self, descriptor):
        """Test descriptors cannot be modified."""
        with pytest.raises(ValidationError):
            descriptor.auto_start = False

    def test_exec_start_round_trip(self, descriptor):
        """Test the quoted start command parses back to the argument vector."""
        assert split_exec_args(descriptor.exec_start) == list(descriptor.command_line)

    def test_supervisor_dict(self, descriptor):
        """Test the JSON-ready form."""
        data = descriptor.to_supervisor_dict()

        assert data["name"] == "wstunnel-server-web"
        assert data["command_line"] == list(descriptor.command_line)
        assert data["capabilities"] == ["CAP_NET_ADMIN", "CAP_NET_BIND_SERVICE"]
        assert data["environment_file"] == "/run/secrets/wstunnel.env"
        assert data["working_directory"] is None
        assert data["restart"] == "no"
        assert data["exec_start"] == descriptor.exec_start
        assert data["wanted_by"] == ["multi-user.target"]
        assert data["sandbox"]["dynamic_user"] is True
        json.dumps(data)


class TestUnitFile:
    """Test systemd unit rendering."""

    def test_sections(self, descriptor):
        """Test the unit carries every service setting."""
        unit = descriptor.to_unit_file()
        lines = unit.splitlines()

        assert lines[0] == "[Unit]"
        assert "Description=wstunnel server - web" in lines
        assert "Requires=network.target network-online.target" in lines
        assert "After=network.target network-online.target" in lines
        assert "[Service]" in lines
        assert "Type=simple" in lines
        assert f"ExecStart={descriptor.exec_start}" in lines
        assert "EnvironmentFile=/run/secrets/wstunnel.env" in lines
        assert "AmbientCapabilities=CAP_NET_ADMIN CAP_NET_BIND_SERVICE" in lines
        assert "SupplementaryGroups=acme" in lines
        assert "DynamicUser=true" in lines
        assert "RestrictNamespaces=uts ipc pid user cgroup" in lines
        assert "[Install]" in lines
        assert "WantedBy=multi-user.target" in lines
        assert unit.endswith("\n")

    def test_exec_start_is_quoted(self, descriptor):
        """Test values with spaces are quoted in ExecStart."""
        assert '"--tlsKey=/var/lib/acme/a b/key.pem"' in descriptor.to_unit_file()

    def test_no_auto_start(self):
        """Test services that do not auto start have no install section."""
        unit = ServiceDescriptor(name="svc", command_line=("wstunnel",), auto_start=False).to_unit_file()

        assert "[Install]" not in unit
        assert "WantedBy=" not in unit

    def test_optional_settings_omitted(self):
        """Test unset optional settings produce no directives."""
        unit = ServiceDescriptor(name="svc", command_line=("wstunnel",)).to_unit_file()

        assert "Description=svc" in unit
        assert "EnvironmentFile=" not in unit
        assert "WorkingDirectory=" not in unit
        assert "Restart=" not in unit
        assert "AmbientCapabilities=" not in unit
        assert "SupplementaryGroups=" not in unit

    def test_restart_and_working_directory(self):
        """Test restart policy and working directory are rendered when set."""
        unit = ServiceDescriptor(
            name="svc",
            command_line=("wstunnel",),
            restart=RestartPolicy.ON_FAILURE,
            working_directory=Path("/var/lib/wstunnel"),
        ).to_unit_file()

        assert "Restart=on-failure" in unit.splitlines()
        assert "WorkingDirectory=/var/lib/wstunnel" in unit.splitlines()

    def test_specifiers_escaped(self):
        """Test % in plain directives is not expanded by the supervisor."""
        unit = ServiceDescriptor(
            name="svc",
            description="100% tunnel",
            command_line=("wstunnel",),
            working_directory=Path("/srv/100%n"),
            environment_file=Path("/run/%i.env"),
        ).to_unit_file().splitlines()

        assert "Description=100%% tunnel" in unit
        assert "WorkingDirectory=/srv/100%%n" in unit
        assert "EnvironmentFile=/run/%%i.env" in unit

    @pytest.mark.parametrize("field", ["description", "environment_file", "working_directory"])
    def test_line_breaks_rejected(self, field):
        """Test values cannot inject extra directives."""
        with pytest.raises(ValidationError, match="control characters"):
            ServiceDescriptor(
                name="svc",
                command_line=("wstunnel",),
                **{field: "/run/env\nExecStartPre=/bin/sh -c evil"},
            )


class TestExpandedArguments:
    """Test arguments left for supervisor environment expansion."""

    def test_exec_start_keeps_references(self):
        descriptor = ServiceDescriptor(
            name="svc",
            command_line=("wstunnel", "--httpProxy=u:$PROXY_PASSWORD@p:3128", "--hostHeader=$x"),
            expanded_arguments=frozenset({1}),
        )

        assert descriptor.exec_start == (
            '"wstunnel" "--httpProxy=u:${PROXY_PASSWORD}@p:3128" "--hostHeader=$$x"'
        )
        assert split_exec_args(descriptor.exec_start, {"PROXY_PASSWORD": "pw"}) == [
            "wstunnel",
            "--httpProxy=u:pw@p:3128",
            "--hostHeader=$x",
        ]
        assert descriptor.to_supervisor_dict()["expanded_arguments"] == [1]

    def test_positions_must_exist(self):
        with pytest.raises(ValidationError, match="point into command_line"):
            ServiceDescriptor(name="svc", command_line=("wstunnel",), expanded_arguments={1})
