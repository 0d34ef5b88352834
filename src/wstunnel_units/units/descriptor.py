"""Service descriptors handed to the supervisor."""

from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from ..common.escaping import escape_specifiers, render_exec_start
from ..common.utils import has_control_characters
from ..compiler import CapabilityFlag
from ..models import RestartPolicy

NETWORK_TARGETS = ("network.target", "network-online.target")
DEFAULT_TARGET = "multi-user.target"


def _systemd_bool(value: bool) -> str:
    return "true" if value else "false"


def capability_names(capabilities: frozenset[CapabilityFlag]) -> list[str]:
    """Capability names, sorted so output is stable."""
    return sorted(flag.value for flag in capabilities)


class SandboxProfile(BaseModel):
    """Process isolation applied uniformly to every tunnel service."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    dynamic_user: bool = True
    private_tmp: bool = True
    no_new_privileges: bool = True
    restrict_namespaces: str = "uts ipc pid user cgroup"
    protect_system: str = "strict"
    protect_home: bool = True
    protect_kernel_tunables: bool = True
    protect_kernel_modules: bool = True
    protect_control_groups: bool = True
    private_devices: bool = True
    restrict_suid_sgid: bool = True

    def directives(self) -> list[tuple[str, str]]:
        """Sandbox settings as systemd ``[Service]`` directives."""
        return [
            ("DynamicUser", _systemd_bool(self.dynamic_user)),
            ("PrivateTmp", _systemd_bool(self.private_tmp)),
            ("NoNewPrivileges", _systemd_bool(self.no_new_privileges)),
            ("RestrictNamespaces", self.restrict_namespaces),
            ("ProtectSystem", self.protect_system),
            ("ProtectHome", _systemd_bool(self.protect_home)),
            ("ProtectKernelTunables", _systemd_bool(self.protect_kernel_tunables)),
            ("ProtectKernelModules", _systemd_bool(self.protect_kernel_modules)),
            ("ProtectControlGroups", _systemd_bool(self.protect_control_groups)),
            ("PrivateDevices", _systemd_bool(self.private_devices)),
            ("RestrictSUIDSGID", _systemd_bool(self.restrict_suid_sgid)),
        ]


BASELINE_SANDBOX = SandboxProfile()


class ServiceDescriptor(BaseModel):
    """Fully compiled, ready-to-launch representation of one entry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Service name, unique in the registry")
    description: str = Field(default="", description="Human readable description")
    command_line: tuple[str, ...] = Field(min_length=1, description="Raw argument vector")
    working_directory: Path | None = Field(default=None)
    capabilities: frozenset[CapabilityFlag] = Field(default=frozenset())
    supplementary_groups: tuple[str, ...] = Field(default=())
    auto_start: bool = Field(default=True, description="Start at boot")
    restart: RestartPolicy = Field(default=RestartPolicy.NO)
    environment_file: Path | None = Field(default=None)
    requires: tuple[str, ...] = Field(default=NETWORK_TARGETS)
    after: tuple[str, ...] = Field(default=NETWORK_TARGETS)
    sandbox: SandboxProfile = Field(default=BASELINE_SANDBOX)
    expanded_arguments: frozenset[int] = Field(
        default=frozenset(),
        description="Positions in command_line left for environment expansion",
    )

    @field_serializer("capabilities")
    def serialize_capabilities(self, capabilities: frozenset[CapabilityFlag]) -> list[str]:
        return capability_names(capabilities)

    @field_serializer("expanded_arguments")
    def serialize_expanded_arguments(self, positions: frozenset[int]) -> list[int]:
        return sorted(positions)

    @field_validator("description", "environment_file", "working_directory")
    @classmethod
    def reject_control_characters(cls, v: Any) -> Any:
        if v is not None and has_control_characters(str(v)):
            raise ValueError("Unit file values must not contain control characters")
        return v

    @model_validator(mode="after")
    def check_expanded_arguments(self) -> "ServiceDescriptor":
        if any(not 0 <= i < len(self.command_line) for i in self.expanded_arguments):
            raise ValueError("expanded_arguments must point into command_line")
        return self

    @property
    def exec_start(self) -> str:
        """Quoted ``ExecStart=`` value."""
        return render_exec_start(self.command_line, self.expanded_arguments)

    @property
    def wanted_by(self) -> tuple[str, ...]:
        return (DEFAULT_TARGET,) if self.auto_start else ()

    def to_supervisor_dict(self) -> dict[str, Any]:
        """JSON-ready form including the rendered start command."""
        data = self.model_dump(mode="json")
        data["exec_start"] = self.exec_start
        data["wanted_by"] = list(self.wanted_by)
        return data

    def to_unit_file(self) -> str:
        """Render a systemd unit file."""
        lines = [
            "[Unit]",
            f"Description={escape_specifiers(self.description or self.name)}",
        ]
        if self.requires:
            lines.append(f"Requires={' '.join(self.requires)}")
        if self.after:
            lines.append(f"After={' '.join(self.after)}")

        lines.extend(["", "[Service]", "Type=simple", f"ExecStart={self.exec_start}"])

        if self.working_directory is not None:
            lines.append(f"WorkingDirectory={escape_specifiers(self.working_directory)}")
        if self.restart is not RestartPolicy.NO:
            lines.append(f"Restart={self.restart.value}")
        if self.environment_file is not None:
            lines.append(f"EnvironmentFile={escape_specifiers(self.environment_file)}")

        lines.extend(f"{key}={value}" for key, value in self.sandbox.directives())

        capabilities = capability_names(self.capabilities)
        if capabilities:
            lines.append(f"AmbientCapabilities={' '.join(capabilities)}")
        if self.supplementary_groups:
            lines.append(f"SupplementaryGroups={' '.join(self.supplementary_groups)}")

        if self.wanted_by:
            lines.extend(["", "[Install]", f"WantedBy={' '.join(self.wanted_by)}"])

        return "\n".join(lines) + "\n"
