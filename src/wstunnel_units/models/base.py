"""Options shared by every tunnel entry."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from ..common.utils import has_control_characters

DEFAULT_EXECUTABLE = "wstunnel"
DEFAULT_LISTEN_HOST = "0.0.0.0"
HTTPS_PORT = 443
HTTP_PORT = 80

_BOOL = TypeAdapter(bool)


def default_port(data: Mapping[str, Any]) -> int:
    """Return the port implied by a raw entry's ``enable_https`` value.

    The value is read with the same rules as the ``enable_https`` field, so
    ``"off"`` or ``"no"`` select plain HTTP. An invalid value falls back to
    HTTPS; the field itself reports the error.
    """
    try:
        enable_https = _BOOL.validate_python(data.get("enable_https", True))
    except ValidationError:
        return HTTPS_PORT
    return HTTPS_PORT if enable_https else HTTP_PORT


class EntryConfig(BaseModel):
    """Base model with the options common to servers and clients."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=True, description="Generate a service for this entry")
    auto_start: bool = Field(default=True, description="Start the service at boot")
    executable: str = Field(
        default=DEFAULT_EXECUTABLE, min_length=1, description="wstunnel binary"
    )
    extra_args: dict[str, StrictBool | str] = Field(
        default_factory=dict,
        description="Pass-through options: true -> --name, 'v' -> --name=v",
    )
    verbose_logging: bool = Field(default=False, description="Pass --verbose")
    environment_file: Path | None = Field(
        default=None, description="Environment file handed to the supervisor"
    )
    working_directory: Path | None = Field(
        default=None, description="Working directory of the started process"
    )

    @field_validator("extra_args", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> Any:
        """Accept numeric values as their string form."""
        if isinstance(v, Mapping):
            return {
                key: str(value)
                if isinstance(value, int | float) and not isinstance(value, bool)
                else value
                for key, value in v.items()
            }
        return v

    @field_validator("extra_args")
    @classmethod
    def validate_arg_names(
        cls, v: dict[str, bool | str]
    ) -> dict[str, bool | str]:
        """Option names are bare words; the leading dashes are added on render."""
        for name in v:
            if not name or name.startswith("-"):
                raise ValueError(
                    f"Invalid extra argument name '{name}': give it without leading dashes"
                )
            if "=" in name or any(char.isspace() for char in name):
                raise ValueError(
                    f"Invalid extra argument name '{name}': no '=' or whitespace allowed"
                )
        return v

    @field_validator("environment_file", "working_directory")
    @classmethod
    def validate_path(cls, v: Path | None) -> Path | None:
        """Paths are written into the unit file, so line breaks are refused."""
        if v is not None and has_control_characters(str(v)):
            raise ValueError("Path must not contain control characters")
        return v
