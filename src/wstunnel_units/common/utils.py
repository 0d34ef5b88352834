"""Utility functions and constants shared across the package."""

from collections.abc import Sequence

# Port range constants
MIN_PORT = 1
MAX_PORT = 65535

# Ports below this need CAP_NET_BIND_SERVICE to bind
PRIVILEGED_PORT_LIMIT = 1024

# Options whose values may embed passwords
SENSITIVE_OPTIONS = frozenset({"--httpProxy", "--upgradeCredentials"})


def is_privileged_port(port: int) -> bool:
    """Return True if binding ``port`` requires elevated privileges."""
    return port < PRIVILEGED_PORT_LIMIT


def mask_sensitive_data(
    value: str | None, mask_char: str = "*", show_chars: int = 4
) -> str:
    """Mask sensitive data for logging while preserving some characters for debugging.

    Args:
        value: Sensitive string to mask (e.g., credentials, proxy URL)
        mask_char: Character to use for masking
        show_chars: Number of characters to show at the end

    Returns:
        Masked string safe for logging
    """
    if not value:
        return "<None>"

    if len(value) <= show_chars:
        return mask_char * len(value)

    masked_length = len(value) - show_chars
    return mask_char * masked_length + value[-show_chars:]


def sanitize_command_line(command_line: Sequence[str]) -> list[str]:
    """Return a copy of an argument vector with credential values masked.

    Args:
        command_line: Raw argument vector

    Returns:
        Argument vector safe for logging
    """
    sanitized = []
    for token in command_line:
        option, sep, value = token.partition("=")
        if sep and option in SENSITIVE_OPTIONS:
            sanitized.append(f"{option}={mask_sensitive_data(value)}")
        else:
            sanitized.append(token)
    return sanitized


def has_control_characters(value: str) -> bool:
    """Return True if ``value`` contains an ASCII control character."""
    return any(ord(char) < 0x20 or ord(char) == 0x7F for char in value)
