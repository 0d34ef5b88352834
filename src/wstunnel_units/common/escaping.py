"""Quoting of argument vectors for systemd ``ExecStart=`` lines.

:func:`escape_exec_arg` turns any token into a double-quoted word that
systemd's command line parser reads back as exactly the original value.
:func:`split_exec_args` implements that parser for the syntax produced here,
so rendered lines can be checked without a running supervisor.

Tokens are ``str``; byte strings are accepted and decoded with
``surrogateescape``, so undecodable bytes survive as ``\\xNN`` escapes and
``split_exec_args(...)[i].encode("utf-8", "surrogateescape")`` returns the
original bytes.

Tokens opted into environment expansion keep ``$NAME`` / ``${NAME}``
references as ``${NAME}`` so the supervisor substitutes them from the
unit's environment (e.g. a secret loaded from ``EnvironmentFile=``). Every
other ``$`` is still doubled.
"""

import os
import re
from collections.abc import Collection, Iterable, Mapping

from .utils import has_control_characters

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\a": "\\a",
    # Specifier and environment expansion still apply inside quotes
    "%": "%%",
    "$": "$$",
}

_UNESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "s": " ",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_WHITESPACE = " \t\n\r"

# Range used by the surrogateescape error handler for undecodable bytes
_SURROGATE_LOW = 0xDC80
_SURROGATE_HIGH = 0xDCFF

_VARIABLE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ENVIRONMENT_REFERENCE = re.compile(
    r"\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<bare>[A-Za-z_][A-Za-z0-9_]*))"
)


def _escape_text(value: str) -> str:
    out = []
    for char in value:
        code = ord(char)
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif code == 0:
            raise ValueError("Cannot pass a NUL character in an argument")
        elif _SURROGATE_LOW <= code <= _SURROGATE_HIGH:
            out.append(f"\\x{code - 0xDC00:02x}")
        elif 0xD800 <= code <= 0xDFFF:
            raise ValueError(f"Cannot encode lone surrogate U+{code:04X}")
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        else:
            out.append(char)
    return "".join(out)


def escape_exec_arg(
    value: str | bytes | os.PathLike[str], expand_environment: bool = False
) -> str:
    """Quote one argument for an ``ExecStart=`` line.

    Args:
        value: Argument to quote; may be empty or contain any character
            except NUL
        expand_environment: Leave ``$NAME`` / ``${NAME}`` references for the
            supervisor to substitute instead of quoting them literally

    Returns:
        A double-quoted word that parses back to ``value``

    Raises:
        ValueError: If ``value`` contains NUL or a lone surrogate that does
            not stand for an undecodable byte
    """
    if isinstance(value, bytes):
        value = value.decode("utf-8", "surrogateescape")
    else:
        value = os.fspath(value)

    if not expand_environment:
        return '"' + _escape_text(value) + '"'

    parts = []
    position = 0
    for match in _ENVIRONMENT_REFERENCE.finditer(value):
        parts.append(_escape_text(value[position : match.start()]))
        parts.append("${%s}" % (match.group("braced") or match.group("bare")))
        position = match.end()
    parts.append(_escape_text(value[position:]))
    return '"' + "".join(parts) + '"'


def render_exec_start(
    command_line: Iterable[str], expanded_arguments: Collection[int] = ()
) -> str:
    """Render an argument vector as a single ``ExecStart=`` value.

    Args:
        command_line: Raw argument vector
        expanded_arguments: Positions of tokens whose environment references
            are left for the supervisor
    """
    return " ".join(
        escape_exec_arg(token, index in expanded_arguments)
        for index, token in enumerate(command_line)
    )


def escape_specifiers(value: str | os.PathLike[str]) -> str:
    """Make a value safe for a plain directive such as ``WorkingDirectory=``.

    ``%`` is doubled so systemd does not expand specifiers. Line breaks and
    other control characters cannot be represented and are refused.

    Raises:
        ValueError: If ``value`` contains a control character
    """
    value = os.fspath(value)
    if has_control_characters(value):
        raise ValueError(f"Control characters are not allowed in {value!r}")
    return value.replace("%", "%%")


def _read_hex(line: str, start: int, width: int) -> int:
    digits = line[start : start + width]
    if len(digits) != width:
        raise ValueError(f"Truncated escape sequence at offset {start}")
    try:
        return int(digits, 16)
    except ValueError:
        raise ValueError(f"Invalid hex escape '{digits}' at offset {start}") from None


def split_exec_args(
    line: str, environment: Mapping[str, str] | None = None
) -> list[str]:
    """Split an ``ExecStart=`` value into its arguments.

    Understands whitespace separation, single and double quotes (also in the
    middle of a word), C-style backslash escapes including ``\\xNN``,
    ``\\uNNNN`` and ``\\UNNNNNNNN``, and the ``%%`` / ``$$`` doubling.

    Args:
        line: ``ExecStart=`` value
        environment: Variables for ``${NAME}`` references, as the supervisor
            would substitute them (unset names become empty); without it
            such references are refused

    Raises:
        ValueError: On an unterminated quote, a bad escape, an escaped NUL,
            or a bare ``%``/``$`` expansion that cannot be resolved
    """
    args: list[str] = []
    i = 0
    length = len(line)

    while True:
        while i < length and line[i] in _WHITESPACE:
            i += 1
        if i >= length:
            return args

        word: list[str] = []
        quote: str | None = None
        while i < length:
            char = line[i]
            if quote is None and char in _WHITESPACE:
                break

            if char in "%$":
                if line[i + 1 : i + 2] == char:
                    word.append(char)
                    i += 2
                elif char == "$" and environment is not None and line[i + 1 : i + 2] == "{":
                    end = line.find("}", i + 2)
                    name = line[i + 2 : end] if end != -1 else ""
                    if not _VARIABLE_NAME.fullmatch(name):
                        raise ValueError(f"Invalid variable reference at offset {i}")
                    word.append(environment.get(name, ""))
                    i = end + 1
                else:
                    raise ValueError(f"Unescaped '{char}' at offset {i}")
            elif char in "\"'" and quote in (None, char):
                quote = None if quote else char
                i += 1
            elif char == "\\":
                if i + 1 >= length:
                    raise ValueError("Trailing backslash")
                escape = line[i + 1]
                if escape in _UNESCAPES:
                    word.append(_UNESCAPES[escape])
                    i += 2
                elif escape in "xuU":
                    width = {"x": 2, "u": 4, "U": 8}[escape]
                    code = _read_hex(line, i + 2, width)
                    if code == 0:
                        raise ValueError(f"Escaped NUL at offset {i}")
                    if escape == "x" and code >= 0x80:
                        word.append(chr(0xDC00 + code))
                    else:
                        word.append(chr(code))
                    i += 2 + width
                else:
                    raise ValueError(f"Unknown escape '\\{escape}' at offset {i}")
            else:
                word.append(char)
                i += 1

        if quote is not None:
            raise ValueError("Unterminated quote")
        args.append("".join(word))
