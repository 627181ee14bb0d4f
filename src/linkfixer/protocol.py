#!/usr/bin/env python3
"""Line protocol spoken by the clipboard listener helper.

The listener helper blocks on the native clipboard-change notification and
prints one record per line on stdout:

    CLIPBOARD_UPDATE:<escaped text>
    ERROR:<message>

A line without a known prefix is also a clipboard value. Clipboard text is
escaped so multi-line values fit on one line: backslash, newline, carriage
return and tab are written as \\\\, \\n, \\r and \\t. Exactly one trailing
line terminator is trimmed from each line; any other trailing whitespace is
part of the value.

Commands sent to the interactive shell carry the text base64-encoded for
the same reason.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from enum import Enum

UPDATE_PREFIX: str = "CLIPBOARD_UPDATE:"
ERROR_PREFIX: str = "ERROR:"

_ESCAPES: dict[str, str] = {"\\": "\\", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_SEQUENCE = re.compile(r"\\(.)", re.DOTALL)
_LINE_TERMINATOR = re.compile(r"(\r\n|\n|\r)\Z")


class MessageKind(Enum):
    """Kind of record read from the helper's stdout."""

    UPDATE = "update"
    ERROR = "error"


@dataclass(frozen=True)
class HelperMessage:
    """One decoded helper record.

    Attributes:
        kind: Whether the record is a clipboard update or an error.
        payload: Decoded clipboard text, or the error message.
    """

    kind: MessageKind
    payload: str


def trim_line_terminator(line: str) -> str:
    """Remove exactly one trailing \\r\\n, \\n or \\r from line."""
    return _LINE_TERMINATOR.sub("", line, count=1)


def escape_payload(text: str) -> str:
    """Escape clipboard text so that it fits on a single line."""
    return (
        text.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def unescape_payload(payload: str) -> str:
    """Reverse escape_payload().

    Unknown escape sequences are kept as they are.
    """
    return _ESCAPE_SEQUENCE.sub(
        lambda m: _ESCAPES.get(m.group(1), m.group(0)), payload
    )


def parse_line(line: str) -> HelperMessage | None:
    """Decode one line read from the helper's stdout.

    Args:
        line: The raw line, including its line terminator if any.

    Returns:
        The decoded message, or None for an empty line.
    """
    text = trim_line_terminator(line)
    if not text:
        return None
    if text.startswith(ERROR_PREFIX):
        return HelperMessage(MessageKind.ERROR, text[len(ERROR_PREFIX):])
    if text.startswith(UPDATE_PREFIX):
        text = text[len(UPDATE_PREFIX):]
    return HelperMessage(MessageKind.UPDATE, unescape_payload(text))


def encode_update(text: str) -> str:
    """Encode clipboard text as a helper update line (with newline)."""
    return f"{UPDATE_PREFIX}{escape_payload(text)}\n"


def encode_set_clipboard_command(text: str) -> str:
    """Build a PowerShell command line that sets the clipboard to text.

    The text travels as base64-encoded UTF-8 so quotes and newlines need
    no shell escaping.

    Args:
        text: The clipboard text.

    Returns:
        A single PowerShell command line terminated by a newline.
    """
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return (
        "Set-Clipboard -Value ([System.Text.Encoding]::UTF8.GetString("
        f"[System.Convert]::FromBase64String('{encoded}')))\n"
    )
