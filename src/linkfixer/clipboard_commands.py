#!/usr/bin/env python3
"""One-shot clipboard read and write commands.

Clipboard access goes through the platform's command-line utilities:
xclip or xsel on X11, wl-clipboard on Wayland, pbpaste/pbcopy on macOS and
PowerShell on Windows. Each read or write spawns one process and is bounded
by a timeout so an unresponsive clipboard owner cannot stall the caller.

Reads and writes raise ClipboardError on failure; monitors catch it and
treat the cycle as having no content.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from linkfixer.constants import COMMAND_TIMEOUT
from linkfixer.errors import ClipboardError, UnsupportedPlatformError
from linkfixer.protocol import encode_set_clipboard_command, trim_line_terminator

logger = logging.getLogger(__name__)

POWERSHELL: tuple[str, ...] = ("powershell.exe", "-NoProfile", "-NonInteractive")


@dataclass(frozen=True)
class ClipboardBackend:
    """Command lines used to read and write the clipboard.

    Attributes:
        name: Backend name used in log messages.
        read_command: Command printing the clipboard text on stdout.
        write_command: Command reading the new clipboard text on stdin.
            Empty when the text has to be embedded in the command line.
        trims_newline: Whether the read command appends a line terminator
            that is not part of the clipboard text.
    """

    name: str
    read_command: tuple[str, ...]
    write_command: tuple[str, ...] = ()
    trims_newline: bool = False

    def build_write(self, text: str) -> tuple[tuple[str, ...], bytes | None]:
        """Return the argv and stdin payload for writing text."""
        if self.write_command:
            return self.write_command, text.encode("utf-8")
        return (*POWERSHELL, "-Command", encode_set_clipboard_command(text).rstrip("\n")), None


XCLIP = ClipboardBackend(
    "xclip",
    ("xclip", "-selection", "clipboard", "-o"),
    ("xclip", "-selection", "clipboard", "-i"),
)
XSEL = ClipboardBackend(
    "xsel",
    ("xsel", "--clipboard", "--output"),
    ("xsel", "--clipboard", "--input"),
)
WL_CLIPBOARD = ClipboardBackend(
    "wl-clipboard",
    ("wl-paste", "--no-newline"),
    ("wl-copy",),
)
PBCOPY = ClipboardBackend("pbcopy", ("pbpaste",), ("pbcopy",))
WINDOWS_POWERSHELL = ClipboardBackend(
    "powershell",
    (
        *POWERSHELL,
        "-Command",
        "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; Get-Clipboard -Raw",
    ),
    trims_newline=True,
)

X11_BACKENDS: tuple[ClipboardBackend, ...] = (XCLIP, XSEL)


def detect_backend(
    platform: str = sys.platform,
    environ: Mapping[str, str] = os.environ,
    which: Callable[[str], str | None] = shutil.which,
) -> ClipboardBackend:
    """Return the clipboard backend for the running platform.

    Args:
        platform: Platform identifier as in sys.platform.
        environ: Environment used to detect Wayland and X11 sessions.
        which: Executable lookup, shutil.which by default.

    Returns:
        The first usable backend.

    Raises:
        UnsupportedPlatformError: If no clipboard utility is available.
    """
    if platform == "win32":
        return WINDOWS_POWERSHELL
    if platform == "darwin":
        return PBCOPY
    if environ.get("WAYLAND_DISPLAY") and which("wl-paste") and which("wl-copy"):
        return WL_CLIPBOARD
    x11 = detect_x11_backend(environ, which)
    if x11 is not None:
        return x11
    raise UnsupportedPlatformError(
        f"No clipboard backend found on {platform}. "
        "Install one of: wl-clipboard (wl-paste), xclip, or xsel."
    )


def detect_x11_backend(
    environ: Mapping[str, str] = os.environ,
    which: Callable[[str], str | None] = shutil.which,
) -> ClipboardBackend | None:
    """Return an X11 clipboard backend, or None without DISPLAY or tools."""
    if not environ.get("DISPLAY"):
        return None
    for backend in X11_BACKENDS:
        if which(backend.read_command[0]):
            return backend
    return None


async def _run(
    argv: tuple[str, ...], stdin: bytes | None, timeout: float, capture: bool = True
) -> tuple[int, bytes | None, bytes | None]:
    """Run argv to completion, killing it on timeout.

    Write commands run with capture=False: xclip and wl-copy fork a child
    that keeps serving the selection and would hold captured pipes open.

    Raises:
        ClipboardError: If the command cannot be started or times out.
    """
    output = asyncio.subprocess.PIPE if capture else asyncio.subprocess.DEVNULL
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=output,
            stderr=output,
        )
    except OSError as e:
        raise ClipboardError(f"Cannot run {argv[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(stdin), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise ClipboardError(f"{argv[0]} timed out after {timeout}s") from e
    return proc.returncode, stdout, stderr


async def read_clipboard(
    backend: ClipboardBackend, timeout: float = COMMAND_TIMEOUT
) -> str:
    """Read the clipboard text.

    A failing read command with no output is how xclip and wl-paste
    report an empty clipboard, so it reads as the empty string.

    Args:
        backend: The clipboard backend.
        timeout: Seconds to wait for the read command.

    Returns:
        The clipboard text, possibly empty.

    Raises:
        ClipboardError: If the command cannot run, times out, or fails
            while printing output.
    """
    returncode, stdout, stderr = await _run(backend.read_command, None, timeout)
    if returncode != 0:
        if not stdout:
            logger.debug(
                "%s read exited %d, treating clipboard as empty: %s",
                backend.name, returncode, stderr.decode("utf-8", errors="replace").strip(),
            )
            return ""
        raise ClipboardError(
            f"{backend.name} read exited {returncode}: "
            f"{stderr.decode('utf-8', errors='replace').strip()}"
        )
    text = stdout.decode("utf-8", errors="replace")
    if backend.trims_newline:
        text = trim_line_terminator(text)
    return text


async def write_clipboard(
    backend: ClipboardBackend, text: str, timeout: float = COMMAND_TIMEOUT
) -> None:
    """Overwrite the clipboard with text.

    Args:
        backend: The clipboard backend.
        text: The new clipboard text.
        timeout: Seconds to wait for the write command.

    Raises:
        ClipboardError: If the command cannot run, times out, or fails.
    """
    argv, stdin = backend.build_write(text)
    returncode, _, _ = await _run(argv, stdin, timeout, capture=False)
    if returncode != 0:
        raise ClipboardError(f"{backend.name} write exited {returncode}")
