#!/usr/bin/env python3
"""Selection of the clipboard monitor for the running platform.

The monitor strategy is chosen once at startup:
- Windows: event stream from the PowerShell listener, writes through an
  interactive shell.
- Linux on X11 (DISPLAY set, xclip or xsel installed): XFixes
  notifications.
- Linux on Wayland and macOS: polling through wl-clipboard or pbpaste.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable, Mapping

from linkfixer.clipboard_commands import (
    WINDOWS_POWERSHELL,
    detect_backend,
    detect_x11_backend,
)
from linkfixer.constants import POLL_INTERVAL
from linkfixer.errors import UnsupportedPlatformError
from linkfixer.interactive_shell import InteractiveShell
from linkfixer.monitor_base import ClipboardMonitor, UpdateCallback
from linkfixer.poll_monitor import PollingClipboardMonitor
from linkfixer.stream_monitor import EventStreamClipboardMonitor, windows_listener_command

STRATEGIES: tuple[str, ...] = ("auto", "poll", "events", "xfixes")


def resolve_strategy(
    platform: str = sys.platform,
    environ: Mapping[str, str] = os.environ,
    which: Callable[[str], str | None] = shutil.which,
) -> str:
    """Return the monitor strategy "auto" selects on this platform."""
    if platform == "win32":
        return "events"
    if platform.startswith("linux") and not environ.get("WAYLAND_DISPLAY"):
        if detect_x11_backend(environ, which) is not None:
            return "xfixes"
    return "poll"


def create_monitor(
    on_update: UpdateCallback,
    platform: str = sys.platform,
    environ: Mapping[str, str] = os.environ,
    strategy: str = "auto",
    poll_interval: float = POLL_INTERVAL,
    which: Callable[[str], str | None] = shutil.which,
    logger: logging.Logger | None = None,
) -> ClipboardMonitor:
    """Create the clipboard monitor for a platform.

    Args:
        on_update: Coroutine function the monitor awaits with each value.
        platform: Platform identifier as in sys.platform.
        environ: Environment used to detect the display server.
        strategy: One of STRATEGIES; "auto" picks by platform.
        poll_interval: Seconds between reads of the polling monitor.
        which: Executable lookup, shutil.which by default.
        logger: Logger handed to the monitor.

    Returns:
        An unstarted monitor.

    Raises:
        UnsupportedPlatformError: If the strategy cannot run here.
        ValueError: If strategy is unknown.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown monitor strategy {strategy!r}")
    if strategy == "auto":
        strategy = resolve_strategy(platform, environ, which)

    if strategy == "events":
        if platform != "win32":
            raise UnsupportedPlatformError(
                f"The event stream listener is only available on Windows, not {platform}"
            )
        return EventStreamClipboardMonitor(
            on_update,
            windows_listener_command(),
            write_backend=WINDOWS_POWERSHELL,
            shell=InteractiveShell(logger=logger),
            logger=logger,
        )

    if strategy == "xfixes":
        backend = detect_x11_backend(environ, which)
        if backend is None:
            raise UnsupportedPlatformError(
                "XFixes monitoring needs DISPLAY and one of xclip or xsel"
            )
        from linkfixer.xfixes_monitor import XFixesClipboardMonitor

        return XFixesClipboardMonitor(
            on_update, backend, display_name=environ.get("DISPLAY"), logger=logger
        )

    backend = detect_backend(platform, environ, which)
    return PollingClipboardMonitor(on_update, backend, interval=poll_interval, logger=logger)
