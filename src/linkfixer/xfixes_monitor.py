#!/usr/bin/env python3
"""X11 clipboard monitor driven by XFixes selection notifications.

The XFixes extension reports every change of CLIPBOARD ownership, which
happens whenever an application copies something. The monitor integrates
the X11 display file descriptor into the asyncio event loop with
add_reader(), so no polling is needed. On each notification the new
content is read through the clipboard read command (xclip or xsel) and
delivered to the callback.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import suppress
from typing import TYPE_CHECKING

from Xlib import X
from Xlib.error import ConnectionClosedError, DisplayError

from linkfixer.clipboard_commands import ClipboardBackend, read_clipboard, write_clipboard
from linkfixer.constants import COMMAND_TIMEOUT
from linkfixer.errors import ClipboardError, MonitorStartError
from linkfixer.monitor_base import ClipboardMonitor, UpdateCallback

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window

OWNER_NOTIFY_EVENT: str = "SetSelectionOwnerNotify"


def open_display(display_name: str | None = None) -> Display:
    """Open an X11 display connection.

    Args:
        display_name: Display to open; defaults to $DISPLAY.

    Returns:
        Display object for X11 operations.

    Raises:
        MonitorStartError: If DISPLAY is unset or the connection fails.
    """
    from Xlib.display import Display as XDisplay

    name = display_name or os.environ.get("DISPLAY")
    if not name:
        raise MonitorStartError("DISPLAY environment variable is not set")
    try:
        return XDisplay(name)
    except (DisplayError, ConnectionClosedError, OSError) as e:
        raise MonitorStartError(f"Failed to connect to X11 display {name}: {e}") from e


def create_hidden_window(display: Display) -> Window:
    """Create a 1x1 unmapped window to receive selection events."""
    screen = display.screen()
    return screen.root.create_window(0, 0, 1, 1, 0, screen.root_depth)


def register_selection_events(display: Display, window: Window) -> int:
    """Register for XFixes owner-change notifications on CLIPBOARD.

    Args:
        display: The X11 display connection.
        window: The window to receive selection events.

    Returns:
        The CLIPBOARD atom.

    Raises:
        MonitorStartError: If the XFixes extension is missing.
    """
    from Xlib.ext import xfixes

    if not display.has_extension("XFIXES"):
        raise MonitorStartError("X server does not support the XFIXES extension")
    xfixes.query_version(display)
    clipboard_atom = display.intern_atom("CLIPBOARD")
    mask = xfixes.XFixesSetSelectionOwnerNotifyMask
    xfixes.select_selection_input(display, window.id, clipboard_atom, mask)
    display.flush()
    return clipboard_atom


def drain_owner_changes(display: Display, selection_atom: int) -> bool:
    """Consume pending X11 events without blocking.

    Args:
        display: The X11 display connection.
        selection_atom: The selection being watched.

    Returns:
        True if ownership of selection_atom changed.
    """
    changed = False
    while display.pending_events() > 0:
        event = display.next_event()
        if type(event).__name__ == OWNER_NOTIFY_EVENT and event.selection == selection_atom:
            changed = True
    return changed


class XFixesClipboardMonitor(ClipboardMonitor):
    """Push-based X11 clipboard monitor.

    Args:
        on_update: Coroutine function awaited with each new value.
        backend: Commands used to read and write the clipboard.
        display_name: X11 display to watch; defaults to $DISPLAY.
        timeout: Seconds allowed for each read or write command.
        logger: Logger for this monitor.
    """

    platform_name = "x11"

    def __init__(
        self,
        on_update: UpdateCallback,
        backend: ClipboardBackend,
        display_name: str | None = None,
        timeout: float = COMMAND_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(on_update, logger)
        self.backend = backend
        self.display_name = display_name
        self.timeout = timeout
        self.last_content = ""
        self.display: Display | None = None
        self.window: Window | None = None
        self.clipboard_atom = X.NONE
        self._readable = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._fd: int | None = None

    async def start(self) -> None:
        display = open_display(self.display_name)
        try:
            window = create_hidden_window(display)
            self.clipboard_atom = register_selection_events(display, window)
        except MonitorStartError:
            display.close()
            raise
        self.display, self.window = display, window

        loop = asyncio.get_running_loop()
        self._fd = display.fileno()
        loop.add_reader(self._fd, self._readable.set)
        self._task = asyncio.create_task(self._event_loop())
        self._running = True
        self.logger.info(
            "%s clipboard monitoring started (XFixes, %s)", self.platform_name, self.backend.name
        )

    async def stop(self) -> None:
        was_running, self._running = self._running, False
        if self._fd is not None:
            asyncio.get_running_loop().remove_reader(self._fd)
            self._fd = None
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        display, self.display = self.display, None
        window, self.window = self.window, None
        if display is not None:
            with suppress(ConnectionClosedError, OSError):
                if window is not None:
                    window.destroy()
                display.close()
        if was_running:
            self.logger.info("%s clipboard monitoring stopped", self.platform_name)

    async def _event_loop(self) -> None:
        while True:
            await self._readable.wait()
            self._readable.clear()
            try:
                changed = drain_owner_changes(self.display, self.clipboard_atom)
            except ConnectionClosedError as e:
                self.logger.error("X11 connection lost, %s monitoring stopped: %s", self.platform_name, e)
                self._running = False
                if self._fd is not None:
                    asyncio.get_running_loop().remove_reader(self._fd)
                    self._fd = None
                return
            if changed:
                await self.check_clipboard()

    async def check_clipboard(self) -> None:
        """Read the clipboard after an owner change and deliver it."""
        try:
            content = await read_clipboard(self.backend, self.timeout)
        except ClipboardError as e:
            self.logger.error("Error reading %s clipboard: %s", self.platform_name, e)
            return
        if not content or content == self.last_content:
            return
        self.last_content = content
        await self._deliver(content)

    async def _write(self, text: str) -> None:
        await write_clipboard(self.backend, text, self.timeout)
