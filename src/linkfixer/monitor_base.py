#!/usr/bin/env python3
"""Common contract for platform clipboard monitors.

A monitor detects external clipboard changes and awaits the registered
on_update callback with the new text. It also exposes a write capability
used by the controller to put rewritten text back on the clipboard.

Monitors may filter consecutive duplicates themselves, but callers must
not rely on it: the controller keeps its own duplicate suppression.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from linkfixer.errors import MonitorStateError

UpdateCallback = Callable[[str], Awaitable[None]]


class ClipboardMonitor(ABC):
    """Base class for clipboard monitors.

    Args:
        on_update: Coroutine function awaited with each detected value.
        logger: Logger for this monitor; defaults to the module logger.
    """

    #: Short name used in log messages.
    platform_name: str = "clipboard"

    def __init__(
        self, on_update: UpdateCallback, logger: logging.Logger | None = None
    ) -> None:
        self.on_update = on_update
        self.logger = logger or logging.getLogger(type(self).__module__)
        self._running = False

    @property
    def running(self) -> bool:
        """Whether detection is active."""
        return self._running

    @abstractmethod
    async def start(self) -> None:
        """Begin detecting clipboard changes."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop detection and release subprocesses and handles.

        Must not raise when the monitor is already stopped.
        """

    @abstractmethod
    async def _write(self, text: str) -> None:
        """Write text to the clipboard, raising on failure."""

    async def write_clipboard(self, text: str) -> bool:
        """Overwrite the clipboard with text.

        Args:
            text: The new clipboard text.

        Returns:
            True if the write succeeded, False otherwise.

        Raises:
            MonitorStateError: If the monitor has not been started.
        """
        if not self._running:
            raise MonitorStateError(
                f"{self.platform_name} monitor must be started before writing"
            )
        try:
            await self._write(text)
        except Exception as e:
            self.logger.error(
                "Error writing to %s clipboard: %s (text: %r)", self.platform_name, e, text
            )
            return False
        return True

    async def _deliver(self, text: str) -> None:
        """Await on_update, logging anything it raises."""
        try:
            await self.on_update(text)
        except Exception:
            self.logger.exception(
                "Error handling %s clipboard update: %r", self.platform_name, text
            )
