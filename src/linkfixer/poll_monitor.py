#!/usr/bin/env python3
"""Polling clipboard monitor.

Reads the clipboard through a one-shot command at a fixed interval and
reports values that differ from the previous read. Used where no
clipboard-change notification is available (macOS, Wayland).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from linkfixer.clipboard_commands import ClipboardBackend, read_clipboard, write_clipboard
from linkfixer.constants import COMMAND_TIMEOUT, POLL_INTERVAL
from linkfixer.errors import ClipboardError
from linkfixer.monitor_base import ClipboardMonitor, UpdateCallback


class PollingClipboardMonitor(ClipboardMonitor):
    """Clipboard monitor that periodically reads and diffs the clipboard.

    Args:
        on_update: Coroutine function awaited with each new value.
        backend: Commands used to read and write the clipboard.
        interval: Seconds between reads.
        timeout: Seconds allowed for each read or write command.
        logger: Logger for this monitor.
    """

    def __init__(
        self,
        on_update: UpdateCallback,
        backend: ClipboardBackend,
        interval: float = POLL_INTERVAL,
        timeout: float = COMMAND_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(on_update, logger)
        self.backend = backend
        self.interval = interval
        self.timeout = timeout
        self.platform_name = backend.name
        self.last_content = ""
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        self.logger.info(
            "%s clipboard monitoring started (polling every %.2fs)",
            self.platform_name, self.interval,
        )

    async def stop(self) -> None:
        self._running = False
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        self.logger.info("%s clipboard monitoring stopped", self.platform_name)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.check_clipboard()

    async def read(self) -> str:
        """Read the clipboard, returning "" on any failure."""
        try:
            return await read_clipboard(self.backend, self.timeout)
        except ClipboardError as e:
            self.logger.error("Error reading %s clipboard: %s", self.platform_name, e)
            return ""

    async def check_clipboard(self) -> None:
        """Run one poll tick: read, filter and deliver a changed value."""
        content = await self.read()
        if not content:
            return
        if content == self.last_content:
            return
        self.last_content = content
        await self._deliver(content)

    async def _write(self, text: str) -> None:
        await write_clipboard(self.backend, text, self.timeout)
