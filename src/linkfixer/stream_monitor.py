#!/usr/bin/env python3
"""Event-stream clipboard monitor.

Runs a long-lived listener helper that blocks on the operating system's
clipboard-change notification and prints one record per line (see
linkfixer.protocol). Each update line is decoded and delivered to the
callback; ERROR lines and anything on the helper's stderr are logged.

Writes go through an interactive shell when one is available, avoiding a
process spawn per write, and fall back to a one-shot write command.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from linkfixer.clipboard_commands import (
    POWERSHELL,
    WINDOWS_POWERSHELL,
    ClipboardBackend,
    write_clipboard,
)
from linkfixer.constants import COMMAND_TIMEOUT
from linkfixer.errors import HelperProcessError, MonitorStartError
from linkfixer.helper_process import HelperProcess, HelperState
from linkfixer.interactive_shell import InteractiveShell
from linkfixer.monitor_base import ClipboardMonitor, UpdateCallback
from linkfixer.protocol import MessageKind, parse_line


def listener_script_path() -> str:
    """Return the path of the bundled PowerShell clipboard listener."""
    return str(Path(__file__).parent / "scripts" / "clipboard-listener.ps1")


def windows_listener_command() -> tuple[str, ...]:
    """Return the command line that runs the bundled listener script."""
    return (
        *POWERSHELL,
        "-Sta",
        "-WindowStyle", "Hidden",
        "-ExecutionPolicy", "Bypass",
        "-File", listener_script_path(),
    )


class EventStreamClipboardMonitor(ClipboardMonitor):
    """Clipboard monitor fed by a line-oriented listener process.

    Args:
        on_update: Coroutine function awaited with each detected value.
        listener_command: Command line of the listener helper.
        write_backend: One-shot write command used without a shell.
        shell: Interactive shell used for writes, or None.
        restart: Restart the listener after an unexpected exit.
        timeout: Seconds allowed for one-shot writes.
        logger: Logger for this monitor.
    """

    platform_name = "windows"

    def __init__(
        self,
        on_update: UpdateCallback,
        listener_command: Sequence[str],
        write_backend: ClipboardBackend = WINDOWS_POWERSHELL,
        shell: InteractiveShell | None = None,
        restart: bool = True,
        timeout: float = COMMAND_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(on_update, logger)
        self.write_backend = write_backend
        self.shell = shell
        self.timeout = timeout
        self.listener = HelperProcess(
            listener_command,
            "clipboard listener",
            self.handle_stdout_line,
            self.handle_stderr_line,
            restart=restart,
            logger=self.logger,
        )

    @property
    def listener_state(self) -> HelperState:
        return self.listener.state

    async def start(self) -> None:
        try:
            await self.listener.start()
        except HelperProcessError as e:
            self.logger.error("Cannot start %s clipboard listener: %s", self.platform_name, e)
            raise MonitorStartError(str(e)) from e

        if self.shell is not None:
            try:
                await self.shell.start()
            except HelperProcessError as e:
                self.logger.warning(
                    "Interactive shell unavailable, using one-shot writes: %s", e
                )
                self.shell = None

        self._running = True
        self.logger.info("%s clipboard monitoring started", self.platform_name)

    async def stop(self) -> None:
        was_running, self._running = self._running, False
        await self.listener.stop()
        if self.shell is not None:
            await self.shell.stop()
        if was_running:
            self.logger.info("%s clipboard monitoring stopped", self.platform_name)

    async def handle_stdout_line(self, line: str) -> None:
        """Decode one listener stdout line and act on it."""
        message = parse_line(line)
        if message is None:
            return
        if message.kind is MessageKind.ERROR:
            self.logger.error("%s listener error: %s", self.platform_name, message.payload)
            return
        self.logger.debug("Received clipboard update: %r", message.payload)
        await self._deliver(message.payload)

    async def handle_stderr_line(self, line: str) -> None:
        """Log one non-empty listener stderr line as an error."""
        text = line.strip()
        if text:
            self.logger.error("%s listener stderr: %s", self.platform_name, text)

    async def _write(self, text: str) -> None:
        if self.shell is not None and self.shell.running:
            await self.shell.set_clipboard(text)
            return
        await write_clipboard(self.write_backend, text, self.timeout)
