#!/usr/bin/env python3
"""Long-running interactive PowerShell used for clipboard writes.

Spawning powershell.exe for every write costs hundreds of milliseconds.
InteractiveShell keeps one shell reading commands from stdin and sends each
write as a single command line instead.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from linkfixer.clipboard_commands import POWERSHELL
from linkfixer.helper_process import HelperProcess, HelperState
from linkfixer.protocol import encode_set_clipboard_command

SHELL_COMMAND: tuple[str, ...] = (*POWERSHELL, "-Command", "-")


class InteractiveShell:
    """A shell process fed commands one line at a time.

    Args:
        argv: Shell command line; must read commands from stdin.
        logger: Logger for shell output and lifecycle messages.
    """

    def __init__(
        self, argv: Sequence[str] = SHELL_COMMAND, logger: logging.Logger | None = None
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.process = HelperProcess(
            argv,
            "interactive shell",
            self._on_stdout,
            self._on_stderr,
            interactive=True,
            logger=self.logger,
        )

    @property
    def running(self) -> bool:
        return self.process.state is HelperState.RUNNING

    async def start(self) -> None:
        await self.process.start()

    async def stop(self) -> None:
        await self.process.stop()

    async def execute(self, command: str) -> None:
        """Send one command line to the shell.

        Raises:
            HelperProcessError: If the shell is not running.
        """
        await self.process.send(command)

    async def set_clipboard(self, text: str) -> None:
        """Set the clipboard through the shell."""
        await self.execute(encode_set_clipboard_command(text))

    async def _on_stdout(self, line: str) -> None:
        text = line.rstrip("\r\n")
        if text:
            self.logger.debug("Interactive shell: %s", text)

    async def _on_stderr(self, line: str) -> None:
        text = line.strip()
        if text:
            self.logger.error("Interactive shell stderr: %s", text)
