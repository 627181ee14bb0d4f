#!/usr/bin/env python3
"""Supervised long-running helper process.

The event-stream monitor depends on an external helper that must keep
running for detection to work. HelperProcess owns that child process and
its line readers, and tracks it with an explicit state machine:

    STOPPED -> STARTING -> RUNNING
    RUNNING -> STARTING   (unexpected exit, restart pending)
    STARTING -> FAILED    (restart budget exhausted)
    any     -> STOPPED    (stop())

Restart policy: an unexpected exit is restarted automatically with
exponential backoff via tenacity. Exits after a short run count against
MAX_RESTART_ATTEMPTS; once exhausted the helper is FAILED and stays down
until start() is called again. A helper that ran for at least
STABLE_RUN_TIME before exiting is restarted at once with a fresh budget.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from contextlib import suppress
from enum import Enum

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from linkfixer.constants import (
    MAX_RESTART_ATTEMPTS,
    RESTART_INITIAL_WAIT,
    RESTART_MAX_WAIT,
    RESTART_WAIT_MULTIPLIER,
    TERMINATE_TIMEOUT,
)
from linkfixer.errors import HelperProcessError

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], Awaitable[None]]

# Seconds a helper must run before an exit no longer counts as a crash loop.
STABLE_RUN_TIME: float = 60.0

# StreamReader buffer limit; one clipboard value is one line.
STREAM_LIMIT: int = 16 * 1024 * 1024


class HelperState(Enum):
    """Lifecycle state of a helper process."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


class HelperProcess:
    """A child process with continuous stdout/stderr line readers.

    Args:
        argv: Command line of the helper.
        name: Name used in log messages.
        on_stdout: Coroutine function awaited with each stdout line.
        on_stderr: Coroutine function awaited with each stderr line.
        interactive: Open a stdin pipe so send() can be used.
        restart: Restart the helper after an unexpected exit.
        max_restarts: Restart attempts before the helper is FAILED.
        initial_wait: First backoff delay in seconds.
        max_wait: Largest backoff delay in seconds.
        wait_multiplier: Exponential backoff multiplier.
        logger: Logger for lifecycle and stream messages.
    """

    def __init__(
        self,
        argv: Sequence[str],
        name: str,
        on_stdout: LineCallback,
        on_stderr: LineCallback,
        *,
        interactive: bool = False,
        restart: bool = True,
        max_restarts: int = MAX_RESTART_ATTEMPTS,
        initial_wait: float = RESTART_INITIAL_WAIT,
        max_wait: float = RESTART_MAX_WAIT,
        wait_multiplier: float = RESTART_WAIT_MULTIPLIER,
        logger: logging.Logger | None = None,
    ) -> None:
        self.argv = tuple(argv)
        self.name = name
        self.on_stdout = on_stdout
        self.on_stderr = on_stderr
        self.interactive = interactive
        self.restart = restart
        self.max_restarts = max_restarts
        self.initial_wait = initial_wait
        self.max_wait = max_wait
        self.wait_multiplier = wait_multiplier
        self.logger = logger or logging.getLogger(__name__)
        self._state = HelperState.STOPPED
        self._process: asyncio.subprocess.Process | None = None
        self._supervisor: asyncio.Task[None] | None = None
        self._stopping = False
        self._started_at = 0.0

    @property
    def state(self) -> HelperState:
        return self._state

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    async def start(self) -> None:
        """Spawn the helper and begin supervising it.

        Raises:
            HelperProcessError: If the helper is already started or the
                first spawn fails.
        """
        if self._state in (HelperState.STARTING, HelperState.RUNNING):
            raise HelperProcessError(f"{self.name} is already started")
        self._stopping = False
        self._state = HelperState.STARTING
        try:
            await self._spawn()
        except HelperProcessError:
            self._state = HelperState.FAILED
            raise
        self._supervisor = asyncio.create_task(self._supervise())

    async def stop(self) -> None:
        """Terminate the helper and its readers. Safe in any state."""
        self._stopping = True
        supervisor, self._supervisor = self._supervisor, None
        process = self._process
        if process is not None and process.returncode is None:
            if process.stdin is not None:
                process.stdin.close()
            with suppress(ProcessLookupError):
                process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=TERMINATE_TIMEOUT)
            except asyncio.TimeoutError:
                self.logger.warning("%s did not exit after terminate, killing", self.name)
                with suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
        if supervisor is not None:
            supervisor.cancel()
            with suppress(asyncio.CancelledError):
                await supervisor
        self._process = None
        if self._state is not HelperState.STOPPED:
            self.logger.info("%s stopped", self.name)
        self._state = HelperState.STOPPED

    async def send(self, line: str) -> None:
        """Write one line to the helper's stdin.

        Raises:
            HelperProcessError: If the helper is not running, was started
                without a stdin pipe, or the pipe is broken.
        """
        process = self._process
        if self._state is not HelperState.RUNNING or process is None:
            raise HelperProcessError(f"{self.name} is not running")
        if process.stdin is None:
            raise HelperProcessError(f"{self.name} was started without stdin")
        if not line.endswith("\n"):
            line += "\n"
        try:
            process.stdin.write(line.encode("utf-8"))
            await process.stdin.drain()
        except (ConnectionError, OSError) as e:
            raise HelperProcessError(f"Cannot write to {self.name}: {e}") from e

    async def _spawn(self) -> None:
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.argv,
                stdin=asyncio.subprocess.PIPE if self.interactive else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise HelperProcessError(f"Cannot start {self.name}: {e}") from e
        self._started_at = asyncio.get_running_loop().time()
        self._state = HelperState.RUNNING
        self.logger.info("%s started (pid %d)", self.name, self._process.pid)

    async def _supervise(self) -> None:
        """Keep the helper running until stop() or the budget runs out."""
        attempts = self.max_restarts + 1 if self.restart else 1
        try:
            while not self._stopping:
                async for attempt in AsyncRetrying(
                    wait=wait_exponential(
                        multiplier=self.wait_multiplier,
                        min=self.initial_wait,
                        max=self.max_wait,
                    ),
                    retry=retry_if_exception_type(HelperProcessError),
                    stop=stop_after_attempt(attempts),
                    before_sleep=self._log_restart,
                    reraise=True,
                ):
                    with attempt:
                        await self._run_once()
        except HelperProcessError as e:
            self._state = HelperState.FAILED
            self.logger.error("%s failed, monitoring stopped: %s", self.name, e)

    def _log_restart(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        self.logger.warning(
            "Restarting %s in %.1fs (attempt %d of %d)",
            self.name, delay, retry_state.attempt_number, self.max_restarts,
        )

    async def _run_once(self) -> None:
        """Run one helper lifetime, spawning it first if needed.

        Returns normally on stop() or after a stable run; raises
        HelperProcessError on a spawn failure or an early exit.
        """
        if self._process is None:
            self._state = HelperState.STARTING
            await self._spawn()
        returncode = await self._wait_for_exit()
        ran_for = asyncio.get_running_loop().time() - self._started_at
        self._process = None
        if self._stopping:
            return
        self._state = HelperState.STARTING
        self.logger.error(
            "%s exited unexpectedly with code %s after %.1fs", self.name, returncode, ran_for
        )
        if ran_for < STABLE_RUN_TIME or not self.restart:
            raise HelperProcessError(f"{self.name} exited with code {returncode}")

    async def _wait_for_exit(self) -> int:
        process = self._process
        assert process is not None and process.stdout is not None and process.stderr is not None
        readers = [
            asyncio.create_task(self._read_stream(process.stdout, "stdout", self.on_stdout)),
            asyncio.create_task(self._read_stream(process.stderr, "stderr", self.on_stderr)),
        ]
        try:
            await asyncio.gather(*readers)
            return await process.wait()
        finally:
            for reader in readers:
                reader.cancel()
            for reader in readers:
                with suppress(asyncio.CancelledError):
                    await reader

    async def _read_stream(
        self, stream: asyncio.StreamReader, stream_name: str, callback: LineCallback
    ) -> None:
        """Feed every line of stream to callback until EOF.

        A line longer than STREAM_LIMIT is dropped whole, up to and
        including its newline, so no fragment of it is ever delivered.
        """
        while True:
            at_eof = False
            try:
                line = await stream.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                line, at_eof = e.partial, True
            except asyncio.LimitOverrunError as e:
                self.logger.error("Discarding oversized line on %s %s: %s", self.name, stream_name, e)
                try:
                    await self._discard_line(stream)
                except asyncio.IncompleteReadError:
                    return
                continue
            except OSError as e:
                self.logger.error("Error reading %s %s: %s", self.name, stream_name, e)
                return
            if line:
                try:
                    await callback(line.decode("utf-8", errors="replace"))
                except Exception:
                    self.logger.exception("Error handling %s %s line", self.name, stream_name)
            if at_eof:
                return

    @staticmethod
    async def _discard_line(stream: asyncio.StreamReader) -> None:
        """Consume stream up to and including the next newline.

        Raises:
            IncompleteReadError: If EOF arrives first.
        """
        while True:
            try:
                await stream.readuntil(b"\n")
                return
            except asyncio.LimitOverrunError as e:
                await stream.readexactly(e.consumed)
