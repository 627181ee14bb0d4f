#!/usr/bin/env python3
"""Monitor controller wiring a platform monitor to the replacement engine.

The controller owns the enabled flag and the last seen clipboard content.
For each detected value it:
1. ignores it when monitoring is disabled,
2. ignores it when it equals the last seen content,
3. records it as seen and runs the replacement engine,
4. writes the fixed text back when it differs, recording the fixed text
   as seen BEFORE the write so the monitor's echo of that write is a no-op.

Steps 1 to 4 run without suspending until the write itself, so toggling
or exiting from a signal handler or UI callback cannot interleave with the
decision.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from linkfixer.monitor_state import MonitorState

if TYPE_CHECKING:
    from linkfixer.monitor_base import ClipboardMonitor, UpdateCallback
    from linkfixer.replacer import ReplacementEngine

MonitorFactory = Callable[["UpdateCallback"], "ClipboardMonitor"]
StateListener = Callable[[bool], None]


class MonitorController:
    """Mediates between a clipboard monitor and the replacement engine.

    Args:
        engine: The replacement rules to apply.
        monitor_factory: Called once with handle_update to build the
            platform monitor.
        enabled: Initial value of the enabled flag.
        logger: Logger for this controller.
    """

    def __init__(
        self,
        engine: ReplacementEngine,
        monitor_factory: MonitorFactory,
        enabled: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.engine = engine
        self.state = MonitorState(enabled=enabled)
        self.monitor = monitor_factory(self.handle_update)
        self._listeners: list[StateListener] = []
        self._closed = asyncio.Event()

    @property
    def enabled(self) -> bool:
        return self.state.enabled

    @property
    def last_seen_content(self) -> str:
        return self.state.last_seen_content

    @property
    def running(self) -> bool:
        return self.state.running

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with the new enabled flag on change.

        Used by tray adapters to refresh their icon and menu.
        """
        self._listeners.append(listener)

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable processing of detected clipboard values."""
        if enabled == self.state.enabled:
            return
        self.state.enabled = enabled
        self.logger.info("Clipboard monitoring %s", "enabled" if enabled else "disabled")
        for listener in list(self._listeners):
            try:
                listener(enabled)
            except Exception:
                self.logger.exception("Error in monitoring state listener")

    def toggle_monitoring(self) -> bool:
        """Flip the enabled flag.

        Returns:
            The new value of the flag.
        """
        self.set_enabled(not self.state.enabled)
        return self.state.enabled

    async def start(self) -> None:
        """Start the platform monitor.

        Raises:
            MonitorStartError: If the monitor cannot start.
        """
        await self.monitor.start()
        self.state.running = True
        self.logger.info("Clipboard monitoring started")

    async def stop(self) -> None:
        """Stop the platform monitor. Safe to call more than once."""
        if not self.state.running:
            return
        self.state.running = False
        await self.monitor.stop()
        self.logger.info("Clipboard monitoring stopped")

    def exit(self) -> None:
        """Request application shutdown.

        The application runner waiting in wait_closed() stops the monitor
        and the process exits.
        """
        self.logger.info("Exiting application")
        self._closed.set()

    async def wait_closed(self) -> None:
        """Wait until exit() has been requested."""
        await self._closed.wait()

    async def handle_update(self, text: str) -> None:
        """Process one clipboard value reported by the monitor.

        Args:
            text: The detected clipboard text.
        """
        if not self.state.enabled:
            return
        if self.state.is_duplicate(text):
            self.logger.debug("Skipping duplicate clipboard content")
            return
        self.state.record_seen(text)

        fixed = self.engine.apply_all(text)
        if fixed == text:
            return

        self.logger.info("Detected link! Replacing...")
        self.logger.info("Original: %s", text)
        self.logger.info("Fixed: %s", fixed)
        # Record BEFORE writing so the echo of this write is a duplicate
        self.state.record_written(fixed)

        if not self.monitor.running:
            self.logger.warning("Monitor stopped, not writing fixed content: %r", fixed)
            return
        if not await self.monitor.write_clipboard(fixed):
            self.logger.error("Failed to update clipboard with %r", fixed)
