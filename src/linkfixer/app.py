#!/usr/bin/env python3
"""Application runner for linkfixer.

This module is the composition root: it loads the replacement rules,
builds the platform monitor and the controller around one shared logger,
installs signal handlers for clean shutdown and runs until exit is
requested.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from linkfixer.constants import POLL_INTERVAL
from linkfixer.controller import MonitorController
from linkfixer.monitor_factory import create_monitor
from linkfixer.rules import load_rules

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    controller: MonitorController,
    logger: logging.Logger,
) -> None:
    """Route SIGINT and SIGTERM to controller.exit().

    Falls back to signal.signal() where the event loop does not support
    signal handlers (Windows).
    """
    for sig in SHUTDOWN_SIGNALS:
        def on_signal(sig: signal.Signals = sig) -> None:
            logger.info("Received %s signal", sig.name)
            controller.exit()

        try:
            loop.add_signal_handler(sig, on_signal)
        except NotImplementedError:
            signal.signal(sig, lambda signum, frame, cb=on_signal: loop.call_soon_threadsafe(cb))


async def run_app(
    rules_dir: str | Path,
    strategy: str = "auto",
    poll_interval: float = POLL_INTERVAL,
    enabled: bool = True,
    logger: logging.Logger | None = None,
) -> None:
    """Run clipboard monitoring until a shutdown signal or exit().

    Args:
        rules_dir: Directory holding the replacement rule files.
        strategy: Monitor strategy, see linkfixer.monitor_factory.
        poll_interval: Seconds between reads of the polling monitor.
        enabled: Whether monitoring starts enabled.
        logger: Logger shared by every component.

    Raises:
        RuleError: If the rules cannot be loaded.
        UnsupportedPlatformError: If no monitor can run here.
        MonitorStartError: If the monitor fails to start.
    """
    log = logger or logging.getLogger("linkfixer")
    engine = load_rules(rules_dir, rule_logger=log)

    controller = MonitorController(
        engine,
        lambda on_update: create_monitor(
            on_update, strategy=strategy, poll_interval=poll_interval, logger=log
        ),
        enabled=enabled,
        logger=log,
    )
    install_signal_handlers(asyncio.get_running_loop(), controller, log)

    await controller.start()
    log.info("Press Ctrl+C to exit")
    try:
        await controller.wait_closed()
    finally:
        await controller.stop()
