#!/usr/bin/env python3
"""Tests for the application runner."""
import asyncio
import logging
import signal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest_monitors import FakeMonitor, wait_until
from linkfixer.app import SHUTDOWN_SIGNALS, install_signal_handlers, run_app
from linkfixer.errors import RuleError


class TestInstallSignalHandlers:
    """Tests for routing shutdown signals to the controller."""

    def test_handlers_registered_on_loop(self) -> None:
        loop, controller = MagicMock(), MagicMock()
        install_signal_handlers(loop, controller, logging.getLogger("test"))
        registered = [c.args[0] for c in loop.add_signal_handler.call_args_list]
        assert registered == list(SHUTDOWN_SIGNALS)

        handler = loop.add_signal_handler.call_args_list[0].args[1]
        handler()
        controller.exit.assert_called_once()

    def test_falls_back_to_signal_module(self) -> None:
        loop, controller = MagicMock(), MagicMock()
        loop.add_signal_handler.side_effect = NotImplementedError
        with patch("linkfixer.app.signal.signal") as mock_signal:
            install_signal_handlers(loop, controller, logging.getLogger("test"))
        assert [c.args[0] for c in mock_signal.call_args_list] == list(SHUTDOWN_SIGNALS)

        handler = mock_signal.call_args_list[0].args[1]
        handler(signal.SIGINT, None)
        loop.call_soon_threadsafe.assert_called_once()
        loop.call_soon_threadsafe.call_args.args[0]()
        controller.exit.assert_called_once()


class TestRunApp:
    """Tests for the run_app lifecycle."""

    @pytest.mark.asyncio
    async def test_runs_until_exit(self, rules_dir: Path) -> None:
        monitors = []

        def fake_create_monitor(on_update, **kwargs):
            monitors.append(FakeMonitor(on_update))
            return monitors[-1]

        with patch("linkfixer.app.create_monitor", side_effect=fake_create_monitor) as mock_create, \
                patch("linkfixer.app.install_signal_handlers") as mock_install:
            task = asyncio.create_task(run_app(rules_dir, strategy="poll", poll_interval=0.2))
            await wait_until(lambda: bool(monitors) and monitors[0].running)

            controller = mock_install.call_args.args[1]
            assert len(controller.engine) == 1
            controller.exit()
            await asyncio.wait_for(task, timeout=1.0)

        assert mock_create.call_args.kwargs["strategy"] == "poll"
        assert mock_create.call_args.kwargs["poll_interval"] == 0.2
        assert not monitors[0].running
        assert monitors[0].stop_calls == 1

    @pytest.mark.asyncio
    async def test_starts_disabled(self, rules_dir: Path) -> None:
        with patch("linkfixer.app.create_monitor", side_effect=lambda on_update, **kw: FakeMonitor(on_update)), \
                patch("linkfixer.app.install_signal_handlers") as mock_install:
            task = asyncio.create_task(run_app(rules_dir, enabled=False))
            await wait_until(lambda: mock_install.called)
            controller = mock_install.call_args.args[1]
            assert controller.enabled is False
            controller.exit()
            await asyncio.wait_for(task, timeout=1.0)

    @pytest.mark.asyncio
    async def test_rule_error_raised_before_monitoring(self, tmp_path: Path) -> None:
        with patch("linkfixer.app.create_monitor") as mock_create:
            with pytest.raises(RuleError):
                await run_app(tmp_path / "missing")
        mock_create.assert_not_called()
