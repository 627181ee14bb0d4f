"""CLI handling for linkfixer.

This module provides the command-line interface, handling argument parsing
via click, logging configuration, and running the clipboard monitor until
SIGINT or SIGTERM.

Usage:
    linkfixer [--rules DIR] [--strategy auto|poll|events|xfixes]
              [--poll-interval SECONDS] [--disabled] [--log-file PATH]
              [--verbose]
"""

import logging
import sys

import click

from linkfixer import __version__
from linkfixer.constants import DEFAULT_LOG_FILE, DEFAULT_RULES_DIR, POLL_INTERVAL
from linkfixer.main_logging import configure_logging
from linkfixer.monitor_factory import STRATEGIES


@click.command()
@click.option(
    "--rules",
    "rules_dir",
    default=DEFAULT_RULES_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory of replacement rule files (*.json)",
)
@click.option(
    "--strategy",
    type=click.Choice(STRATEGIES),
    default="auto",
    show_default=True,
    help="Clipboard change detection strategy",
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0.05),
    default=POLL_INTERVAL,
    show_default=True,
    help="Seconds between clipboard reads when polling",
)
@click.option(
    "--disabled",
    is_flag=True,
    help="Start with monitoring disabled",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=DEFAULT_LOG_FILE,
    show_default=True,
    help="Append-only file receiving error records",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
@click.version_option(__version__, prog_name="linkfixer")
def main(
    rules_dir: str,
    strategy: str,
    poll_interval: float,
    disabled: bool,
    log_file: str,
    verbose: bool,
) -> None:
    """Watch the clipboard and rewrite links matching replacement rules."""
    logger = configure_logging(verbose, log_file)
    _run(rules_dir, strategy, poll_interval, not disabled, logger)


def _run(
    rules_dir: str,
    strategy: str,
    poll_interval: float,
    enabled: bool,
    logger: logging.Logger,
) -> None:
    """Run the monitor, exiting with status 1 on startup errors.

    Args:
        rules_dir: Directory of replacement rule files.
        strategy: Monitor strategy name.
        poll_interval: Seconds between reads of the polling monitor.
        enabled: Whether monitoring starts enabled.
        logger: The configured application logger.
    """
    import asyncio

    from linkfixer.app import run_app
    from linkfixer.errors import MonitorStartError, RuleError, UnsupportedPlatformError

    try:
        asyncio.run(run_app(rules_dir, strategy, poll_interval, enabled, logger))
    except (RuleError, UnsupportedPlatformError, MonitorStartError) as e:
        logger.error("%s", e)
        sys.exit(1)
