#!/usr/bin/env python3
"""Constants for clipboard monitoring and helper supervision.

These constants control polling cadence, command timeouts, the replace
loop safety bound and the exponential backoff used when the clipboard
listener helper has to be restarted.
"""

# Delay between clipboard reads of the polling monitor in seconds.
POLL_INTERVAL: float = 0.5

# Timeout in seconds for one-shot clipboard read/write commands, so a hung
# clipboard owner cannot stall the monitor.
COMMAND_TIMEOUT: float = 2.0

# Maximum substitutions a single rule may perform on one text. Protects
# against rules whose replacement is itself matched by the pattern.
MAX_REPLACE_ITERATIONS: int = 100

# Restart parameters for the listener helper process.
# Initial delay before restarting a helper that exited unexpectedly.
RESTART_INITIAL_WAIT: float = 1.0

# Maximum delay between restart attempts in seconds.
RESTART_MAX_WAIT: float = 30.0

# Multiplier for exponential backoff (delay = multiplier * 2^(attempt - 1)),
# clamped to [RESTART_INITIAL_WAIT, RESTART_MAX_WAIT].
RESTART_WAIT_MULTIPLIER: float = 2.0

# Restart attempts before the helper is declared failed.
MAX_RESTART_ATTEMPTS: int = 5

# Seconds to wait for a helper process to exit after terminate() before
# it is killed.
TERMINATE_TIMEOUT: float = 2.0

# Default directory holding the replacement rule files.
DEFAULT_RULES_DIR: str = "config/replacers"

# Default append-only error log, kept across restarts for postmortems.
DEFAULT_LOG_FILE: str = "linkfixer-error.log"
