#!/usr/bin/env python3
"""Exception hierarchy for linkfixer.

Recoverable clipboard I/O failures are raised as ClipboardError and are
caught by the monitors. Configuration and contract errors propagate to the
caller.
"""


class LinkFixerError(Exception):
    """Base class for all linkfixer errors."""


class RuleError(LinkFixerError):
    """Raised when a replacement rule file cannot be loaded.

    Carries the offending file and, when known, the index of the entry
    inside that file.
    """

    def __init__(self, message: str, path: str | None = None, index: int | None = None):
        self.path = path
        self.index = index
        location = ""
        if path is not None:
            location = path if index is None else f"{path}[{index}]"
            location = f"{location}: "
        super().__init__(f"{location}{message}")


class ClipboardError(LinkFixerError):
    """Raised when reading or writing the clipboard fails."""


class HelperProcessError(LinkFixerError):
    """Raised when the clipboard listener helper cannot run."""


class MonitorStateError(LinkFixerError):
    """Raised when a monitor is used outside its lifecycle.

    For example, writing to the clipboard before start() was called.
    """


class MonitorStartError(LinkFixerError):
    """Raised when a monitor cannot start its detection machinery."""


class UnsupportedPlatformError(LinkFixerError):
    """Raised when no clipboard backend is available for this platform."""
