#!/usr/bin/env python3
"""
Monitor state and duplicate suppression for loop prevention.

Loop prevention is critical when rewriting the clipboard: writing the fixed
text back changes the clipboard, and every monitor may report that change
as a new external value. Without tracking, the fixed text would be
processed again, and a rule that keeps matching would rewrite forever.

The state tracks last_seen_content, the last value the controller
processed or wrote:
- record_seen(): a detected value is about to be processed
- record_written(): a fixed value is about to be written back

Critical ordering: record_written() must be called BEFORE writing the
clipboard so the resulting change notification is recognized as a
duplicate.
"""
from dataclasses import dataclass


@dataclass
class MonitorState:
    """
    Mutable state owned by the monitor controller.

    Attributes:
        enabled: Whether detected values are processed at all.
        last_seen_content: Last processed or written clipboard text.
        running: Whether the platform monitor is active.
    """

    enabled: bool = True
    last_seen_content: str = ""
    running: bool = False

    def is_duplicate(self, text: str) -> bool:
        """
        Check if text equals the last processed or written value.

        Args:
            text: Detected clipboard text.

        Returns:
            True if text must be ignored as a duplicate.
        """
        return text == self.last_seen_content

    def record_seen(self, text: str) -> None:
        """
        Record a detected value before it is processed.

        Args:
            text: Detected clipboard text.
        """
        self.last_seen_content = text

    def record_written(self, text: str) -> None:
        """
        Record the value about to be written back.

        CRITICAL: Must be called BEFORE writing the clipboard, and
        regardless of whether the write succeeds, so the monitor's echo of
        our own write is never reprocessed.

        Args:
            text: The fixed clipboard text.
        """
        self.last_seen_content = text
