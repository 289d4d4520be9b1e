"""Character display sinks.

The hardware drivers (HD44780 LCD, SSD1306 OLED, ...) live outside this
project; they are handed in as ``DisplaySink`` objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Tuple

from gnss_relay.core.logging_utils import get_module_logger

logger = get_module_logger("DisplaySink")


class DisplaySink(ABC):
    """Something that can show a line of text at a row/column."""

    name = "display"

    @abstractmethod
    def write_line(self, row: int, column: int, text: str) -> None:
        ...


class LoggingDisplaySink(DisplaySink):
    """Headless sink: remembers the screen contents and logs each write."""

    def __init__(self, name: str = "display"):
        self.name = name
        self.rows: Dict[Tuple[int, int], str] = {}

    def write_line(self, row: int, column: int, text: str) -> None:
        self.rows[(row, column)] = text
        logger.debug("%s row %d col %d: %s", self.name, row, column, text)


__all__ = ["DisplaySink", "LoggingDisplaySink"]
