"""Local presentation of GPS fixes."""

from .console_logger import ConsoleFixLogger
from .screen_display import ScreenFixDisplay, lcd_rows, oled_rows
from .sinks import DisplaySink, LoggingDisplaySink

__all__ = [
    "ConsoleFixLogger",
    "ScreenFixDisplay",
    "DisplaySink",
    "LoggingDisplaySink",
    "lcd_rows",
    "oled_rows",
]
