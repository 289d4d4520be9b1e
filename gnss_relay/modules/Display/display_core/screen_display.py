"""On-device screen consumer.

Shows the latest fix on a 4-line LCD and/or on rows 4-7 of an OLED. Speed
is shown in km/h. Rendering is best-effort: a failing display is logged
and the fix is dropped for that display only.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from gnss_relay.core.logging_utils import get_module_logger
from gnss_relay.modules.GPS.gps_core import BaseFixConsumer, Fix, FixBroadcaster

from .sinks import DisplaySink

logger = get_module_logger("ScreenFixDisplay")

OLED_FIRST_ROW = 4
OLED_COLUMN = 1

Row = Tuple[int, int, str]


def _status(fix: Fix) -> str:
    clock = fix.timestamp.strftime("%H:%M:%S") if fix.timestamp else "--:--:--"
    return f"GPS OK {clock}"


def lcd_rows(fix: Fix) -> List[Row]:
    """Rows 1-3 of the LCD; row 0 belongs to the rest of the device UI."""
    return [
        (1, 0, _status(fix)),
        (2, 0, f"lat:{fix.latitude:f}"),
        (3, 0, f"lon:{fix.longitude:f} s:{fix.speed_kmh:.2f}"),
    ]


def oled_rows(fix: Fix) -> List[Row]:
    texts = [
        _status(fix),
        f"lat: {fix.latitude:f}",
        f"lon: {fix.longitude:f}",
        f"sp: {fix.speed_kmh:.2f}",
    ]
    return [(OLED_FIRST_ROW + offset, OLED_COLUMN, text) for offset, text in enumerate(texts)]


class ScreenFixDisplay(BaseFixConsumer):
    name = "screen"

    def __init__(
        self,
        broadcaster: FixBroadcaster,
        lcd: Optional[DisplaySink] = None,
        oled: Optional[DisplaySink] = None,
    ):
        super().__init__(broadcaster)
        self.lcd = lcd
        self.oled = oled
        self.render_failures = 0

    async def handle_fix(self, fix: Fix) -> None:
        logger.debug("Device screen latitude: %f longitude: %f", fix.latitude, fix.longitude)
        if self.lcd is not None:
            self._render(self.lcd, lcd_rows(fix))
        if self.oled is not None:
            self._render(self.oled, oled_rows(fix))

    def _render(self, sink: DisplaySink, rows: List[Row]) -> None:
        try:
            for row, column, text in rows:
                sink.write_line(row, column, text)
        except Exception as exc:
            self.render_failures += 1
            logger.warning("Unable to render fix on %s: %s", sink.name, exc)


__all__ = ["ScreenFixDisplay", "lcd_rows", "oled_rows"]
