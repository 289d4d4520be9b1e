"""Unit tests for the console and screen presentation consumers."""

import logging
from unittest.mock import MagicMock

import pytest

from gnss_relay.modules.Display.display_core import (
    ConsoleFixLogger,
    DisplaySink,
    LoggingDisplaySink,
    ScreenFixDisplay,
    lcd_rows,
    oled_rows,
)
from gnss_relay.modules.GPS.gps_core import FixBroadcaster


class TestConsoleFixLogger:
    """Test the multi-line fix report."""

    def test_format_lines(self, sample_fix):
        lines = ConsoleFixLogger.format_lines(sample_fix)

        assert len(lines) == 7 + 4
        assert "RMC Validity (A)" in lines[0]
        assert "8/8" in lines[0]
        assert "1994-03-23 12:35:19" in lines[1]
        assert "48.1173,11.516667" in lines[3]
        assert lines[-1].endswith("Sat(3) 14,45,228")

    def test_quality_described(self, sample_fix):
        assert "Quality Indicator (1 GPS fix) 8/8" in ConsoleFixLogger.format_lines(sample_fix)[0]

        sample_fix.fix_quality = 42
        assert "(42 Unknown)" in ConsoleFixLogger.format_lines(sample_fix)[0]

    def test_rmc_clock_has_no_offset(self, sample_fix):
        assert ConsoleFixLogger.format_lines(sample_fix)[1].endswith("1994-03-23 12:35:19")

    def test_missing_date_shown_as_dash(self, sample_fix):
        sample_fix.date = None
        sample_fix.time = None
        lines = ConsoleFixLogger.format_lines(sample_fix)
        assert lines[1].endswith("- -")

    @pytest.mark.asyncio
    async def test_handle_fix_logs_at_debug(self, sample_fix, caplog):
        consumer = ConsoleFixLogger(FixBroadcaster())
        with caplog.at_level(logging.DEBUG, logger="gnss_relay"):
            await consumer.handle_fix(sample_fix)

        debug = [r for r in caplog.records if r.levelno == logging.DEBUG]
        assert len(debug) == 11
        assert consumer.name == "console"


class TestScreenRows:
    """Test the text pushed to each display."""

    def test_lcd_rows(self, sample_fix):
        rows = lcd_rows(sample_fix)

        assert rows[0] == (1, 0, "GPS OK 07:08:09")
        assert rows[1] == (2, 0, "lat:48.117300")
        assert rows[2] == (3, 0, f"lon:11.516667 s:{22.4 * 1.852:.2f}")
        assert all(row != 0 for row, _, _ in rows)

    def test_oled_rows(self, sample_fix):
        rows = oled_rows(sample_fix)

        assert [row for row, _, _ in rows] == [4, 5, 6, 7]
        assert all(column == 1 for _, column, _ in rows)
        assert rows[1][2] == "lat: 48.117300"
        assert rows[3][2] == "sp: 41.48"


class TestScreenFixDisplay:
    """Test rendering to sinks."""

    @pytest.mark.asyncio
    async def test_renders_both_displays(self, sample_fix):
        lcd = LoggingDisplaySink("lcd")
        oled = LoggingDisplaySink("oled")
        display = ScreenFixDisplay(FixBroadcaster(), lcd=lcd, oled=oled)

        await display.handle_fix(sample_fix)

        assert lcd.rows[(2, 0)] == "lat:48.117300"
        assert oled.rows[(7, 1)] == "sp: 41.48"
        assert display.render_failures == 0

    @pytest.mark.asyncio
    async def test_no_sinks_only_logs(self, sample_fix, caplog):
        display = ScreenFixDisplay(FixBroadcaster())
        with caplog.at_level(logging.DEBUG, logger="gnss_relay"):
            await display.handle_fix(sample_fix)
        assert any("Device screen latitude" in m for m in caplog.messages)

    @pytest.mark.asyncio
    async def test_sink_failure_is_contained(self, sample_fix):
        broken = MagicMock(spec=DisplaySink)
        broken.name = "lcd"
        broken.write_line.side_effect = OSError("i2c bus error")
        oled = LoggingDisplaySink("oled")
        display = ScreenFixDisplay(FixBroadcaster(), lcd=broken, oled=oled)

        await display.handle_fix(sample_fix)

        assert display.render_failures == 1
        assert oled.rows[(4, 1)] == "GPS OK 07:08:09"
