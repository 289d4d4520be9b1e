"""Console consumer: a multi-line debug report per fix."""

from __future__ import annotations

from typing import List

from gnss_relay.core.logging_utils import get_module_logger
from gnss_relay.modules.GPS.gps_core import FIX_QUALITY_DESCRIPTIONS, BaseFixConsumer, Fix

logger = get_module_logger("ConsoleFixLogger")


def _or_dash(value) -> str:
    return "-" if value is None else str(value)


class ConsoleFixLogger(BaseFixConsumer):
    name = "console"

    @staticmethod
    def describe_quality(quality: int) -> str:
        return FIX_QUALITY_DESCRIPTIONS.get(quality, "Unknown")

    @staticmethod
    def format_lines(fix: Fix) -> List[str]:
        lines = [
            f"RMC Validity ({fix.validity}), GGA GPS Quality Indicator ({fix.fix_quality} "
            f"{ConsoleFixLogger.describe_quality(fix.fix_quality)}) "
            f"{fix.satellites_in_use}/{fix.satellites_in_view}",
            f"RMC Date Time              {_or_dash(fix.date)} {_or_dash(fix.time)}",
            f"OS  DateTime(UTC)          {_or_dash(fix.timestamp)}",
            f"RMC Latitude,Longitude     {fix.latitude},{fix.longitude}",
            f"RMC Speed, Course          {fix.speed_knots},{fix.course_deg}",
            f"RMC Variation, GGA HDOP    {fix.variation_deg},{fix.hdop}",
            f"GGA Altitude               {fix.altitude_m}",
        ]
        for index, sat in enumerate(fix.satellites):
            lines.append(f"GSV SVPRNNumber,SNR,Azimuth Sat({index}) {sat.prn},{sat.snr},{sat.azimuth}")
        return lines

    async def handle_fix(self, fix: Fix) -> None:
        for line in self.format_lines(fix):
            logger.debug("%s", line)


__all__ = ["ConsoleFixLogger"]
