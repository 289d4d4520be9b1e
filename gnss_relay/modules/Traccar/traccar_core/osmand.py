"""OsmAnd protocol forwarder (HTTP GET with the fix in the query string)."""

from __future__ import annotations

import datetime as dt

from gnss_relay.modules.GPS.gps_core import Fix

from .constants import OSMAND_DATE_FORMAT, OSMAND_TIME_FORMAT, PROTOCOL_OSMAND
from .forwarder import HTTPForwarder


def format_timestamp(timestamp: dt.datetime | None) -> str:
    """``MM-DD-YYYY%20HH:MM:SS`` in UTC."""
    if timestamp is None:
        timestamp = dt.datetime.now(dt.timezone.utc)
    elif timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(dt.timezone.utc)
    return timestamp.strftime(OSMAND_DATE_FORMAT) + "%20" + timestamp.strftime(OSMAND_TIME_FORMAT)


class OsmAndForwarder(HTTPForwarder):
    name = PROTOCOL_OSMAND
    protocol = PROTOCOL_OSMAND

    def build_url(self, fix: Fix) -> str:
        return (
            f"{self.base_url}/?id={self.client_id}"
            f"&timestamp={format_timestamp(fix.timestamp)}"
            f"&lat={fix.latitude:f}"
            f"&lon={fix.longitude:f}"
            f"&speed={fix.speed_knots:f}"
            f"&course={fix.course_deg:f}"
            f"&variation={fix.variation_deg:f}"
        )


__all__ = ["OsmAndForwarder", "format_timestamp"]
