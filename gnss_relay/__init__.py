"""GNSS relay - forwards NMEA fixes from a serial receiver to Traccar servers."""

__version__ = "1.0.0"
