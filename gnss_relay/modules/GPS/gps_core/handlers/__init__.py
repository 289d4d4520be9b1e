"""GPS acquisition handlers."""

from .gps_handler import GPSHandler

__all__ = ["GPSHandler"]
