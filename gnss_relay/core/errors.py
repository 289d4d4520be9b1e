"""Error taxonomy shared by the acquisition pipeline and its consumers."""

from __future__ import annotations


class GNSSRelayError(Exception):
    """Base class for every error raised inside gnss_relay."""


class ConfigurationError(GNSSRelayError):
    """Invalid or missing configuration.

    Disables the feature it concerns; reported once at startup.
    """


class TransportError(GNSSRelayError):
    """Serial port could not be opened, written or read."""


class DecodeError(GNSSRelayError):
    """A line could not be decoded as a supported NMEA sentence."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class NetworkError(GNSSRelayError):
    """HTTP or TCP delivery to a tracking server failed."""


class ProtocolError(GNSSRelayError):
    """Unexpected inbound data on a write-only session."""


__all__ = [
    "GNSSRelayError",
    "ConfigurationError",
    "TransportError",
    "DecodeError",
    "NetworkError",
    "ProtocolError",
]
