"""Traccar tracking server clients."""

from .constants import (
    PROTOCOL_OPENGTS,
    PROTOCOL_OSMAND,
    PROTOCOL_T55,
    SUPPORTED_PROTOCOLS,
)
from .forwarder import HTTPForwarder, NetworkForwarder
from .osmand import OsmAndForwarder, format_timestamp
from .opengts import OpenGTSForwarder
from .t55 import T55Forwarder

__all__ = [
    "PROTOCOL_OPENGTS",
    "PROTOCOL_OSMAND",
    "PROTOCOL_T55",
    "SUPPORTED_PROTOCOLS",
    "HTTPForwarder",
    "NetworkForwarder",
    "OsmAndForwarder",
    "OpenGTSForwarder",
    "T55Forwarder",
    "format_timestamp",
]
