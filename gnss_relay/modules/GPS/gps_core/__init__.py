"""GPS core package - acquisition, assembly and distribution of fixes."""

from .constants import (
    KMH_PER_KNOT,
    MAX_SATELLITE_SLOTS,
    DEFAULT_MIN_SATELLITES_IN_VIEW,
    FIX_QUALITY_DESCRIPTIONS,
    DEFAULT_BAUD_RATE,
    DEFAULT_DELIVERY_PACING,
    DEFAULT_CONSUMER_QUEUE_SIZE,
)
from .parsers import AcquisitionSession, Fix, FixAssembler, SatelliteObservation
from .transports import BaseGPSTransport, SerialGPSTransport, SerialTransportOptions
from .distribution import BaseFixConsumer, ConsumerHandle, FixBroadcaster
from .handlers import GPSHandler

__all__ = [
    # Constants
    "KMH_PER_KNOT",
    "MAX_SATELLITE_SLOTS",
    "DEFAULT_MIN_SATELLITES_IN_VIEW",
    "FIX_QUALITY_DESCRIPTIONS",
    "DEFAULT_BAUD_RATE",
    "DEFAULT_DELIVERY_PACING",
    "DEFAULT_CONSUMER_QUEUE_SIZE",
    # Types
    "AcquisitionSession",
    "Fix",
    "SatelliteObservation",
    # Assembly
    "FixAssembler",
    # Transport
    "BaseGPSTransport",
    "SerialGPSTransport",
    "SerialTransportOptions",
    # Distribution
    "BaseFixConsumer",
    "ConsumerHandle",
    "FixBroadcaster",
    # Handlers
    "GPSHandler",
]
