"""GPS transport implementations."""

from .base_transport import BaseGPSTransport
from .serial_transport import SerialGPSTransport, SerialTransportOptions

__all__ = ["BaseGPSTransport", "SerialGPSTransport", "SerialTransportOptions"]
