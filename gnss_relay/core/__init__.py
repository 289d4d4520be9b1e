"""Core infrastructure shared by the relay modules."""

from .config_loader import ConfigLoader
from .errors import (
    ConfigurationError,
    DecodeError,
    GNSSRelayError,
    NetworkError,
    ProtocolError,
    TransportError,
)
from .logging_utils import StructuredLogger, get_module_logger

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DecodeError",
    "GNSSRelayError",
    "NetworkError",
    "ProtocolError",
    "TransportError",
    "StructuredLogger",
    "get_module_logger",
]
