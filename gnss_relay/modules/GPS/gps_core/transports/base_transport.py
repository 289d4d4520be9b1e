"""
Base Transport

Abstract interface for line-oriented GPS receiver connections.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from gnss_relay.core.errors import TransportError

from ..constants import DEFAULT_READ_TIMEOUT


class BaseGPSTransport(ABC):
    """
    Abstract base class for GPS transports.

    A transport owns the connection to the receiver, can push an
    initialization payload to it, and yields whole NMEA lines.
    """

    def __init__(self):
        self._connected = False
        self._at_eof = False

    @property
    def is_connected(self) -> bool:
        """Check if the transport is connected."""
        return self._connected

    @property
    def at_eof(self) -> bool:
        """True once the receiver stream has ended."""
        return self._at_eof

    @property
    def rx_enabled(self) -> bool:
        """Whether reception is configured on this transport."""
        return True

    async def open(self) -> None:
        """Connect, raising TransportError instead of returning False."""
        if not await self.connect():
            raise TransportError("cannot open GPS transport")

    async def write_init_payload(self) -> bool:
        """Send the receiver initialization payload, if the transport has one."""
        return True

    @abstractmethod
    async def connect(self) -> bool:
        """
        Open the connection.

        Returns:
            True if connection was successful
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection and release the device."""
        ...

    @abstractmethod
    async def write(self, data: bytes) -> bool:
        """
        Write raw bytes to the receiver.

        Returns:
            True if write was successful
        """
        ...

    @abstractmethod
    async def read_line(self, timeout: float = DEFAULT_READ_TIMEOUT) -> Optional[str]:
        """
        Read one line (without line ending).

        Returns:
            The line, or None on timeout, EOF or error
        """
        ...

    async def read_sentences(self, timeout: float = DEFAULT_READ_TIMEOUT) -> AsyncIterator[str]:
        """Yield NMEA sentences (lines starting with '$') until the stream ends."""
        while self.is_connected and not self.at_eof:
            line = await self.read_line(timeout=timeout)
            if line and line.startswith("$"):
                yield line

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
        return False
