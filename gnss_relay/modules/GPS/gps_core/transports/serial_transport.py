"""Serial UART transport for GPS receivers.

This module provides serial transport using serial_asyncio for non-blocking
I/O with UART or USB GPS receivers, including RS-485 wired units.
"""

from __future__ import annotations

import asyncio
import binascii
import contextlib
from dataclasses import dataclass
from typing import Optional

import serial
import serial.rs485
import serial_asyncio

from gnss_relay.core.errors import ConfigurationError, TransportError
from gnss_relay.core.logging_utils import get_module_logger

from .base_transport import BaseGPSTransport
from ..constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_DATA_BITS,
    DEFAULT_MIN_READ,
    DEFAULT_PORT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_STOP_BITS,
)

logger = get_module_logger("SerialTransport")

_BYTESIZES = {
    5: serial.FIVEBITS,
    6: serial.SIXBITS,
    7: serial.SEVENBITS,
    8: serial.EIGHTBITS,
}

_STOPBITS = {
    1: serial.STOPBITS_ONE,
    2: serial.STOPBITS_TWO,
}


@dataclass(slots=True)
class SerialTransportOptions:
    """Serial line settings for the receiver."""

    port: str = DEFAULT_PORT
    baud_rate: int = DEFAULT_BAUD_RATE
    data_bits: int = DEFAULT_DATA_BITS
    stop_bits: int = DEFAULT_STOP_BITS
    parity_even: bool = False
    parity_odd: bool = False
    min_read: int = DEFAULT_MIN_READ
    char_timeout_ms: int = 0
    rs485_enabled: bool = False
    rs485_rts_high_during_send: bool = False
    rs485_rts_high_after_send: bool = False
    tx_data: str = ""
    rx_enabled: bool = True

    @property
    def parity(self) -> str:
        if self.parity_even:
            return serial.PARITY_EVEN
        if self.parity_odd:
            return serial.PARITY_ODD
        return serial.PARITY_NONE

    @property
    def inter_byte_timeout(self) -> Optional[float]:
        if self.char_timeout_ms <= 0:
            return None
        return self.char_timeout_ms / 1000.0

    def init_payload(self) -> bytes:
        """Decode the hex-encoded initialization payload (empty when unset)."""
        text = self.tx_data.strip()
        if not text:
            return b""
        try:
            return bytes.fromhex(text)
        except ValueError as exc:
            raise ConfigurationError(f"cannot decode hex data {self.tx_data!r}: {exc}") from exc

    def validate(self) -> None:
        """Raise ConfigurationError for settings no port could be opened with."""
        if not self.port:
            raise ConfigurationError("gnss port not specified")
        if self.parity_even and self.parity_odd:
            raise ConfigurationError("can't specify both even and odd parity")
        if self.baud_rate <= 0:
            raise ConfigurationError(f"invalid baud rate {self.baud_rate}")
        if self.data_bits not in _BYTESIZES:
            raise ConfigurationError(f"invalid data bits {self.data_bits}")
        if self.stop_bits not in _STOPBITS:
            raise ConfigurationError(f"invalid stop bits {self.stop_bits}")
        if self.min_read < 0:
            raise ConfigurationError(f"invalid minimum read size {self.min_read}")
        if self.char_timeout_ms < 0:
            raise ConfigurationError(f"invalid inter-character timeout {self.char_timeout_ms}")
        self.init_payload()


class SerialGPSTransport(BaseGPSTransport):
    """Serial transport for GPS receivers.

    Uses serial_asyncio for async I/O, well suited to continuous NMEA
    streaming.

    Example:
        transport = SerialGPSTransport(SerialTransportOptions(port="/dev/ttyUSB0"))
        async with transport:
            async for line in transport.read_sentences():
                print(line)
    """

    def __init__(self, options: Optional[SerialTransportOptions] = None):
        super().__init__()
        self.options = options or SerialTransportOptions()

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._last_error: Optional[str] = None

    @property
    def port(self) -> str:
        return self.options.port

    @property
    def baudrate(self) -> int:
        return self.options.baud_rate

    @property
    def rx_enabled(self) -> bool:
        return self.options.rx_enabled

    @property
    def is_connected(self) -> bool:
        """Check if the serial connection is open."""
        return self._connected and self._reader is not None

    @property
    def last_error(self) -> Optional[str]:
        """Get the last error message, if any."""
        return self._last_error

    async def open(self) -> None:
        """Validate the options and open the port.

        Raises:
            ConfigurationError: options are unusable (nothing is opened)
            TransportError: the port could not be opened
        """
        self.options.validate()
        if not await self.connect():
            raise TransportError(f"cannot open serial port {self.port}: {self._last_error}")

    async def connect(self) -> bool:
        """Open the serial connection.

        Returns:
            True if connection was successful
        """
        if self.is_connected:
            logger.debug("Already connected to %s", self.port)
            return True

        opts = self.options
        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=opts.port,
                baudrate=opts.baud_rate,
                bytesize=_BYTESIZES.get(opts.data_bits, serial.EIGHTBITS),
                parity=opts.parity,
                stopbits=_STOPBITS.get(opts.stop_bits, serial.STOPBITS_ONE),
                inter_byte_timeout=opts.inter_byte_timeout,
            )
        except asyncio.CancelledError:
            raise
        except (OSError, ValueError, serial.SerialException) as exc:
            self._last_error = str(exc)
            logger.warning(
                "Unable to open serial port %s at %d baud: %s",
                opts.port, opts.baud_rate, exc
            )
            self._connected = False
            return False

        self._connected = True
        self._at_eof = False
        self._last_error = None
        if opts.rs485_enabled:
            self._apply_rs485()
        logger.info("Connected to GPS on %s at %d baud", opts.port, opts.baud_rate)
        return True

    def _apply_rs485(self) -> None:
        port = getattr(getattr(self._writer, "transport", None), "serial", None)
        if port is None:
            logger.warning("RS-485 requested but %s exposes no serial port object", self.port)
            return
        try:
            port.rs485_mode = serial.rs485.RS485Settings(
                rts_level_for_tx=self.options.rs485_rts_high_during_send,
                rts_level_for_rx=self.options.rs485_rts_high_after_send,
            )
        except (ValueError, OSError, serial.SerialException) as exc:
            logger.warning("Unable to enable RS-485 mode on %s: %s", self.port, exc)

    async def disconnect(self) -> None:
        """Close the serial connection."""
        if self._writer is None:
            self._connected = False
            self._reader = None
            return

        writer = self._writer
        self._writer = None
        self._reader = None
        self._connected = False

        with contextlib.suppress(Exception):
            writer.close()

        if hasattr(writer, "wait_closed"):
            try:
                await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
            except asyncio.TimeoutError:
                logger.debug("Timeout waiting for serial close on %s", self.port)
            except (OSError, serial.SerialException):
                logger.debug("Error closing serial on %s", self.port)

        logger.info("Disconnected from GPS on %s", self.port)

    async def write(self, data: bytes) -> bool:
        if self._writer is None:
            self._last_error = "not connected"
            return False
        try:
            self._writer.write(data)
            await self._writer.drain()
        except asyncio.CancelledError:
            raise
        except (OSError, serial.SerialException) as exc:
            self._last_error = str(exc)
            logger.error("Error writing to serial port %s: %s", self.port, exc)
            return False
        return True

    async def write_init_payload(self) -> bool:
        """Send the configured initialization payload once.

        Returns:
            True when there was nothing to send or the write succeeded
        """
        payload = self.options.init_payload()
        if not payload:
            return True

        logger.debug("Sending to serial %s", binascii.hexlify(payload).decode("ascii"))
        if not await self.write(payload):
            return False
        logger.debug("Wrote %d bytes to serial", len(payload))
        return True

    async def read_line(self, timeout: float = DEFAULT_READ_TIMEOUT) -> Optional[str]:
        """Read a line (NMEA sentence) from the GPS.

        Args:
            timeout: Maximum time to wait for a complete line

        Returns:
            The line read (decoded, stripped), or None if timeout/error
        """
        if not self.is_connected or self._reader is None:
            return None

        try:
            line = await asyncio.wait_for(self._reader.readline(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        except asyncio.CancelledError:
            raise
        except (OSError, ValueError, serial.SerialException) as exc:
            self._last_error = str(exc)
            self._at_eof = True
            logger.warning("Read error on %s: %s", self.port, exc)
            return None

        if not line:
            logger.warning("Serial stream ended on %s (EOF)", self.port)
            self._last_error = "Stream ended (EOF)"
            self._at_eof = True
            return None

        decoded = line.decode("ascii", errors="ignore").strip()
        return decoded if decoded else None


__all__ = ["SerialGPSTransport", "SerialTransportOptions"]
