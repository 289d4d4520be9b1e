"""T55 protocol forwarder.

Every fix gets its own TCP session: identify the device with a ``$PGID``
frame, wait a moment, send the raw RMC sentence, then keep the socket open
until the server closes it. The server is not expected to send anything;
inbound bytes are logged and otherwise ignored.
"""

from __future__ import annotations

import asyncio
import contextlib
import socket
import struct
from typing import Optional, Tuple

from gnss_relay.core.connection import RetryPolicy
from gnss_relay.core.errors import ConfigurationError, NetworkError, ProtocolError
from gnss_relay.core.logging_utils import get_module_logger
from gnss_relay.modules.GPS.gps_core import Fix, FixBroadcaster

from .constants import (
    DEFAULT_T55_CONNECT_TIMEOUT,
    DEFAULT_T55_HANDSHAKE_DELAY,
    DEFAULT_T55_IDLE_TIMEOUT,
    PROTOCOL_T55,
    T55_FRAME_TERMINATOR,
    T55_ID_CHECKSUM,
    T55_KEEPALIVE_PERIOD,
    T55_READ_CHUNK,
)
from .forwarder import NetworkForwarder

logger = get_module_logger("T55Forwarder")


def configure_socket(sock) -> None:
    """Keep-alive every 60 s, Nagle left on, close with RST (linger 0)."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    if hasattr(socket, "TCP_KEEPIDLE"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, T55_KEEPALIVE_PERIOD)
    if hasattr(socket, "TCP_KEEPINTVL"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, T55_KEEPALIVE_PERIOD)
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 0)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))


class T55Forwarder(NetworkForwarder):
    name = PROTOCOL_T55
    protocol = PROTOCOL_T55

    def __init__(
        self,
        broadcaster: FixBroadcaster,
        server_ip: str,
        port: int,
        client_id: str,
        retry_policy: Optional[RetryPolicy] = None,
        handshake_delay: float = DEFAULT_T55_HANDSHAKE_DELAY,
        idle_timeout: float = DEFAULT_T55_IDLE_TIMEOUT,
        connect_timeout: float = DEFAULT_T55_CONNECT_TIMEOUT,
    ):
        super().__init__(broadcaster, client_id, retry_policy)
        if not server_ip:
            raise ConfigurationError("t55: server address not specified")
        if not 0 < port < 65536:
            raise ConfigurationError(f"t55: invalid server port {port}")
        self.server_ip = server_ip
        self.port = port
        self.handshake_delay = handshake_delay
        self.idle_timeout = idle_timeout
        self.connect_timeout = connect_timeout
        self.sessions = 0
        self.last_protocol_error: Optional[ProtocolError] = None

    def frames(self, fix: Fix) -> Tuple[bytes, bytes]:
        """Identification frame and position frame for ``fix``."""
        pgid = f"$PGID,{self.client_id}*{T55_ID_CHECKSUM}{T55_FRAME_TERMINATOR}"
        gprmc = f"{fix.raw_sentence}{T55_FRAME_TERMINATOR}"
        return pgid.encode("ascii"), gprmc.encode("ascii")

    async def send(self, fix: Fix) -> None:
        pgid, gprmc = self.frames(fix)
        logger.debug("$GPRMC to send is: %s", fix.raw_sentence)

        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.server_ip, self.port),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"{self.server_ip}:{self.port}: connect timed out") from exc
        except OSError as exc:
            raise NetworkError(f"{self.server_ip}:{self.port}: {exc}") from exc

        try:
            sock = writer.get_extra_info("socket")
            if sock is not None:
                configure_socket(sock)
            logger.debug(
                "Traccar client %s connected to server %s",
                writer.get_extra_info("sockname"),
                writer.get_extra_info("peername"),
            )

            writer.write(pgid)
            await writer.drain()
            await asyncio.sleep(self.handshake_delay)
            writer.write(gprmc)
            await writer.drain()
            logger.debug("Sending position message to Traccar over protocol T55")
        except OSError as exc:
            await self._close_writer(writer)
            raise NetworkError(f"{self.server_ip}:{self.port}: {exc}") from exc

        self.sessions += 1
        try:
            await self._supervise(reader)
        finally:
            await self._close_writer(writer)

    async def _supervise(self, reader: asyncio.StreamReader) -> None:
        """Wait until the server closes the session, logging idle periods."""
        notify: asyncio.Queue = asyncio.Queue(maxsize=1)
        drain_task = asyncio.create_task(self._drain(reader, notify))
        try:
            while True:
                try:
                    signal = await asyncio.wait_for(notify.get(), timeout=self.idle_timeout)
                except asyncio.TimeoutError:
                    logger.debug(
                        "Traccar server connection timeout %.0f. Still alive", self.idle_timeout
                    )
                    continue

                if signal is None:
                    logger.alert("Connection to Traccar server was closed")
                else:
                    logger.alert("Traccar server connection dropped: %s", signal)
                return
        finally:
            drain_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await drain_task

    async def _drain(self, reader: asyncio.StreamReader, notify: asyncio.Queue) -> None:
        """Read whatever the server sends; post None on EOF or the error."""
        while True:
            try:
                data = await reader.read(T55_READ_CHUNK)
            except OSError as exc:
                notify.put_nowait(exc)
                return
            if not data:
                notify.put_nowait(None)
                return
            self.last_protocol_error = ProtocolError(
                f"unexpected data: {data.decode('ascii', errors='replace')}"
            )
            logger.alert("%s", self.last_protocol_error)

    @staticmethod
    async def _close_writer(writer: asyncio.StreamWriter) -> None:
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()


__all__ = ["T55Forwarder", "configure_socket"]
