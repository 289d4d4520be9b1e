"""GPS acquisition handler.

Reads NMEA sentences from a transport, assembles them into fixes and hands
every completed fix to the broadcaster. This is the only writer of the
acquisition session.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from gnss_relay.core.errors import ConfigurationError, TransportError
from gnss_relay.core.logging_utils import get_module_logger

from ..constants import DEFAULT_READ_TIMEOUT, DEFAULT_REACQUIRE_DELAY
from ..distribution import FixBroadcaster
from ..parsers import AcquisitionSession, Fix, FixAssembler
from ..transports import BaseGPSTransport

logger = get_module_logger("GPSHandler")


class GPSHandler:
    """Runs acquisition attempts against one GPS receiver.

    Example:
        transport = SerialGPSTransport(SerialTransportOptions(port="/dev/ttyUSB0"))
        handler = GPSHandler("GPS:ttyUSB0", transport, FixAssembler(), broadcaster)
        await handler.start()
        ...
        await handler.stop()
    """

    def __init__(
        self,
        device_id: str,
        transport: BaseGPSTransport,
        assembler: FixAssembler,
        broadcaster: FixBroadcaster,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        reacquire_delay: float = DEFAULT_REACQUIRE_DELAY,
    ):
        """
        Args:
            device_id: Identifier used in log lines (e.g., "GPS:ttyUSB0")
            transport: Line source for the receiver
            assembler: Applies sentences to the acquisition session
            broadcaster: Receives every completed fix
            read_timeout: Per-line read timeout in seconds
            reacquire_delay: Pause between acquisition attempts in seconds
        """
        self.device_id = device_id
        self.transport = transport
        self.assembler = assembler
        self.broadcaster = broadcaster
        self.read_timeout = read_timeout
        self.reacquire_delay = reacquire_delay

        self.session = AcquisitionSession()
        self.cycles_published = 0
        self.sentences_seen = 0
        self.last_fix: Optional[Fix] = None
        self.last_error: Optional[str] = None

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._logged_first_fix = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    # =========================================================================
    # Lifecycle Methods
    # =========================================================================

    async def start(self) -> None:
        if self._running:
            logger.warning("Handler %s already running", self.device_id)
            return
        self._running = True
        self._task = asyncio.create_task(self.run(), name=f"acquire:{self.device_id}")
        logger.info("GPS handler started for %s", self.device_id)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("GPS handler stopped for %s", self.device_id)

    async def run(self) -> None:
        """Repeat acquisition attempts until a configuration or transport error.

        There is no retry for the acquisition pipeline: the first such error
        is logged once and ends the loop.
        """
        self._running = True
        try:
            while self._running:
                try:
                    good = await self.acquire()
                except (ConfigurationError, TransportError) as exc:
                    self.last_error = str(exc)
                    logger.error("GPS acquisition for %s stopped: %s", self.device_id, exc)
                    return

                if not good:
                    logger.debug("No complete GPS cycle from %s this attempt", self.device_id)
                await asyncio.sleep(self.reacquire_delay)
        finally:
            self._running = False

    # =========================================================================
    # Acquisition
    # =========================================================================

    async def acquire(self) -> bool:
        """Run one acquisition attempt.

        Opens the transport, sends the init payload, then streams sentences
        until the transport reports end of stream. Every completed cycle is
        published. The port is released on every exit path.

        Returns:
            True if at least one complete fix was published

        Raises:
            ConfigurationError: transport settings are invalid
            TransportError: port could not be opened, or reception is disabled
        """
        self.session.reset()
        published = False

        await self.transport.open()
        try:
            if not await self.transport.write_init_payload():
                logger.error("Error writing init payload to %s; continuing", self.device_id)

            if not self.transport.rx_enabled:
                raise TransportError("no receive configured")

            async for line in self.transport.read_sentences(timeout=self.read_timeout):
                self.sentences_seen += 1
                fix = self.assembler.process(self.session, line)
                if fix is None:
                    continue
                await self._publish(fix)
                published = True
        finally:
            await self.transport.disconnect()

        if self._has_partial_cycle():
            logger.debug("Discarding incomplete GPS cycle from %s", self.device_id)
        self.session.reset()
        return published

    async def _publish(self, fix: Fix) -> None:
        self.last_fix = fix
        self.cycles_published += 1
        if not self._logged_first_fix:
            self._logged_first_fix = True
            logger.info(
                "First GPS fix acquired for %s: lat=%.6f, lon=%.6f, satellites=%d/%d",
                self.device_id,
                fix.latitude,
                fix.longitude,
                fix.satellites_in_use,
                fix.satellites_in_view,
            )
        await self.broadcaster.publish(fix)

    def _has_partial_cycle(self) -> bool:
        s = self.session
        return s.position_seen or s.fix_seen or s.satellites_seen
