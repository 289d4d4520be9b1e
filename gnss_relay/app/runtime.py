"""Relay runtime - wires acquisition, distribution and consumers together.

Consumers are registered with the broadcaster before the acquisition task
starts, so the first published fix already reaches every consumer. A
ConfigurationError while building a consumer disables that consumer only.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import List, Optional

from gnss_relay.core.connection import RetryPolicy
from gnss_relay.core.errors import ConfigurationError
from gnss_relay.core.logging_utils import ensure_structured_logger
from gnss_relay.modules.Display.display_core import (
    ConsoleFixLogger,
    DisplaySink,
    LoggingDisplaySink,
    ScreenFixDisplay,
)
from gnss_relay.modules.GPS.gps_core import (
    BaseFixConsumer,
    FixAssembler,
    FixBroadcaster,
    GPSHandler,
    SerialGPSTransport,
)
from gnss_relay.modules.Traccar.traccar_core import (
    PROTOCOL_OPENGTS,
    PROTOCOL_OSMAND,
    PROTOCOL_T55,
    NetworkForwarder,
    OpenGTSForwarder,
    OsmAndForwarder,
    T55Forwarder,
)

from .config import RelayConfig


class RelayRuntime:
    """Owns the broadcaster, the acquisition handler and the consumer tasks.

    Example:
        runtime = RelayRuntime(config.load(Path("config.txt")))
        install_signal_handlers(runtime, asyncio.get_running_loop())
        await runtime.run()
    """

    def __init__(
        self,
        config: RelayConfig,
        lcd: Optional[DisplaySink] = None,
        oled: Optional[DisplaySink] = None,
        logger=None,
    ) -> None:
        self.config = config
        self.logger = ensure_structured_logger(logger, fallback_name="RelayRuntime")
        self.shutdown_event = asyncio.Event()

        self.broadcaster = FixBroadcaster(
            pacing_s=config.distribution.pacing_s,
            queue_size=config.distribution.queue_size,
        )
        self.consumers: List[BaseFixConsumer] = []
        self.handler: Optional[GPSHandler] = None

        self._lcd = lcd
        self._oled = oled
        self._built = False
        self._stopped = False
        self._consumer_tasks: List[asyncio.Task] = []

    # =========================================================================
    # Construction
    # =========================================================================

    def build(self) -> None:
        """Create the consumers and the acquisition handler. Idempotent."""
        if self._built:
            return
        self._built = True

        self.consumers.extend(self._build_forwarders())
        self.consumers.extend(self._build_displays())

        gps = self.config.gps
        if not gps.enabled:
            self.logger.info("GPS acquisition disabled")
            return

        try:
            assembler = FixAssembler(gps.min_satellites_in_view)
        except ConfigurationError as exc:
            self.logger.error("GPS acquisition disabled: %s", exc)
            return

        self.handler = GPSHandler(
            device_id=f"GPS:{gps.serial.port}",
            transport=SerialGPSTransport(gps.serial),
            assembler=assembler,
            broadcaster=self.broadcaster,
            reacquire_delay=gps.reacquire_delay_s,
        )

    def _retry_policy(self) -> RetryPolicy:
        retry = self.config.retry
        return RetryPolicy(
            max_attempts=max(1, retry.max_attempts),
            base_delay=retry.base_delay_s,
            max_delay=retry.max_delay_s,
            backoff_factor=retry.backoff_factor,
        )

    def _build_forwarders(self) -> List[NetworkForwarder]:
        traccar = self.config.traccar
        if not traccar.enabled:
            return []

        forwarders: List[NetworkForwarder] = []
        for protocol in traccar.protocols:
            try:
                forwarders.append(self._build_forwarder(protocol))
            except ConfigurationError as exc:
                self.logger.error("Traccar %s client disabled: %s", protocol, exc)
        return forwarders

    def _build_forwarder(self, protocol: str) -> NetworkForwarder:
        traccar = self.config.traccar
        if protocol == PROTOCOL_OSMAND:
            return OsmAndForwarder(
                self.broadcaster,
                traccar.osmand_server_url,
                traccar.osmand_port,
                traccar.client_id,
                retry_policy=self._retry_policy(),
                timeout=traccar.http_timeout_s,
            )
        if protocol == PROTOCOL_OPENGTS:
            return OpenGTSForwarder(
                self.broadcaster,
                traccar.opengts_server_url,
                traccar.opengts_port,
                traccar.client_id,
                retry_policy=self._retry_policy(),
                timeout=traccar.http_timeout_s,
            )
        if protocol == PROTOCOL_T55:
            return T55Forwarder(
                self.broadcaster,
                traccar.t55_server_ip,
                traccar.t55_port,
                traccar.client_id,
                retry_policy=self._retry_policy(),
                handshake_delay=traccar.t55_handshake_delay_s,
                idle_timeout=traccar.t55_idle_timeout_s,
            )
        raise ConfigurationError(f"unknown traccar protocol {protocol!r}")

    def _build_displays(self) -> List[BaseFixConsumer]:
        gps = self.config.gps
        display = self.config.display
        consumers: List[BaseFixConsumer] = []

        if gps.console_logging:
            consumers.append(ConsoleFixLogger(self.broadcaster))

        if gps.screen_logging:
            lcd = self._lcd
            if lcd is None and display.lcd_enabled:
                lcd = LoggingDisplaySink("lcd")
            oled = self._oled
            if oled is None and display.oled_enabled:
                oled = LoggingDisplaySink("oled")
            consumers.append(ScreenFixDisplay(self.broadcaster, lcd=lcd, oled=oled))

        return consumers

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def run(self) -> None:
        """Run until the acquisition pipeline ends or shutdown is requested."""
        self.build()

        for consumer in self.consumers:
            consumer.register()
        self._consumer_tasks = [consumer.start() for consumer in self.consumers]
        self.logger.info(
            "Relay started: %d consumer(s), acquisition %s",
            len(self.consumers),
            "enabled" if self.handler else "disabled",
        )

        waiters = [asyncio.create_task(self.shutdown_event.wait(), name="shutdown-wait")]
        if self.handler is not None:
            await self.handler.start()
            waiters.append(self.handler.task)

        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            await self.shutdown()
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await waiter

    @property
    def acquisition_error(self) -> Optional[str]:
        """Why acquisition stopped on its own, or None after a clean shutdown."""
        return self.handler.last_error if self.handler is not None else None

    async def shutdown(self) -> None:
        """Stop acquisition and cancel every consumer task."""
        if self._stopped:
            return
        self._stopped = True
        self.shutdown_event.set()

        if self.handler is not None:
            await self.handler.stop()

        tasks, self._consumer_tasks = self._consumer_tasks, []
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for consumer, result in zip(self.consumers, results):
            if isinstance(result, Exception):
                self.logger.error("Consumer %s ended with error: %s", consumer.name, result)

        self.logger.info("Relay stopped")


__all__ = ["RelayRuntime"]
