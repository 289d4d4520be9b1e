"""Unit tests for GPS handler."""

import asyncio

import pytest

from gnss_relay.core.errors import ConfigurationError, TransportError
from gnss_relay.modules.GPS.gps_core import FixAssembler, FixBroadcaster, GPSHandler
from tests.nmea_samples import GGA_MUNICH, RMC_MUNICH


def make_handler(transport, **kwargs):
    broadcaster = FixBroadcaster(pacing_s=0)
    handler = GPSHandler("GPS:test", transport, FixAssembler(), broadcaster, **kwargs)
    return handler, broadcaster


class TestGPSHandlerAcquire:
    """Test single acquisition attempts."""

    def test_initialization(self, scripted_transport_factory):
        handler, _ = make_handler(scripted_transport_factory([]))
        assert handler.device_id == "GPS:test"
        assert handler.is_running is False
        assert handler.cycles_published == 0
        assert handler.last_fix is None

    @pytest.mark.asyncio
    async def test_publishes_completed_cycle(self, scripted_transport_factory, cycle_sentences):
        transport = scripted_transport_factory(cycle_sentences)
        handler, broadcaster = make_handler(transport)
        handle = broadcaster.register("listener")

        assert await handler.acquire() is True

        assert handler.cycles_published == 1
        assert handler.sentences_seen == 3
        assert handle.pending == 1
        assert handle.get_nowait().latitude == pytest.approx(48.1173, rel=1e-4)
        assert transport.init_payload_written is True
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_publishes_every_cycle(self, scripted_transport_factory, cycle_sentences):
        transport = scripted_transport_factory(cycle_sentences * 3)
        handler, broadcaster = make_handler(transport)
        handle = broadcaster.register("listener")

        await handler.acquire()

        assert handler.cycles_published == 3
        assert handle.pending == 3

    @pytest.mark.asyncio
    async def test_incomplete_tail_discarded(self, scripted_transport_factory):
        transport = scripted_transport_factory([RMC_MUNICH, GGA_MUNICH])
        handler, broadcaster = make_handler(transport)
        handle = broadcaster.register("listener")

        assert await handler.acquire() is False

        assert handle.pending == 0
        assert handler.session.position_seen is False
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_rx_disabled(self, scripted_transport_factory, cycle_sentences):
        """Init payload is written, then acquisition refuses to read."""
        transport = scripted_transport_factory(cycle_sentences, rx_enabled=False)
        handler, _ = make_handler(transport)

        with pytest.raises(TransportError, match="no receive configured"):
            await handler.acquire()

        assert transport.init_payload_written is True
        assert transport.disconnect_calls == 1
        assert handler.sentences_seen == 0

    @pytest.mark.asyncio
    async def test_open_failure(self, scripted_transport_factory):
        transport = scripted_transport_factory([], connect_ok=False)
        handler, _ = make_handler(transport)

        with pytest.raises(TransportError):
            await handler.acquire()


class TestGPSHandlerRun:
    """Test the acquisition loop."""

    @pytest.mark.asyncio
    async def test_transport_error_ends_loop(self, scripted_transport_factory):
        transport = scripted_transport_factory([], connect_ok=False)
        handler, _ = make_handler(transport, reacquire_delay=0)

        await asyncio.wait_for(handler.run(), timeout=1.0)

        assert transport.connect_calls == 1
        assert handler.last_error == "cannot open GPS transport"
        assert handler.is_running is False

    @pytest.mark.asyncio
    async def test_configuration_error_ends_loop(self, scripted_transport_factory):
        transport = scripted_transport_factory([])

        async def bad_open():
            raise ConfigurationError("gnss port not specified")

        transport.open = bad_open
        handler, _ = make_handler(transport, reacquire_delay=0)

        await asyncio.wait_for(handler.run(), timeout=1.0)
        assert handler.last_error == "gnss port not specified"

    @pytest.mark.asyncio
    async def test_reacquires_after_end_of_stream(self, scripted_transport_factory, cycle_sentences):
        transport = scripted_transport_factory(cycle_sentences)
        handler, broadcaster = make_handler(transport, reacquire_delay=0.01)
        handle = broadcaster.register("listener")

        await handler.start()
        assert handler.is_running is True
        for _ in range(100):
            if handler.cycles_published >= 2:
                break
            await asyncio.sleep(0.01)
        await handler.stop()

        assert transport.connect_calls >= 2
        assert handler.cycles_published >= 2
        assert handle.pending >= 2
        assert handler.is_running is False

    @pytest.mark.asyncio
    async def test_start_twice(self, scripted_transport_factory):
        transport = scripted_transport_factory([])
        handler, _ = make_handler(transport, reacquire_delay=0.05)

        await handler.start()
        task = handler.task
        await handler.start()

        assert handler.task is task
        await handler.stop()
