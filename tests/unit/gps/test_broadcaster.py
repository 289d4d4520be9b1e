"""Unit tests for fix distribution."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from gnss_relay.modules.GPS.gps_core import BaseFixConsumer, FixBroadcaster

SLEEP = "gnss_relay.modules.GPS.gps_core.distribution.broadcaster.asyncio.sleep"


class RecordingConsumer(BaseFixConsumer):
    name = "recorder"

    def __init__(self, broadcaster, stop_after=None):
        super().__init__(broadcaster)
        self.fixes = []
        self.stop_after = stop_after
        self.closed = False

    async def process(self, fix):
        await self.handle_fix(fix)
        return self.stop_after is None or len(self.fixes) < self.stop_after

    async def handle_fix(self, fix):
        self.fixes.append(fix)

    async def close(self):
        self.closed = True


class TestFixBroadcaster:
    """Test registry and fan-out behaviour."""

    def test_register_and_unregister(self):
        broadcaster = FixBroadcaster()
        first = broadcaster.register("osmand")
        second = broadcaster.register()

        assert broadcaster.consumer_count == 2
        assert second.name == "consumer-2"

        first.close()
        assert broadcaster.consumer_count == 1
        assert first.closed is True

        # Closing twice is harmless
        first.close()
        assert broadcaster.consumer_count == 1

    def test_invalid_queue_size(self):
        with pytest.raises(ValueError):
            FixBroadcaster(queue_size=0)

    @pytest.mark.asyncio
    async def test_publish_delivers_copy_to_each_consumer(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0)
        handles = [broadcaster.register(f"c{i}") for i in range(3)]

        delivered = await broadcaster.publish(sample_fix)

        assert delivered == 3
        received = [h.get_nowait() for h in handles]
        assert all(fix == sample_fix for fix in received)
        assert all(fix is not sample_fix for fix in received)
        assert len({id(fix) for fix in received}) == 3
        assert len({id(fix.satellites) for fix in received}) == 3

    @pytest.mark.asyncio
    async def test_consumer_mutation_is_isolated(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0)
        a = broadcaster.register("a")
        b = broadcaster.register("b")

        await broadcaster.publish(sample_fix)
        fix_a = a.get_nowait()
        fix_a.latitude = 0.0
        fix_a.satellites.clear()

        fix_b = b.get_nowait()
        assert fix_b.latitude == sample_fix.latitude
        assert len(fix_b.satellites) == 4

    @pytest.mark.asyncio
    async def test_pacing_between_deliveries(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0.1)
        for name in ("a", "b", "c"):
            broadcaster.register(name)

        with patch(SLEEP, new=AsyncMock()) as mock_sleep:
            await broadcaster.publish(sample_fix)

        # No pause before the first consumer
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(0.1)

    @pytest.mark.asyncio
    async def test_publish_without_consumers(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0)
        assert await broadcaster.publish(sample_fix) == 0
        assert broadcaster.published == 1

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0, queue_size=2)
        handle = broadcaster.register("slow")

        for latitude in (1.0, 2.0, 3.0):
            sample_fix.latitude = latitude
            await broadcaster.publish(sample_fix)

        assert handle.dropped == 1
        assert handle.pending == 2
        assert handle.get_nowait().latitude == 2.0
        assert handle.get_nowait().latitude == 3.0

    @pytest.mark.asyncio
    async def test_per_consumer_fifo(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0)
        handle = broadcaster.register("ordered")

        for latitude in (10.0, 20.0):
            sample_fix.latitude = latitude
            await broadcaster.publish(sample_fix)

        assert (await handle.get()).latitude == 10.0
        assert (await handle.get()).latitude == 20.0

    @pytest.mark.asyncio
    async def test_unregistered_consumer_skipped(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0)
        gone = broadcaster.register("gone")
        kept = broadcaster.register("kept")
        broadcaster.unregister(gone)

        assert await broadcaster.publish(sample_fix) == 1
        assert gone.pending == 0
        assert kept.pending == 1


class TestBaseFixConsumer:
    """Test the consumer loop."""

    def test_register_once(self):
        broadcaster = FixBroadcaster()
        consumer = RecordingConsumer(broadcaster)

        first = consumer.register()
        second = consumer.register()

        assert first is second
        assert broadcaster.consumer_count == 1
        assert consumer.is_registered is True

    @pytest.mark.asyncio
    async def test_consumers_all_receive(self, sample_fix):
        """Every consumer gets every fix; none is starved."""
        broadcaster = FixBroadcaster(pacing_s=0)
        consumers = [RecordingConsumer(broadcaster, stop_after=2) for _ in range(3)]
        tasks = [c.start() for c in consumers]

        await broadcaster.publish(sample_fix)
        await broadcaster.publish(sample_fix)
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=1.0)

        assert [len(c.fixes) for c in consumers] == [2, 2, 2]

    @pytest.mark.asyncio
    async def test_stop_unregisters_and_closes(self, sample_fix):
        broadcaster = FixBroadcaster(pacing_s=0)
        consumer = RecordingConsumer(broadcaster, stop_after=1)
        task = consumer.start()

        await broadcaster.publish(sample_fix)
        await asyncio.wait_for(task, timeout=1.0)

        assert consumer.closed is True
        assert consumer.is_registered is False
        assert broadcaster.consumer_count == 0

    @pytest.mark.asyncio
    async def test_cancel_unregisters(self):
        broadcaster = FixBroadcaster(pacing_s=0)
        consumer = RecordingConsumer(broadcaster)
        task = consumer.start()
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert broadcaster.consumer_count == 0
        assert consumer.closed is True
