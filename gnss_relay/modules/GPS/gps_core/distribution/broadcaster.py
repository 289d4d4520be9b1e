"""Fan completed fixes out to every registered consumer.

Each consumer owns a bounded queue. ``publish`` walks the registry in
registration order and puts one copy of the fix on every queue, pausing
between deliveries so slow consumers are not hit all at once.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import List, Optional

from gnss_relay.core.logging_utils import get_module_logger

from ..constants import DEFAULT_CONSUMER_QUEUE_SIZE, DEFAULT_DELIVERY_PACING
from ..parsers.nmea_types import Fix

logger = get_module_logger("FixBroadcaster")


class ConsumerHandle:
    """A consumer's subscription: its name and its private fix queue."""

    def __init__(self, broadcaster: "FixBroadcaster", name: str, consumer_id: int, queue_size: int):
        self.name = name
        self.consumer_id = consumer_id
        self.dropped = 0
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[Fix] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    def __repr__(self) -> str:
        return f"ConsumerHandle({self.name!r}, id={self.consumer_id})"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def get(self) -> Fix:
        """Wait for the next fix addressed to this consumer."""
        return await self._queue.get()

    def get_nowait(self) -> Fix:
        return self._queue.get_nowait()

    def close(self) -> None:
        """Leave the registry; later publishes skip this consumer."""
        if not self._closed:
            self._closed = True
            self._broadcaster.unregister(self)

    def _deliver(self, fix: Fix) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.warning(
                "Consumer %s is %d fixes behind; dropped its oldest fix",
                self.name, self._queue.maxsize
            )
        self._queue.put_nowait(fix)


class FixBroadcaster:
    """Registry of consumers with paced, point-to-point fan-out.

    Args:
        pacing_s: Pause between two deliveries of the same fix
        queue_size: Capacity of each consumer's queue; when full the oldest
            fix is dropped so ``publish`` never blocks
    """

    def __init__(
        self,
        pacing_s: float = DEFAULT_DELIVERY_PACING,
        queue_size: int = DEFAULT_CONSUMER_QUEUE_SIZE,
    ):
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self.pacing_s = pacing_s
        self.queue_size = queue_size
        self.published = 0
        self._consumers: List[ConsumerHandle] = []
        self._ids = itertools.count(1)

    @property
    def consumer_count(self) -> int:
        return len(self._consumers)

    @property
    def consumers(self) -> List[ConsumerHandle]:
        return list(self._consumers)

    def register(self, name: Optional[str] = None) -> ConsumerHandle:
        consumer_id = next(self._ids)
        handle = ConsumerHandle(self, name or f"consumer-{consumer_id}", consumer_id, self.queue_size)
        self._consumers.append(handle)
        logger.debug("Registered %s (%d consumers)", handle.name, len(self._consumers))
        return handle

    def unregister(self, handle: ConsumerHandle) -> None:
        try:
            self._consumers.remove(handle)
        except ValueError:
            return
        handle._closed = True
        logger.debug("Unregistered %s (%d consumers)", handle.name, len(self._consumers))

    async def publish(self, fix: Fix) -> int:
        """Deliver one copy of ``fix`` to every registered consumer.

        Returns:
            Number of copies delivered
        """
        targets = list(self._consumers)
        logger.debug("GPS good read, broadcasting to %d receivers", len(targets))

        delivered = 0
        for index, handle in enumerate(targets):
            if handle.closed:
                continue
            if index and self.pacing_s > 0:
                await asyncio.sleep(self.pacing_s)
            handle._deliver(fix.copy())
            delivered += 1

        self.published += 1
        return delivered


__all__ = ["ConsumerHandle", "FixBroadcaster"]
