"""Base class for everything that consumes published fixes."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from gnss_relay.core.logging_utils import get_module_logger

from ..parsers.nmea_types import Fix
from .broadcaster import ConsumerHandle, FixBroadcaster

logger = get_module_logger("FixConsumer")


class BaseFixConsumer(ABC):
    """Registers once with the broadcaster, then handles fixes one at a time.

    Subclasses implement ``handle_fix``. ``process`` returns False to end
    the consumer loop; the default keeps going whatever ``handle_fix`` does.
    """

    name = "consumer"

    def __init__(self, broadcaster: FixBroadcaster):
        self.broadcaster = broadcaster
        self.handle: Optional[ConsumerHandle] = None
        self.handled = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_registered(self) -> bool:
        return self.handle is not None and not self.handle.closed

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def register(self) -> ConsumerHandle:
        """Subscribe to the broadcaster. Safe to call more than once."""
        if self.handle is None:
            self.handle = self.broadcaster.register(self.name)
        return self.handle

    def start(self) -> asyncio.Task:
        self.register()
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=f"consumer:{self.name}")
        return self._task

    async def run(self) -> None:
        handle = self.register()
        logger.debug("%s waiting for fixes", self.name)
        try:
            while True:
                fix = await handle.get()
                if not await self.process(fix):
                    logger.warning("%s stopped; no more fixes will be delivered to it", self.name)
                    return
                self.handled += 1
        finally:
            handle.close()
            await self.close()

    async def process(self, fix: Fix) -> bool:
        await self.handle_fix(fix)
        return True

    @abstractmethod
    async def handle_fix(self, fix: Fix) -> None:
        ...

    async def close(self) -> None:
        """Release resources held by the consumer."""


__all__ = ["BaseFixConsumer"]
