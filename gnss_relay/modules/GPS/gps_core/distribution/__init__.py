"""Fix distribution to consumers."""

from .broadcaster import ConsumerHandle, FixBroadcaster
from .consumer import BaseFixConsumer

__all__ = ["BaseFixConsumer", "ConsumerHandle", "FixBroadcaster"]
