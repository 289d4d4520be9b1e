"""Process-level wiring: typed configuration and the relay runtime."""

from .config import RelayConfig, load
from .runtime import RelayRuntime

__all__ = ["RelayConfig", "RelayRuntime", "load"]
