"""OpenGTS protocol forwarder: the raw RMC sentence as a query parameter."""

from __future__ import annotations

from gnss_relay.core.logging_utils import get_module_logger
from gnss_relay.modules.GPS.gps_core import Fix

from .constants import PROTOCOL_OPENGTS
from .forwarder import HTTPForwarder

logger = get_module_logger("OpenGTSForwarder")


class OpenGTSForwarder(HTTPForwarder):
    name = PROTOCOL_OPENGTS
    protocol = PROTOCOL_OPENGTS

    def build_url(self, fix: Fix) -> str:
        # Sentence goes out unescaped; the server parses it verbatim
        url = f"{self.base_url}/?id={self.client_id}&grmpc={fix.raw_sentence}"
        logger.debug("OpenGTS request %s", url)
        return url


__all__ = ["OpenGTSForwarder"]
