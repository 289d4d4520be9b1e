"""Common plumbing for the Traccar protocol forwarders.

A forwarder is a fix consumer whose delivery can fail on the network. Each
delivery runs under a RetryPolicy; once the policy gives up the forwarder
stops and the remaining consumers carry on.
"""

from __future__ import annotations

import asyncio
from abc import abstractmethod
from typing import Optional

import aiohttp
from yarl import URL

from gnss_relay.core.connection import RetryPolicy
from gnss_relay.core.errors import ConfigurationError, NetworkError
from gnss_relay.core.logging_utils import get_module_logger
from gnss_relay.modules.GPS.gps_core import BaseFixConsumer, Fix, FixBroadcaster

from .constants import DEFAULT_HTTP_TIMEOUT

logger = get_module_logger("TraccarForwarder")


class NetworkForwarder(BaseFixConsumer):
    """Fix consumer that delivers to a tracking server."""

    protocol = "network"

    def __init__(
        self,
        broadcaster: FixBroadcaster,
        client_id: str,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(broadcaster)
        if not client_id:
            raise ConfigurationError(f"{self.protocol}: traccar client id not specified")
        self.client_id = client_id
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=1)
        self.delivered = 0
        self.last_error: Optional[str] = None

    async def process(self, fix: Fix) -> bool:
        result = await self.retry_policy.execute(
            lambda: self.send(fix),
            on_retry=lambda attempt, error: logger.warning(
                "%s delivery failed (%s), attempt %d/%d",
                self.name, error, attempt, self.retry_policy.max_attempts
            ),
        )
        if result.success:
            self.delivered += 1
            return True

        self.last_error = result.final_error
        logger.error(
            "Cannot establish connection with Traccar server over %s after %d attempts: %s",
            self.protocol, result.attempt_count, result.final_error
        )
        return False

    async def handle_fix(self, fix: Fix) -> None:
        await self.send(fix)

    @abstractmethod
    async def send(self, fix: Fix) -> None:
        """Deliver one fix, raising NetworkError on failure."""


class HTTPForwarder(NetworkForwarder):
    """Forwarder that encodes a fix as a GET query on the tracking server."""

    protocol = "http"

    def __init__(
        self,
        broadcaster: FixBroadcaster,
        server_url: str,
        port: int,
        client_id: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(broadcaster, client_id, retry_policy)
        if not server_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"{self.protocol}: server url must start with http:// or https://, got {server_url!r}"
            )
        if not 0 < port < 65536:
            raise ConfigurationError(f"{self.protocol}: invalid server port {port}")
        self.server_url = server_url.rstrip("/")
        self.port = port
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return f"{self.server_url}:{self.port}"

    @abstractmethod
    def build_url(self, fix: Fix) -> str:
        """Full request URL for ``fix``, already percent-encoded."""

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def send(self, fix: Fix) -> None:
        url = self.build_url(fix)
        session = await self._get_session()
        try:
            async with session.get(
                URL(url, encoded=True),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                status = response.status
                reason = response.reason or ""
                contents = await response.text(errors="replace")
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise NetworkError(f"{self.base_url}: {exc or type(exc).__name__}") from exc

        self._log_response(status, reason, contents)

    def _log_response(self, status: int, reason: str, contents: str) -> None:
        if not contents:
            logger.alert("Empty request response body from %s", self.base_url)
        else:
            logger.debug("Traccar web server response --> %s", contents.strip())

        logger.debug("HTTP response status from Traccar: %d %s", status, reason)
        if 200 <= status <= 299:
            logger.info("HTTP status code from Traccar is in the 2xx range. This is OK.")
        else:
            logger.warning("HTTP status code from Traccar is %d %s", status, reason)

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


__all__ = ["HTTPForwarder", "NetworkForwarder"]
