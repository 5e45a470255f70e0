"""
Shared HTTP plumbing for vendor clients.

Every vendor call goes through `VendorClient._request`, which checks the API key
before touching the network, retries transient failures (5xx, 429, transport
errors) with exponential backoff and turns everything else into a typed error.
A success response that is not JSON counts as transient too (`_json`).
Raw response bodies are logged here and never travel further than the
exception's `body` attribute.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from listingreel import config
from listingreel.core.errors import (
    VendorConfigError,
    VendorRequestError,
    VendorTransientError,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def is_transient_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class VendorClient:
    """Base class; subclasses set `name` and `base_url` and add vendor calls."""

    name = "vendor"
    base_url = ""
    timeout = 60.0

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
        retry_base_delay: float = config.RETRY_BASE_DELAY,
        max_attempts: int = config.RETRY_MAX_ATTEMPTS,
    ):
        self.api_key = api_key
        if base_url:
            self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.sleep = sleep
        self.retry_base_delay = retry_base_delay
        self.max_attempts = max(1, max_attempts)

    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def require_key(self):
        if not self.api_key:
            raise VendorConfigError(self.name)

    def _json(self, response: httpx.Response):
        """Decoded body. A success response that is not JSON counts as transient."""
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{self.name} returned a non-JSON body: {response.text[:500]}")
            raise VendorTransientError(
                self.name,
                f"{self.name} API returned an unreadable response",
                response.status_code,
                response.text,
            ) from e

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        )

    async def _request(self, method: str, path: str, attempts: Optional[int] = None,
                       **kwargs) -> httpx.Response:
        """
        Send one request, retrying transient failures.

        Delays are base, 2*base, 4*base... between attempts. After the last
        attempt a transient failure raises `VendorTransientError`; a non-retryable
        4xx raises `VendorRequestError` straight away. `attempts` overrides the
        client default; status polls use 1 and let the poller retry next tick.
        """
        self.require_key()
        headers = {**self.headers(), **kwargs.pop("headers", {})}

        max_attempts = attempts or self.max_attempts
        last_error: Optional[VendorTransientError] = None
        for attempt in range(1, max_attempts + 1):
            try:
                async with self._client() as client:
                    response = await client.request(method, path, headers=headers, **kwargs)
            except httpx.TransportError as e:
                logger.warning(f"{self.name} {method} {path} transport error: {e}")
                last_error = VendorTransientError(self.name, f"{self.name} API unreachable: {e}")
            else:
                if response.is_success:
                    return response
                body = response.text
                message = f"{self.name} API error: {response.status_code}"
                if is_transient_status(response.status_code):
                    logger.warning(f"{message} on {method} {path}: {body[:500]}")
                    last_error = VendorTransientError(
                        self.name, message, response.status_code, body
                    )
                else:
                    logger.error(f"{message} on {method} {path}: {body[:500]}")
                    raise VendorRequestError(self.name, message, response.status_code, body)

            if attempt < max_attempts:
                delay = self.retry_base_delay * 2 ** (attempt - 1)
                logger.info(
                    f"{self.name}: retrying in {delay:.0f}s "
                    f"(attempt {attempt + 1}/{max_attempts})"
                )
                await self.sleep(delay)

        raise last_error
