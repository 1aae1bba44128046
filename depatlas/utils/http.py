"""
HTTP client utilities for depatlas.

One asynchronous client is shared by the npm, NuGet and Maven registry
clients. It retries timeouts, transport errors and 5xx responses with
exponential backoff, honours ``Retry-After`` on 429, and caps concurrent
requests with a semaphore. A 404 is reported as :class:`RegistryError` so
callers can tell "no such package" apart from transport failures.
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Dict, Optional, cast

from depatlas.utils.logger import get_logger
from depatlas.__version__ import __version__
from depatlas.exceptions import NetworkError, RegistryError
from depatlas.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

_MAX_429_RETRIES = 5


def _retry_after_seconds(response: httpx.Response) -> float:
    try:
        return max(0.0, float(response.headers.get("Retry-After", "1")))
    except ValueError:
        return 1.0


class HTTPClient:
    """Asynchronous JSON-over-HTTP client for package registries.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Retries after the first attempt for transient failures.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of requests in flight.

    Example:
        >>> async with HTTPClient() as client:
        ...     data = await client.get_json("https://registry.npmjs.org/react/latest")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = 10,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(self, url: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        async with self._semaphore:
            return await client.get(url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET ``url`` with retries.

        Raises:
            RegistryError: The resource does not exist (404).
            NetworkError: Any other 4xx, or retries exhausted.
        """
        url = url.strip()
        last_exc: Optional[Exception] = None
        throttled = 0
        attempt = 0

        while attempt <= self.max_retries:
            try:
                response = await self._send(url, **kwargs)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                last_exc = exc
                logger.warning(
                    "Request to %s failed (%d/%d): %s",
                    url,
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )
            else:
                status = response.status_code

                if status == 429:
                    throttled += 1
                    if throttled > _MAX_429_RETRIES:
                        raise NetworkError(
                            f"Rate limit exceeded after {_MAX_429_RETRIES} retries",
                            url=url,
                            status_code=429,
                        )
                    delay = _retry_after_seconds(response)
                    logger.warning("Rate limited by %s, waiting %.0fs", url, delay)
                    await asyncio.sleep(delay)
                    continue

                if status == 404:
                    raise RegistryError(
                        f"Resource not found: {url}",
                        url=url,
                        status_code=404,
                    )

                if 400 <= status < 500:
                    raise NetworkError(
                        f"HTTP {status} error for {url}",
                        url=url,
                        status_code=status,
                        response_body=response.text,
                    )

                if status < 400:
                    return response

                last_exc = NetworkError(
                    f"HTTP {status} error for {url}",
                    url=url,
                    status_code=status,
                )
                logger.warning(
                    "HTTP %d from %s (%d/%d)",
                    status,
                    url,
                    attempt + 1,
                    self.max_retries + 1,
                )

            if attempt < self.max_retries:
                delay = (2**attempt) + random.uniform(0.0, 0.3)
                logger.debug("Retrying %s in %.2fs", url, delay)
                await asyncio.sleep(delay)
            attempt += 1

        raise NetworkError(
            f"Request failed after {self.max_retries + 1} attempts: {url}",
            url=url,
        ) from last_exc

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """GET ``url`` and decode a JSON object body."""
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)
