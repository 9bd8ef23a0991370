# ABOUTME: Rate-limited async HTTP fetcher shared by every call to the bibliographic provider.
# ABOUTME: Enforces a global request spacing and retries HTTP 429 with exponential backoff.

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

_TOO_MANY_REQUESTS = 429

DEFAULT_DELAY_MS = 200
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF_MS = 1000


class MetadataFetchError(Exception):
    """Raised when an HTTP request to a metadata provider fails."""


class RateLimitExceeded(MetadataFetchError):
    """Raised when the provider keeps answering 429 after all retries."""

    def __init__(self, url: str, retries: int) -> None:
        super().__init__(f"Rate limit exceeded for {url} after {retries} retries")
        self.url = url
        self.retries = retries


RateLimitHook = Callable[[RateLimitExceeded], Awaitable[None]]


@dataclass(frozen=True)
class RateLimiterState:
    """Snapshot of the fetcher's process-local pacing state."""

    last_request_time: float
    consecutive_retry_count: int


@runtime_checkable
class Fetcher(Protocol):
    """Protocol for rate-limited GET requests against the provider API."""

    async def fetch(self, url: str, params: dict[str, str] | None = None) -> httpx.Response: ...


class RateLimitedFetcher:
    """Async HTTP client that paces and retries provider requests.

    All callers share one pacing state: the minimum-interval check and the
    timestamp update happen inside a single lock, so concurrent callers are
    spaced out rather than firing together. Only 429 is retried; every other
    status is handed back to the caller untouched.
    """

    def __init__(
        self,
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff_ms: int = DEFAULT_INITIAL_BACKOFF_MS,
        transport: httpx.AsyncBaseTransport | None = None,
        on_rate_limit: RateLimitHook | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": "bookclub/0.1.0"},
            "timeout": 30.0,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._min_interval = delay_ms / 1000
        self._max_retries = max_retries
        self._initial_backoff = initial_backoff_ms / 1000
        self._on_rate_limit = on_rate_limit
        self._lock = asyncio.Lock()
        self._last_request_time: float = 0.0
        self._consecutive_retries = 0

    @property
    def state(self) -> RateLimiterState:
        return RateLimiterState(
            last_request_time=self._last_request_time,
            consecutive_retry_count=self._consecutive_retries,
        )

    async def fetch(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        """Send a paced GET request, retrying while the provider answers 429.

        Args:
            url: The URL to request.
            params: Optional query parameters.

        Returns:
            The first non-429 response, whatever its status.

        Raises:
            RateLimitExceeded: After ``max_retries`` retries all got 429.
            MetadataFetchError: On transport-level failures.
        """
        retry = 0
        while True:
            await self._wait_for_slot()
            try:
                response = await self._client.get(url, params=params)
            except httpx.HTTPError as exc:
                raise MetadataFetchError(f"Request failed: {url}: {exc}") from exc

            if response.status_code != _TOO_MANY_REQUESTS:
                self._consecutive_retries = 0
                return response

            if retry >= self._max_retries:
                error = RateLimitExceeded(url, self._max_retries)
                logger.error("%s", error)
                await self._raise_alert(error)
                raise error

            delay = self._initial_backoff * (2**retry)
            retry += 1
            self._consecutive_retries += 1
            logger.warning(
                "HTTP 429 from %s, retrying in %.1fs (attempt %d/%d)",
                url,
                delay,
                retry,
                self._max_retries,
            )
            await asyncio.sleep(delay)

    async def _wait_for_slot(self) -> None:
        """Sleep until the minimum interval since the last request has passed."""
        async with self._lock:
            if self._min_interval > 0 and self._last_request_time > 0:
                elapsed = time.monotonic() - self._last_request_time
                if elapsed < self._min_interval:
                    await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def _raise_alert(self, error: RateLimitExceeded) -> None:
        if self._on_rate_limit is None:
            return
        try:
            await self._on_rate_limit(error)
        except Exception:
            logger.exception("Rate-limit alert hook failed")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
