"""
HTTP infrastructure layer with timeout, selective retry and backoff.

Provides:
- RetryConfig: Exponential backoff configuration and retry classification
- HTTPClient: Async HTTP client with automatic retry
- FetchError / RateLimitError: Raised once retries are exhausted

This layer separates HTTP concerns (timeouts, retries, backoff) from
domain logic (article normalization) in the adapters. It knows nothing
about the platforms it talks to.

Client errors (4xx other than 429) are NOT raised: the response is handed
back so the caller can decide whether a missing resource matters.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from news_mirror.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass
class RetryConfig:
    """
    Exponential backoff configuration for HTTP retries.

    Formula: min(max_backoff, base_delay * 2^attempt) * (1 + random(0, jitter_factor))

    With the defaults the delays before retries 1, 2 and 3 are 1s, 2s and 4s.
    """

    max_retries: int = 3
    max_backoff_seconds: float = 60.0
    base_delay: float = 1.0
    jitter_factor: float = 0.0

    def calculate_backoff(self, attempt: int) -> float:
        """
        Calculate backoff duration for a given retry attempt.

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Backoff duration in seconds with jitter applied
        """
        delay = self.base_delay * (2**attempt)
        delay = min(delay, self.max_backoff_seconds)

        if self.jitter_factor:
            delay += delay * self.jitter_factor * random.random()

        return delay

    def is_retryable_status(self, status_code: int) -> bool:
        """
        Check if an HTTP status code should trigger a retry.

        Retryable: 429 Too Many Requests and every 5xx.
        """
        return status_code == 429 or 500 <= status_code <= 599

    def is_retryable_exception(self, exc: BaseException) -> bool:
        """
        Check if an exception should trigger a retry.

        Retryable: any httpx transport failure (timeouts, connect and read
        errors, protocol errors) and the per-attempt deadline expiring.
        """
        return isinstance(exc, (httpx.TransportError, asyncio.TimeoutError))


class FetchError(Exception):
    """Transient network failure that survived every retry."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(FetchError):
    """Raised when rate limit is hit and all retries exhausted."""

    pass


class HTTPClient:
    """
    Async HTTP client with per-attempt timeout and retry logic.

    Features:
    - Per-attempt deadline (default 15s); expiry cancels the request
    - Exponential backoff on 429, 5xx and transport errors
    - 4xx responses (except 429) returned without retry
    - Context manager for proper resource cleanup

    Example:
        async with HTTPClient(RetryConfig(max_retries=3)) as client:
            response = await client.fetch("https://example.com/wp-json/wp/v2/posts")
            if response.status_code == 404:
                ...
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        metrics: "MetricsCollector | None" = None,
    ):
        """
        Initialize HTTP client.

        Args:
            retry_config: Configuration for retry behavior. Uses defaults if None.
            timeout: Deadline for a single attempt, in seconds.
            headers: Default headers sent with every request.
            metrics: Optional collector for per-attempt outcomes.
        """
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self._headers = dict(headers) if headers else {}
        self._metrics = metrics
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        """Enter async context manager, create client."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._headers,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager, close client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform GET request with retry logic."""
        return await self.fetch(url, params=params, headers=headers)

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> Any | None:
        """
        GET a JSON document.

        Returns:
            Decoded JSON body, or None when the server answered with a
            non-retryable client error (the resource is unavailable).

        Raises:
            FetchError: When retries are exhausted
        """
        response = await self.fetch(url, params=params)
        if response.status_code >= 400:
            logger.debug(f"Client error {response.status_code} for {url}, treating as missing")
            return None
        return response.json()

    async def fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        GET a URL, retrying transient failures.

        Returns:
            httpx.Response for any 2xx/3xx status, or a 4xx other than 429

        Raises:
            FetchError: On 5xx or transport failure after retries exhausted
            RateLimitError: When still rate limited after retries exhausted
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")

        attempts = self.retry_config.max_retries + 1
        attempt = 0

        while True:
            try:
                response = await asyncio.wait_for(
                    self._client.get(url, params=params or None, headers=headers or None),
                    timeout=self.timeout,
                )
            except Exception as e:
                if not self.retry_config.is_retryable_exception(e):
                    raise
                if attempt + 1 < attempts:
                    await self._backoff(attempt, url, type(e).__name__)
                    attempt += 1
                    continue

                self._record("failed")
                raise FetchError(
                    f"Request to {url} failed after {attempts} attempts: {type(e).__name__} {e}"
                ) from e

            status = response.status_code
            if not self.retry_config.is_retryable_status(status):
                self._record("client_error" if status >= 400 else "success")
                return response

            if attempt + 1 < attempts:
                await self._backoff(attempt, url, f"status {status}")
                attempt += 1
                continue

            self._record("failed")
            error_cls = RateLimitError if status == 429 else FetchError
            raise error_cls(
                f"Request to {url} failed with status {status} after {attempts} attempts",
                status_code=status,
                response_body=response.text,
            )

    async def _backoff(self, attempt: int, url: str, reason: str) -> None:
        delay = self.retry_config.calculate_backoff(attempt)
        logger.warning(
            f"Retrying {url} after {reason} "
            f"(attempt {attempt + 1}/{self.retry_config.max_retries + 1}, "
            f"backing off {delay:.2f}s)"
        )
        self._record("retry")
        await asyncio.sleep(delay)

    def _record(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_fetch(outcome)
