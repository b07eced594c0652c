"""
Retrying HTTP transport for the PDFDancer async client.

Transport knows nothing about documents: it executes one HTTP call against an
httpx.AsyncClient and transparently retries retryable statuses and network
failures with exponential backoff.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Callable, Awaitable, FrozenSet, Mapping, Any

import httpx

from .exceptions import TransportException

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy for REST calls. Delays are in seconds.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying)
        initial_delay: Delay before the first retry
        max_delay: Upper bound for any computed delay
        backoff_multiplier: Growth factor per attempt
        retryable_status_codes: Statuses that trigger a retry
        retry_on_network_error: Whether connection errors and timeouts are retried
        use_jitter: Scale each delay by a random factor in [0.5, 1.0]
        respect_retry_after: Use the server's Retry-After header when present
    """
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retry_on_network_error: bool = True
    use_jitter: bool = True
    respect_retry_after: bool = True

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError(f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}")
        object.__setattr__(self, "retryable_status_codes", frozenset(self.retryable_status_codes))


def compute_backoff_delay(attempt: int, config: RetryConfig,
                          rand: Callable[[], float] = random.random) -> float:
    """
    Delay before retry number `attempt` (0-indexed).

    min(max_delay, initial_delay * backoff_multiplier ** attempt), scaled into
    [50%, 100%] of that value when jitter is enabled.
    """
    delay = min(config.max_delay, config.initial_delay * (config.backoff_multiplier ** attempt))
    if config.use_jitter:
        delay *= 0.5 + 0.5 * rand()
    return delay


def get_retry_after_delay(response: httpx.Response) -> Optional[float]:
    """
    Read the Retry-After header as delay seconds.

    Accepts integer seconds or an HTTP date. Returns None when the header is
    missing or unparseable.
    """
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    value = str(value).strip()
    if value.isdigit():
        return int(value)
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_at - datetime.now(timezone.utc)).total_seconds())


class Transport:
    """
    Executes HTTP calls with the configured retry policy.

    The outbound call is the only place a request suspends besides the backoff
    sleep; both `sleep` and `rand` can be replaced for deterministic tests.
    """

    def __init__(self, client: httpx.AsyncClient, retry_config: Optional[RetryConfig] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 rand: Callable[[], float] = random.random):
        self._client = client
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self._rand = rand

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def execute(self, method: str, url: str, headers: Optional[Mapping[str, str]] = None,
                      json: Any = None, params: Optional[Mapping[str, Any]] = None,
                      files: Any = None, content: Optional[bytes] = None,
                      timeout: Optional[float] = None) -> httpx.Response:
        """
        Execute a request, retrying per policy.

        Returns the final response, which may be a non-success status once
        retries for it are exhausted or when the status is not retryable.

        Raises:
            TransportException: A network failure that was not retried or outlived all retries
        """
        config = self.retry_config
        extra = {"timeout": timeout} if timeout and timeout > 0 else {}
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, url, headers=headers, json=json, params=params,
                                                      files=files, content=content, **extra)
            except httpx.TransportError as e:
                if not config.retry_on_network_error or attempt >= config.max_retries:
                    raise TransportException(f"{method} {url} failed: {e}", cause=e) from e
                delay = compute_backoff_delay(attempt, config, self._rand)
                logger.warning("%s %s network error (%s), retry %d/%d in %.3fs",
                               method, url, e, attempt + 1, config.max_retries, delay)
            else:
                if response.status_code not in config.retryable_status_codes or attempt >= config.max_retries:
                    return response
                delay = None
                if config.respect_retry_after:
                    delay = get_retry_after_delay(response)
                if delay is None:
                    delay = compute_backoff_delay(attempt, config, self._rand)
                logger.warning("%s %s returned %d, retry %d/%d in %.3fs",
                               method, url, response.status_code, attempt + 1, config.max_retries, delay)
                await response.aclose()
            await self._sleep(delay)
            attempt += 1
