"""
Tests for the retrying transport and 429 rate limit handling
"""
import random
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from unittest.mock import Mock

import httpx
import pytest

from pdfdancer_async import PDFDancer, RateLimitException, RetryConfig, TransportException
from pdfdancer_async.retry import Transport, compute_backoff_delay, get_retry_after_delay
from tests.fake_server import BASE_URL, TOKEN, FakeDancerServer, mock_http_client


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _transport(server, sleep, **config):
    config.setdefault("use_jitter", False)
    return Transport(mock_http_client(server), RetryConfig(**config), sleep=sleep)


class TestBackoffDelay:

    def test_delays_grow_exponentially_up_to_max(self):
        config = RetryConfig(initial_delay=1.0, max_delay=10.0, backoff_multiplier=2.0, use_jitter=False)
        assert [compute_backoff_delay(i, config) for i in range(5)] == [1.0, 2.0, 4.0, 8.0, 10.0]

    def test_jitter_scales_into_upper_half(self):
        config = RetryConfig(initial_delay=4.0, max_delay=10.0, use_jitter=True)
        assert compute_backoff_delay(0, config, rand=lambda: 0.0) == 2.0
        assert compute_backoff_delay(0, config, rand=lambda: 1.0) == 4.0

    def test_jittered_delay_never_exceeds_max(self):
        config = RetryConfig(initial_delay=1.0, max_delay=5.0, use_jitter=True)
        rng = random.Random(7)
        for attempt in range(10):
            full = min(5.0, 2.0 ** attempt)
            delay = compute_backoff_delay(attempt, config, rand=rng.random)
            assert 0.5 * full <= delay <= full <= 5.0

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            RetryConfig(max_retries=-1)
        with pytest.raises(ValueError):
            RetryConfig(backoff_multiplier=0.5)


class TestTransport:

    @pytest.mark.asyncio
    async def test_retries_service_unavailable_then_succeeds(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.Response(503), httpx.Response(503),
                                       httpx.Response(200, json=True))
        sleep = RecordingSleep()
        transport = _transport(server, sleep, initial_delay=1.0)

        response = await transport.execute('GET', f'{BASE_URL}/ping')

        assert response.status_code == 200
        assert server.calls('GET', '/ping') == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_return_last_response(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.Response(503))
        sleep = RecordingSleep()
        transport = _transport(server, sleep, max_retries=3, initial_delay=0.5)

        response = await transport.execute('GET', f'{BASE_URL}/ping')

        assert response.status_code == 503
        assert server.calls('GET', '/ping') == 4
        assert len(sleep.delays) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 404, 422])
    async def test_client_errors_are_not_retried(self, status):
        server = FakeDancerServer().on('GET', '/ping', httpx.Response(status))
        sleep = RecordingSleep()
        transport = _transport(server, sleep)

        response = await transport.execute('GET', f'{BASE_URL}/ping')

        assert response.status_code == status
        assert server.calls('GET', '/ping') == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_network_error_is_retried(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.ConnectError("connection refused"),
                                       httpx.Response(200, json=True))
        transport = _transport(server, RecordingSleep())

        response = await transport.execute('GET', f'{BASE_URL}/ping')

        assert response.status_code == 200
        assert server.calls('GET', '/ping') == 2

    @pytest.mark.asyncio
    async def test_network_error_not_retried_when_disabled(self):
        error = httpx.ConnectError("connection refused")
        server = FakeDancerServer().on('GET', '/ping', error)
        transport = _transport(server, RecordingSleep(), retry_on_network_error=False)

        with pytest.raises(TransportException) as exc_info:
            await transport.execute('GET', f'{BASE_URL}/ping')

        assert exc_info.value.cause is error
        assert server.calls('GET', '/ping') == 1

    @pytest.mark.asyncio
    async def test_network_error_raises_after_retries_exhausted(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.ReadTimeout("timed out"))
        sleep = RecordingSleep()
        transport = _transport(server, sleep, max_retries=2)

        with pytest.raises(TransportException):
            await transport.execute('GET', f'{BASE_URL}/ping')

        assert server.calls('GET', '/ping') == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_retry_after_header_overrides_backoff(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.Response(429, headers={"Retry-After": "5"}),
                                       httpx.Response(200, json=True))
        sleep = RecordingSleep()
        transport = _transport(server, sleep, initial_delay=1.0)

        await transport.execute('GET', f'{BASE_URL}/ping')

        assert sleep.delays == [5]

    @pytest.mark.asyncio
    async def test_retry_after_ignored_when_disabled(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.Response(429, headers={"Retry-After": "5"}),
                                       httpx.Response(200, json=True))
        sleep = RecordingSleep()
        transport = _transport(server, sleep, initial_delay=1.0, respect_retry_after=False)

        await transport.execute('GET', f'{BASE_URL}/ping')

        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_zero_retries_makes_single_attempt(self):
        server = FakeDancerServer().on('GET', '/ping', httpx.Response(500))
        transport = _transport(server, RecordingSleep(), max_retries=0)

        response = await transport.execute('GET', f'{BASE_URL}/ping')

        assert response.status_code == 500
        assert server.calls('GET', '/ping') == 1


class TestRateLimitHandling:
    """Test rate limit handling with 429 responses"""

    def test_rate_limit_with_retry_after_header(self):
        mock_response = Mock(spec=httpx.Response)
        mock_response.headers = {"Retry-After": "5"}

        assert get_retry_after_delay(mock_response) == 5

    def test_rate_limit_without_retry_after_header(self):
        mock_response = Mock(spec=httpx.Response)
        mock_response.headers = {}

        assert get_retry_after_delay(mock_response) is None

    def test_rate_limit_with_invalid_retry_after(self):
        mock_response = Mock(spec=httpx.Response)
        mock_response.headers = {"Retry-After": "invalid"}

        assert get_retry_after_delay(mock_response) is None

    def test_rate_limit_with_http_date_retry_after(self):
        retry_at = datetime.now(timezone.utc) + timedelta(seconds=30)
        mock_response = Mock(spec=httpx.Response)
        mock_response.headers = {"Retry-After": format_datetime(retry_at, usegmt=True)}

        delay = get_retry_after_delay(mock_response)
        assert 0 < delay <= 30

    @pytest.mark.asyncio
    async def test_rate_limit_exception_raised_after_retries_exhausted(self):
        """RateLimitException is raised after max retries for 429"""
        server = FakeDancerServer().on(
            'POST', '/session/create',
            httpx.Response(429, headers={"Retry-After": "1"}, json={"error": "Rate limit exceeded"}))
        config = RetryConfig(max_retries=3, initial_delay=0.0, max_delay=0.0, use_jitter=False,
                             respect_retry_after=False)

        with pytest.raises(RateLimitException) as exc_info:
            await PDFDancer.open(b"fake pdf data", token=TOKEN, base_url=BASE_URL, retry_config=config,
                                 http_client=mock_http_client(server))

        assert exc_info.value.retry_after == 1
        assert exc_info.value.status_code == 429
        # max_retries=3, so 4 attempts total
        assert server.calls('POST', '/session/create') == 4
