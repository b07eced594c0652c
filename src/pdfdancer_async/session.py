"""
Session handling for the PDFDancer async client.

A Session owns the API token, the server-side session id and the device
fingerprint, and attaches them to every call it sends through the Transport.
It also turns unsuccessful responses into the client's exception types.
"""

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union, Mapping, Any
from pathlib import Path

import httpx

from .exceptions import (
    FontNotFoundException,
    HttpClientException,
    RateLimitException,
    SessionException,
    ValidationException
)
from .fingerprint import generate_fingerprint
from .models import PageSize, Orientation
from .retry import Transport, get_retry_after_delay

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.pdfdancer.com"


def _generate_timestamp() -> str:
    """
    Timestamp in the format expected by the API: YYYY-MM-DDTHH:MM:SS.ffffffZ
    """
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')


def _parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse a server timestamp with microsecond or nanosecond precision.
    """
    ts = timestamp_str.rstrip('Z')

    # datetime only supports microseconds, truncate nanoseconds
    if '.' in ts:
        date_part, frac_part = ts.rsplit('.', 1)
        ts = f"{date_part}.{frac_part[:6]}"

    return datetime.fromisoformat(ts).replace(tzinfo=timezone.utc)


def _log_generated_at_header(response: httpx.Response, method: str, path: str) -> None:
    """
    Log server timing headers (X-Received-At, X-Generated-AT) at debug level.
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    generated_at = response.headers.get('X-Generated-AT')
    received_at = response.headers.get('X-Received-At')
    if not generated_at and not received_at:
        return

    try:
        log_parts = []
        current_time = datetime.now(timezone.utc)

        received_time = None
        if received_at:
            received_time = _parse_timestamp(received_at)
            log_parts.append(f"X-Received-At: {received_at}, "
                             f"time since received: {(current_time - received_time).total_seconds():.3f}s")

        generated_time = None
        if generated_at:
            generated_time = _parse_timestamp(generated_at)
            log_parts.append(f"X-Generated-AT: {generated_at}, "
                             f"time since generated: {(current_time - generated_time).total_seconds():.3f}s")

        if received_time and generated_time:
            log_parts.append(f"processing time: {(generated_time - received_time).total_seconds():.3f}s")

        logger.debug("%s %s - %s", method, path, ', '.join(log_parts))
    except ValueError as e:
        logger.debug("%s %s - Header parse error: %s", method, path, e)


def resolve_base_url(base_url: Optional[str]) -> str:
    """Explicit base URL, then PDFDANCER_BASE_URL, then the public API."""
    if base_url and base_url.strip():
        return base_url.strip().rstrip('/')
    env_base_url = os.getenv("PDFDANCER_BASE_URL")
    if env_base_url and env_base_url.strip():
        return env_base_url.strip().rstrip('/')
    return DEFAULT_BASE_URL


def resolve_token(token: Optional[str]) -> Optional[str]:
    """Explicit token, then PDFDANCER_TOKEN. None means an anonymous token is needed."""
    if token is not None and not token.strip():
        raise ValidationException("Authentication token cannot be empty")
    if token:
        return token.strip()
    env_token = os.getenv("PDFDANCER_TOKEN")
    return env_token.strip() if env_token and env_token.strip() else None


def extract_error_message(response: Optional[httpx.Response]) -> str:
    """
    Best-effort server message: `_embedded.errors[*].message`, then a top-level
    `message`, then the raw body.
    """
    if response is None:
        return "Unknown error"

    try:
        error_data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text or f"HTTP {response.status_code}"

    if isinstance(error_data, dict):
        errors = (error_data.get("_embedded") or {}).get("errors")
        if isinstance(errors, list):
            messages = [error["message"] for error in errors if isinstance(error, dict) and "message" in error]
            if messages:
                return "; ".join(messages)
        if error_data.get("message"):
            return str(error_data["message"])

    return response.text or f"HTTP {response.status_code}"


def _cleanup_url_path(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class Session:
    """
    Authenticated connection to one server-side document session.

    Created without a session id; `create` or `create_blank` uploads the
    document and stores the id used by every later `request`.
    """

    def __init__(self, transport: Transport, base_url: str, token: Optional[str] = None,
                 timeout: float = 30.0, user_id: Optional[str] = None,
                 salt_path: Optional[Union[str, Path]] = None):
        self._transport = transport
        self._base_url = base_url.rstrip('/')
        self._token = token
        self._timeout = timeout
        self._user_id = user_id
        self._salt_path = salt_path
        self._session_id: Optional[str] = None
        self._fingerprint: Optional[str] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def fingerprint(self) -> str:
        """Device fingerprint, computed on first use and kept for the session's lifetime."""
        if self._fingerprint is None:
            self._fingerprint = generate_fingerprint(self._user_id, self._salt_path)
        return self._fingerprint

    async def ensure_fingerprint(self) -> str:
        """Compute the device fingerprint off the event loop; the host lookups behind it may block."""
        if self._fingerprint is None:
            self._fingerprint = await asyncio.to_thread(generate_fingerprint, self._user_id, self._salt_path)
        return self._fingerprint

    @property
    def transport(self) -> Transport:
        return self._transport

    def _headers(self, with_session: bool = True) -> dict:
        headers = {
            'X-Generated-At': _generate_timestamp(),
            'X-Fingerprint': self.fingerprint,
        }
        if self._token:
            headers['Authorization'] = f'Bearer {self._token}'
        if with_session:
            if self._session_id is None:
                raise SessionException("No active session, create a session first")
            headers['X-Session-Id'] = self._session_id
        return headers

    async def ensure_token(self) -> str:
        """Return the bearer token, requesting an anonymous one if none was configured."""
        await self.ensure_fingerprint()
        if self._token is None:
            self._token = await self._request_anonymous_token()
        return self._token

    async def _request_anonymous_token(self) -> str:
        response = await self._send('POST', '/keys/anon', headers=self._headers(with_session=False))
        self._raise_for_status(response, "Failed to obtain anonymous token")
        try:
            token = response.json().get('token')
        except (json.JSONDecodeError, AttributeError) as e:
            raise HttpClientException("Failed to obtain anonymous token: malformed response",
                                      response=response, cause=e) from None
        if not token or not str(token).strip():
            raise HttpClientException("Failed to obtain anonymous token: server returned no token",
                                      response=response)
        logger.info("Using anonymous PDFDancer token")
        return str(token).strip()

    async def create(self, pdf_bytes: bytes) -> str:
        """
        Upload document bytes and open a new session.

        Raises:
            SessionException: If the server returns an empty session id
            HttpClientException: If the upload is rejected
        """
        await self.ensure_token()
        files = {'pdf': ('document.pdf', pdf_bytes, 'application/pdf')}
        logger.debug("POST /session/create - request size: %d bytes", len(pdf_bytes))
        response = await self._send('POST', '/session/create', headers=self._headers(with_session=False),
                                    files=files)
        self._raise_for_status(response, "Failed to create session")
        return self._store_session_id(response)

    async def create_blank(self, page_size: Optional[Union[PageSize, str, Mapping[str, Any]]] = None,
                           orientation: Optional[Union[Orientation, str]] = None,
                           initial_page_count: int = 1) -> str:
        """
        Open a new session on a blank document.
        """
        request_data: dict = {}
        if page_size is not None:
            try:
                request_data['pageSize'] = PageSize.coerce(page_size).to_dict()
            except ValueError as exc:
                raise ValidationException(str(exc)) from exc
            except TypeError:
                raise ValidationException(f"Invalid page_size type: {type(page_size)}")

        if orientation is not None:
            if isinstance(orientation, Orientation):
                request_data['orientation'] = orientation.value
            elif isinstance(orientation, str):
                request_data['orientation'] = orientation.strip().upper()
            else:
                raise ValidationException(f"Invalid orientation type: {type(orientation)}")

        if initial_page_count < 1:
            raise ValidationException(f"Initial page count must be at least 1, got {initial_page_count}")
        request_data['initialPageCount'] = initial_page_count

        await self.ensure_token()
        response = await self._send('POST', '/session/new', headers=self._headers(with_session=False),
                                    json=request_data)
        self._raise_for_status(response, "Failed to create blank PDF session")
        return self._store_session_id(response)

    def _store_session_id(self, response: httpx.Response) -> str:
        session_id = response.text.strip()
        if not session_id:
            raise SessionException("Server returned empty session ID")
        self._session_id = session_id
        logger.info("Created PDFDancer session %s", session_id)
        return session_id

    async def request(self, method: str, path: str, json: Optional[Any] = None,
                      params: Optional[Mapping[str, Any]] = None, files: Any = None) -> httpx.Response:
        """
        Send an authenticated session request and return the successful response.

        Raises:
            FontNotFoundException: On a 404 flagged as FontNotFoundException by the server
            RateLimitException: When 429 persists after all retries
            HttpClientException: On any other non-success status
            TransportException: On network failure after all retries
        """
        await self.ensure_fingerprint()
        headers = self._headers()
        response = await self._send(method, path, headers=headers, json=json, params=params, files=files)
        self._raise_for_status(response, "API request failed")
        return response

    async def _send(self, method: str, path: str, headers: dict, **kwargs) -> httpx.Response:
        response = await self._transport.execute(method, _cleanup_url_path(self._base_url, path),
                                                 headers=headers, timeout=self._timeout, **kwargs)
        logger.debug("%s %s - status %d, response size: %d bytes",
                     method, path, response.status_code, len(response.content))
        _log_generated_at_header(response, method, path)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, context: str) -> None:
        if response.is_success:
            return

        if response.status_code == 404:
            try:
                error_data = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                error_data = None
            if isinstance(error_data, dict) and error_data.get('error') == 'FontNotFoundException':
                raise FontNotFoundException(error_data.get('message', 'Font not found'))

        error_message = extract_error_message(response)
        if response.status_code in (401, 403):
            raise HttpClientException(
                "Authentication with the PDFDancer API failed. "
                "Confirm that your API token is valid, has not expired, and is supplied via "
                "the `token` argument or the PDFDANCER_TOKEN environment variable. "
                f"Server response: {error_message}",
                response=response
            )
        if response.status_code == 429:
            raise RateLimitException(f"{context}: rate limit exceeded: {error_message}",
                                     response=response, retry_after=get_retry_after_delay(response))
        raise HttpClientException(f"{context}: {error_message}", response=response)
