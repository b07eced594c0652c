"""
Exception classes for the PDFDancer async client.
"""

from typing import Optional

import httpx


class PdfDancerException(Exception):
    """
    Base exception for all PDFDancer client errors.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationException(PdfDancerException):
    """
    Raised for malformed caller input. Always detected before any network call.
    """


class HttpClientException(PdfDancerException):
    """
    Raised when the API answers with a non-success status after retries are exhausted.

    Attributes:
        response: The final httpx response, if any
        status_code: HTTP status code of the final response
    """

    def __init__(self, message: str, response: Optional[httpx.Response] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.response = response
        self.status_code = response.status_code if response is not None else None


class RateLimitException(HttpClientException):
    """
    Raised when the API keeps answering 429 after all retries.
    `retry_after` holds the server's last Retry-After hint in seconds, if any.
    """

    def __init__(self, message: str, response: Optional[httpx.Response] = None,
                 retry_after: Optional[float] = None):
        super().__init__(message, response=response)
        self.retry_after = retry_after


class SessionException(PdfDancerException):
    """
    The server accepted a session call but returned no usable session id.
    """


class FontNotFoundException(PdfDancerException):
    """
    A requested font is not known to the server (404 with a FontNotFoundException error code).
    """

    def __init__(self, message: str):
        super().__init__(f"Font not found: {message}")


class TransportException(PdfDancerException):
    """
    Network-level failure (connection error, timeout) that survived all retries.
    The underlying httpx error is available as `cause`.
    """
