"""Guarded HTTP retrieval of candidate OpenAPI documents.

:class:`SecureFetcher` refuses anything that is not plain HTTP(S) or that
names a private/loopback host, then streams the response under a
wall-clock deadline and a byte budget. Every failure surfaces as one
:class:`~spec2postman.exceptions.PipelineError` subclass; nothing is
retried.

The private-address check matches the literal hostname only. A public
name that resolves to a private address (DNS rebinding) is not caught.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional
from urllib.parse import urlsplit

import httpx

from spec2postman.exceptions import (
    ErrorCode,
    FetchError,
    FetchTimeoutError,
    InvalidProtocolError,
    InvalidRequestError,
    NetworkError,
    PrivateAddressError,
    TooLargeError,
)
from spec2postman.models import FetchConfig, FetchResult, format_size

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

_PRIVATE_HOST_PATTERNS = [
    re.compile(r"^localhost$", re.IGNORECASE),
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^::1$"),
    re.compile(r"^fc00:", re.IGNORECASE),
    re.compile(r"^fe80:", re.IGNORECASE),
]

_ACCEPT = "application/json, application/yaml;q=0.9, text/yaml;q=0.9, */*;q=0.8"


def is_private_host(hostname: str) -> bool:
    """Return True if *hostname* literally looks like a private or local address."""
    return any(pattern.search(hostname) for pattern in _PRIVATE_HOST_PATTERNS)


def check_target(url: str) -> None:
    """Validate *url* before any network traffic is attempted.

    Args:
        url: Absolute URL about to be requested.

    Raises:
        InvalidRequestError: If *url* has no host or cannot be parsed
            (code ``INVALID_URL``).
        InvalidProtocolError: If the scheme is not ``http``/``https``.
        PrivateAddressError: If the host matches a private pattern.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as exc:
        raise InvalidRequestError(
            "Invalid URL provided", code=ErrorCode.INVALID_URL
        ) from exc

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidProtocolError("Only HTTP and HTTPS URLs are allowed")
    if not hostname:
        raise InvalidRequestError("Invalid URL provided", code=ErrorCode.INVALID_URL)
    if is_private_host(hostname):
        raise PrivateAddressError("Private IP addresses are not allowed")


class SecureFetcher:
    """Fetch a URL with protocol, address, size, and time guards.

    Args:
        config: Timeout and size limits. Defaults to 15 seconds and 3 MiB.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
        clock: Monotonic clock in seconds used for the wall-clock deadline.

    Example::

        result = SecureFetcher().fetch("https://petstore3.swagger.io/api/v3/openapi.json")
        print(result.content_type, result.byte_length)
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or FetchConfig()
        self._transport = transport
        self._clock = clock

    def fetch(self, url: str) -> FetchResult:
        """Retrieve *url* and return its decoded body.

        Redirects are followed, and every hop is re-checked with
        :func:`check_target`.

        Args:
            url: Absolute http(s) URL.

        Returns:
            A :class:`~spec2postman.models.FetchResult`.

        Raises:
            InvalidProtocolError: Non-HTTP(S) scheme (no network attempt).
            PrivateAddressError: Private host, initially or after a redirect.
            FetchError: Non-2xx response.
            TooLargeError: Declared or actual body exceeds the byte budget.
            FetchTimeoutError: The wall-clock deadline expired.
            NetworkError: Any other transport failure.
        """
        check_target(url)

        timeout = self._config.timeout_seconds
        deadline = self._clock() + timeout
        logger.debug("Fetching %s (timeout %ss)", url, timeout)

        try:
            with self._make_client(deadline) as client:
                with client.stream("GET", url) as response:
                    self._check_deadline(deadline)
                    if not response.is_success:
                        raise FetchError(
                            f"HTTP {response.status_code}: {response.reason_phrase}",
                            status_code=response.status_code,
                        )
                    self._check_declared_length(response)
                    body = self._read_body(response, deadline)
                    content_type = response.headers.get("content-type", "")
                    encoding = response.encoding or "utf-8"
        except httpx.TimeoutException as exc:
            raise self._timeout_error() from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Transport failure fetching %s: %s", url, exc)
            raise NetworkError("Failed to fetch the URL") from exc

        try:
            text = body.decode(encoding, errors="replace")
        except LookupError:
            text = body.decode("utf-8", errors="replace")

        return FetchResult(
            url=url,
            text=text,
            content_type=content_type,
            byte_length=len(body),
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _make_client(self, deadline: float) -> httpx.Client:
        # Every httpx phase gets at most the time left before the deadline.
        remaining = max(deadline - self._clock(), 0.001)
        return httpx.Client(
            timeout=httpx.Timeout(min(self._config.timeout_seconds, remaining)),
            follow_redirects=True,
            transport=self._transport,
            headers={"Accept": _ACCEPT, "User-Agent": self._config.user_agent},
            event_hooks={"request": [_guard_request]},
        )

    def _check_declared_length(self, response: httpx.Response) -> None:
        declared = response.headers.get("content-length")
        if not declared:
            return
        try:
            length = int(declared)
        except ValueError:
            return
        if length > self._config.max_response_bytes:
            raise self._too_large_error()

    def _read_body(self, response: httpx.Response, deadline: float) -> bytes:
        """Stream the body, enforcing the byte budget and the deadline."""
        limit = self._config.max_response_bytes
        chunks: list[bytes] = []
        received = 0
        for chunk in response.iter_bytes():
            received += len(chunk)
            if received > limit:
                raise self._too_large_error()
            self._check_deadline(deadline)
            chunks.append(chunk)
        self._check_deadline(deadline)
        return b"".join(chunks)

    def _check_deadline(self, deadline: float) -> None:
        if self._clock() > deadline:
            raise self._timeout_error()

    def _too_large_error(self) -> TooLargeError:
        return TooLargeError(
            f"Content exceeds {format_size(self._config.max_response_bytes)} limit"
        )

    def _timeout_error(self) -> FetchTimeoutError:
        return FetchTimeoutError(
            f"Request timed out after {self._config.timeout_seconds:g} seconds"
        )


def _guard_request(request: httpx.Request) -> None:
    """httpx request hook: apply :func:`check_target` to every outgoing hop."""
    check_target(str(request.url))
