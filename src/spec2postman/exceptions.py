"""Exception hierarchy for spec2postman.

All exceptions inherit from :class:`Spec2PostmanError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`spec2postman.exit_codes`. Pipeline stages raise subclasses of
:class:`PipelineError`, which additionally carry a stable :class:`ErrorCode`
and the HTTP status reported to callers. The orchestrator in
:mod:`spec2postman.pipeline` is the only place these are caught and turned
into ``{code, message}`` envelopes.

Subclass hierarchy::

    Spec2PostmanError (exit 1)
    +-- ConfigError             (exit 1)
    +-- PipelineError           (exit 1, INTERNAL_ERROR, 500)
        +-- RateLimitedError    (exit 3, RATE_LIMITED, 429)
        +-- InvalidRequestError (exit 2, INVALID_REQUEST / INVALID_URL, 400)
        +-- InvalidProtocolError(exit 2, INVALID_PROTOCOL, 400)
        +-- PrivateAddressError (exit 2, PRIVATE_IP, 400)
        +-- FetchError          (exit 5, FETCH_ERROR, 502)
        +-- TooLargeError       (exit 8, TOO_LARGE, 413)
        +-- FetchTimeoutError   (exit 6, TIMEOUT, 408)
        +-- NetworkError        (exit 6, NETWORK_ERROR, 502)
        +-- SpecParseError      (exit 7, PARSE_ERROR, 400)
        +-- InvalidOpenAPIError (exit 7, INVALID_OPENAPI, 400)
        +-- GenerationError     (exit 9, GENERATION_ERROR, 500)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from spec2postman.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_FETCH_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_INPUT,
    EXIT_RATE_LIMITED,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_TOO_LARGE,
)


class ErrorCode(str, Enum):
    """Stable error codes reported to pipeline callers."""

    RATE_LIMITED = "RATE_LIMITED"
    INVALID_URL = "INVALID_URL"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_PROTOCOL = "INVALID_PROTOCOL"
    PRIVATE_IP = "PRIVATE_IP"
    FETCH_ERROR = "FETCH_ERROR"
    TOO_LARGE = "TOO_LARGE"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_OPENAPI = "INVALID_OPENAPI"
    GENERATION_ERROR = "GENERATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Spec2PostmanError(Exception):
    """Base exception for all spec2postman errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`spec2postman.exit_codes`. The CLI entry point
    catches this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(Spec2PostmanError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class PipelineError(Spec2PostmanError):
    """Terminal failure of one pipeline stage.

    Subclasses fix ``code`` and ``http_status`` at class level; a few
    (e.g. :class:`InvalidRequestError`) accept a per-instance ``code``
    override so that one exception type can report closely related codes.

    Args:
        message: Caller-safe description of the failure.
        code: Optional override for the class-level error code.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    http_status: int = 500

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class RateLimitedError(PipelineError):
    """Raised when the caller's token bucket is empty."""

    code = ErrorCode.RATE_LIMITED
    http_status = 429
    exit_code = EXIT_RATE_LIMITED


class InvalidRequestError(PipelineError):
    """Raised for malformed input: an unparseable URL or empty content."""

    code = ErrorCode.INVALID_REQUEST
    http_status = 400
    exit_code = EXIT_INVALID_INPUT


class InvalidProtocolError(PipelineError):
    """Raised when the URL scheme is neither ``http`` nor ``https``."""

    code = ErrorCode.INVALID_PROTOCOL
    http_status = 400
    exit_code = EXIT_INVALID_INPUT


class PrivateAddressError(PipelineError):
    """Raised when the target host looks like a private or loopback address."""

    code = ErrorCode.PRIVATE_IP
    http_status = 400
    exit_code = EXIT_INVALID_INPUT


class FetchError(PipelineError):
    """Raised when the upstream server answers with a non-2xx status.

    Args:
        message: Description including the upstream status line.
        status_code: The upstream HTTP status.
    """

    code = ErrorCode.FETCH_ERROR
    http_status = 502
    exit_code = EXIT_FETCH_ERROR

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class TooLargeError(PipelineError):
    """Raised when a response or processed document exceeds its size limit."""

    code = ErrorCode.TOO_LARGE
    http_status = 413
    exit_code = EXIT_TOO_LARGE


class FetchTimeoutError(PipelineError):
    """Raised when the fetch does not complete within its deadline."""

    code = ErrorCode.TIMEOUT
    http_status = 408
    exit_code = EXIT_CONNECTION_ERROR


class NetworkError(PipelineError):
    """Raised on transport failures other than a timeout."""

    code = ErrorCode.NETWORK_ERROR
    http_status = 502
    exit_code = EXIT_CONNECTION_ERROR


class SpecParseError(PipelineError):
    """Raised when content is neither valid JSON nor valid YAML."""

    code = ErrorCode.PARSE_ERROR
    http_status = 400
    exit_code = EXIT_SPEC_PARSE_ERROR


class InvalidOpenAPIError(PipelineError):
    """Raised when a parsed document lacks a string ``openapi``/``swagger`` field."""

    code = ErrorCode.INVALID_OPENAPI
    http_status = 400
    exit_code = EXIT_SPEC_PARSE_ERROR


class GenerationError(PipelineError):
    """Raised when a validated document cannot be rewritten for Postman."""

    code = ErrorCode.GENERATION_ERROR
    http_status = 500
    exit_code = EXIT_GENERATION_ERROR


_EXIT_CODES: dict[ErrorCode, int] = {
    cls.code: cls.exit_code
    for cls in (
        RateLimitedError,
        InvalidRequestError,
        InvalidProtocolError,
        PrivateAddressError,
        FetchError,
        TooLargeError,
        FetchTimeoutError,
        NetworkError,
        SpecParseError,
        InvalidOpenAPIError,
        GenerationError,
    )
}
_EXIT_CODES[ErrorCode.INVALID_URL] = EXIT_INVALID_INPUT


def exit_code_for(code: str) -> int:
    """Return the process exit code for an error envelope's ``code``."""
    try:
        return _EXIT_CODES.get(ErrorCode(code), EXIT_GENERIC_FAILURE)
    except ValueError:
        return EXIT_GENERIC_FAILURE
