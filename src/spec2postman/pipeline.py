"""Orchestrate resolve -> fetch -> parse -> validate -> transform.

:class:`SpecPipeline` is the single place where stage errors are caught and
mapped to a stable ``{code, message}`` envelope
(:class:`~spec2postman.models.PipelineResult`). Stages run strictly in
sequence, none retries, and an invocation either fully succeeds or fully
fails. Unexpected exceptions are logged with their traceback and reported
as ``INTERNAL_ERROR`` without detail.

Three entry points mirror the original HTTP surface:

* :meth:`SpecPipeline.fetch_by_url` -- rate limited; full pipeline,
  servers rewritten to the source origin.
* :meth:`SpecPipeline.fetch_by_text` -- raw text already in hand; parse and
  validate only.
* :meth:`SpecPipeline.generate_collection` -- rate limited; full pipeline
  plus optional bearer-auth scaffolding and download metadata.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from spec2postman.exceptions import (
    ErrorCode,
    InvalidProtocolError,
    InvalidRequestError,
    PipelineError,
    RateLimitedError,
)
from spec2postman.fetch import SecureFetcher, resolve
from spec2postman.fetch.fetcher import ALLOWED_SCHEMES
from spec2postman.limiter import RateLimiter
from spec2postman.models import (
    CollectionMeta,
    FetchMeta,
    FetchResult,
    GlobalConfig,
    PipelineResult,
)
from spec2postman.parser import check_document_size, parse, validate
from spec2postman.parser.validator import serialized_size
from spec2postman.transform import transform

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "postman_collection"

_FILENAME = re.compile(r"^[\w.\- ]+$")


class SpecPipeline:
    """Run pipeline invocations against shared limiter state.

    One instance is meant to live for the whole process so that its
    :class:`~spec2postman.limiter.RateLimiter` buckets persist across
    invocations. Everything else is request-scoped.

    Args:
        config: Effective configuration. Defaults to built-in limits.
        limiter: Rate limiter to gate URL-based entry points.
        fetcher: Fetcher used to retrieve resolved URLs.
    """

    def __init__(
        self,
        config: Optional[GlobalConfig] = None,
        limiter: Optional[RateLimiter] = None,
        fetcher: Optional[SecureFetcher] = None,
    ) -> None:
        self._config = config if config is not None else GlobalConfig()
        self._limiter = (
            limiter if limiter is not None else RateLimiter(self._config.rate_limit)
        )
        self._fetcher = (
            fetcher if fetcher is not None else SecureFetcher(self._config.fetch)
        )

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def fetch_by_url(self, url: str, identifier: Optional[str] = None) -> PipelineResult:
        """Resolve, fetch, validate, and rewrite the document behind *url*.

        Args:
            url: Docs or spec URL supplied by the caller.
            identifier: Rate-limit identity; defaults to the configured
                shared identifier.

        Returns:
            ``ok`` with the rewritten document and
            ``meta = {sourceContentType, bytes}``, or an error envelope.
        """

        def run() -> PipelineResult:
            self._admit(identifier)
            _check_url(url)
            doc, fetched = self._load(url)
            data = transform(doc, url)
            meta = FetchMeta(
                source_content_type=fetched.content_type,
                bytes=fetched.byte_length,
            )
            return PipelineResult.success(data, meta)

        return self._run("fetch-by-url", run)

    def fetch_by_text(self, content: str) -> PipelineResult:
        """Parse and validate a document supplied as text.

        No network access and no rewrite happen on this path, so it is not
        rate limited.

        Returns:
            ``ok`` with the parsed document and ``meta = {sourceContentType:
            "", bytes}``, or an error envelope.
        """

        def run() -> PipelineResult:
            if not isinstance(content, str) or not content.strip():
                raise InvalidRequestError("Content must not be empty")
            doc = parse(content, "", max_bytes=self._config.fetch.max_response_bytes)
            validate(doc)
            check_document_size(doc, self._config.fetch.max_document_bytes)
            meta = FetchMeta(bytes=len(content.encode("utf-8", errors="replace")))
            return PipelineResult.success(doc, meta)

        return self._run("fetch-by-text", run)

    def generate_collection(
        self,
        url: str,
        filename: str = DEFAULT_FILENAME,
        authorization: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> PipelineResult:
        """Produce a Postman-ready document for *url*, ready to be saved.

        Args:
            url: Docs or spec URL supplied by the caller.
            filename: Base name of the download, without extension.
            authorization: Optional bearer token to scaffold into the
                document.
            identifier: Rate-limit identity.

        Returns:
            ``ok`` with the document and ``meta = {filename, contentType,
            size}``, or an error envelope.
        """

        def run() -> PipelineResult:
            self._admit(identifier)
            _check_url(url)
            name = _check_filename(filename)
            doc, _ = self._load(url)
            data = transform(doc, url, authorization)
            meta = CollectionMeta(filename=f"{name}.json", size=serialized_size(data))
            return PipelineResult.success(data, meta)

        return self._run("generate", run)

    # ------------------------------------------------------------------ #
    # Stages
    # ------------------------------------------------------------------ #

    def _admit(self, identifier: Optional[str]) -> None:
        key = identifier or self._config.rate_limit.default_identifier
        if not self._limiter.allow(key):
            raise RateLimitedError("Too many requests")

    def _load(self, url: str) -> tuple[Any, FetchResult]:
        resolved = resolve(url)
        fetched = self._fetcher.fetch(resolved)
        doc = parse(
            fetched.text,
            fetched.content_type,
            max_bytes=self._config.fetch.max_response_bytes,
        )
        validate(doc)
        check_document_size(doc, self._config.fetch.max_document_bytes)
        return doc, fetched

    def _run(self, operation: str, run: Callable[[], PipelineResult]) -> PipelineResult:
        try:
            result = run()
        except PipelineError as exc:
            logger.warning("%s failed: %s %s", operation, exc.code.value, exc.message)
            return PipelineResult.failure(exc.code.value, exc.message, exc.http_status)
        except Exception:
            logger.exception("%s failed unexpectedly", operation)
            return PipelineResult.failure(
                ErrorCode.INTERNAL_ERROR.value, "Internal server error", 500
            )
        logger.debug("%s succeeded", operation)
        return result


def _check_url(url: Any) -> None:
    """Require an absolute http(s) URL with a host.

    A URL with a scheme other than http/https is refused as a protocol
    error even when it carries no host (``file:///...``, ``mailto:...``).
    """
    try:
        parts = urlsplit(url) if isinstance(url, str) else None
    except ValueError:
        parts = None
    if parts is None or not parts.scheme:
        raise InvalidRequestError("Invalid URL provided", code=ErrorCode.INVALID_URL)
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidProtocolError("Only HTTP and HTTPS URLs are allowed")
    if not parts.netloc:
        raise InvalidRequestError("Invalid URL provided", code=ErrorCode.INVALID_URL)


def _check_filename(filename: Any) -> str:
    name = filename.strip() if isinstance(filename, str) else ""
    if not name:
        return DEFAULT_FILENAME
    if not _FILENAME.match(name) or name in (".", ".."):
        raise InvalidRequestError("Invalid request data")
    return name
