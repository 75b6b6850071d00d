"""Canonical Pydantic models shared across all spec2postman modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`FetchConfig`, :class:`RateLimitConfig`, :class:`OutputConfig`,
    and :class:`GlobalConfig`.

**Pipeline models** -- request-scoped values handed between stages and back
to callers:
    :class:`FetchResult`, :class:`FetchMeta`, :class:`CollectionMeta`,
    :class:`ErrorDetail`, and :class:`PipelineResult`.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

MIB = 1024 * 1024


# --- Configuration ---


class FetchConfig(BaseModel):
    """Limits applied by :class:`~spec2postman.fetch.fetcher.SecureFetcher`
    and the post-parse size gate."""

    timeout_seconds: float = Field(
        default=15.0, gt=0, description="Wall-clock deadline for one fetch"
    )
    max_response_bytes: int = Field(
        default=3 * MIB, gt=0, description="Raw response size limit"
    )
    max_document_bytes: int = Field(
        default=int(2.5 * MIB),
        gt=0,
        description="Size limit of the re-serialised validated document",
    )
    user_agent: str = Field(
        default="spec2postman", description="User-Agent header sent upstream"
    )


class RateLimitConfig(BaseModel):
    """Token-bucket settings for :class:`~spec2postman.limiter.RateLimiter`."""

    capacity: int = Field(default=10, gt=0, description="Tokens per bucket")
    refill_interval_ms: int = Field(
        default=60_000, gt=0, description="Milliseconds to refill one token"
    )
    max_identifiers: int = Field(
        default=10_000,
        gt=0,
        description="Buckets kept before least-recently-used eviction",
    )
    default_identifier: str = Field(
        default="unknown",
        description="Identifier used when the caller supplies none",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/spec2postman/config.json``.

    Loaded and saved by :func:`~spec2postman.config.load_global_config` and
    :func:`~spec2postman.config.save_global_config`. Environment variables
    and CLI flags take precedence; see
    :func:`~spec2postman.config.resolve_config`.
    """

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Pipeline values ---


class FetchResult(BaseModel):
    """Body and metadata of one successful fetch.

    Owned by the pipeline invocation that produced it and discarded once
    the body has been parsed.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    text: str
    content_type: str = ""
    byte_length: int = 0


class FetchMeta(BaseModel):
    """Metadata returned alongside a fetched document."""

    model_config = ConfigDict(populate_by_name=True)

    source_content_type: str = Field(default="", alias="sourceContentType")
    bytes: int = 0


class CollectionMeta(BaseModel):
    """Metadata returned alongside a generated Postman document."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    content_type: str = Field(default="application/json", alias="contentType")
    size: int = 0


class ErrorDetail(BaseModel):
    """Stable ``{code, message}`` pair reported for a failed invocation."""

    code: str
    message: str


class PipelineResult(BaseModel):
    """Outcome of one pipeline invocation: full success or full failure.

    ``http_status`` is the status an HTTP surface would answer with; it is
    not part of :meth:`to_payload`.
    """

    ok: bool
    data: Any = None
    meta: Optional[dict[str, Any]] = None
    error: Optional[ErrorDetail] = None
    http_status: int = 200

    @classmethod
    def success(cls, data: Any, meta: BaseModel) -> PipelineResult:
        return cls(ok=True, data=data, meta=meta.model_dump(by_alias=True))

    @classmethod
    def failure(cls, code: str, message: str, http_status: int) -> PipelineResult:
        return cls(
            ok=False,
            error=ErrorDetail(code=code, message=message),
            http_status=http_status,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-compatible envelope sent back to callers.

        Returns:
            ``{"ok": True, "data": ..., "meta": {...}}`` on success, or
            ``{"ok": False, "error": {"code": ..., "message": ...}}``.
        """
        if self.ok:
            return {"ok": True, "data": self.data, "meta": self.meta or {}}
        error = self.error or ErrorDetail(
            code="INTERNAL_ERROR", message="Internal server error"
        )
        return {"ok": False, "error": error.model_dump()}


def format_size(num_bytes: int) -> str:
    """Render a byte limit the way error messages quote it (``3MB``, ``2.5MB``)."""
    return f"{num_bytes / MIB:g}MB"
