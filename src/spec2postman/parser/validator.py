"""Shallow OpenAPI/Swagger validation and the post-parse size gate.

Only the version discriminator is checked. Paths, schemas, and components
are passed through untouched.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional

from spec2postman.exceptions import InvalidOpenAPIError, TooLargeError
from spec2postman.models import MIB, format_size

DEFAULT_MAX_DOCUMENT_BYTES = int(2.5 * MIB)


def validate(doc: Any) -> None:
    """Check that *doc* is an OpenAPI or Swagger document.

    A document passes when it is a mapping with a non-empty string
    ``openapi`` field or a non-empty string ``swagger`` field.

    Raises:
        InvalidOpenAPIError: If neither field is present as a string.
    """
    if isinstance(doc, Mapping):
        for key in ("openapi", "swagger"):
            value = doc.get(key)
            if isinstance(value, str) and value:
                return
    raise InvalidOpenAPIError(
        "Invalid OpenAPI specification: must contain either 'openapi' or 'swagger' field"
    )


def serialized_size(doc: Any, max_bytes: Optional[int] = None) -> int:
    """Return the UTF-8 size of *doc* serialised as compact JSON.

    The document is encoded chunk by chunk and never materialised as one
    string. With *max_bytes* set, encoding stops as soon as the running
    total passes it, so a document that expands through shared YAML
    aliases costs at most *max_bytes* of work. Values JSON cannot
    represent directly (YAML timestamps) are rendered with ``str``.

    Raises:
        TooLargeError: If the size exceeds *max_bytes*.
        InvalidOpenAPIError: If *doc* cannot be serialised at all, e.g. a
            self-referencing YAML anchor.
    """
    encoder = json.JSONEncoder(
        separators=(",", ":"), ensure_ascii=False, default=str
    )
    size = 0
    try:
        for chunk in encoder.iterencode(doc):
            size += len(chunk.encode("utf-8"))
            if max_bytes is not None and size > max_bytes:
                raise TooLargeError(
                    f"Processed content exceeds {format_size(max_bytes)} limit"
                )
    except (TypeError, ValueError, RecursionError) as exc:
        raise InvalidOpenAPIError(
            "Invalid OpenAPI specification: document cannot be represented as JSON"
        ) from exc
    return size


def check_document_size(doc: Any, max_bytes: int = DEFAULT_MAX_DOCUMENT_BYTES) -> int:
    """Reject documents whose JSON form exceeds *max_bytes*.

    Returns:
        The serialised size in bytes.

    Raises:
        TooLargeError: If the serialised document is larger than *max_bytes*.
    """
    return serialized_size(doc, max_bytes)
