"""Heuristic rewrite of docs URLs into OpenAPI document URLs.

Frameworks such as FastAPI serve Swagger UI at ``/docs`` and ReDoc at
``/redoc`` while the document itself lives at ``/openapi.json`` next to
them. :func:`resolve` applies that convention; the result is a best guess
and may well 404, which the fetcher reports.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

OPENAPI_FILENAME = "openapi.json"

_OPENAPI_SUFFIX = re.compile(r"/openapi\.json$", re.IGNORECASE)
_DOCS_SUFFIX = re.compile(r"(?<=/)(?:docs|redoc|swagger(?:-ui)?)/?$", re.IGNORECASE)


def resolve(input_url: str) -> str:
    """Return the likely OpenAPI document URL for *input_url*.

    Rules, first match wins:

    1. A path already ending in ``/openapi.json`` is returned unchanged.
    2. A trailing ``docs``, ``redoc``, ``swagger`` or ``swagger-ui`` segment
       (with or without a trailing slash) is replaced by ``openapi.json``.
    3. Otherwise the fragment and one trailing slash are dropped, the last
       path segment is removed, and ``openapi.json`` is appended to the
       remaining directory.

    Never raises: anything that is not an absolute URL is returned as-is.

    Args:
        input_url: URL supplied by the caller.

    Returns:
        The rewritten URL, or *input_url* when no rewrite applies.

    Example::

        >>> resolve("https://petstore3.swagger.io/api/v3/docs")
        'https://petstore3.swagger.io/api/v3/openapi.json'
    """
    try:
        parts = urlsplit(input_url)
    except (TypeError, ValueError, AttributeError):
        return input_url
    if not parts.scheme or not parts.netloc:
        return input_url

    path = parts.path
    if _OPENAPI_SUFFIX.search(path):
        return input_url

    if _DOCS_SUFFIX.search(path):
        resolved = urlunsplit(parts._replace(path=_DOCS_SUFFIX.sub(OPENAPI_FILENAME, path)))
    else:
        if path.endswith("/"):
            path = path[:-1]
        parent = path.rsplit("/", 1)[0] if "/" in path else ""
        resolved = urlunsplit(
            parts._replace(path=f"{parent}/{OPENAPI_FILENAME}", fragment="")
        )

    logger.debug("Resolved %s -> %s", input_url, resolved)
    return resolved
