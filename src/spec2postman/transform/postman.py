"""Point an OpenAPI document at the host it was fetched from.

Postman's OpenAPI importer builds its ``baseUrl`` from ``servers[0].url``.
Documents served by frameworks usually declare a relative server such as
``/api/v3``, which Postman cannot resolve, so :func:`transform` prefixes it
with the origin of the URL the user supplied. When a token is given, a
bearer security scheme is declared globally and the token is recorded
under ``variables.AUTHORIZATION``.
"""

from __future__ import annotations

import re
from collections.abc import MutableMapping
from typing import Any, Optional

from spec2postman.exceptions import GenerationError

BEARER_SCHEME_NAME = "BearerAuth"

BEARER_SCHEME: dict[str, str] = {
    "type": "http",
    "scheme": "bearer",
    "bearerFormat": "JWT",
}

_ORIGIN = re.compile(r"^(https?://[^/]+)")


def get_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` of *url*, or *url* itself if it has none."""
    match = _ORIGIN.match(url)
    if match:
        return match.group(1)
    return url


def _first_server_url(doc: MutableMapping[str, Any]) -> str:
    servers = doc.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        url = servers[0].get("url")
        if isinstance(url, str):
            return url
    return ""


def _child_mapping(
    parent: MutableMapping[str, Any], key: str, path: str
) -> MutableMapping[str, Any]:
    """Return ``parent[key]``, replacing a missing or empty value with a dict."""
    value = parent.get(key)
    if not value:
        value = parent[key] = {}
    elif not isinstance(value, MutableMapping):
        raise GenerationError(
            f"Cannot add bearer authentication: '{path}' is not an object"
        )
    return value


def transform(
    doc: MutableMapping[str, Any],
    source_url: str,
    authorization: Optional[str] = None,
) -> MutableMapping[str, Any]:
    """Rewrite *doc* in place and return it.

    ``servers`` is replaced by a single entry whose URL is the origin of
    *source_url* followed by the document's first declared server URL.
    Additional servers are dropped.

    Args:
        doc: A validated OpenAPI/Swagger document. Mutated.
        source_url: The URL the user asked for (not the resolved one).
        authorization: Optional bearer token.

    Returns:
        *doc*, after mutation.

    Raises:
        GenerationError: If an existing ``components``, ``securitySchemes``
            or ``variables`` entry is not an object.

    Example::

        >>> doc = {"openapi": "3.0.0", "servers": [{"url": "/v1"}]}
        >>> transform(doc, "https://api.example.com/v1/docs")["servers"]
        [{'url': 'https://api.example.com/v1'}]
    """
    doc["servers"] = [{"url": get_origin(source_url) + _first_server_url(doc)}]

    if authorization:
        components = _child_mapping(doc, "components", "components")
        schemes = _child_mapping(
            components, "securitySchemes", "components.securitySchemes"
        )
        schemes[BEARER_SCHEME_NAME] = dict(BEARER_SCHEME)
        doc["security"] = [{BEARER_SCHEME_NAME: []}]

        variables = _child_mapping(doc, "variables", "variables")
        variables["AUTHORIZATION"] = {
            "default": authorization,
            "description": "Authorization token for API requests",
        }

    return doc
