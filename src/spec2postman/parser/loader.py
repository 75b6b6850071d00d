"""Decode raw document text as JSON or YAML.

JSON is, give or take, a subset of YAML, so the order in which the two
decoders are tried decides how ambiguous input is read. :func:`parse`
tries YAML first when the content-type hint mentions YAML or the text
carries a YAML-style ``openapi:``/``swagger:`` key, and JSON first
otherwise. Each decoder returns a :class:`DecodeAttempt` instead of
raising; the first successful attempt wins.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import yaml

from spec2postman.exceptions import SpecParseError, TooLargeError
from spec2postman.models import MIB, format_size

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 3 * MIB

_YAML_MARKERS = ("openapi:", "swagger:")


@dataclass(frozen=True)
class DecodeAttempt:
    """Outcome of running one decoder over the input text."""

    format: str
    ok: bool
    value: Any = None
    error: Optional[Exception] = None


Decoder = Callable[[str], DecodeAttempt]


def _decode_json(text: str) -> DecodeAttempt:
    try:
        return DecodeAttempt("json", True, json.loads(text))
    except (json.JSONDecodeError, RecursionError) as exc:
        return DecodeAttempt("json", False, error=exc)


def _decode_yaml(text: str) -> DecodeAttempt:
    try:
        return DecodeAttempt("yaml", True, yaml.safe_load(text))
    except (yaml.YAMLError, RecursionError) as exc:
        return DecodeAttempt("yaml", False, error=exc)


def decoder_order(text: str, content_type_hint: str = "") -> list[Decoder]:
    """Return the decoders to try for *text*, most likely format first.

    Args:
        text: Raw document text.
        content_type_hint: The response ``Content-Type``, or ``""``.

    Returns:
        ``[yaml, json]`` if the hint mentions YAML or the text contains
        ``openapi:``/``swagger:``; ``[json, yaml]`` otherwise.
    """
    if "yaml" in content_type_hint.lower() or any(m in text for m in _YAML_MARKERS):
        return [_decode_yaml, _decode_json]
    return [_decode_json, _decode_yaml]


def parse(
    text: str,
    content_type_hint: str = "",
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> Any:
    """Parse *text* as JSON or YAML.

    Args:
        text: Raw document text.
        content_type_hint: The response ``Content-Type``, or ``""`` for
            text supplied directly by the caller.
        max_bytes: Limit on the UTF-8 size of *text*.

    Returns:
        The decoded value. Any JSON-compatible tree is accepted here;
        :func:`~spec2postman.parser.validator.validate` decides whether it
        is an OpenAPI document.

    Raises:
        TooLargeError: If *text* exceeds *max_bytes*.
        SpecParseError: If every decoder fails.
    """
    if len(text.encode("utf-8", errors="replace")) > max_bytes:
        raise TooLargeError(f"Content exceeds {format_size(max_bytes)} limit")

    for decoder in decoder_order(text, content_type_hint):
        attempt = decoder(text)
        if attempt.ok:
            logger.debug("Decoded document as %s", attempt.format)
            return attempt.value
        logger.debug("%s decode failed: %s", attempt.format.upper(), attempt.error)

    raise SpecParseError("Content is neither valid JSON nor YAML")
