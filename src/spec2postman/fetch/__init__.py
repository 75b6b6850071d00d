"""Locate and retrieve OpenAPI documents over HTTP.

Sub-modules:

* :mod:`~spec2postman.fetch.resolver` -- Guess the machine-readable spec
  URL behind a human-facing docs URL.
* :mod:`~spec2postman.fetch.fetcher` -- Guarded, size- and time-bounded
  retrieval of that URL.
"""

from spec2postman.fetch.fetcher import SecureFetcher, check_target, is_private_host
from spec2postman.fetch.resolver import resolve

__all__ = ["SecureFetcher", "check_target", "is_private_host", "resolve"]
