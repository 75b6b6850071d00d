"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one category of pipeline failure and is referenced by
the corresponding :class:`~spec2postman.exceptions.Spec2PostmanError`
subclass. Shell wrappers can inspect the exit code to tell a refused URL
from an upstream outage without parsing stderr.

Example::

    $ spec2postman fetch ftp://example.com/spec.json
    $ echo $?
    2   # EXIT_INVALID_INPUT -- only http and https are accepted
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_INPUT = 2
"""The URL, request, or target address was rejected before any network call."""

EXIT_RATE_LIMITED = 3
"""The caller exhausted its request budget."""

EXIT_FETCH_ERROR = 5
"""The upstream server answered with a non-2xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The document could not be parsed or is not an OpenAPI/Swagger document."""

EXIT_TOO_LARGE = 8
"""The document exceeded a size limit."""

EXIT_GENERATION_ERROR = 9
"""The document could not be rewritten into a Postman-ready form."""
