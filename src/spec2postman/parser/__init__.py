"""Decode and validate OpenAPI documents.

Typical usage::

    from spec2postman.parser import parse, validate, check_document_size

    doc = parse(text, content_type_hint="application/yaml")
    validate(doc)
    check_document_size(doc)

Sub-modules:

* :mod:`~spec2postman.parser.loader` -- JSON/YAML decoding with an ordered
  fallback chosen from the content-type hint and the text itself.
* :mod:`~spec2postman.parser.validator` -- Shallow OpenAPI/Swagger check
  and the post-parse size gate.
"""

from spec2postman.parser.loader import parse
from spec2postman.parser.validator import check_document_size, validate

__all__ = ["parse", "validate", "check_document_size"]
