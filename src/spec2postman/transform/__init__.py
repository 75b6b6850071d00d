"""Rewrite validated OpenAPI documents for import into Postman."""

from spec2postman.transform.postman import BEARER_SCHEME, get_origin, transform

__all__ = ["BEARER_SCHEME", "get_origin", "transform"]
