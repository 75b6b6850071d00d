"""Tests for spec2postman.pipeline."""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from spec2postman.fetch import SecureFetcher
from spec2postman.limiter import RateLimiter
from spec2postman.models import FetchResult, PipelineResult, RateLimitConfig
from spec2postman.parser.validator import serialized_size
from spec2postman.pipeline import SpecPipeline

DOCS_URL = "https://petstore3.swagger.io/api/v3/docs"
SPEC_URL = "https://petstore3.swagger.io/api/v3/openapi.json"


@pytest.fixture
def serve(mock_transport):
    """Build a pipeline whose fetcher answers every request with one response."""

    def _serve(body: str | bytes, content_type: str = "application/json", status_code: int = 200, **kwargs):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status_code, headers={"content-type": content_type}, content=body
            )

        transport = mock_transport(handler)
        pipeline = SpecPipeline(fetcher=SecureFetcher(transport=transport), **kwargs)
        return pipeline, transport

    return _serve


class _ExplodingFetcher:
    def fetch(self, url: str) -> FetchResult:
        raise RuntimeError("socket exploded at 0xdeadbeef")


# ---------------------------------------------------------------------------
# fetch_by_url
# ---------------------------------------------------------------------------


class TestFetchByUrl:
    def test_petstore_end_to_end(self, serve, petstore_30_text: str) -> None:
        pipeline, transport = serve(petstore_30_text)
        result = pipeline.fetch_by_url(DOCS_URL)

        assert result.ok is True
        assert result.http_status == 200
        assert str(transport.requests[0].url) == SPEC_URL
        assert result.data["servers"] == [{"url": "https://petstore3.swagger.io/api/v3"}]
        assert result.data["info"]["title"] == "Swagger Petstore - OpenAPI 3.0"
        assert result.meta == {
            "sourceContentType": "application/json",
            "bytes": len(petstore_30_text.encode("utf-8")),
        }

    def test_payload_shape(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text)
        payload = pipeline.fetch_by_url(DOCS_URL).to_payload()
        assert set(payload) == {"ok", "data", "meta"}
        json.dumps(payload)

    def test_yaml_spec(self, serve, swagger_20_yaml: str) -> None:
        pipeline, transport = serve(swagger_20_yaml, content_type="application/yaml")
        result = pipeline.fetch_by_url("https://petstore.swagger.io/v2/swagger-ui/")

        assert result.ok is True
        assert transport.requests[0].url.path == "/v2/openapi.json"
        assert result.data["swagger"] == "2.0"
        assert result.data["servers"] == [{"url": "https://petstore.swagger.io"}]
        assert result.meta["sourceContentType"] == "application/yaml"

    def test_invalid_url(self, serve) -> None:
        pipeline, transport = serve("{}")
        payload = pipeline.fetch_by_url("not a url").to_payload()
        assert payload == {
            "ok": False,
            "error": {"code": "INVALID_URL", "message": "Invalid URL provided"},
        }
        assert transport.requests == []

    def test_ftp_is_refused_without_network(self, serve) -> None:
        pipeline, transport = serve("{}")
        result = pipeline.fetch_by_url("ftp://example.com/openapi.json")
        assert result.error.code == "INVALID_PROTOCOL"
        assert result.http_status == 400
        assert transport.requests == []

    def test_private_host_refused(self, serve) -> None:
        pipeline, transport = serve("{}")
        result = pipeline.fetch_by_url("http://192.168.1.20/docs")
        assert result.error.code == "PRIVATE_IP"
        assert result.error.message == "Private IP addresses are not allowed"
        assert transport.requests == []

    def test_upstream_error(self, serve) -> None:
        pipeline, _ = serve("gone", status_code=404)
        result = pipeline.fetch_by_url(DOCS_URL)
        assert result.error.code == "FETCH_ERROR"
        assert result.error.message == "HTTP 404: Not Found"
        assert result.http_status == 502

    def test_html_page_is_not_openapi(self, serve) -> None:
        pipeline, _ = serve("<html><body>Docs</body></html>", content_type="text/html")
        result = pipeline.fetch_by_url(DOCS_URL)
        assert result.error.code == "INVALID_OPENAPI"
        assert result.http_status == 400

    def test_garbage_is_parse_error(self, serve) -> None:
        pipeline, _ = serve("key: [unclosed", content_type="text/plain")
        result = pipeline.fetch_by_url(DOCS_URL)
        assert result.error.code == "PARSE_ERROR"

    def test_unexpected_exception_is_internal_error(self, caplog: pytest.LogCaptureFixture) -> None:
        pipeline = SpecPipeline(fetcher=_ExplodingFetcher())
        with caplog.at_level(logging.ERROR, logger="spec2postman.pipeline"):
            result = pipeline.fetch_by_url(DOCS_URL)

        assert result.to_payload() == {
            "ok": False,
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
        }
        assert result.http_status == 500
        assert "deadbeef" not in result.error.message
        assert any(record.exc_info for record in caplog.records)


class TestRateLimiting:
    def test_eleventh_request_refused(self, serve, petstore_30_text: str) -> None:
        pipeline, transport = serve(petstore_30_text)
        results = [pipeline.fetch_by_url(DOCS_URL, identifier="203.0.113.7") for _ in range(11)]

        assert all(r.ok for r in results[:10])
        assert results[10].to_payload()["error"] == {
            "code": "RATE_LIMITED",
            "message": "Too many requests",
        }
        assert results[10].http_status == 429
        assert len(transport.requests) == 10

    def test_identifiers_are_independent(self, serve, petstore_30_text: str) -> None:
        limiter = RateLimiter(RateLimitConfig(capacity=1))
        pipeline, _ = serve(petstore_30_text, limiter=limiter)

        assert pipeline.fetch_by_url(DOCS_URL, identifier="a").ok
        assert pipeline.fetch_by_url(DOCS_URL, identifier="b").ok
        assert pipeline.fetch_by_url(DOCS_URL, identifier="a").error.code == "RATE_LIMITED"

    def test_default_identifier(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text)
        pipeline.fetch_by_url(DOCS_URL)
        assert pipeline.limiter.tokens("unknown") == 9

    def test_failed_requests_still_cost_a_token(self, serve) -> None:
        pipeline, _ = serve("{}", limiter=RateLimiter(RateLimitConfig(capacity=1)))
        assert pipeline.fetch_by_url("not a url", identifier="x").error.code == "INVALID_URL"
        assert pipeline.fetch_by_url(DOCS_URL, identifier="x").error.code == "RATE_LIMITED"

    def test_generate_shares_the_bucket(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text, limiter=RateLimiter(RateLimitConfig(capacity=1)))
        assert pipeline.fetch_by_url(DOCS_URL, identifier="x").ok
        assert pipeline.generate_collection(DOCS_URL, identifier="x").error.code == "RATE_LIMITED"


# ---------------------------------------------------------------------------
# fetch_by_text
# ---------------------------------------------------------------------------


class TestFetchByText:
    def test_json_document(self, petstore_30_text: str, petstore_30_raw: dict) -> None:
        result = SpecPipeline().fetch_by_text(petstore_30_text)
        assert result.ok is True
        assert result.data == petstore_30_raw
        assert result.meta == {
            "sourceContentType": "",
            "bytes": len(petstore_30_text.encode("utf-8")),
        }

    def test_servers_not_rewritten(self, petstore_30_text: str) -> None:
        result = SpecPipeline().fetch_by_text(petstore_30_text)
        assert result.data["servers"] == [{"url": "/api/v3"}]

    def test_yaml_document(self, swagger_20_yaml: str) -> None:
        result = SpecPipeline().fetch_by_text(swagger_20_yaml)
        assert result.data["swagger"] == "2.0"

    @pytest.mark.parametrize("content", ["", "   \n"])
    def test_empty_content(self, content: str) -> None:
        result = SpecPipeline().fetch_by_text(content)
        assert result.error.code == "INVALID_REQUEST"
        assert result.http_status == 400

    def test_not_openapi(self) -> None:
        result = SpecPipeline().fetch_by_text('{"name": "not a spec"}')
        assert result.error.code == "INVALID_OPENAPI"

    def test_parse_error(self) -> None:
        result = SpecPipeline().fetch_by_text("{ broken: [json")
        assert result.error.code == "PARSE_ERROR"

    def test_not_rate_limited(self, petstore_30_text: str) -> None:
        pipeline = SpecPipeline(limiter=RateLimiter(RateLimitConfig(capacity=1)))
        assert all(pipeline.fetch_by_text(petstore_30_text).ok for _ in range(5))
        assert len(pipeline.limiter) == 0


# ---------------------------------------------------------------------------
# generate_collection
# ---------------------------------------------------------------------------


class TestGenerateCollection:
    def test_default_filename_and_meta(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text)
        result = pipeline.generate_collection(DOCS_URL)

        assert result.ok is True
        assert result.meta == {
            "filename": "postman_collection.json",
            "contentType": "application/json",
            "size": serialized_size(result.data),
        }
        assert "security" not in result.data

    def test_custom_filename(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text)
        result = pipeline.generate_collection(DOCS_URL, filename="petstore v3")
        assert result.meta["filename"] == "petstore v3.json"

    def test_blank_filename_uses_default(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text)
        result = pipeline.generate_collection(DOCS_URL, filename="  ")
        assert result.meta["filename"] == "postman_collection.json"

    @pytest.mark.parametrize("filename", ["../etc/passwd", "a/b", "..", "semi;colon"])
    def test_invalid_filename(self, serve, petstore_30_text: str, filename: str) -> None:
        pipeline, transport = serve(petstore_30_text)
        result = pipeline.generate_collection(DOCS_URL, filename=filename)
        assert result.to_payload()["error"] == {
            "code": "INVALID_REQUEST",
            "message": "Invalid request data",
        }
        assert transport.requests == []

    def test_authorization_scaffolded(self, serve, petstore_30_text: str) -> None:
        pipeline, _ = serve(petstore_30_text)
        result = pipeline.generate_collection(DOCS_URL, authorization="tok-123")

        assert result.data["security"] == [{"BearerAuth": []}]
        assert result.data["variables"]["AUTHORIZATION"]["default"] == "tok-123"
        assert result.data["servers"] == [{"url": "https://petstore3.swagger.io/api/v3"}]

    def test_generation_error(self, serve) -> None:
        body = json.dumps({"openapi": "3.0.0", "components": "broken"})
        pipeline, _ = serve(body)
        result = pipeline.generate_collection(DOCS_URL, authorization="tok")
        assert result.error.code == "GENERATION_ERROR"
        assert result.http_status == 500


class TestUrlShape:
    @pytest.mark.parametrize(
        "url", ["file:///etc/passwd", "mailto:a@example.com", "javascript:alert(1)", "FTP://host/x"]
    )
    def test_non_http_scheme_is_protocol_error(self, serve, url: str) -> None:
        pipeline, transport = serve("{}")
        result = pipeline.fetch_by_url(url)
        assert result.error.code == "INVALID_PROTOCOL"
        assert result.error.message == "Only HTTP and HTTPS URLs are allowed"
        assert transport.requests == []

    @pytest.mark.parametrize("url", ["", "example.com/docs", "https:///openapi.json"])
    def test_missing_scheme_or_host_is_invalid_url(self, serve, url: str) -> None:
        pipeline, _ = serve("{}")
        assert pipeline.fetch_by_url(url).error.code == "INVALID_URL"


class TestInjectedCollaborators:
    def test_fresh_limiter_is_used(self, serve, petstore_30_text: str) -> None:
        limiter = RateLimiter(RateLimitConfig(capacity=1))
        pipeline, _ = serve(petstore_30_text, limiter=limiter)
        assert pipeline.limiter is limiter

    def test_pipelines_share_one_limiter(self, mock_transport, petstore_30_text: str) -> None:
        transport = mock_transport(
            lambda request: httpx.Response(200, content=petstore_30_text)
        )
        limiter = RateLimiter(RateLimitConfig(capacity=1))
        first = SpecPipeline(limiter=limiter, fetcher=SecureFetcher(transport=transport))
        second = SpecPipeline(limiter=limiter, fetcher=SecureFetcher(transport=transport))

        assert first.fetch_by_url(DOCS_URL, identifier="x").ok
        assert second.fetch_by_url(DOCS_URL, identifier="x").error.code == "RATE_LIMITED"


class TestAliasExpansion:
    def test_alias_bomb_is_too_large(self) -> None:
        lines = ['openapi: "3.0.0"', 'l0: &l0 ["xxxxxxxxxx", "xxxxxxxxxx", "xxxxxxxxxx", "xxxxxxxxxx"]']
        for n in range(1, 10):
            lines.append(f"l{n}: &l{n} [{', '.join([f'*l{n - 1}'] * 10)}]")
        result = SpecPipeline().fetch_by_text("\n".join(lines) + "\n")
        assert result.error.code == "TOO_LARGE"
        assert result.error.message == "Processed content exceeds 2.5MB limit"
        assert result.http_status == 413


class TestPayload:
    def test_failure_without_detail_reports_internal_error(self) -> None:
        assert PipelineResult(ok=False).to_payload() == {
            "ok": False,
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
        }
