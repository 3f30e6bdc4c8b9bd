"""Unit tests for the httpx backends and the caller-facing client."""

import json

import httpx
import pytest

from content_generation import AuthorizationError, ContentGenerationClient, ContentRequest
from content_generation.config import Settings
from content_generation.models import ErrorKind, ExperimentAssignment, GenerationRequestPayload
from content_generation.orchestrator import classify
from content_generation.providers import HttpCacheCleanupBackend, HttpGenerationBackend


def make_transport(handler, seen):
    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return httpx.MockTransport(_handler)


class TestHttpGenerationBackend:
    @pytest.mark.asyncio
    async def test_posts_payload_and_reads_content(self):
        seen = []
        transport = make_transport(lambda r: httpx.Response(200, json={"content": " Ship faster. "}), seen)
        async with httpx.AsyncClient(transport=transport) as client:
            backend = HttpGenerationBackend("http://gen.test/functions/v1/", api_key="secret", client=client)
            request = ContentRequest(type="tagline", context="B2B SaaS", max_length=30)
            assignment = ExperimentAssignment(test_id="t", variant_id="v2", user_id="u")

            content = await backend.generate(GenerationRequestPayload.from_request(request, assignment))

        assert content == "Ship faster."
        sent = seen[0]
        assert str(sent.url) == "http://gen.test/functions/v1/generate-content"
        assert sent.headers["Authorization"] == "Bearer secret"
        body = json.loads(sent.content)
        assert body["type"] == "tagline"
        assert body["maxLength"] == 30
        assert body["variantId"] == "v2"
        assert body["cacheKey"] == request.cache_key()

    @pytest.mark.asyncio
    async def test_http_errors_are_classifiable(self):
        transport = make_transport(lambda r: httpx.Response(503, json={"error": "busy"}), [])
        async with httpx.AsyncClient(transport=transport) as client:
            backend = HttpGenerationBackend("http://gen.test", client=client)
            payload = GenerationRequestPayload.from_request(ContentRequest(type="cta"))

            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await backend.generate(payload)

        assert classify(exc_info.value) is ErrorKind.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_missing_content_raises(self):
        transport = make_transport(lambda r: httpx.Response(200, json={}), [])
        async with httpx.AsyncClient(transport=transport) as client:
            backend = HttpGenerationBackend("http://gen.test", client=client)
            with pytest.raises(ValueError):
                await backend.generate(GenerationRequestPayload.from_request(ContentRequest(type="cta")))


class TestHttpCacheCleanupBackend:
    @pytest.mark.asyncio
    async def test_reads_entries_removed(self):
        seen = []
        transport = make_transport(lambda r: httpx.Response(200, json={"entriesRemoved": 12}), seen)
        async with httpx.AsyncClient(transport=transport) as client:
            backend = HttpCacheCleanupBackend("http://gen.test", client=client)
            assert await backend.cleanup_expired() == 12

        assert seen[0].url.path == "/cleanup-expired-cache"


class TestContentGenerationClient:
    """End-to-end through the caller-facing client."""

    @pytest.mark.asyncio
    async def test_from_settings_generates_and_cleans_up(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("generate-content"):
                return httpx.Response(200, json={"content": "Hello there"})
            return httpx.Response(200, json={"entriesRemoved": 12})

        settings = Settings(GENERATION_API_URL="http://gen.test", GENERATION_MAX_RETRIES=0)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        async with ContentGenerationClient.from_settings(settings, http_client=http_client) as client:
            assert not client.is_generating
            assert await client.generate({"type": "header", "context": "Acme"}) == "Hello there"
            assert await client.generate({"type": "header", "context": "Acme"}) == "Hello there"

            result = await client.cleanup_cache()
            assert result.success is True
            assert result.entries_removed == 12
            assert client.error is None
            assert client.metrics.snapshot()["requests"]["cache_hit"] == 1

            exposition = client.metrics.export().decode()
            assert 'content_generation_requests_total{outcome="success"} 1.0' in exposition
            assert 'content_generation_cache_cleanups_total{result="success"} 1.0' in exposition

        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_failure_without_fallback_surfaces_typed_error(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(403))
        settings = Settings(
            GENERATION_API_URL="http://gen.test",
            GENERATION_MAX_RETRIES=0,
            GENERATION_USE_FALLBACKS=False,
        )
        http_client = httpx.AsyncClient(transport=transport)

        async with ContentGenerationClient.from_settings(settings, http_client=http_client) as client:
            with pytest.raises(AuthorizationError) as exc_info:
                await client.generate(ContentRequest(type="tagline"))
            assert exc_info.value.kind is ErrorKind.AUTHORIZATION
            assert client.error is exc_info.value

        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_scheduled_cleanup_stops_on_close(self, ScriptedBackend, FakeCleanupBackend):
        cleanup_backend = FakeCleanupBackend(2)
        client = ContentGenerationClient(ScriptedBackend("x"), cleanup_backend)

        handle = await client.schedule_regular_cleanup(60)
        assert handle.last_result.entries_removed == 2
        assert handle.active

        await client.aclose()
        assert not handle.active
        assert cleanup_backend.calls == 1

    @pytest.mark.asyncio
    async def test_scheduled_cleanup_uses_configured_interval(self):
        seen = []
        transport = make_transport(lambda r: httpx.Response(200, json={"entriesRemoved": 4}), seen)
        settings = Settings(GENERATION_API_URL="http://gen.test", CACHE_CLEANUP_INTERVAL_MINUTES=15)
        http_client = httpx.AsyncClient(transport=transport)

        async with ContentGenerationClient.from_settings(settings, http_client=http_client) as client:
            handle = await client.schedule_regular_cleanup()
            assert handle.interval_minutes == 15
            assert handle.last_result.entries_removed == 4

            override = await client.schedule_regular_cleanup(120)
            assert override.interval_minutes == 120

        assert not handle.active
        assert len(seen) == 2
        await http_client.aclose()
