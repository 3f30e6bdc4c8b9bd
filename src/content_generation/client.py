"""Caller-facing client bundling generation and cache maintenance."""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from content_generation.cache.janitor import CacheCleanupBackend, CacheJanitor, CleanupHandle
from content_generation.cache.request_cache import RequestCache
from content_generation.config import Settings, get_settings
from content_generation.exceptions import GenerationError
from content_generation.experiments.variant_selector import VariantSelector
from content_generation.models.content import CleanupResult, ContentRequest, ContentType
from content_generation.orchestrator.orchestrator import GenerationOptions, GenerationOrchestrator
from content_generation.providers.base import (
    GenerationBackend,
    HttpCacheCleanupBackend,
    HttpGenerationBackend,
)
from content_generation.telemetry.metrics import GenerationMetrics

logger = structlog.get_logger()


class ContentGenerationClient:
    """generate / cancel / cleanup surface with observable state."""

    def __init__(
        self,
        backend: GenerationBackend,
        cleanup_backend: CacheCleanupBackend,
        options: Optional[GenerationOptions] = None,
        cache: Optional[RequestCache] = None,
        variant_selector: Optional[VariantSelector] = None,
        metrics: Optional[GenerationMetrics] = None,
        cleanup_interval_minutes: float = 60.0,
        **orchestrator_kwargs: Any,
    ):
        self.metrics = metrics or GenerationMetrics()
        self.cleanup_interval_minutes = cleanup_interval_minutes
        self.orchestrator = GenerationOrchestrator(
            backend,
            options=options,
            cache=cache,
            variant_selector=variant_selector,
            metrics=self.metrics,
            **orchestrator_kwargs,
        )
        self.janitor = CacheJanitor(cleanup_backend, metrics=self.metrics)
        self._schedules: List[CleanupHandle] = []
        self._closeables: List[Any] = []

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        variant_selector: Optional[VariantSelector] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "ContentGenerationClient":
        """Wire the HTTP backends from configuration."""
        settings = settings or get_settings()
        options = GenerationOptions.from_settings(settings)
        backend = HttpGenerationBackend(settings.generation_api_url, settings.api_key, client=http_client)
        cleanup_backend = HttpCacheCleanupBackend(
            settings.generation_api_url, settings.api_key, client=backend.client
        )
        if variant_selector is None:
            variant_selector = VariantSelector(enabled=settings.enable_ab_testing)
        client = cls(
            backend,
            cleanup_backend,
            options=options,
            cache=RequestCache(max_entries=settings.cache_max_entries),
            variant_selector=variant_selector,
            cleanup_interval_minutes=settings.cache_cleanup_interval_minutes,
        )
        client._closeables.append(backend)
        return client

    @property
    def is_generating(self) -> bool:
        return self.orchestrator.is_generating

    @property
    def is_cleaning_up(self) -> bool:
        return self.janitor.is_cleaning_up

    @property
    def error(self) -> Optional[GenerationError]:
        return self.orchestrator.error

    async def generate(self, request: ContentRequest | Dict[str, Any], user_id: Optional[str] = None) -> str:
        return await self.orchestrator.generate(request, user_id=user_id)

    def cancel_generation(self) -> None:
        self.orchestrator.cancel_generation()

    def clear_cache(self, type_filter: ContentType | str | None = None) -> int:
        return self.orchestrator.clear_cache(type_filter)

    async def cleanup_cache(self) -> CleanupResult:
        return await self.janitor.cleanup()

    async def schedule_regular_cleanup(self, interval_minutes: Optional[float] = None) -> CleanupHandle:
        """Start periodic cleanup, every ``cleanup_interval_minutes`` unless overridden."""
        if interval_minutes is None:
            interval_minutes = self.cleanup_interval_minutes
        handle = await self.janitor.schedule_cleanup(interval_minutes)
        self._schedules.append(handle)
        return handle

    async def aclose(self) -> None:
        for handle in self._schedules:
            await handle.stop()
        self._schedules.clear()
        self.orchestrator.close()
        for closeable in self._closeables:
            await closeable.aclose()
        self._closeables.clear()
        logger.debug("Content generation client closed")

    async def __aenter__(self) -> "ContentGenerationClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
