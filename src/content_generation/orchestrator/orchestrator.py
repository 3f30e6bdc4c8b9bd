"""Generation orchestrator: cache, experiments, timeout, retry and fallback."""

import asyncio
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Coroutine, Dict, List, Optional, Set

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from content_generation.cache.request_cache import RequestCache
from content_generation.config.settings import Settings
from content_generation.exceptions import GenerationError
from content_generation.experiments.variant_selector import VariantSelector
from content_generation.models.content import (
    ContentRequest,
    ExperimentAssignment,
    GenerationAttempt,
    GenerationRequestPayload,
    GenerationState,
)
from content_generation.orchestrator.backoff import BackoffPolicy
from content_generation.orchestrator.cancellation import CancellationToken
from content_generation.orchestrator.error_classifier import classify, to_generation_error
from content_generation.providers.base import GenerationBackend
from content_generation.providers.fallbacks import FallbackResolver
from content_generation.telemetry.logger import RequestContext
from content_generation.telemetry.metrics import GenerationMetrics

logger = structlog.get_logger()

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class GenerationOptions:
    """Behaviour switches for one orchestrator."""

    auto_retry: bool = True
    max_retries: int = 2
    timeout_ms: float = 10000
    use_fallbacks: bool = True
    enable_ab_testing: bool = True
    show_toasts: bool = False  # rendering is the UI's concern

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationOptions":
        return cls(
            auto_retry=settings.auto_retry,
            max_retries=settings.max_retries,
            timeout_ms=settings.timeout_ms,
            use_fallbacks=settings.use_fallbacks,
            enable_ab_testing=settings.enable_ab_testing,
            show_toasts=settings.show_toasts,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1 if self.auto_retry else 1


class GenerationOrchestrator:
    """Runs one content request end to end.

    At most one call is in flight per instance: starting a new ``generate``
    cancels the previous one. Only genuine remote successes are cached;
    cache hits and fallback content never are.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        options: Optional[GenerationOptions] = None,
        cache: Optional[RequestCache] = None,
        variant_selector: Optional[VariantSelector] = None,
        fallbacks: Optional[FallbackResolver] = None,
        backoff: Optional[BackoffPolicy] = None,
        metrics: Optional[GenerationMetrics] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.backend = backend
        self.options = options or GenerationOptions()
        self.cache = cache if cache is not None else RequestCache()
        self.variant_selector = variant_selector or VariantSelector()
        self.fallbacks = fallbacks or FallbackResolver()
        self.backoff = backoff or BackoffPolicy()
        self.metrics = metrics or GenerationMetrics()
        self._sleep = sleep

        self._token: Optional[CancellationToken] = None
        self._state = GenerationState.IDLE
        self.error: Optional[GenerationError] = None
        self._telemetry_tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def is_generating(self) -> bool:
        return self._state in (GenerationState.IN_FLIGHT, GenerationState.RETRYING)

    def _set_state(self, token: CancellationToken, state: GenerationState) -> None:
        # superseded calls must not overwrite the current call's state
        if token is self._token:
            self._state = state

    async def generate(self, request: ContentRequest | Dict[str, Any], user_id: Optional[str] = None) -> str:
        """Generate content for ``request``.

        Returns cached content, fresh content, or fallback content when
        fallbacks are enabled. Otherwise raises the typed error of the last
        classified failure.
        """
        if not isinstance(request, ContentRequest):
            request = ContentRequest.model_validate(request)

        if self._token is not None:
            self._token.cancel()
        token = CancellationToken()
        self._token = token
        self.error = None

        cache_key = request.cache_key()
        cached = self.cache.get(cache_key)
        if cached is not None:
            self._set_state(token, GenerationState.SUCCEEDED)
            self.metrics.record_outcome("cache_hit")
            logger.debug("Cache hit", cache_key=cache_key)
            return cached

        assignment = None
        if self.options.enable_ab_testing:
            assignment = self.variant_selector.assign(request.type, user_id)
        payload = GenerationRequestPayload.from_request(request, assignment)

        attempts: List[GenerationAttempt] = []
        self._set_state(token, GenerationState.IN_FLIGHT)
        with RequestContext(user_id=user_id):
            try:
                content = await self._run_attempts(payload, token, attempts)
            except GenerationError as error:
                return await self._on_failure(request, error, token, assignment, attempts)

            latency_ms = attempts[-1].latency_ms or 0.0
            self.cache.set(cache_key, content, request.type)
            self._set_state(token, GenerationState.SUCCEEDED)
            self.metrics.record_outcome("success")
            self.metrics.record_latency(latency_ms)
            if assignment:
                self._report(self.variant_selector.record_success(assignment, latency_ms))
            logger.info(
                "Content generated",
                content_type=request.type.value,
                attempts=len(attempts),
                latency_ms=round(latency_ms, 1),
                variant_id=assignment.variant_id if assignment else None,
            )
            return content

    def cancel_generation(self) -> None:
        """Cancel the in-flight call, if any. Safe to call repeatedly."""
        if self._token is not None and not self._token.canceled:
            self._token.cancel()
            if self.is_generating:
                self._state = GenerationState.FAILED
                logger.info("Generation canceled")

    def clear_cache(self, type_filter=None) -> int:
        return self.cache.clear(type_filter)

    async def flush_telemetry(self) -> None:
        """Wait for pending experiment reports to finish."""
        if self._telemetry_tasks:
            await asyncio.gather(*self._telemetry_tasks, return_exceptions=True)

    def close(self) -> None:
        """Cancel any in-flight call and pending reports, then drop the cache."""
        self.cancel_generation()
        for task in list(self._telemetry_tasks):
            task.cancel()
        self._telemetry_tasks.clear()
        self.cache.clear()

    def _report(self, report: Coroutine[Any, Any, None]) -> None:
        # experiment telemetry never delays or changes the generation result
        task = asyncio.create_task(report)
        self._telemetry_tasks.add(task)
        task.add_done_callback(self._telemetry_tasks.discard)

    async def _run_attempts(
        self,
        payload: GenerationRequestPayload,
        token: CancellationToken,
        attempts: List[GenerationAttempt],
    ) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.options.max_attempts),
            wait=self.backoff.as_wait(),
            retry=retry_if_exception(self._should_retry),
            before_sleep=partial(self._before_retry, token),
            sleep=partial(self._backoff_sleep, token),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._attempt(payload, token, attempts)

        raise RuntimeError("Retry loop completed without returning")

    async def _attempt(
        self,
        payload: GenerationRequestPayload,
        token: CancellationToken,
        attempts: List[GenerationAttempt],
    ) -> str:
        token.raise_if_canceled()
        attempt = GenerationAttempt(index=len(attempts), started_at=time.monotonic())
        attempts.append(attempt)
        self._set_state(token, GenerationState.IN_FLIGHT)

        try:
            content = await token.race(self.backend.generate(payload), self.options.timeout_ms / 1000)
            if not isinstance(content, str) or not content.strip():
                raise GenerationError("Generation service returned empty content")
        except Exception as e:
            error = to_generation_error(e)
            attempt.error_kind = error.kind
            logger.warning(
                "Generation attempt failed",
                attempt=attempt.index,
                error_kind=error.kind.value,
                status_code=error.status_code,
                error=error.message,
            )
            raise error

        attempt.latency_ms = (time.monotonic() - attempt.started_at) * 1000
        return content

    def _should_retry(self, error: BaseException) -> bool:
        return self.options.auto_retry and classify(error).retryable

    def _before_retry(self, token: CancellationToken, retry_state: RetryCallState) -> None:
        kind = classify(retry_state.outcome.exception())
        delay_s = retry_state.next_action.sleep if retry_state.next_action else 0.0
        self._set_state(token, GenerationState.RETRYING)
        self.metrics.record_retry(kind.value)
        logger.info(
            "Retrying generation",
            retry=retry_state.attempt_number,
            max_retries=self.options.max_retries,
            error_kind=kind.value,
            delay_ms=round(delay_s * 1000),
        )

    async def _backoff_sleep(self, token: CancellationToken, seconds: float) -> None:
        if self._sleep is None:
            await token.sleep(seconds)
            return
        token.raise_if_canceled()
        await self._sleep(seconds)
        token.raise_if_canceled()

    async def _on_failure(
        self,
        request: ContentRequest,
        error: GenerationError,
        token: CancellationToken,
        assignment: Optional[ExperimentAssignment],
        attempts: List[GenerationAttempt],
    ) -> str:
        self._set_state(token, GenerationState.FAILED)
        if token is self._token:
            self.error = error
        if assignment:
            self._report(self.variant_selector.record_failure(assignment, error.kind.value))

        logger.error(
            "Content generation failed",
            content_type=request.type.value,
            error_kind=error.kind.value,
            attempts=[a.error_kind.value if a.error_kind else None for a in attempts],
        )

        if self.options.use_fallbacks:
            self.metrics.record_outcome("fallback")
            return self.fallbacks.resolve(request.type, request.context)

        self.metrics.record_outcome("error")
        raise error
