"""Pytest configuration and fixtures."""

import asyncio
from typing import Any, List

import httpx
import pytest

from content_generation.config import get_settings
from content_generation.orchestrator import GenerationOptions, GenerationOrchestrator


def http_error(status_code: int, headers: dict | None = None) -> httpx.HTTPStatusError:
    """Build a real httpx.HTTPStatusError for ``status_code``."""
    request = httpx.Request("POST", "http://test/generate-content")
    response = httpx.Response(status_code, request=request, headers=headers or {})
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


async def hang():
    await asyncio.sleep(30)
    return "too late"


class ScriptedBackend:
    """Generation backend replaying a script of outcomes.

    Each outcome is a string to return, an exception to raise, or a
    coroutine function to await. The last outcome repeats once the script
    runs out.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[Any] = []

    async def generate(self, payload):
        self.calls.append(payload)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome()
        return outcome


class RecordingSleep:
    """Stand-in for the backoff sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeCleanupBackend:
    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def cleanup_expired(self) -> int:
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(recording_sleep):
    """Factory for orchestrators with instant backoff."""

    def _make(backend, **option_overrides):
        extra = {
            key: option_overrides.pop(key)
            for key in ("cache", "variant_selector", "fallbacks", "backoff", "metrics")
            if key in option_overrides
        }
        options = GenerationOptions(**option_overrides)
        return GenerationOrchestrator(backend, options=options, sleep=recording_sleep, **extra)

    return _make


@pytest.fixture(name="http_error")
def http_error_fixture():
    return http_error


@pytest.fixture(name="ScriptedBackend")
def scripted_backend_class():
    return ScriptedBackend


@pytest.fixture(name="FakeCleanupBackend")
def fake_cleanup_backend_class():
    return FakeCleanupBackend


@pytest.fixture(name="hang")
def hang_fixture():
    return hang
