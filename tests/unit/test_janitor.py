"""Unit tests for the cache janitor."""

import asyncio

import pytest

from content_generation.cache import CacheJanitor
from content_generation.telemetry import GenerationMetrics


class TestCleanup:
    @pytest.mark.asyncio
    async def test_reports_removed_entries(self, FakeCleanupBackend):
        janitor = CacheJanitor(FakeCleanupBackend(12))

        result = await janitor.cleanup()

        assert result.success is True
        assert result.entries_removed == 12
        assert "12" in result.message

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, FakeCleanupBackend):
        metrics = GenerationMetrics()
        janitor = CacheJanitor(FakeCleanupBackend(RuntimeError("edge function down")), metrics=metrics)

        result = await janitor.cleanup()

        assert result.success is False
        assert result.entries_removed is None
        assert "edge function down" in result.message
        assert metrics.snapshot()["cleanups"] == {"success": 0, "failure": 1}

    @pytest.mark.asyncio
    async def test_is_cleaning_up_while_running(self):
        started = asyncio.Event()
        release = asyncio.Event()

        class SlowBackend:
            async def cleanup_expired(self):
                started.set()
                await release.wait()
                return 3

        janitor = CacheJanitor(SlowBackend())
        task = asyncio.create_task(janitor.cleanup())
        await started.wait()
        assert janitor.is_cleaning_up

        release.set()
        result = await task
        assert result.entries_removed == 3
        assert not janitor.is_cleaning_up


class TestScheduledCleanup:
    """Test suite for scheduled cleanup."""

    @pytest.mark.asyncio
    async def test_runs_immediately_then_repeats(self, FakeCleanupBackend):
        backend = FakeCleanupBackend(1)
        janitor = CacheJanitor(backend)

        handle = await janitor.schedule_cleanup(0.0005)
        assert backend.calls == 1
        assert handle.runs == 1
        assert handle.active

        await asyncio.sleep(0.15)
        await handle.stop()

        assert backend.calls >= 2
        assert not handle.active

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_schedule(self, FakeCleanupBackend):
        backend = FakeCleanupBackend(RuntimeError("boom"), RuntimeError("again"), 5)
        janitor = CacheJanitor(backend)

        handle = await janitor.schedule_cleanup(0.0005)
        assert handle.last_result.success is False

        await asyncio.sleep(0.2)
        handle.cancel()
        await handle.stop()

        assert backend.calls >= 3
        assert handle.last_result.success is True
        assert handle.last_result.entries_removed == 5

    @pytest.mark.asyncio
    async def test_rejects_non_positive_interval(self, FakeCleanupBackend):
        janitor = CacheJanitor(FakeCleanupBackend(0))
        with pytest.raises(ValueError):
            await janitor.schedule_cleanup(0)
