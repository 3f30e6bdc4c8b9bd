"""Per-call cancellation token and the call/timer/token race."""

import asyncio
from typing import Awaitable, TypeVar

from content_generation.exceptions import GenerationCanceledError, GenerationTimeoutError

T = TypeVar("T")


def _discard(task: asyncio.Future) -> None:
    """Cancel a task we no longer care about without leaking its exception."""
    task.cancel()
    task.add_done_callback(lambda t: t.cancelled() or t.exception())


class CancellationToken:
    """Cooperative cancellation for one generate call.

    Checked before each attempt and observed at every suspension point:
    the remote call, the timeout race and the backoff sleep.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def canceled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_canceled(self) -> None:
        if self.canceled:
            raise GenerationCanceledError()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless canceled first."""
        self.raise_if_canceled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise GenerationCanceledError()

    async def race(self, awaitable: Awaitable[T], timeout: float) -> T:
        """Await ``awaitable`` against a timer and this token.

        The timer wins with GenerationTimeoutError, the token with
        GenerationCanceledError; the losing call is cancelled either way.
        """
        self.raise_if_canceled()
        call = asyncio.ensure_future(awaitable)
        canceled = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait(
                {call, canceled}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            _discard(call)
            raise
        finally:
            canceled.cancel()

        if self.canceled:
            _discard(call)
            raise GenerationCanceledError()
        if call in done:
            if call.cancelled():
                raise GenerationCanceledError("Remote call was cancelled")
            return call.result()

        _discard(call)
        raise GenerationTimeoutError(timeout_ms=timeout * 1000)
