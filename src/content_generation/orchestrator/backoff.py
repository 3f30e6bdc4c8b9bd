"""Per-error-kind exponential backoff."""

from dataclasses import dataclass
from typing import Dict, Optional

from tenacity import RetryCallState
from tenacity.wait import wait_base

from content_generation.exceptions import RateLimitError
from content_generation.models.content import ErrorKind
from content_generation.orchestrator.error_classifier import classify


@dataclass(frozen=True)
class BackoffRule:
    """Exponential schedule for one error kind, in milliseconds."""

    base_ms: float
    multiplier: float
    max_ms: float

    def delay(self, attempt_index: int) -> float:
        return min(self.base_ms * self.multiplier ** max(attempt_index, 0), self.max_ms)


DEFAULT_RULE = BackoffRule(base_ms=1000, multiplier=2.0, max_ms=10_000)

DEFAULT_RULES: Dict[ErrorKind, BackoffRule] = {
    ErrorKind.NETWORK: BackoffRule(base_ms=1000, multiplier=1.5, max_ms=10_000),
    # timeouts usually mean the service is overloaded
    ErrorKind.TIMEOUT: BackoffRule(base_ms=1500, multiplier=2.0, max_ms=15_000),
    ErrorKind.SERVICE_UNAVAILABLE: BackoffRule(base_ms=2000, multiplier=2.0, max_ms=20_000),
    ErrorKind.RATE_LIMIT: BackoffRule(base_ms=3000, multiplier=2.5, max_ms=30_000),
    ErrorKind.AUTHORIZATION: DEFAULT_RULE,
    ErrorKind.GENERIC: DEFAULT_RULE,
}


class BackoffPolicy:
    """Computes the wait before retry ``attempt_index`` for an error kind."""

    def __init__(self, rules: Optional[Dict[ErrorKind, BackoffRule]] = None):
        self.rules = dict(DEFAULT_RULES)
        if rules:
            self.rules.update(rules)

    def rule_for(self, kind: ErrorKind) -> BackoffRule:
        kind = ErrorKind(kind)
        if kind is ErrorKind.CANCELED:
            raise ValueError("Canceled attempts are never retried")
        return self.rules.get(kind, DEFAULT_RULE)

    def delay(self, attempt_index: int, kind: ErrorKind) -> float:
        """Delay in milliseconds, non-decreasing in ``attempt_index`` and capped."""
        return self.rule_for(kind).delay(attempt_index)

    def delay_for_error(self, attempt_index: int, error: BaseException) -> float:
        """Like ``delay`` but honors a server ``retry_after`` hint on rate limits."""
        kind = classify(error)
        rule = self.rule_for(kind)
        delay_ms = rule.delay(attempt_index)
        if isinstance(error, RateLimitError) and error.retry_after:
            delay_ms = min(max(delay_ms, error.retry_after * 1000), rule.max_ms)
        return delay_ms

    def as_wait(self) -> "wait_backoff_policy":
        return wait_backoff_policy(self)


class wait_backoff_policy(wait_base):
    """Tenacity wait strategy backed by a BackoffPolicy.

    Tenacity counts attempts from 1; the first retry uses attempt index 0.
    """

    def __init__(self, policy: BackoffPolicy):
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return 0.0
        attempt_index = retry_state.attempt_number - 1
        return self.policy.delay_for_error(attempt_index, outcome.exception()) / 1000.0


__all__ = ["BackoffRule", "BackoffPolicy", "DEFAULT_RULES", "wait_backoff_policy"]
