"""A/B variant assignment and outcome telemetry."""

import hashlib
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import structlog

from content_generation.models.content import ContentType, ExperimentAssignment

logger = structlog.get_logger()


@dataclass(frozen=True)
class Variant:
    """One arm of an experiment."""

    variant_id: str
    weight: float = 1.0


@dataclass
class Experiment:
    """An active prompt experiment for one content type."""

    test_id: str
    content_type: ContentType
    variants: Sequence[Variant]
    active: bool = True

    def __post_init__(self):
        self.content_type = ContentType(self.content_type)
        if not self.variants:
            raise ValueError("Experiment needs at least one variant")
        if any(v.weight <= 0 for v in self.variants):
            raise ValueError("Variant weights must be positive")


class ExperimentRegistry(Protocol):
    """Source of active experiments."""

    def active_experiment(self, content_type: ContentType) -> Optional[Experiment]: ...


class TelemetrySink(Protocol):
    """Receives experiment outcome events."""

    async def record_success(self, test_id: str, variant_id: str, user_id: str, latency_ms: float) -> None: ...

    async def record_failure(self, test_id: str, variant_id: str, user_id: str, error_kind: str) -> None: ...


class InMemoryExperimentRegistry:
    """Experiments held in a dict keyed by content type."""

    def __init__(self, experiments: Optional[Sequence[Experiment]] = None):
        self._experiments: Dict[ContentType, Experiment] = {}
        for experiment in experiments or []:
            self.register(experiment)

    def register(self, experiment: Experiment) -> None:
        self._experiments[experiment.content_type] = experiment

    def deactivate(self, test_id: str) -> None:
        for experiment in self._experiments.values():
            if experiment.test_id == test_id:
                experiment.active = False

    def active_experiment(self, content_type: ContentType) -> Optional[Experiment]:
        experiment = self._experiments.get(ContentType(content_type))
        if experiment and experiment.active:
            return experiment
        return None


@dataclass
class VariantStats:
    """Aggregated outcomes for one variant."""

    successes: int = 0
    failures: int = 0
    total_latency_ms: float = 0.0
    failure_kinds: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    @property
    def mean_latency_ms(self) -> float:
        return self.total_latency_ms / self.successes if self.successes else 0.0

    @property
    def success_rate(self) -> float:
        total = self.successes + self.failures
        return self.successes / total if total else 0.0


class InMemoryTelemetrySink:
    """Keeps outcome events and per-variant aggregates in memory."""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []
        self._stats: Dict[str, Dict[str, VariantStats]] = defaultdict(lambda: defaultdict(VariantStats))

    async def record_success(self, test_id: str, variant_id: str, user_id: str, latency_ms: float) -> None:
        self.events.append(
            {"event": "success", "test_id": test_id, "variant_id": variant_id,
             "user_id": user_id, "latency_ms": latency_ms}
        )
        stats = self._stats[test_id][variant_id]
        stats.successes += 1
        stats.total_latency_ms += latency_ms

    async def record_failure(self, test_id: str, variant_id: str, user_id: str, error_kind: str) -> None:
        self.events.append(
            {"event": "failure", "test_id": test_id, "variant_id": variant_id,
             "user_id": user_id, "error_kind": error_kind}
        )
        stats = self._stats[test_id][variant_id]
        stats.failures += 1
        stats.failure_kinds[error_kind] += 1

    def summary(self, test_id: str) -> Dict[str, Dict[str, float]]:
        return {
            variant_id: {
                "successes": stats.successes,
                "failures": stats.failures,
                "success_rate": stats.success_rate,
                "mean_latency_ms": stats.mean_latency_ms,
            }
            for variant_id, stats in self._stats.get(test_id, {}).items()
        }


def bucket_for(test_id: str, user_id: str) -> float:
    """Stable position in [0, 1) for a user within an experiment."""
    digest = hashlib.sha256(f"{test_id}:{user_id}".encode()).hexdigest()
    return int(digest[:8], 16) / 0x100000000


class VariantSelector:
    """Assigns users to experiment variants and reports outcomes."""

    def __init__(
        self,
        registry: Optional[ExperimentRegistry] = None,
        sink: Optional[TelemetrySink] = None,
        enabled: bool = True,
    ):
        self.registry = registry or InMemoryExperimentRegistry()
        self.sink = sink
        self.enabled = enabled

    def assign(self, content_type: ContentType | str, user_id: Optional[str]) -> Optional[ExperimentAssignment]:
        """Variant for this user, or None when anonymous or nothing is running."""
        if not self.enabled or not user_id:
            return None

        try:
            experiment = self.registry.active_experiment(ContentType(content_type))
        except Exception as e:
            logger.warning("Experiment lookup failed", content_type=str(content_type), error=str(e))
            return None
        if experiment is None:
            return None

        variant = self._pick_variant(experiment, user_id)
        return ExperimentAssignment(test_id=experiment.test_id, variant_id=variant.variant_id, user_id=user_id)

    @staticmethod
    def _pick_variant(experiment: Experiment, user_id: str) -> Variant:
        position = bucket_for(experiment.test_id, user_id) * sum(v.weight for v in experiment.variants)
        cumulative = 0.0
        for variant in experiment.variants:
            cumulative += variant.weight
            if position < cumulative:
                return variant
        return experiment.variants[-1]

    async def record_success(self, assignment: ExperimentAssignment, latency_ms: float) -> None:
        if self.sink is None:
            return
        try:
            await self.sink.record_success(
                assignment.test_id, assignment.variant_id, assignment.user_id, latency_ms
            )
        except Exception as e:
            logger.warning("Failed to record experiment success", test_id=assignment.test_id, error=str(e))

    async def record_failure(self, assignment: ExperimentAssignment, error_kind: str) -> None:
        if self.sink is None:
            return
        try:
            await self.sink.record_failure(
                assignment.test_id, assignment.variant_id, assignment.user_id, error_kind
            )
        except Exception as e:
            logger.warning("Failed to record experiment failure", test_id=assignment.test_id, error=str(e))
