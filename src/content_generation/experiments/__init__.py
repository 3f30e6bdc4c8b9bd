"""A/B experiments over generation variants."""

from content_generation.experiments.variant_selector import (
    Experiment,
    ExperimentRegistry,
    InMemoryExperimentRegistry,
    InMemoryTelemetrySink,
    TelemetrySink,
    Variant,
    VariantSelector,
)

__all__ = [
    "Experiment",
    "ExperimentRegistry",
    "InMemoryExperimentRegistry",
    "InMemoryTelemetrySink",
    "TelemetrySink",
    "Variant",
    "VariantSelector",
]
