"""Orchestrator module for retry, backoff and cancellation."""

from content_generation.orchestrator.backoff import BackoffPolicy, BackoffRule
from content_generation.orchestrator.cancellation import CancellationToken
from content_generation.orchestrator.error_classifier import classify, to_generation_error
from content_generation.orchestrator.orchestrator import GenerationOptions, GenerationOrchestrator

__all__ = [
    "BackoffPolicy",
    "BackoffRule",
    "CancellationToken",
    "classify",
    "to_generation_error",
    "GenerationOptions",
    "GenerationOrchestrator",
]
