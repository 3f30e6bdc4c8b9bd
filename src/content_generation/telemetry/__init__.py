"""Telemetry module for logging and metrics."""

from content_generation.telemetry.logger import RequestContext, get_logger, setup_logging
from content_generation.telemetry.metrics import GenerationMetrics

__all__ = ["get_logger", "setup_logging", "RequestContext", "GenerationMetrics"]
