__version__ = "1.0.0"


def get_version():
    return __version__


from content_generation.client import ContentGenerationClient
from content_generation.exceptions import (
    AuthorizationError,
    GenerationCanceledError,
    GenerationError,
    GenerationTimeoutError,
    NetworkError,
    RateLimitError,
    ServiceUnavailableError,
)
from content_generation.models import CleanupResult, ContentRequest, ContentType, ErrorKind
from content_generation.orchestrator import GenerationOptions, GenerationOrchestrator

__all__ = [
    "__version__",
    "get_version",
    "ContentGenerationClient",
    "GenerationOrchestrator",
    "GenerationOptions",
    "ContentRequest",
    "ContentType",
    "CleanupResult",
    "ErrorKind",
    "GenerationError",
    "GenerationTimeoutError",
    "NetworkError",
    "AuthorizationError",
    "RateLimitError",
    "ServiceUnavailableError",
    "GenerationCanceledError",
]
