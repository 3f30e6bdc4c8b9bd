"""Request, assignment and result models for content generation."""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

CACHE_KEY_PREFIX = "ai-content"


class ContentType(str, Enum):
    """Kinds of copy the generator produces."""

    HEADER = "header"
    TAGLINE = "tagline"
    CTA = "cta"
    DESCRIPTION = "description"


class ErrorKind(str, Enum):
    """Normalized failure classification driving retry and backoff."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTHORIZATION = "authorization"
    RATE_LIMIT = "rate_limit"
    SERVICE_UNAVAILABLE = "service_unavailable"
    GENERIC = "generic"
    CANCELED = "canceled"

    @property
    def retryable(self) -> bool:
        return self is not ErrorKind.CANCELED


class GenerationState(str, Enum):
    """Lifecycle of a single generate call."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def build_cache_key(
    content_type: "ContentType | str",
    context: Optional[str] = None,
    tone: Optional[str] = None,
) -> str:
    """Derive the cache key for a (type, context, tone) tuple."""
    type_value = ContentType(content_type).value
    key_str = json.dumps([type_value, context or "", tone or ""])
    digest = hashlib.sha256(key_str.encode()).hexdigest()[:16]
    return f"{CACHE_KEY_PREFIX}:{type_value}:{digest}"


class ContentRequest(BaseModel):
    """Caller's description of the text to generate."""

    type: ContentType = Field(..., description="Kind of content to generate")
    context: Optional[str] = Field(default=None, description="Subject the copy is about")
    tone: Optional[str] = Field(default=None, description="Desired voice, e.g. 'playful'")
    max_length: Optional[int] = Field(default=None, gt=0, description="Maximum characters")
    keywords: Tuple[str, ...] = Field(default=(), description="Keywords to work into the copy")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "type": "tagline",
                "context": "B2B SaaS",
                "tone": "confident",
                "max_length": 60,
                "keywords": ["speed", "teams"],
            }
        },
    )

    @field_validator("keywords", mode="before")
    @classmethod
    def normalize_keywords(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(v)

    def cache_key(self) -> str:
        return build_cache_key(self.type, self.context, self.tone)


class ExperimentAssignment(BaseModel):
    """Variant a user was bucketed into for one content type."""

    test_id: str
    variant_id: str
    user_id: str

    model_config = ConfigDict(frozen=True)


class GenerationRequestPayload(BaseModel):
    """Body sent to the remote generation endpoint."""

    type: ContentType
    context: Optional[str] = None
    tone: Optional[str] = None
    max_length: Optional[int] = Field(default=None, serialization_alias="maxLength")
    cache_key: str = Field(..., serialization_alias="cacheKey")
    variant_id: Optional[str] = Field(default=None, serialization_alias="variantId")
    keywords: Tuple[str, ...] = ()

    @classmethod
    def from_request(
        cls, request: ContentRequest, assignment: Optional[ExperimentAssignment] = None
    ) -> "GenerationRequestPayload":
        return cls(
            type=request.type,
            context=request.context,
            tone=request.tone,
            max_length=request.max_length,
            cache_key=request.cache_key(),
            variant_id=assignment.variant_id if assignment else None,
            keywords=request.keywords,
        )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CleanupResult(BaseModel):
    """Outcome of one cache cleanup run."""

    success: bool
    message: str
    entries_removed: Optional[int] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


@dataclass
class GenerationAttempt:
    """One try within a generate call. Lives only as long as the call."""

    index: int
    started_at: float
    error_kind: Optional[ErrorKind] = None
    latency_ms: Optional[float] = None
