"""
Remote generation backend protocol and its httpx implementation.
"""

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from content_generation.models.content import GenerationRequestPayload

logger = logging.getLogger(__name__)


class GenerationBackend(Protocol):
    """The remote text-generation service.

    Returns the generated text or raises a failure the error classifier
    understands: ``httpx`` transport errors, ``httpx.HTTPStatusError`` or
    anything carrying a ``status_code``.
    """

    async def generate(self, payload: GenerationRequestPayload) -> str: ...


class HttpBackend:
    """Shared httpx client handling for the HTTP backends."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the backend.

        Args:
            base_url: Base URL of the functions endpoint
            api_key: Bearer token sent with every request
            client: Existing httpx client to reuse; the backend will not close it
            timeout: Transport-level timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self.client.post(
            f"{self.base_url}/{path.lstrip('/')}", json=body or {}, headers=self._headers()
        )
        response.raise_for_status()
        if not response.content:
            return {}
        return response.json()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class HttpGenerationBackend(HttpBackend):
    """POSTs generation requests to ``{base_url}/generate-content``."""

    path = "generate-content"

    async def generate(self, payload: GenerationRequestPayload) -> str:
        data = await self._post(self.path, payload.to_wire())
        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            logger.warning("Generation endpoint returned no content for %s", payload.cache_key)
            raise ValueError("Generation endpoint returned no content")
        return content.strip()


class HttpCacheCleanupBackend(HttpBackend):
    """Asks the remote service to delete expired cache records."""

    path = "cleanup-expired-cache"

    async def cleanup_expired(self) -> int:
        data = await self._post(self.path)
        return int(data.get("entriesRemoved") or 0)
