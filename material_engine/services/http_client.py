"""
Services - HTTP Client

Thin JSON GET/POST helper over httpx used by every material endpoint.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from material_engine.config import get_settings

logger = logging.getLogger(__name__)


class HttpClient:
    """JSON GET/POST against the material API host."""

    def __init__(self, settings=None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.api.base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazily created shared async client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.settings.api.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Args:
            path: Path relative to the API base URL
            params: Optional query parameters

        Returns:
            Decoded JSON body

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
        """
        logger.debug(f"GET {path}")
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def get_text(self, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        """GET a text document (page content fragments)."""
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.text

    async def post(self, path: str, data: Any) -> Any:
        """
        POST a JSON body and decode the JSON response.

        Args:
            path: Path relative to the API base URL
            data: JSON-serialisable request body

        Returns:
            Decoded JSON body, or None for an empty response

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
        """
        logger.debug(f"POST {path}")
        response = await self.client.post(path, json=data)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
