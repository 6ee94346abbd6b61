"""Remote Repository Provider - Loads objects and their HOCR datastream over HTTP."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from hocr_api.core.config import get_settings
from hocr_api.core.errors import CollaboratorUnavailable
from hocr_api.core.providers.base import DocumentHandle, DocumentRepository
from hocr_api.core.providers.layer import WordLayer

logger = logging.getLogger(__name__)

HOCR_DATASTREAM = "HOCR"


class HttpRepository(DocumentRepository):
    """
    Repository client for a remote object store.

    GET /objects/{id}                             -> 404 means unknown document
    GET /objects/{id}/datastreams/HOCR/content    -> 404 means no positional layer
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.repository_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def load(self, document_id: str) -> Optional[DocumentHandle]:
        client = await self._get_client()
        object_path = f"/objects/{quote(document_id, safe='')}"

        try:
            response = await client.get(object_path)
            if response.status_code == 404:
                return None
            response.raise_for_status()

            response = await client.get(f"{object_path}/datastreams/{HOCR_DATASTREAM}/content")
            if response.status_code == 404:
                return DocumentHandle(document_id=document_id)
            response.raise_for_status()
            layer = WordLayer.from_json(response.content)
        except httpx.HTTPError as e:
            logger.error(f"Repository error loading {document_id}: {e}")
            raise CollaboratorUnavailable("repository", str(e)) from e
        except ValueError as e:
            logger.error(f"Invalid positional layer for {document_id}: {e}")
            raise CollaboratorUnavailable("repository", f"invalid positional layer: {e}") from e

        return DocumentHandle(document_id=document_id, layer=layer)
