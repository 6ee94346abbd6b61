"""Solr Search Provider - Highlighted full-text queries over HTTP."""

import logging
from typing import Any, Dict, Optional

import httpx

from hocr_api.core.config import HighlightConfig, get_settings, solr_params
from hocr_api.core.errors import CollaboratorUnavailable
from hocr_api.core.providers.base import SearchProvider
from hocr_api.schemas.highlight import HighlightSearchResponse

logger = logging.getLogger(__name__)


def parse_response(data: Dict[str, Any]) -> HighlightSearchResponse:
    """Convert a Solr JSON response into a HighlightSearchResponse."""
    header = data.get("responseHeader") or {}
    body = data.get("response") or {}
    return HighlightSearchResponse(
        params=header.get("params") or {},
        docs=body.get("docs") or [],
        highlighting=data.get("highlighting") or {},
        num_found=body.get("numFound", 0),
    )


class SolrSearch(SearchProvider):
    """
    Async client for a Solr core's /select handler.

    Highlighting parameters come from HighlightConfig; the parameters Solr
    echoes back are forwarded to positional layer lookups.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.solr_url).rstrip("/")
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

    async def search(self, query: str, config: HighlightConfig) -> HighlightSearchResponse:
        client = await self._get_client()
        params = solr_params(query, config)
        params["echoParams"] = "explicit"

        try:
            response = await client.get("/select", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Solr search error: {e}")
            raise CollaboratorUnavailable("search", str(e)) from e
        except ValueError as e:
            logger.error(f"Solr returned invalid JSON: {e}")
            raise CollaboratorUnavailable("search", f"invalid response: {e}") from e

        result = parse_response(data)
        # Some handlers do not echo params; fall back to what was sent
        if not result.params:
            result.params = {key: str(value) for key, value in params.items()}
        return result
