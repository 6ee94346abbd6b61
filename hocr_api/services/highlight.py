"""
Highlight Service - search results to on-page bounding boxes.

Runs a highlighted full-text query, loads each hit's positional layer and
maps its snippets onto word bounding boxes. Documents the repository does
not know are skipped; documents without a positional layer keep their
snippets with empty box lists.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from hocr_api.core.config import HighlightConfig
from hocr_api.core.providers.base import DocumentRepository, PositionalLayer, SearchProvider
from hocr_api.schemas.highlight import (
    DocumentHighlights,
    HighlightResult,
    HighlightSearchResponse,
    Snippet,
)
from hocr_api.services.snippets import (
    aggregate_word_matches,
    extract_snippets,
    reduce_snippet_bounds,
)

logger = logging.getLogger(__name__)


def map_document(
    fields: Mapping[str, Sequence[Snippet]],
    layer: PositionalLayer,
    context: Dict[str, Any],
    ignore_duplicates: bool = True,
) -> DocumentHighlights:
    """Map one document's highlighted fields onto its positional layer."""
    snippets = extract_snippets(fields)
    words = aggregate_word_matches(snippets, layer, context)
    bounds = reduce_snippet_bounds(words, ignore_duplicates=ignore_duplicates)

    # Snippets that won no words still get an entry
    mapped = {snippet: [] for snippet in snippets}
    mapped.update(bounds)
    return DocumentHighlights(page=layer.page_dimensions(), snippets=mapped)


def degraded_document(fields: Mapping[str, Sequence[Snippet]]) -> DocumentHighlights:
    """Result for a document without positional data: every snippet, no boxes, no page."""
    return DocumentHighlights(snippets={snippet: [] for snippet in extract_snippets(fields)})


class HighlightMapper:
    """
    Maps a HighlightSearchResponse onto bounding boxes, document by document.

    Documents are independent, so with `parallel_documents` they are loaded
    and mapped concurrently; snippets within a document are always processed
    in order.
    """

    def __init__(self, repository: DocumentRepository, config: Optional[HighlightConfig] = None):
        self.repository = repository
        self.config = config or HighlightConfig()

    async def map_document_id(
        self,
        document_id: str,
        fields: Mapping[str, Sequence[Snippet]],
        context: Dict[str, Any],
    ) -> Optional[DocumentHighlights]:
        """Load and map a single document; None when the repository does not know it."""
        handle = await self.repository.load(document_id)
        if handle is None:
            logger.warning(f"Skipping {document_id}: not found in repository")
            return None

        if handle.layer is None:
            logger.warning(f"No positional layer for {document_id}; returning snippets without boxes")
            return degraded_document(fields)

        highlights = map_document(
            fields,
            handle.layer,
            context,
            ignore_duplicates=self.config.ignore_duplicates,
        )
        logger.debug(f"Mapped {len(highlights.snippets)} snippets for {document_id}")
        return highlights

    async def map_results(self, response: HighlightSearchResponse) -> HighlightResult:
        """Map every highlighted document, in the order the response lists them."""
        context = response.params
        highlighting = response.highlighting

        if self.config.parallel_documents:
            semaphore = asyncio.Semaphore(self.config.max_concurrency)

            async def _bounded(document_id: str) -> Optional[DocumentHighlights]:
                async with semaphore:
                    return await self.map_document_id(document_id, highlighting[document_id], context)

            mapped = await asyncio.gather(*(_bounded(doc_id) for doc_id in highlighting))
            outcomes = dict(zip(highlighting, mapped))
        else:
            outcomes = {}
            for document_id, fields in highlighting.items():
                outcomes[document_id] = await self.map_document_id(document_id, fields, context)

        documents = {doc_id: doc for doc_id, doc in outcomes.items() if doc is not None}
        return HighlightResult(documents=documents)


async def highlighted_search(
    query: str,
    search: SearchProvider,
    repository: DocumentRepository,
    config: Optional[HighlightConfig] = None,
) -> tuple[HighlightSearchResponse, HighlightResult]:
    """
    Run a highlighted query and map its snippets to bounding boxes.

    Collaborator failures (CollaboratorUnavailable) propagate to the caller.

    Returns:
        The raw search response and the mapped result
    """
    config = config or HighlightConfig()
    response = await search.search(query, config)
    logger.info(f"Search for {query!r} returned {len(response.highlighting)} highlighted documents")

    result = await HighlightMapper(repository, config).map_results(response)
    return response, result
