"""
Provider Layer Base Interfaces.

Defines abstract base classes for the collaborators the highlight mapper
consumes: the highlighted search service, the document repository and the
per-document positional text layer (HOCR).

Key Design Decisions:
- PositionalLayer is synchronous: a repository loads the whole layer up front,
  so word lookups during snippet aggregation never suspend
- DocumentRepository.load returns None for unknown documents; a known document
  without a positional layer comes back with `layer=None`
- Transport failures surface as CollaboratorUnavailable
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from hocr_api.core.config import HighlightConfig
from hocr_api.schemas.highlight import HighlightSearchResponse, PageDimensions, WordMatch


# === Provider Interfaces ===

class PositionalLayer(ABC):
    """Words of one scanned page with identity, class and bounding box."""

    @abstractmethod
    def search(self, snippet: str, context: Dict[str, Any]) -> List[WordMatch]:
        """
        Find the words matching a highlighted snippet.

        Args:
            snippet: Highlighted text fragment returned by the search service
            context: Query parameters echoed by the search service

        Returns:
            Matching words in layer order. The same physical word always
            carries the same word_id.
        """
        ...

    @abstractmethod
    def page_dimensions(self) -> PageDimensions:
        """Return the size of the page the layer describes."""
        ...


@dataclass
class DocumentHandle:
    """A loaded repository object."""
    document_id: str
    layer: Optional[PositionalLayer] = None


class DocumentRepository(ABC):
    """Abstract repository interface for loading documents by id."""

    @abstractmethod
    async def load(self, document_id: str) -> Optional[DocumentHandle]:
        """Load a document, or return None when the repository does not know it."""
        ...

    async def close(self) -> None:
        """Release connections held by the repository."""
        return None


class SearchProvider(ABC):
    """Abstract highlighted full-text search interface."""

    @abstractmethod
    async def search(self, query: str, config: HighlightConfig) -> HighlightSearchResponse:
        """Run a highlighted query over the configured OCR field."""
        ...

    async def close(self) -> None:
        """Release connections held by the search client."""
        return None
