from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

# Highlighted text fragment. Used as a map key, so equal text is the same snippet.
Snippet = str
DocumentID = str


class BoundingBox(BaseModel):
    """Word rectangle in page pixel coordinates."""
    left: int = Field(ge=0)
    top: int = Field(ge=0)
    right: int = Field(ge=0)
    bottom: int = Field(ge=0)


class PageDimensions(BaseModel):
    width: int = Field(ge=0)
    height: int = Field(ge=0)


class WordMatch(BaseModel):
    """A word of the positional layer matched by one or more snippets."""
    word_id: str
    word_class: Optional[str] = None
    bbox: BoundingBox
    snippets: List[Snippet] = Field(default_factory=list)


class HighlightSearchResponse(BaseModel):
    """Highlighted full-text search result.

    `highlighting` maps document id -> field name -> snippets, in the
    order the search service returned them.
    """
    params: Dict[str, Any] = Field(default_factory=dict)
    docs: List[Dict[str, Any]] = Field(default_factory=list)
    highlighting: Dict[DocumentID, Dict[str, List[Snippet]]] = Field(default_factory=dict)
    num_found: int = 0


class DocumentHighlights(BaseModel):
    """Snippet bounding boxes for one document (page is None without a positional layer)."""
    page: Optional[PageDimensions] = None
    snippets: Dict[Snippet, List[BoundingBox]] = Field(default_factory=dict)


class HighlightResult(BaseModel):
    documents: Dict[DocumentID, DocumentHighlights] = Field(default_factory=dict)


class HighlightQueryResponse(BaseModel):
    query: str
    num_found: int
    result: HighlightResult
