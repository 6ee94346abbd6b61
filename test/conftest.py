import asyncio
from typing import Any, Dict, List, Optional

import pytest

from hocr_api.core.providers import reset_providers
from hocr_api.core.providers.base import DocumentHandle, DocumentRepository, PositionalLayer
from hocr_api.schemas.highlight import BoundingBox, PageDimensions, WordMatch

BOX_A = BoundingBox(left=10, top=10, right=40, bottom=30)
BOX_B = BoundingBox(left=50, top=10, right=90, bottom=30)
BOX_C = BoundingBox(left=10, top=40, right=70, bottom=60)
PAGE = PageDimensions(width=1000, height=1400)


def word(word_id: str, bbox: BoundingBox, word_class: str = "ocrx_word") -> WordMatch:
    return WordMatch(word_id=word_id, word_class=word_class, bbox=bbox)


class FakeLayer(PositionalLayer):
    """Positional layer answering from a fixed snippet -> words table."""

    def __init__(self, table: Dict[str, List[WordMatch]], page: PageDimensions = PAGE):
        self.table = table
        self.page = page
        self.queries: List[str] = []
        self.contexts: List[Dict[str, Any]] = []

    def search(self, snippet: str, context: Dict[str, Any]) -> List[WordMatch]:
        self.queries.append(snippet)
        self.contexts.append(context)
        return [match.model_copy() for match in self.table.get(snippet, [])]

    def page_dimensions(self) -> PageDimensions:
        return self.page


class FakeRepository(DocumentRepository):
    """Repository over a dict; a missing key is an unknown document."""

    def __init__(self, layers: Dict[str, Optional[PositionalLayer]], error: Optional[Exception] = None):
        self.layers = layers
        self.error = error
        self.loaded: List[str] = []

    async def load(self, document_id: str) -> Optional[DocumentHandle]:
        self.loaded.append(document_id)
        if self.error is not None:
            raise self.error
        if document_id not in self.layers:
            return None
        return DocumentHandle(document_id=document_id, layer=self.layers[document_id])


@pytest.fixture
def cat_layer() -> FakeLayer:
    return FakeLayer({
        "the cat": [word("w1", BOX_A), word("w2", BOX_B)],
        "cat": [word("w2", BOX_B)],
    })


@pytest.fixture(autouse=True)
def _fresh_providers():
    asyncio.run(reset_providers())
    yield
    asyncio.run(reset_providers())
