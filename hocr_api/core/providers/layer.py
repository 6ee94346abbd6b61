"""In-memory positional layer built from a JSON word list."""

import json
import re
import string
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hocr_api.core.providers.base import PositionalLayer
from hocr_api.schemas.highlight import BoundingBox, PageDimensions, WordMatch

DEFAULT_PRE = "{{{"
DEFAULT_POST = "}}}"


class LayerWord(BaseModel):
    """One word record of a positional layer file."""
    model_config = ConfigDict(populate_by_name=True)

    word_id: str = Field(alias="id")
    text: str
    word_class: Optional[str] = Field(default=None, alias="class")
    bbox: BoundingBox

    @field_validator("word_id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("bbox", mode="before")
    @classmethod
    def _bbox_from_list(cls, value: Any) -> Any:
        # HOCR order: left, top, right, bottom
        if isinstance(value, (list, tuple)) and len(value) == 4:
            left, top, right, bottom = value
            return {"left": left, "top": top, "right": right, "bottom": bottom}
        return value


class LayerDocument(BaseModel):
    page: PageDimensions
    words: List[LayerWord]


def _normalize(token: str) -> str:
    return token.strip(string.punctuation).casefold()


def highlighted_terms(snippet: str, pre: str, post: str) -> Set[str]:
    """
    Extract the normalized query terms of a snippet.

    Terms wrapped in the highlight markers win; a snippet without markers
    contributes every token.
    """
    marked = re.findall(re.escape(pre) + r"(.*?)" + re.escape(post), snippet, flags=re.DOTALL)
    if marked:
        tokens = [token for fragment in marked for token in fragment.split()]
    else:
        tokens = snippet.replace(pre, " ").replace(post, " ").split()
    return {term for term in (_normalize(t) for t in tokens) if term}


class WordLayer(PositionalLayer):
    """
    Positional layer backed by a list of word records.

    Expected shape:
        {
            "page": {"width": 2480, "height": 3508},
            "words": [
                {"id": "word_1_1", "text": "The", "class": "ocrx_word", "bbox": [10, 20, 60, 44]},
                ...
            ]
        }
    """

    def __init__(self, page: PageDimensions, words: List[LayerWord]):
        self._page = page
        self._words = words

    @classmethod
    def from_dict(cls, data: Any) -> "WordLayer":
        """Validate a layer record; raises pydantic.ValidationError when malformed."""
        document = LayerDocument.model_validate(data)
        return cls(page=document.page, words=document.words)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "WordLayer":
        return cls.from_dict(json.loads(raw))

    def page_dimensions(self) -> PageDimensions:
        return self._page

    def search(self, snippet: str, context: Dict[str, Any]) -> List[WordMatch]:
        pre = context.get("hl.simple.pre") or DEFAULT_PRE
        post = context.get("hl.simple.post") or DEFAULT_POST
        terms = highlighted_terms(snippet, pre, post)
        if not terms:
            return []

        return [
            WordMatch(word_id=word.word_id, word_class=word.word_class, bbox=word.bbox)
            for word in self._words
            if _normalize(word.text) in terms
        ]
