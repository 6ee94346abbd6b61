"""
Snippet to bounding box mapping.

Highlighted snippets from a search response are looked up in a document's
positional layer; the matched words are merged per word id and then
inverted into snippet -> bounding boxes.
"""

import logging
from typing import Any, Dict, List, Mapping, Sequence

from hocr_api.core.errors import ContractViolation
from hocr_api.core.providers.base import PositionalLayer
from hocr_api.schemas.highlight import BoundingBox, Snippet, WordMatch

logger = logging.getLogger(__name__)


def extract_snippets(fields: Mapping[str, Sequence[Snippet]]) -> List[Snippet]:
    """Flatten field -> snippets into one list, field order then snippet order.

    Duplicates are kept.
    """
    return [snippet for snippets in fields.values() for snippet in snippets]


def aggregate_word_matches(
    snippets: Sequence[Snippet],
    layer: PositionalLayer,
    context: Dict[str, Any],
) -> Dict[str, WordMatch]:
    """
    Merge the words matched by each snippet into word_id -> WordMatch.

    The first sighting of a word fixes its class and bounding box. Every
    sighting appends the current snippet to the word's snippet list, so a
    snippet that recurs for the same word appears in the list more than once.
    Must run sequentially: "first" is defined by snippet order.

    Args:
        snippets: Snippets in processing order
        layer: Positional layer of the document the snippets belong to
        context: Search parameters forwarded to the layer lookup

    Returns:
        Words keyed by id, in first-seen order
    """
    words: Dict[str, WordMatch] = {}
    for snippet in snippets:
        for match in layer.search(snippet, context):
            word = words.get(match.word_id)
            if word is None:
                word = match.model_copy(update={"snippets": []})
                words[match.word_id] = word
            word.snippets.append(snippet)
    return words


def reduce_snippet_bounds(
    words: Mapping[str, WordMatch],
    ignore_duplicates: bool = True,
) -> Dict[Snippet, List[BoundingBox]]:
    """
    Invert word_id -> WordMatch into snippet -> bounding boxes.

    With ignore_duplicates a word only contributes to the first snippet that
    matched it; otherwise it contributes to every snippet in its list.
    """
    bounds: Dict[Snippet, List[BoundingBox]] = {}
    for word_id, word in words.items():
        if not word.snippets:
            raise ContractViolation(f"word {word_id!r} was recorded without a matching snippet")
        targets = word.snippets[:1] if ignore_duplicates else word.snippets
        for snippet in targets:
            bounds.setdefault(snippet, []).append(word.bbox)
    return bounds
