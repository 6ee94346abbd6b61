from typing import Optional
from fastapi import APIRouter, HTTPException, Query

from hocr_api.core.config import get_settings
from hocr_api.core.errors import CollaboratorUnavailable, ContractViolation
from hocr_api.core.providers import get_repository, get_search
from hocr_api.schemas.highlight import HighlightQueryResponse
from hocr_api.services.highlight import highlighted_search

router = APIRouter()

MAX_ROWS = 100


@router.get(
    "/highlight",
    response_model=HighlightQueryResponse,
    response_model_exclude_none=True,
)
async def highlight(
    query: str = Query(..., min_length=1, description="Full-text query to highlight."),
    rows: Optional[int] = Query(
        None,
        ge=1,
        le=MAX_ROWS,
        description="Maximum number of documents to map.",
    ),
    ignore_duplicates: Optional[bool] = Query(
        None,
        description="Assign a word matched by several snippets to the first snippet only.",
    ),
) -> HighlightQueryResponse:
    config = get_settings().highlight_config().with_overrides(
        rows=rows,
        ignore_duplicates=ignore_duplicates,
    )

    try:
        response, result = await highlighted_search(query, get_search(), get_repository(), config)
    except CollaboratorUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ContractViolation as exc:
        raise HTTPException(status_code=500, detail=f"Highlight mapping failed: {exc}") from exc

    return HighlightQueryResponse(query=query, num_found=response.num_found, result=result)
