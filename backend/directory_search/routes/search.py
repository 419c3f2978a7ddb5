# backend/directory_search/routes/search.py
"""
Search routes.

Endpoints:
    POST /api/search  → keyword search through the full pipeline
                        (rate check, query processing, store query, ranking)
    GET  /api/search  → autocomplete suggestions for a partial query (?q=)
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..core.constants import (
    MAX_SUGGESTIONS,
    QUERY_REQUIRED_MESSAGE,
    SUGGESTION_QUERY_REQUIRED_MESSAGE,
)
from ..core.exceptions import ValidationException
from ..ratelimit.dependency import rate_limit
from ..schemas.search import SearchRequest, SearchResponse, SuggestionsResponse
from ..services.search.search_service import SearchPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


def get_search_pipeline(request: Request) -> SearchPipeline:
    return request.app.state.search_pipeline


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts)


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return await request.json()
    except ValueError:
        return None


def parse_search_request(body: Any) -> SearchRequest:
    """Validate a raw JSON body into a SearchRequest or raise a 400."""
    if not isinstance(body, dict):
        raise ValidationException(QUERY_REQUIRED_MESSAGE, message="Request body must be a JSON object")
    query = body.get("query")
    if not isinstance(query, str) or not query:
        raise ValidationException(QUERY_REQUIRED_MESSAGE, message="Provide a non-empty 'query' string")
    try:
        return SearchRequest.model_validate(body)
    except ValidationError as exc:
        raise ValidationException("Invalid search request", message=_validation_message(exc)) from exc


@router.post(
    "",
    response_model=SearchResponse,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("search"))],
)
async def search(
    request: Request,
    pipeline: SearchPipeline = Depends(get_search_pipeline),
) -> SearchResponse:
    """
    Run a directory search.

    The body is read only after the rate check has passed. Failures inside
    the pipeline are answered by its fallback; only a store that cannot
    serve the fallback produces a 500.
    """
    search_request = parse_search_request(await _read_body(request))
    outcome = await pipeline.search(search_request)
    return outcome.response


@router.get("", response_model=SuggestionsResponse)
async def suggestions(
    q: Optional[str] = Query(None, description="Partial query to complete"),
    pipeline: SearchPipeline = Depends(get_search_pipeline),
):
    if q is None or not q.strip():
        raise ValidationException(SUGGESTION_QUERY_REQUIRED_MESSAGE)

    try:
        items = await pipeline.executor.get_search_suggestions(q.strip(), MAX_SUGGESTIONS)
    except Exception as exc:
        logger.error("Suggestion lookup for %r failed: %s", q, exc, exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to get suggestions"})
    return SuggestionsResponse(success=True, suggestions=items[:MAX_SUGGESTIONS])
