"""
Natural-language search routes.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from propfinder.error_handling import QueryValidationError, StoreError
from propfinder.models import SearchLogRecord, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/search", response_model=SearchResponse)
async def search_properties(search_request: SearchRequest, request: Request):
    """
    Search listings with a free-text query.

    1. Extracts filters with the model, or keyword rules if it is unavailable
    2. Queries listings matching every extracted filter
    3. Logs the search
    4. Returns listings, the filters used and the result count
    """
    orchestrator = request.app.state.orchestrator

    try:
        outcome = await orchestrator.search(search_request.query)
    except QueryValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Search error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return SearchResponse(
        listings=outcome.listings,
        filters=outcome.filters.to_public(),
        results_count=outcome.results_count,
        filter_source=outcome.filter_source,
    )


@router.get("/search-logs", response_model=List[SearchLogRecord])
async def get_search_logs(request: Request):
    """Most recent search logs, newest first."""
    state = request.app.state
    try:
        return await state.search_log_store.recent(state.settings.search_log_limit)
    except Exception as e:
        logger.error(f"Failed to fetch search logs: {e}")
        raise HTTPException(status_code=500, detail=str(e))
