"""
Search orchestrator - coordinates filter extraction, predicate translation,
listing lookup and search logging.
"""

import logging
from typing import Optional

from propfinder.error_handling import QueryValidationError, StoreError
from propfinder.filtering import ListingPredicate
from propfinder.models import SearchLogRecord, SearchOutcome
from propfinder.storage import ListingStore, SearchLogStore
from .enrichment import RemoteEnrichmentAdapter

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """Orchestrate the complete search workflow"""

    def __init__(
        self,
        enrichment: RemoteEnrichmentAdapter,
        listing_store: ListingStore,
        search_log_store: SearchLogStore
    ):
        self.enrichment = enrichment
        self.listing_store = listing_store
        self.search_log_store = search_log_store

    async def search(self, query: Optional[str]) -> SearchOutcome:
        """
        Run a natural-language search.

        1. Rejects a missing or blank query
        2. Extracts filters (model first, keyword rules as fallback)
        3. Translates the filters into a listing predicate
        4. Fetches matching listings, newest first
        5. Writes one search log record
        6. Returns listings, filters and count

        Args:
            query: Raw search text

        Returns:
            SearchOutcome for the query

        Raises:
            QueryValidationError: If the query is missing or blank
            StoreError: If the listing lookup or the log write fails
        """
        if query is None or not query.strip():
            raise QueryValidationError("Query is required")

        result = await self.enrichment.enrich(query)
        filters = result.resolve()
        predicate = ListingPredicate.from_filters(filters)

        try:
            listings = await self.listing_store.find(predicate)
        except Exception as e:
            logger.error(f"Listing lookup failed for query {query!r}: {e}")
            raise StoreError(str(e)) from e

        record = SearchLogRecord(
            query=query,
            extracted_filters=result.logged_payload(),
            applied_predicate=predicate.describe(),
            results_count=len(listings),
            filter_source=result.source,
        )
        try:
            await self.search_log_store.create(record)
        except Exception as e:
            logger.error(f"Failed to write search log for query {query!r}: {e}")
            raise StoreError(str(e)) from e

        logger.info(
            f"Search {query!r}: {len(listings)} results, "
            f"source={result.source.value}, conditions={len(predicate.conditions)}"
        )

        return SearchOutcome(
            listings=listings,
            filters=filters,
            results_count=len(listings),
            filter_source=result.source,
        )
