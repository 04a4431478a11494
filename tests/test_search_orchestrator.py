"""
Tests for the search orchestrator.

Uses the in-memory stores, wrapped in counting fakes where a test needs to
prove that nothing was called.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from hypothesis import given, settings, strategies as st

from propfinder.config import EnrichmentConfig
from propfinder.error_handling import QueryValidationError, StoreError
from propfinder.filtering import CriteriaExtractor
from propfinder.models import FilterSource, Listing, SearchFilters
from propfinder.services.search import RemoteEnrichmentAdapter, SearchOrchestrator
from propfinder.storage import MemoryListingStore, MemorySearchLogStore


BASE_TIME = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_listing(listing_id, minutes=0, **overrides) -> Listing:
    fields = dict(
        id=listing_id,
        title=f"Listing {listing_id}",
        description="Nice place",
        property_type="villa",
        bedrooms=3,
        bathrooms=2,
        price=450000,
        location="Dubai Marina",
        area=200,
        features=["pool"],
        company_name="Acme Realty",
        agent_name="Sam Lee",
        agent_phone="555-0100",
        images=[],
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )
    fields.update(overrides)
    return Listing(**fields)


class CountingEnrichment:
    def __init__(self, inner):
        self.inner = inner
        self.calls = 0

    async def enrich(self, query):
        self.calls += 1
        return await self.inner.enrich(query)


class CountingListingStore(MemoryListingStore):
    def __init__(self, error=None):
        super().__init__()
        self.error = error
        self.find_calls = 0

    async def find(self, predicate):
        self.find_calls += 1
        if self.error is not None:
            raise self.error
        return await super().find(predicate)


class CountingSearchLogStore(MemorySearchLogStore):
    def __init__(self, error=None):
        super().__init__()
        self.error = error
        self.create_calls = 0

    async def create(self, record):
        self.create_calls += 1
        if self.error is not None:
            raise self.error
        return await super().create(record)


def keyword_enrichment():
    return RemoteEnrichmentAdapter(EnrichmentConfig(enabled=False), CriteriaExtractor())


def build(listing_error=None, log_error=None, enrichment=None):
    enrichment = CountingEnrichment(enrichment or keyword_enrichment())
    listing_store = CountingListingStore(error=listing_error)
    log_store = CountingSearchLogStore(error=log_error)
    orchestrator = SearchOrchestrator(enrichment, listing_store, log_store)
    return orchestrator, enrichment, listing_store, log_store


def seed(store, *listings):
    async def _add():
        for listing in listings:
            await store.add(listing)
    asyncio.run(_add())


@given(query=st.one_of(st.none(), st.text(alphabet=" \t\n\r", max_size=10)))
@settings(max_examples=50)
def test_missing_query_is_rejected_before_any_work(query):
    """
    **Feature: property-finder, Property 12: Validation precedes processing**

    For any missing or blank query, search() raises QueryValidationError and
    neither the enrichment adapter nor either store is called.
    """
    orchestrator, enrichment, listing_store, log_store = build()

    with pytest.raises(QueryValidationError):
        asyncio.run(orchestrator.search(query))

    assert enrichment.calls == 0
    assert listing_store.find_calls == 0
    assert log_store.create_calls == 0


def test_search_returns_matches_and_writes_one_log():
    orchestrator, enrichment, listing_store, log_store = build()
    seed(
        listing_store,
        make_listing("a"),
        make_listing("b", property_type="apartment"),
        make_listing("c", features=["garden"]),
    )

    outcome = asyncio.run(orchestrator.search("villa with pool"))

    assert [l.id for l in outcome.listings] == ["a"]
    assert outcome.results_count == 1
    assert outcome.filters == SearchFilters(property_type="villa", features=["pool"])
    assert outcome.filter_source == FilterSource.KEYWORD
    assert enrichment.calls == 1

    logs = asyncio.run(log_store.recent())
    assert len(logs) == 1
    assert logs[0].query == "villa with pool"
    assert logs[0].results_count == 1
    assert logs[0].filter_source == FilterSource.KEYWORD
    assert logs[0].extracted_filters == {"property_type": "villa", "features": ["pool"]}
    assert logs[0].applied_predicate["where"].startswith("property_type ILIKE $1")


def test_results_are_newest_first():
    orchestrator, _, listing_store, _ = build()
    seed(
        listing_store,
        make_listing("old", minutes=0),
        make_listing("newest", minutes=20),
        make_listing("middle", minutes=10),
    )

    outcome = asyncio.run(orchestrator.search("villa"))

    assert [l.id for l in outcome.listings] == ["newest", "middle", "old"]


def test_model_payload_is_logged_raw_and_applied_coerced():
    client = SimpleNamespace(messages=SimpleNamespace(create=None))

    async def create(**kwargs):
        text = '{"propertyType": "apartment", "maxPrice": "2,000,000", "mood": "sunny"}'
        return SimpleNamespace(content=[SimpleNamespace(text=text)])

    client.messages.create = create
    enrichment = RemoteEnrichmentAdapter(EnrichmentConfig(), CriteriaExtractor(), client=client)
    orchestrator, _, listing_store, log_store = build(enrichment=enrichment)
    seed(
        listing_store,
        make_listing("cheap", property_type="Apartment", price=900000),
        make_listing("dear", property_type="Apartment", price=3000000),
    )

    outcome = asyncio.run(orchestrator.search("flat under two million"))

    assert [l.id for l in outcome.listings] == ["cheap"]
    assert outcome.filter_source == FilterSource.MODEL
    assert outcome.filters == SearchFilters(property_type="apartment", max_price=2000000)

    log = asyncio.run(log_store.recent())[0]
    assert log.extracted_filters == {
        "propertyType": "apartment", "maxPrice": "2,000,000", "mood": "sunny"
    }
    assert log.filter_source == FilterSource.MODEL


def test_listing_store_failure_surfaces_as_store_error():
    orchestrator, _, _, log_store = build(listing_error=RuntimeError("connection lost"))

    with pytest.raises(StoreError, match="connection lost"):
        asyncio.run(orchestrator.search("villa"))

    assert log_store.create_calls == 0


def test_log_write_failure_surfaces_as_store_error():
    orchestrator, _, _, log_store = build(log_error=RuntimeError("disk full"))

    with pytest.raises(StoreError, match="disk full"):
        asyncio.run(orchestrator.search("villa"))

    assert log_store.create_calls == 1


def test_search_logs_are_newest_first():
    orchestrator, _, _, log_store = build()

    for query in ("villa", "condo", "house"):
        asyncio.run(orchestrator.search(query))

    logs = asyncio.run(log_store.recent(limit=2))
    assert [log.query for log in logs] == ["house", "condo"]
    assert [log.id for log in logs] == [3, 2]
