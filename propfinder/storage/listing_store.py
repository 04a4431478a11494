"""
Listing persistence.

PostgresListingStore runs predicates as SQL through asyncpg;
MemoryListingStore evaluates them in Python for local runs and tests.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from propfinder.db import Database
from propfinder.filtering import ListingPredicate
from propfinder.models import Listing, ListingCreate


def _new_listing_id() -> str:
    return uuid.uuid4().hex


def _row_to_listing(row) -> Listing:
    return Listing(
        id=row['id'],
        title=row['title'],
        description=row['description'],
        property_type=row['property_type'],
        bedrooms=row['bedrooms'],
        bathrooms=row['bathrooms'],
        price=row['price'],
        location=row['location'],
        area=row['area'],
        features=list(row['features'] or []),
        company_name=row['company_name'],
        agent_name=row['agent_name'],
        agent_phone=row['agent_phone'],
        images=list(row['images'] or []),
        created_at=row['created_at'],
    )


class PostgresListingStore:
    """Listings table access"""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, listing: ListingCreate, images: List[str]) -> Listing:
        async with self.database.pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO listings (
                    id, title, description, property_type, bedrooms, bathrooms,
                    price, location, area, features, company_name, agent_name,
                    agent_phone, images
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
                RETURNING *
            """,
                _new_listing_id(), listing.title, listing.description,
                listing.property_type, listing.bedrooms, listing.bathrooms,
                listing.price, listing.location, listing.area,
                list(listing.features), listing.company_name, listing.agent_name,
                listing.agent_phone, list(images)
            )
        return _row_to_listing(row)

    async def get(self, listing_id: str) -> Optional[Listing]:
        async with self.database.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT * FROM listings WHERE id = $1
            """, listing_id)
        return _row_to_listing(row) if row else None

    async def find(self, predicate: ListingPredicate) -> List[Listing]:
        """
        Fetch listings matching a predicate, newest first.

        Args:
            predicate: Conditions to apply

        Returns:
            Matching listings ordered by created_at descending
        """
        where, params = predicate.to_sql()
        async with self.database.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT * FROM listings WHERE {where} ORDER BY created_at DESC",
                *params
            )
        return [_row_to_listing(row) for row in rows]


class MemoryListingStore:
    """In-process listing store"""

    def __init__(self):
        self._listings: Dict[str, Listing] = {}

    async def create(self, listing: ListingCreate, images: List[str]) -> Listing:
        stored = Listing(
            id=_new_listing_id(),
            images=list(images),
            created_at=datetime.now(timezone.utc),
            **listing.model_dump(),
        )
        self._listings[stored.id] = stored
        return stored

    async def add(self, listing: Listing) -> Listing:
        """Insert a fully-formed listing, keeping its id and timestamp."""
        self._listings[listing.id] = listing
        return listing

    async def get(self, listing_id: str) -> Optional[Listing]:
        return self._listings.get(listing_id)

    async def find(self, predicate: ListingPredicate) -> List[Listing]:
        matched = [l for l in self._listings.values() if predicate.matches(l)]
        matched.sort(key=lambda l: l.created_at, reverse=True)
        return matched
