"""Listing and search-log stores"""

from typing import Optional, Tuple, Union

from propfinder.config import DatabaseConfig
from propfinder.db import Database
from .listing_store import PostgresListingStore, MemoryListingStore
from .search_log_store import PostgresSearchLogStore, MemorySearchLogStore

ListingStore = Union[PostgresListingStore, MemoryListingStore]
SearchLogStore = Union[PostgresSearchLogStore, MemorySearchLogStore]


def build_stores(
    config: DatabaseConfig
) -> Tuple[Optional[Database], ListingStore, SearchLogStore]:
    """
    Build the stores for the configured backend.

    Returns:
        (database, listing_store, search_log_store); database is None for
        the memory backend
    """
    if config.backend == "memory":
        return None, MemoryListingStore(), MemorySearchLogStore()
    if config.backend != "postgres":
        raise ValueError(f"Unknown store backend: {config.backend}")

    database = Database(config)
    return database, PostgresListingStore(database), PostgresSearchLogStore(database)


__all__ = [
    "ListingStore",
    "SearchLogStore",
    "PostgresListingStore",
    "MemoryListingStore",
    "PostgresSearchLogStore",
    "MemorySearchLogStore",
    "build_stores",
]
