"""Data models for the Property Finder API"""

from .listing import Listing, ListingBase, ListingCreate
from .search import (
    FilterSource,
    SearchFilters,
    SearchRequest,
    SearchOutcome,
    SearchResponse,
    SearchLogRecord,
)

__all__ = [
    "Listing",
    "ListingBase",
    "ListingCreate",
    "FilterSource",
    "SearchFilters",
    "SearchRequest",
    "SearchOutcome",
    "SearchResponse",
    "SearchLogRecord",
]
