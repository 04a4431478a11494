"""Search data models"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from .listing import Listing


# Largest room count the listings INTEGER columns hold
MAX_ROOM_COUNT = 2**31 - 1

# Remote payload keys -> SearchFilters field names
FILTER_KEY_ALIASES = {
    "propertyType": "property_type",
    "property_type": "property_type",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "minPrice": "min_price",
    "min_price": "min_price",
    "maxPrice": "max_price",
    "max_price": "max_price",
    "location": "location",
    "features": "features",
}


class FilterSource(str, Enum):
    """Where a set of search filters came from"""
    MODEL = "model"
    KEYWORD = "keyword"


class SearchFilters(BaseModel):
    """Structured representation of a natural-language property query.

    Every field is optional. An instance with all fields unset is valid and
    constrains nothing.
    """
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    location: Optional[str] = None
    features: Optional[List[str]] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)

    def to_public(self) -> Dict[str, Any]:
        """Only the fields that are set."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_untrusted(cls, payload: Mapping[str, Any]) -> "SearchFilters":
        """
        Coerce a weakly-typed payload (e.g. a model's JSON answer) into filters.

        Unknown keys are ignored, nulls are treated as absent and values of the
        wrong shape are dropped instead of trusted.

        Args:
            payload: Mapping with camelCase or snake_case filter keys

        Returns:
            SearchFilters holding only the values that passed coercion
        """
        if not isinstance(payload, Mapping):
            return cls()

        fields: Dict[str, Any] = {}
        for key, value in payload.items():
            name = FILTER_KEY_ALIASES.get(key)
            if name is None or value is None:
                continue

            if name in ("property_type", "location"):
                coerced = _coerce_text(value)
            elif name in ("bedrooms", "bathrooms"):
                coerced = _coerce_count(value)
            elif name in ("min_price", "max_price"):
                coerced = _coerce_price(value)
            else:
                coerced = _coerce_features(value)

            if coerced is not None:
                fields[name] = coerced

        return cls(**fields)


def _coerce_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _coerce_number(value: Any) -> Optional[float]:
    # bool is an int subclass; "true" is never a bedroom count
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _coerce_count(value: Any) -> Optional[int]:
    number = _coerce_number(value)
    if number is None or not number.is_integer() or number > MAX_ROOM_COUNT:
        return None
    return int(number)


def _coerce_price(value: Any) -> Optional[float]:
    return _coerce_number(value)


def _coerce_features(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    features: List[str] = []
    for item in value:
        text = _coerce_text(item)
        if text and text not in features:
            features.append(text)
    return features or None


class SearchRequest(BaseModel):
    """Natural-language search request"""
    query: Optional[str] = None


class SearchOutcome(BaseModel):
    """Result of one search invocation"""
    listings: List[Listing]
    filters: SearchFilters
    results_count: int
    filter_source: FilterSource


class SearchResponse(BaseModel):
    """API response model for a search"""
    listings: List[Listing]
    filters: Dict[str, Any]
    results_count: int
    filter_source: FilterSource


class SearchLogRecord(BaseModel):
    """Audit record written once per search and never updated"""
    id: Optional[int] = None
    query: str
    extracted_filters: Dict[str, Any] = Field(default_factory=dict)
    applied_predicate: Dict[str, Any] = Field(default_factory=dict)
    results_count: int = Field(ge=0)
    filter_source: FilterSource
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True
        from_attributes = True
