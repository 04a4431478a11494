"""
Keyword criteria extractor for natural-language property queries.

Turns free text such as "3 bedroom villa near the marina under 500k" into
SearchFilters using an ordered list of independent rules. Each rule looks at
the original query and a lower-cased copy and returns the field updates it
found; updates are merged in rule order.
"""

import math
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from propfinder.models import SearchFilters
from propfinder.models.search import MAX_ROOM_COUNT


# Checked in this order; the first substring hit wins
PROPERTY_TYPES = ("villa", "apartment", "house", "condo")

# Checked in this order; every match overwrites the previous one
LOCATION_KEYWORDS = ("near", "in", "at", "close to")

# (feature name, trigger substrings), in output order
FEATURE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("pool", ("pool",)),
    ("garden", ("garden",)),
    ("parking", ("parking",)),
    ("balcony", ("balcony",)),
    ("sea view", ("sea", "ocean")),
)

MAX_PRICE_WORDS = ("under", "below")
MIN_PRICE_WORDS = ("over", "above")

BEDROOM_PATTERN = re.compile(r"(\d+)\s*bedroom", re.ASCII)
BATHROOM_PATTERN = re.compile(r"(\d+)\s*bathroom", re.ASCII)
PRICE_PATTERN = re.compile(r"(\d+(?:,\d+)*(?:\.\d+)?)\s*(?:k|thousand|million|m)?", re.ASCII)
ANCHORED_PRICE_PATTERN = re.compile(r"(\d+(?:,\d+)*(?:\.\d+)?)\s*(?:(k|thousand|million|m)\b)?", re.ASCII)
LOCATION_PATTERNS = [
    re.compile(rf"{re.escape(keyword)}\s+([^\s,]+(?:\s+[^\s,]+)*)", re.IGNORECASE)
    for keyword in LOCATION_KEYWORDS
]

Rule = Callable[[str, str], Dict[str, Any]]


class CriteriaExtractor:
    """Rule-based extractor from free text to SearchFilters.

    Pure and total: any string, including the empty string, yields a
    SearchFilters instance. Fields without a matching rule stay unset.

    Attributes:
        anchored_price_units: When True only a unit written right after the
            price ("500k", "1.5 million") scales it. When False (the default)
            a "k"/"thousand" or "m"/"million" anywhere in the query does.
    """

    def __init__(self, anchored_price_units: bool = False):
        self.anchored_price_units = anchored_price_units
        self.rules: List[Rule] = [
            self._property_type_rule,
            self._bedrooms_rule,
            self._bathrooms_rule,
            self._location_rule,
            self._price_rule,
            self._features_rule,
        ]

    def extract(self, query: str) -> SearchFilters:
        """
        Extract structured search filters from a free-text query.

        Args:
            query: Natural-language search text

        Returns:
            SearchFilters with every recognised field set
        """
        text = query or ""
        lowered = text.lower()

        fields: Dict[str, Any] = {}
        for rule in self.rules:
            fields.update(rule(text, lowered))

        return SearchFilters(**fields)

    def _property_type_rule(self, text: str, lowered: str) -> Dict[str, Any]:
        for property_type in PROPERTY_TYPES:
            if property_type in lowered:
                return {"property_type": property_type}
        return {}

    def _bedrooms_rule(self, text: str, lowered: str) -> Dict[str, Any]:
        match = BEDROOM_PATTERN.search(lowered)
        count = _room_count(match.group(1)) if match else None
        return {"bedrooms": count} if count is not None else {}

    def _bathrooms_rule(self, text: str, lowered: str) -> Dict[str, Any]:
        match = BATHROOM_PATTERN.search(lowered)
        count = _room_count(match.group(1)) if match else None
        return {"bathrooms": count} if count is not None else {}

    def _location_rule(self, text: str, lowered: str) -> Dict[str, Any]:
        location = None
        for pattern in LOCATION_PATTERNS:
            match = pattern.search(text)
            if match and match.group(1):
                location = match.group(1).strip()
        return {"location": location} if location else {}

    def _price_rule(self, text: str, lowered: str) -> Dict[str, Any]:
        if self.anchored_price_units:
            match = ANCHORED_PRICE_PATTERN.search(lowered)
        else:
            match = PRICE_PATTERN.search(lowered)
        if not match:
            return {}

        price = float(match.group(1).replace(",", ""))

        if self.anchored_price_units:
            unit = match.group(2)
            if unit in ("k", "thousand"):
                price *= 1_000
            elif unit in ("m", "million"):
                price *= 1_000_000
        else:
            if "k" in lowered or "thousand" in lowered:
                price *= 1_000
            if "m" in lowered or "million" in lowered:
                price *= 1_000_000

        if not math.isfinite(price):
            return {}

        if any(word in lowered for word in MAX_PRICE_WORDS):
            return {"max_price": price}
        if any(word in lowered for word in MIN_PRICE_WORDS):
            return {"min_price": price}
        return {}

    def _features_rule(self, text: str, lowered: str) -> Dict[str, Any]:
        features = [
            name for name, triggers in FEATURE_KEYWORDS
            if any(trigger in lowered for trigger in triggers)
        ]
        return {"features": features} if features else {}


def _room_count(digits: str) -> Optional[int]:
    """Parse a captured count, or None if no listing column could hold it."""
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(MAX_ROOM_COUNT)):
        return None
    count = int(digits)
    return count if count <= MAX_ROOM_COUNT else None


def extract_criteria(query: str, anchored_price_units: bool = False) -> SearchFilters:
    """Extract filters from a query with a throwaway extractor."""
    return CriteriaExtractor(anchored_price_units=anchored_price_units).extract(query)
