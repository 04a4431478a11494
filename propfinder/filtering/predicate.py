"""
Listing predicate built from search filters.

A ListingPredicate is a conjunction of conditions. It can render itself as a
parametrised PostgreSQL WHERE clause for the asyncpg store and evaluate itself
against Listing objects for the in-memory store. Both renderings have the same
semantics: text conditions are case-insensitive substring matches, feature
conditions match when any listing feature contains any requested feature.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from propfinder.models import Listing, SearchFilters


# Operators
CONTAINS = "contains"
EQUALS = "eq"
AT_LEAST = "gte"
AT_MOST = "lte"
ANY_CONTAINS = "any_contains"

# Condition field -> listings table column
COLUMNS = {
    "property_type": "property_type",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "price": "price",
    "location": "location",
    "features": "features",
}


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Condition:
    """One constraint on one listing field."""
    field: str
    op: str
    value: Any

    def to_sql(self, index: int) -> Tuple[str, Any]:
        """
        Render as SQL using positional parameter $index.

        Returns:
            (sql fragment, parameter value)
        """
        column = COLUMNS[self.field]
        placeholder = f"${index}"

        if self.op == CONTAINS:
            return f"{column} ILIKE {placeholder}", f"%{escape_like(self.value)}%"
        if self.op == EQUALS:
            return f"{column} = {placeholder}", self.value
        if self.op == AT_LEAST:
            return f"{column} >= {placeholder}", self.value
        if self.op == AT_MOST:
            return f"{column} <= {placeholder}", self.value
        if self.op == ANY_CONTAINS:
            patterns = [f"%{escape_like(v)}%" for v in self.value]
            sql = (
                f"EXISTS (SELECT 1 FROM unnest({column}) AS feature "
                f"WHERE feature ILIKE ANY({placeholder}::text[]))"
            )
            return sql, patterns
        raise ValueError(f"Unknown operator: {self.op}")

    def matches(self, listing: Listing) -> bool:
        actual = getattr(listing, self.field, None)

        if self.op == CONTAINS:
            return actual is not None and self.value.lower() in str(actual).lower()
        if self.op == EQUALS:
            return actual == self.value
        if self.op == AT_LEAST:
            return actual is not None and actual >= self.value
        if self.op == AT_MOST:
            return actual is not None and actual <= self.value
        if self.op == ANY_CONTAINS:
            wanted = [v.lower() for v in self.value]
            return any(
                w in (feature or "").lower()
                for feature in (actual or [])
                for w in wanted
            )
        raise ValueError(f"Unknown operator: {self.op}")

    def describe(self) -> Dict[str, Any]:
        return {"field": self.field, "op": self.op, "value": self.value}


@dataclass(frozen=True)
class ListingPredicate:
    """Conjunction of listing conditions. No conditions matches everything."""
    conditions: Tuple[Condition, ...] = field(default_factory=tuple)

    @classmethod
    def unconstrained(cls) -> "ListingPredicate":
        return cls()

    @classmethod
    def from_filters(cls, filters: Optional[SearchFilters]) -> "ListingPredicate":
        """
        Translate search filters into a predicate.

        Each field that is set becomes one AND-ed condition; unset fields
        impose nothing.

        Args:
            filters: Filters to translate (None is treated as empty)

        Returns:
            ListingPredicate for the filters
        """
        if filters is None:
            return cls.unconstrained()

        conditions: List[Condition] = []

        if filters.property_type:
            conditions.append(Condition("property_type", CONTAINS, filters.property_type))
        if filters.bedrooms is not None:
            conditions.append(Condition("bedrooms", EQUALS, filters.bedrooms))
        if filters.bathrooms is not None:
            conditions.append(Condition("bathrooms", EQUALS, filters.bathrooms))
        if filters.min_price is not None:
            conditions.append(Condition("price", AT_LEAST, filters.min_price))
        if filters.max_price is not None:
            conditions.append(Condition("price", AT_MOST, filters.max_price))
        if filters.location:
            conditions.append(Condition("location", CONTAINS, filters.location))
        if filters.features:
            conditions.append(Condition("features", ANY_CONTAINS, tuple(filters.features)))

        return cls(conditions=tuple(conditions))

    @property
    def is_unconstrained(self) -> bool:
        return not self.conditions

    def to_sql(self, start_index: int = 1) -> Tuple[str, List[Any]]:
        """
        Render as a WHERE clause body.

        Args:
            start_index: Number of the first positional parameter

        Returns:
            (clause, params); the clause is "TRUE" when unconstrained
        """
        if not self.conditions:
            return "TRUE", []

        fragments: List[str] = []
        params: List[Any] = []
        for offset, condition in enumerate(self.conditions):
            sql, param = condition.to_sql(start_index + offset)
            fragments.append(sql)
            params.append(param)

        return " AND ".join(fragments), params

    def matches(self, listing: Listing) -> bool:
        return all(condition.matches(listing) for condition in self.conditions)

    def describe(self) -> Dict[str, Any]:
        """JSON-serialisable description, used for search logs."""
        where, params = self.to_sql()
        return {
            "conditions": [c.describe() for c in self.conditions],
            "where": where,
            "params": params,
        }
