"""Search services"""

from .enrichment import (
    RemoteEnrichmentAdapter,
    ValidatedFilters,
    UnvalidatedFilters,
    EnrichmentResult,
    parse_model_reply,
)
from .search_orchestrator import SearchOrchestrator

__all__ = [
    "RemoteEnrichmentAdapter",
    "ValidatedFilters",
    "UnvalidatedFilters",
    "EnrichmentResult",
    "parse_model_reply",
    "SearchOrchestrator",
]
