"""
Filtering module for property listings.

Provides the keyword criteria extractor and the predicate that turns
extracted filters into a listing query.
"""

from .criteria_extractor import CriteriaExtractor, extract_criteria
from .predicate import Condition, ListingPredicate

__all__ = ['CriteriaExtractor', 'extract_criteria', 'Condition', 'ListingPredicate']
