"""Listing analysis: normalization, evaluation, deduplication and ranking.

This package turns raw records into canonical listings, checks them against
search criteria, removes exact repeats and orders the survivors.
"""

from .deduplicator import Deduplicator
from .evaluator import CriteriaEvaluator
from .normalizer import PropertyNormalizer
from .ranker import PropertyRanker, paginate

__all__ = [
    "CriteriaEvaluator",
    "Deduplicator",
    "PropertyNormalizer",
    "PropertyRanker",
    "paginate",
]
