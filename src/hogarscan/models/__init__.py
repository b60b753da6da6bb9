"""Data models for hogarscan."""

from hogarscan.models.criteria import (
    HardRequirements,
    InvalidCriteriaError,
    LocationCriteria,
    NumericRange,
    PreferenceWeights,
    Preferences,
    SearchCriteria,
)
from hogarscan.models.property import (
    CanonicalProperty,
    Coordinates,
    Operation,
    PropertyLocation,
    ScoredProperty,
    SearchDiagnostics,
    SearchResult,
    SearchSummary,
    SortKey,
    SourceReport,
    SourceStatus,
)

__all__ = [
    "CanonicalProperty",
    "Coordinates",
    "HardRequirements",
    "InvalidCriteriaError",
    "LocationCriteria",
    "NumericRange",
    "Operation",
    "PreferenceWeights",
    "Preferences",
    "PropertyLocation",
    "ScoredProperty",
    "SearchCriteria",
    "SearchDiagnostics",
    "SearchResult",
    "SearchSummary",
    "SortKey",
    "SourceReport",
    "SourceStatus",
]
