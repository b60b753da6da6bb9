"""Declarative per-source configuration.

A SourceSchema describes everything that differs between portals: how to
turn criteria into a search URL, where each field lives in the HTML, how raw
field names map onto canonical ones, and how hard the portal may be hit.
Adapters and the normalizer are generic and read only from the schema.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from ..models.criteria import SearchCriteria

# (native filters) -> (search URL, query params)
UrlBuilder = Callable[[dict[str, Any]], tuple[str, dict[str, str]]]
Transform = Callable[[Any], Any]


class ExtractionMethod(str, Enum):
    HTTP = "http"  # plain GET, static HTML
    BROWSER = "browser"  # headless rendering for JS-heavy portals


@dataclass(frozen=True)
class InputMapping:
    """How criteria become a portal query.

    ``supported_filters`` names the filters (see
    ``HardRequirements.active_filters``) the portal applies itself.
    ``requires_post_filtering`` lists filters whose portal-side behavior is
    unreliable and must be re-checked downstream. The evaluator re-checks every
    populated requirement regardless; both sets only shape the URL and logs.
    """

    url_builder: UrlBuilder
    supported_filters: frozenset[str] = frozenset({"operation"})
    requires_post_filtering: frozenset[str] = frozenset()
    supports_url_filtering: bool = True
    page_param: str = "page"

    def native_filters(self, criteria: SearchCriteria) -> dict[str, Any]:
        """Populated requirements the portal can apply in its own query."""
        active = criteria.hard.active_filters()
        if not self.supports_url_filtering:
            return {"operation": active["operation"]}
        return {k: v for k, v in active.items() if k in self.supported_filters}

    def post_filters(self, criteria: SearchCriteria) -> list[str]:
        """Populated requirements that must be enforced after fetching."""
        native = self.native_filters(criteria)
        return sorted(
            name
            for name in criteria.hard.active_filters()
            if name not in native or name in self.requires_post_filtering
        )


@dataclass(frozen=True)
class ExtractionConfig:
    """Where listing fields live in a results page.

    ``selectors`` and ``patterns`` are keyed by raw field name. For each field
    the first CSS selector that matches inside the card wins; fields still
    empty are then tried against ``patterns`` in declared order.
    """

    card_selector: str
    selectors: Mapping[str, tuple[str, ...]]
    patterns: Mapping[str, tuple[re.Pattern, ...]] = field(default_factory=dict)
    next_page: tuple[str, ...] = ()
    method: ExtractionMethod = ExtractionMethod.HTTP
    # Card attributes holding the portal's own listing id
    id_attributes: tuple[str, ...] = ("data-id", "data-listing-id")
    image_fields: frozenset[str] = frozenset({"images", "imageUrl"})
    link_fields: frozenset[str] = frozenset({"link"})


@dataclass(frozen=True)
class OutputMapping:
    """How raw field names and values become canonical ones."""

    field_mappings: Mapping[str, str] = field(default_factory=dict)
    transformations: Mapping[str, Transform] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PerformanceLimits:
    """Per-portal politeness and time limits. Durations are in seconds."""

    requests_per_minute: int = 20
    delay_between_requests: float = 3.0
    max_concurrent_requests: int = 1
    timeout: float = 45.0
    max_pages: int = 3

    def __post_init__(self) -> None:
        if self.requests_per_minute < 1:
            raise ValueError("requests_per_minute must be >= 1")
        if self.delay_between_requests < 0:
            raise ValueError("delay_between_requests must be >= 0")
        if self.max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")


@dataclass(frozen=True)
class SourceSchema:
    """Complete static configuration of one listing portal."""

    id: str
    name: str
    base_url: str
    input: InputMapping
    extraction: ExtractionConfig
    output: OutputMapping = field(default_factory=OutputMapping)
    performance: PerformanceLimits = field(default_factory=PerformanceLimits)
    active: bool = True

    def __post_init__(self) -> None:
        # Listings carry no operation field, so the portal must filter on it.
        if "operation" not in self.input.supported_filters:
            raise ValueError(f"{self.id}: 'operation' must be a supported filter")

    def with_overrides(
        self,
        max_pages: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> "SourceSchema":
        """Copy of this schema with performance limits replaced."""
        changes: dict[str, Any] = {}
        if max_pages is not None:
            changes["max_pages"] = max_pages
        if timeout is not None:
            changes["timeout"] = timeout
        if not changes:
            return self
        return dataclasses.replace(
            self, performance=dataclasses.replace(self.performance, **changes)
        )
