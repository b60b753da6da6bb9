"""Multi-source search orchestrator.

This module provides the SearchOrchestrator class, the single entry point of
the engine. It fans a query out to every active source concurrently, isolates
source failures, and runs the collected records through normalization,
evaluation, deduplication, ranking and pagination.
"""

import asyncio
import logging
import time
from typing import Optional, Union

import httpx

from ..analysis.deduplicator import Deduplicator
from ..analysis.evaluator import CriteriaEvaluator
from ..analysis.normalizer import PropertyNormalizer
from ..analysis.ranker import PropertyRanker, paginate
from ..collectors.adapter import SchemaSourceAdapter
from ..collectors.base import (
    ScrapeResult,
    SourceAdapter,
    SourceFetchError,
    SourceTimeoutError,
)
from ..collectors.rate_limiter import RateLimiter
from ..collectors.sources import SOURCE_SCHEMAS
from ..config import Settings, config
from ..models.criteria import InvalidCriteriaError, SearchCriteria
from ..models.property import (
    SearchDiagnostics,
    SearchResult,
    SortKey,
    SourceReport,
    SourceStatus,
)

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """Runs searches across every registered listing source.

    The orchestrator owns its adapters and their shared RateLimiter. It keeps
    no state between searches, so concurrent calls only share the limiter's
    per-source counters.

    Example:
        # Build adapters for every enabled source in settings
        orchestrator = SearchOrchestrator()

        # Or explicitly provide adapters
        orchestrator = SearchOrchestrator(adapters=[my_adapter])

        criteria = SearchCriteria.from_filters(min_rooms=2, max_total_price=3_000_000)
        result = await orchestrator.search(criteria, page=1, limit=20)
        print(result.total, result.source_breakdown)
    """

    def __init__(
        self,
        adapters: Optional[list[SourceAdapter]] = None,
        rate_limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the orchestrator.

        Args:
            adapters: Adapters to search. If None, one SchemaSourceAdapter is
                      built per ``settings.enabled_sources`` entry.
            rate_limiter: Shared limiter (a new one if omitted)
            settings: Configuration (defaults to the global config)
            transport: httpx transport handed to built adapters
        """
        self.settings = settings or config
        self.rate_limiter = rate_limiter or RateLimiter()
        self.ranker = PropertyRanker()
        self._adapters: dict[str, SourceAdapter] = {}

        if adapters is None:
            adapters = self._build_adapters(transport)
        for adapter in adapters:
            self.add_adapter(adapter)

    def _build_adapters(
        self, transport: Optional[httpx.AsyncBaseTransport]
    ) -> list[SourceAdapter]:
        adapters: list[SourceAdapter] = []
        for source_id in self.settings.enabled_sources:
            schema = SOURCE_SCHEMAS.get(source_id)
            if schema is None:
                logger.warning(f"Unknown source in settings: {source_id}")
                continue
            schema = schema.with_overrides(
                max_pages=self.settings.max_pages_override,
                timeout=self.settings.timeout_override,
            )
            adapters.append(
                SchemaSourceAdapter(
                    schema,
                    rate_limiter=self.rate_limiter,
                    settings=self.settings,
                    transport=transport,
                )
            )
        return adapters

    def add_adapter(self, adapter: SourceAdapter) -> None:
        """Register an adapter and throttle it on the shared limiter."""
        adapter.use_rate_limiter(self.rate_limiter)
        self._adapters[adapter.name] = adapter
        logger.debug(f"Added source: {adapter.name}")

    def remove_adapter(self, name: str) -> bool:
        return self._adapters.pop(name, None) is not None

    def get_adapter(self, name: str) -> Optional[SourceAdapter]:
        return self._adapters.get(name)

    def get_available_sources(self) -> list[str]:
        """Ids of registered sources that can take part in searches."""
        return [name for name, a in self._adapters.items() if a.is_available()]

    def _select_adapters(
        self, criteria: SearchCriteria
    ) -> tuple[list[SourceAdapter], dict[str, SourceReport]]:
        """Adapters to run, plus reports for the ones left out."""
        if criteria.sources:
            unknown = [s for s in criteria.sources if s not in self._adapters]
            if unknown:
                raise InvalidCriteriaError(f"unknown sources: {', '.join(unknown)}")

        active: list[SourceAdapter] = []
        skipped: dict[str, SourceReport] = {}
        for name, adapter in self._adapters.items():
            if criteria.sources and name not in criteria.sources:
                reason = "not requested"
            elif not adapter.is_available():
                reason = "source inactive"
            else:
                active.append(adapter)
                continue
            skipped[name] = SourceReport(
                source=name, status=SourceStatus.SKIPPED, error=reason
            )
        return active, skipped

    async def _run_source(
        self, adapter: SourceAdapter, criteria: SearchCriteria
    ) -> tuple[SourceReport, ScrapeResult]:
        """Scrape one source, turning every failure into a report.

        Each call owns its ScrapeResult. If the deadline expires after some
        pages finished, those pages are kept and the source still counts as ok.
        """
        deadline = adapter.deadline
        started = time.perf_counter()
        result = ScrapeResult()
        status = SourceStatus.OK
        error: Optional[str] = None

        try:
            await asyncio.wait_for(adapter.collect(criteria, 1, result), timeout=deadline)
        except asyncio.TimeoutError:
            if result.records:
                error = f"Timed out after {deadline:g}s, kept {result.pages} pages"
                logger.warning(f"Source {adapter.name}: {error}")
            else:
                status, error = SourceStatus.TIMEOUT, f"Timed out after {deadline:g}s"
                logger.warning(f"Source {adapter.name} timed out after {deadline:g}s")
        except SourceTimeoutError as e:
            status, error = SourceStatus.TIMEOUT, e.message
            logger.warning(f"Source {adapter.name} failed: {e}")
        except SourceFetchError as e:
            status, error = SourceStatus.FAILED, e.message
            logger.warning(f"Source {adapter.name} failed: {e}")
        except Exception as e:
            status, error = SourceStatus.FAILED, f"Unexpected error: {e}"
            logger.error(f"Unexpected error from {adapter.name}: {e}")

        if status != SourceStatus.OK:
            result = ScrapeResult()

        report = SourceReport(
            source=adapter.name,
            status=status,
            raw_records=len(result.records),
            error=error,
            elapsed_ms=round((time.perf_counter() - started) * 1000),
        )
        return report, result

    async def search(
        self,
        criteria: SearchCriteria,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: Union[SortKey, str] = SortKey.SCORE,
    ) -> SearchResult:
        """Search every active source and return one ranked page.

        Args:
            criteria: Hard requirements and preferences
            page: 1-indexed page number
            limit: Page size (defaults to ``settings.default_limit``)
            sort_by: Ordering of the full result set before slicing

        Returns:
            SearchResult whose ``total`` counts every hard match across all
            pages. Failed or timed-out sources contribute nothing and are
            flagged in ``source_breakdown``.

        Raises:
            InvalidCriteriaError: For impossible ranges, unknown sources or
                                  bad paging, before any source is contacted
        """
        started = time.perf_counter()
        limit = self.settings.default_limit if limit is None else limit
        if page < 1:
            raise InvalidCriteriaError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise InvalidCriteriaError(f"limit must be >= 1, got {limit}")
        try:
            sort_key = SortKey(sort_by)
        except ValueError:
            raise InvalidCriteriaError(f"unknown sort key: {sort_by!r}")
        criteria.ensure_valid()

        adapters, breakdown = self._select_adapters(criteria)
        logger.info(
            f"Searching {len(adapters)} sources: {', '.join(a.name for a in adapters)}"
        )

        outcomes = await asyncio.gather(
            *(self._run_source(adapter, criteria) for adapter in adapters)
        )

        # Everything below runs only after every source task has settled
        diagnostics = SearchDiagnostics()
        normalizer = PropertyNormalizer()
        listings = []
        for adapter, (report, scraped) in zip(adapters, outcomes):
            breakdown[adapter.name] = report
            diagnostics.raw_records += len(scraped.records)
            diagnostics.extraction_skips += scraped.extraction_skips
            for raw in scraped.records:
                listing = normalizer.normalize(raw, adapter.schema)
                if listing is not None:
                    listings.append(listing)
        diagnostics.normalization_rejects = normalizer.rejected

        scored = CriteriaEvaluator(criteria).evaluate_all(listings)
        matches = [s for s in scored if s.hard_match]
        diagnostics.hard_filter_rejects = len(scored) - len(matches)

        deduplicator = Deduplicator()
        unique = deduplicator.dedupe(matches)
        diagnostics.duplicates_removed = deduplicator.discarded

        ranked = self.ranker.rank(unique, sort_key)
        page_items = paginate(ranked, page, limit)

        for scored_listing in unique:
            breakdown[scored_listing.listing.source].count += 1

        elapsed_ms = round((time.perf_counter() - started) * 1000)
        result = SearchResult(
            properties=[s.listing for s in page_items],
            scores={s.listing.id: s.score for s in page_items},
            total=len(ranked),
            page=page,
            limit=limit,
            source_breakdown=breakdown,
            execution_time_ms=elapsed_ms,
            diagnostics=diagnostics,
            summary=self.ranker.summarize(unique),
        )

        logger.info(
            f"Search complete: {result.total} matches, "
            f"{len(result.properties)} on page {page}, "
            f"{len(result.failed_sources)} failed sources, {elapsed_ms} ms"
        )
        return result

    def search_sync(
        self,
        criteria: SearchCriteria,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: Union[SortKey, str] = SortKey.SCORE,
    ) -> SearchResult:
        """Blocking wrapper around ``search`` for non-async callers."""
        return asyncio.run(self.search(criteria, page=page, limit=limit, sort_by=sort_by))

    async def close(self) -> None:
        """Close all adapters and release resources."""
        for adapter in self._adapters.values():
            try:
                await adapter.close()
            except Exception as e:
                logger.debug(f"Error closing {adapter.name}: {e}")

    async def __aenter__(self) -> "SearchOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
