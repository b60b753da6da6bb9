"""Generic schema-driven source adapter.

Every portal is scraped by the same SchemaSourceAdapter; what differs between
portals lives in its SourceSchema. The adapter uses httpx for requests and
BeautifulSoup (via ``extraction``) for parsing. Schemas marked ``browser``
are rendered with Playwright headless Chromium when it is installed, and
fetched with plain httpx otherwise.
"""

import asyncio
import logging
import math
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import httpx

from ..config import Settings, config
from ..models.criteria import SearchCriteria
from .base import (
    CaptchaError,
    RateLimitError,
    RawRecord,
    ScrapeResult,
    SourceAdapter,
    SourceFetchError,
    SourceTimeoutError,
)
from .extraction import extract_listings
from .rate_limiter import RateLimiter
from .schema import ExtractionMethod, SourceSchema

logger = logging.getLogger(__name__)


def parse_retry_after(value: Optional[str], default: int) -> int:
    """Seconds to wait according to a Retry-After header.

    Accepts both delta-seconds ("120") and HTTP-date forms. Anything else,
    including a missing header, gives ``default``. Dates in the past give 0.
    """
    if value is None:
        return default
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    seconds = (when - datetime.now(timezone.utc)).total_seconds()
    return max(0, math.ceil(seconds))


class SchemaSourceAdapter(SourceAdapter):
    """Source adapter driven entirely by a SourceSchema.

    Example:
        adapter = SchemaSourceAdapter(CIENCUADRAS, rate_limiter=limiter)
        records = await adapter.scrape(criteria)

    Args:
        schema: Portal configuration
        rate_limiter: Shared limiter; every request runs under a permit for
                      ``schema.id``. A private one is created if omitted.
        settings: HTTP headers come from here (defaults to the global config)
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
                   When given, pages are always fetched through it.
    """

    MAX_RETRIES = 3
    BACKOFF_FACTOR = 2.0
    RETRY_DELAY = 1.0  # seconds, multiplied by BACKOFF_FACTOR**attempt
    DEFAULT_RETRY_AFTER = 5
    MAX_RETRY_AFTER = 60

    def __init__(
        self,
        schema: SourceSchema,
        rate_limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.schema = schema
        self.settings = settings or config
        self.use_rate_limiter(rate_limiter or RateLimiter())
        self._transport = transport

    @property
    def uses_browser(self) -> bool:
        return (
            self.schema.extraction.method == ExtractionMethod.BROWSER
            and self._transport is None
        )

    @property
    def deadline(self) -> float:
        """Budget for a full crawl in which every page uses all its retries."""
        perf = self.schema.performance
        backoff = sum(
            self.RETRY_DELAY * self.BACKOFF_FACTOR**attempt
            for attempt in range(self.MAX_RETRIES - 1)
        )
        per_page = self.MAX_RETRIES * perf.timeout + backoff + perf.delay_between_requests
        return perf.max_pages * per_page

    def _user_agent(self) -> str:
        return random.choice(self.settings.user_agents)

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.settings.accept_language,
            "Referer": self.schema.base_url,
        }

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.schema.performance.timeout,
            headers=self._headers(),
            follow_redirects=True,
            transport=self._transport,
        )

    def build_request(
        self, criteria: SearchCriteria, page: int = 1
    ) -> tuple[str, dict[str, str]]:
        """Search URL and query params for one results page."""
        filters = self.schema.input.native_filters(criteria)
        url, params = self.schema.input.url_builder(filters)
        params = dict(params)
        if page > 1:
            params[self.schema.input.page_param] = str(page)
        return url, params

    async def _get_page_with_browser(self, url: str) -> Optional[str]:
        """Render a page with Playwright headless Chromium.

        Returns the rendered HTML, or None if Playwright is not installed or
        the browser fails. Caller should fall back to httpx.
        """
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            return None

        timeout_ms = int(self.schema.performance.timeout * 1000)
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    context = await browser.new_context(
                        user_agent=self._user_agent(),
                        locale="es-CO",
                        viewport={"width": 1920, "height": 1080},
                    )
                    page = await context.new_page()
                    await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                    try:
                        await page.wait_for_selector(
                            self.schema.extraction.card_selector, timeout=10000
                        )
                    except Exception:
                        pass  # Empty result pages have no cards
                    return await page.content()
                finally:
                    await browser.close()
        except Exception as e:
            logger.warning(f"Playwright fetch failed for {url}: {e}")
            return None

    def _is_captcha_response(self, response: httpx.Response) -> bool:
        """Check if the response is a challenge page rather than results."""
        # Challenge pages are small; real results pages rarely are
        if len(response.content) > 10000:
            return False

        content = response.text.lower()
        captcha_challenge_indicators = [
            "g-recaptcha-response",
            "h-captcha",
            "please verify you are human",
            "verifica que eres humano",
            "captcha-container",
            "challenge-form",
            "cf-challenge",
        ]
        return any(indicator in content for indicator in captcha_challenge_indicators)

    async def _make_request(
        self, client: httpx.AsyncClient, url: str, **kwargs: Any
    ) -> httpx.Response:
        """Make a rate-limited GET with retry logic.

        Each attempt is bounded by the schema timeout, so a hung connection
        is retried like any other timeout.

        Raises:
            CaptchaError: If a CAPTCHA is detected
            RateLimitError: If rate limited after retries
            SourceTimeoutError: If every attempt timed out
            SourceFetchError: For other request errors
        """
        timeout = self.schema.performance.timeout
        for attempt in range(self.MAX_RETRIES):
            try:
                async with self.rate_limiter.permit(self.name):
                    response = await asyncio.wait_for(
                        client.get(
                            url, headers={"User-Agent": self._user_agent()}, **kwargs
                        ),
                        timeout=timeout,
                    )

                if self._is_captcha_response(response):
                    raise CaptchaError(self.name)

                if response.status_code == 429:
                    retry_after = parse_retry_after(
                        response.headers.get("Retry-After"), self.DEFAULT_RETRY_AFTER
                    )
                    if attempt < self.MAX_RETRIES - 1:
                        wait = min(retry_after, self.MAX_RETRY_AFTER)
                        await asyncio.sleep(wait * (self.BACKOFF_FACTOR**attempt))
                        continue
                    raise RateLimitError(self.name, retry_after)

                response.raise_for_status()
                return response

            except (httpx.TimeoutException, asyncio.TimeoutError):
                if attempt < self.MAX_RETRIES - 1:
                    logger.debug(f"{self.name}: attempt {attempt + 1} timed out, retrying")
                    await asyncio.sleep(self.RETRY_DELAY * self.BACKOFF_FACTOR**attempt)
                    continue
                raise SourceTimeoutError(self.name, timeout)

            except httpx.HTTPStatusError as e:
                raise SourceFetchError(self.name, f"HTTP error: {e.response.status_code}")

            except httpx.HTTPError as e:
                raise SourceFetchError(self.name, f"Request failed: {e}")

        raise SourceFetchError(self.name, "Max retries exceeded")

    async def _fetch_page(
        self, client: httpx.AsyncClient, criteria: SearchCriteria, page: int
    ) -> str:
        url, params = self.build_request(criteria, page)

        if self.uses_browser:
            full_url = str(httpx.URL(url, params=params))
            async with self.rate_limiter.permit(self.name):
                html = await self._get_page_with_browser(full_url)
            if html is not None:
                return html
            logger.debug(f"{self.name}: browser unavailable, using plain HTTP")

        response = await self._make_request(client, url, params=params)
        return response.text

    async def collect(
        self,
        criteria: SearchCriteria,
        page: int = 1,
        result: Optional[ScrapeResult] = None,
    ) -> ScrapeResult:
        """Crawl results pages starting at ``page`` into ``result``.

        Stops after ``max_pages`` pages, when no next-page indicator is
        present, or when a page has no listings. A failure on the first page
        propagates; a failure on a later page ends the crawl and keeps what
        was already collected.
        """
        if result is None:
            result = ScrapeResult()
        last_page = page + self.schema.performance.max_pages - 1

        post_filters = self.schema.input.post_filters(criteria)
        logger.info(
            f"Scraping {self.name}: pages {page}-{last_page}, "
            f"post-filtered: {', '.join(post_filters) or 'none'}"
        )

        async with self._new_client() as client:
            current = page
            while current <= last_page:
                try:
                    html = await self._fetch_page(client, criteria, current)
                except SourceFetchError as e:
                    if current == page:
                        raise
                    logger.warning(
                        f"{self.name}: page {current} failed, "
                        f"keeping {len(result.records)} records: {e}"
                    )
                    break

                extracted = extract_listings(html, self.schema.extraction)
                result.records.extend(extracted.records)
                result.extraction_skips += extracted.skipped
                result.pages += 1
                logger.debug(
                    f"{self.name}: page {current} -> {len(extracted.records)} records, "
                    f"{extracted.skipped} skipped"
                )

                if not extracted.records or not extracted.has_next:
                    break
                current += 1

        logger.info(f"Found {len(result.records)} raw records from {self.name}")
        return result

    async def scrape(self, criteria: SearchCriteria, page: int = 1) -> list[RawRecord]:
        """Crawl from ``page`` and return the raw records in portal order."""
        result = await self.collect(criteria, page)
        return result.records
