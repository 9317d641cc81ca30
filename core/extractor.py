"""
Listing Extractor

Builds the search URL from the run filters, loads it on the shared page and
turns the rendered listing cards into ListingRecord objects. Field lookup is
driven by the strategy tables in core.selectors.
"""

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urlencode, urljoin

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from api.config import AppConfig, get_config
from .browser import BrowserSessionManager
from .exceptions import NotFound, ErrorCategory, categorize_error
from .models import ListingRecord, SearchResult, JobStatus, new_listing_id
from . import selectors

logger = logging.getLogger(__name__)

# Leading amount; thousands separators in western (8,000) or Indian (1,00,000) grouping
STIPEND_AMOUNT_PATTERN = re.compile(r"(?:₹|rs\.?|inr)?\s*(\d{1,3}(?:,\d{2,3})+|\d+)", re.IGNORECASE)


def build_search_url(base_url: str, keywords: str, location: str, remote_only: bool) -> str:
    """
    Search URL for the first keyword token.

    ``"react, node.js"`` + ``"Mumbai"`` ->
    ``https://internshala.com/internships/react-internship?location=Mumbai``.
    Remote-only replaces the location filter.
    """
    url = f"{base_url.rstrip('/')}/internships/"

    tokens = [k.strip() for k in (keywords or "").split(",") if k.strip()]
    if tokens:
        url += re.sub(r"\s+", "-", tokens[0].lower()) + "-"
    url += "internship"

    params = {}
    if remote_only:
        params["type"] = "virtual"
    elif location and location.strip():
        params["location"] = location.strip()

    if params:
        url += "?" + urlencode(params)
    return url


def parse_stipend_amount(text: Optional[str]) -> Optional[int]:
    """Leading numeric stipend, or None when the text carries no number ("Unpaid")."""
    if not text:
        return None
    match = STIPEND_AMOUNT_PATTERN.search(text)
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def meets_min_stipend(amount: Optional[int], min_stipend: Optional[int]) -> bool:
    """Fail-open filter: only a parsed amount below the minimum excludes a listing."""
    if amount is None or not min_stipend:
        return True
    return amount >= min_stipend


def normalize_detail_link(href: Optional[str], base_url: str) -> str:
    if not href or not selectors.DETAIL_LINK_PATTERN.search(href):
        return "#"
    return urljoin(base_url.rstrip("/") + "/", href)


class ListingExtractor:
    """Search the site and extract a bounded list of listing records."""

    def __init__(self, session: BrowserSessionManager, config: Optional[AppConfig] = None):
        self.session = session
        self.config = config or get_config()

    async def search(
        self,
        keywords: str,
        location: str = "",
        remote_only: bool = False,
        min_stipend: int = 0,
    ) -> SearchResult:
        """
        Run one search pass.

        Raises:
            Unauthenticated: the shared session is not logged in.

        Navigation and selector timeouts are reported as ``success=False``;
        a page that explicitly shows "no results" is ``success=True, count=0``.
        """
        self.session.require_authenticated()

        search_url = build_search_url(self.config.BASE_URL, keywords, location, remote_only)
        logger.info(f"Searching: {search_url}")

        async with self.session.acquire_page() as page:
            try:
                await page.goto(
                    search_url,
                    wait_until="networkidle",
                    timeout=self.config.NAVIGATION_TIMEOUT_MS,
                )
                if not await self._wait_for_listings(page):
                    logger.info("Search returned no internships")
                    return SearchResult(
                        success=True,
                        message="No internships found",
                        search_url=search_url,
                    )
                listings, skipped = await self._extract(page, min_stipend)

            except NotFound as e:
                logger.warning(f"Search failed: {e}")
                return SearchResult(
                    success=False,
                    message=f"Search failed: {e}",
                    search_url=search_url,
                    failure=ErrorCategory.NOT_FOUND,
                )
            except PlaywrightTimeoutError as e:
                logger.warning(f"Search timed out: {e}")
                return SearchResult(
                    success=False,
                    message=f"Search failed: {e}",
                    search_url=search_url,
                    failure=ErrorCategory.TIMEOUT,
                )
            except PlaywrightError as e:
                logger.error(f"Search error: {e}")
                return SearchResult(
                    success=False,
                    message=f"Search failed: {e}",
                    search_url=search_url,
                    failure=categorize_error(e),
                )

        logger.info(f"Found {len(listings)} internships ({len(skipped)} below minimum stipend)")
        return SearchResult(
            success=True,
            listings=listings,
            skipped=skipped,
            search_url=search_url,
        )

    async def _wait_for_listings(self, page) -> bool:
        """True when listing cards rendered, False for an explicit empty result page."""
        containers = ", ".join(selectors.LISTING_CONTAINERS)
        anything = ", ".join(selectors.LISTING_CONTAINERS + selectors.NO_RESULTS_MARKERS)
        try:
            await page.wait_for_selector(
                anything,
                state="attached",
                timeout=self.config.SELECTOR_TIMEOUT_MS,
            )
        except PlaywrightTimeoutError as e:
            raise NotFound(f"no listing container appeared within {self.config.SELECTOR_TIMEOUT_MS}ms") from e

        return await page.query_selector(containers) is not None

    async def _extract(self, page, min_stipend: int) -> Tuple[List[ListingRecord], List[ListingRecord]]:
        cards = await page.query_selector_all(", ".join(selectors.LISTING_CONTAINERS))
        listings: List[ListingRecord] = []
        skipped: List[ListingRecord] = []

        for index, card in enumerate(cards[: self.config.MAX_LISTINGS]):
            try:
                record = await self._extract_record(card)
            except (PlaywrightError, ValueError) as e:
                logger.warning(f"Error parsing internship card {index}: {e}")
                continue

            if meets_min_stipend(record.stipend_amount, min_stipend):
                listings.append(record)
            else:
                record.transition(JobStatus.SKIPPED)
                skipped.append(record)

        return listings, skipped

    async def _extract_record(self, card) -> ListingRecord:
        values = {}
        for field in selectors.LISTING_FIELDS:
            value = await selectors.resolve_field(card, field.strategies)
            values[field.name] = value or field.placeholder

        return ListingRecord(
            id=new_listing_id(),
            title=values["title"],
            company=values["company"],
            location=values["location"],
            stipend=values["stipend"],
            stipend_amount=parse_stipend_amount(values["stipend"]),
            posted=values["posted"],
            link=normalize_detail_link(values["link"], self.config.BASE_URL),
        )
