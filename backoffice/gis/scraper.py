"""
Lawrence County GIS scraper
"""

import asyncio
import logging
import time
from typing import List, Optional

import aiohttp

from .config import GISScraperConfig
from .models import GISSearchCriteria, NewScrapedProperty
from .parsers import (
    PropertyLink, dedupe_by_address, extract_form_fields, extract_property_links,
    find_next_page_url, parse_html, parse_property_page
)

logger = logging.getLogger(__name__)

def expand_range(criteria: GISSearchCriteria, config=GISScraperConfig) -> GISSearchCriteria:
    """Widen an acreage range by the configured fraction on both ends"""
    return GISSearchCriteria(
        min_acreage=max(config.MIN_ACREAGE_FLOOR, criteria.min_acreage * (1 - config.RANGE_EXPANSION)),
        max_acreage=criteria.max_acreage * (1 + config.RANGE_EXPANSION),
        township=criteria.township
    )

def in_range(prop: NewScrapedProperty, criteria: GISSearchCriteria) -> bool:
    return criteria.min_acreage <= prop.acreage <= criteria.max_acreage

class LawrenceCountyGISScraper:
    """
    Searches the county sales records by acreage and parses property pages

    Results pages are fetched one at a time with rate limiting; detail
    pages are fetched concurrently in batches with a pause between batches.
    """

    def __init__(self, config=GISScraperConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self.last_request_time = 0
        self.request_delay = config.REQUEST_DELAY

    async def __aenter__(self):
        await self.start_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_session()

    async def start_session(self):
        headers = {
            'User-Agent': self.config.USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        }
        timeout = aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT, connect=10)

        self.session = aiohttp.ClientSession(
            headers=headers,
            timeout=timeout,
            connector=aiohttp.TCPConnector(limit=10, limit_per_host=self.config.BATCH_SIZE)
        )
        logger.info("Started GIS scraper session")

    async def close_session(self):
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Closed GIS scraper session")

    async def _rate_limit(self):
        time_since_last = time.time() - self.last_request_time
        if time_since_last < self.request_delay:
            await asyncio.sleep(self.request_delay - time_since_last)
        self.last_request_time = time.time()

    async def fetch(self, url: str, data: Optional[dict] = None, rate_limited: bool = True) -> Optional[str]:
        """GET (or POST when `data` is given) a page; None on any transport failure"""
        if rate_limited:
            await self._rate_limit()

        method = "POST" if data is not None else "GET"
        try:
            logger.debug(f"{method} {url}")
            async with self.session.request(method, url, data=data) as response:
                if response.status == 200:
                    return await response.text()
                logger.warning(f"HTTP {response.status} for {url}")
                return None
        except asyncio.TimeoutError:
            logger.error(f"Timeout for {url}")
            return None
        except aiohttp.ClientError as e:
            logger.error(f"Request error for {url}: {e}")
            return None

    async def search(self, criteria: GISSearchCriteria, path: str) -> Optional[str]:
        """Submit the acreage search form and return the results page"""
        form_url = self.config.url(path)
        form_html = await self.fetch(form_url)
        if form_html is None:
            return None

        fields = extract_form_fields(parse_html(form_html))
        fields.update({
            "ctl00$MainContent$txtLandFrom": str(criteria.min_acreage),
            "ctl00$MainContent$txtLandTo": str(criteria.max_acreage),
            "ctl00$MainContent$btnSubmit": "Search",
        })
        return await self.fetch(form_url, data=fields)

    async def _fetch_property(self, link: PropertyLink, criteria: GISSearchCriteria) -> Optional[NewScrapedProperty]:
        html = await self.fetch(link.href, rate_limited=False)
        if html is None:
            return None
        try:
            return parse_property_page(html, link.address, criteria)
        except Exception as e:
            logger.warning(f"Skipping property {link.address}: {e}")
            return None

    async def fetch_properties(self, links: List[PropertyLink], criteria: GISSearchCriteria) -> List[NewScrapedProperty]:
        properties = []
        batch_size = self.config.BATCH_SIZE

        for start in range(0, len(links), batch_size):
            batch = links[start:start + batch_size]
            results = await asyncio.gather(*(self._fetch_property(link, criteria) for link in batch))
            properties.extend(prop for prop in results if prop is not None)

            if start + batch_size < len(links):
                await asyncio.sleep(self.request_delay)

        return properties

    async def scrape(self, criteria: GISSearchCriteria) -> List[NewScrapedProperty]:
        """Scrape up to MAX_RESULTS properties in the acreage range; [] when the source fails"""
        logger.info(f"Starting GIS scrape for {criteria.min_acreage}-{criteria.max_acreage} acres")
        try:
            async with self:
                properties = await self._scrape(criteria)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"GIS scrape failed: {e}")
            return []

        logger.info(f"GIS scrape finished with {len(properties)} properties")
        return properties

    async def _scrape(self, criteria: GISSearchCriteria) -> List[NewScrapedProperty]:
        max_results = self.config.MAX_RESULTS
        base_url = self.config.url(self.config.SALES_PATH)

        results_html = await self.search(criteria, self.config.SALES_PATH)
        if results_html is None:
            return []

        results_page = parse_html(results_html)
        links = extract_property_links(results_page, base_url)
        logger.info(f"Found {len(links)} property links")
        properties = dedupe_by_address(await self.fetch_properties(links, criteria))

        if len(properties) < max_results:
            next_url = find_next_page_url(results_page, base_url)
            if next_url:
                page_html = await self.fetch(next_url)
                if page_html:
                    more_links = extract_property_links(parse_html(page_html), next_url)
                    more_links = more_links[:max_results - len(properties)]
                    more = await self.fetch_properties(more_links, criteria)
                    properties.extend(dedupe_by_address(more, properties))

        if len(properties) < max_results:
            expanded = expand_range(criteria, self.config)
            logger.info(
                f"Only {len(properties)} properties found, retrying with "
                f"{expanded.min_acreage:.2f}-{expanded.max_acreage:.2f} acres"
            )
            expanded_html = await self.search(expanded, self.config.SEARCH_PATH)
            if expanded_html:
                expanded_links = extract_property_links(
                    parse_html(expanded_html), self.config.url(self.config.SEARCH_PATH)
                )[:max_results // 2]
                found = dedupe_by_address(await self.fetch_properties(expanded_links, expanded), properties)
                held = len(properties)
                properties.extend(
                    prop for prop in found
                    if in_range(prop, criteria) or held < self.config.EXPANDED_FILL_THRESHOLD
                )

        return properties[:max_results]

def get_property_scraper() -> LawrenceCountyGISScraper:
    """FastAPI dependency; overridden in tests"""
    return LawrenceCountyGISScraper()
