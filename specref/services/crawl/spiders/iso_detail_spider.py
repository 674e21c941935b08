from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Tuple

import httpx
from selectolax.parser import HTMLParser

from ..base import CatalogEntry, EntryMap, Spider
from ..errors import ParseError
from ..identity import is_valid_raw_date
from ..net import aget_text, detail_retrying

logger = logging.getLogger(__name__)


class IsoDetailSpider(Spider):
    """Load the page of each document to get its publication date.

    At most ``concurrency`` pages are in flight at any time. A page that keeps
    failing after the retry schedule aborts the whole batch.
    """

    name = "iso_detail"

    release_date_sel = 'span[itemprop="releaseDate"]'

    def __init__(
        self,
        *,
        timeout: float,
        user_agent: str,
        concurrency: int = 30,
        retry_delays: Sequence[float] = (0.0, 1.0, 10.0),
        sleep: Optional[Callable] = None,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        if concurrency < 1:
            raise ValueError(f"concurrency must be positive, got {concurrency}")
        self.concurrency = concurrency
        self.retry_delays = tuple(retry_delays)
        self._sleep = sleep

    # --- Public API ---
    def fetch(self, entries: EntryMap, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> EntryMap:
        return asyncio.run(self.afetch(entries, transport=transport))

    async def afetch(
        self, entries: EntryMap, *, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> EntryMap:
        """Return a copy of ``entries`` with ``raw_date`` filled in."""
        semaphore = asyncio.Semaphore(self.concurrency)
        limits = httpx.Limits(max_connections=self.concurrency)
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            follow_redirects=True,
            limits=limits,
            transport=transport,
        ) as client:
            tasks = [
                asyncio.ensure_future(self._fetch_one(client, semaphore, entry))
                for entry in entries.values()
            ]
            try:
                results: List[Tuple[str, Optional[str]]] = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        raw_dates = dict(results)
        return {
            key: entry.with_changes(raw_date=raw_dates[key]) if raw_dates[key] else entry
            for key, entry in entries.items()
        }

    def parse_release_date(self, html: str, entry: CatalogEntry) -> Optional[str]:
        node = HTMLParser(html).css_first(self.release_date_sel)

        if node is None:
            # "Under development" and "Deleted" documents have no release date.
            if entry.is_under_development or entry.is_retired:
                return None
            raise ParseError(f"Unable to find release date for {entry.cross_ref_id} at {entry.url}")

        raw_date = node.text().strip()
        if not is_valid_raw_date(raw_date):
            raise ParseError(f"{entry.cross_ref_id} release date had invalid syntax: {raw_date}")
        return raw_date

    # --- Internals ---
    async def _fetch_one(
        self, client: httpx.AsyncClient, semaphore: asyncio.Semaphore, entry: CatalogEntry
    ) -> Tuple[str, Optional[str]]:
        async with semaphore:
            retrying = detail_retrying(self.retry_delays, sleep=self._sleep)
            html = await retrying(aget_text, client, entry.url)

        raw_date = self.parse_release_date(html, entry)
        if raw_date:
            logger.info("%s was published at %s", entry.cross_ref_id, raw_date)
        return entry.cross_ref_id, raw_date
