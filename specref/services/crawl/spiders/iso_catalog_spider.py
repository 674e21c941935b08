from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx
from selectolax.parser import HTMLParser, Node

from ..base import CatalogEntry, DocumentStatus, EntryMap, Spider
from ..errors import DuplicateIdentityError, ParseError, UnknownStatusError
from ..identity import resolve_identity
from ..net import get_text, listing_retrying

logger = logging.getLogger(__name__)

# icon class -> (status, is_superseded, is_retired, is_under_development)
STATUS_ICONS: Dict[str, Tuple[DocumentStatus, bool, bool, bool]] = {
    "bi-check-circle": (DocumentStatus.PUBLISHED, False, False, False),
    "bi-slash-circle": (DocumentStatus.WITHDRAWN, True, False, False),
    "bi-x-circle": (DocumentStatus.DELETED, False, True, False),
    "bi-record-circle": (DocumentStatus.UNDER_DEVELOPMENT, False, False, True),
}

# https://www.iso.org/stage-codes.html#90.92
UNDER_REVIEW_STAGE_PREFIX = "90."

# Shorter summaries are stray punctuation on the ISO website.
MIN_SUMMARY_LENGTH = 4


def strip_query(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def map_status_icon(icon: Node) -> Tuple[DocumentStatus, bool, bool, bool]:
    classes = (icon.attributes.get("class") or "").split()
    for cls in classes:
        if cls in STATUS_ICONS:
            return STATUS_ICONS[cls]
    raise UnknownStatusError(classes)


def _clean_summary(node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    summary = node.text().replace("\n", "").replace("\r", "").strip()
    if len(summary) < MIN_SUMMARY_LENGTH:
        return None
    return summary


def _supersedes_existing(existing: CatalogEntry) -> bool:
    return (
        existing.is_under_development
        or existing.is_retired
        or existing.is_superseded
        or existing.is_potentially_implicitly_superseded
    )


class IsoCatalogSpider(Spider):
    """Parse an ISO technical committee catalog page into catalog entries.

    Rows are processed in page order. When two rows map to the same id, the
    earlier one is overwritten if it is an inferior version (under
    development, withdrawn, deleted or under review) and the later one is
    skipped if it is itself inferior. This assumes that a worse version never
    follows a better one that has already displaced an earlier row; two
    published rows with the same id are treated as a parsing problem.
    """

    name = "iso_catalog"

    table_sel = "#datatable-tc-projects"
    row_sel = "tbody > tr"
    link_sel = "div > div.fw-semibold > a"
    title_sel = "span.entry-name"
    icon_sel = "i"
    summary_sel = "div > div.entry-description"
    stage_sel = "a"

    def __init__(self, *, timeout: float, user_agent: str, retries: int = 3) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.retries = retries

    # --- Public API ---
    def fetch(self, page_url: str, *, transport: Optional[httpx.BaseTransport] = None) -> EntryMap:
        logger.info("Loading catalog page: %s", page_url)
        with httpx.Client(
            timeout=self.timeout, headers=self.headers, follow_redirects=True, transport=transport
        ) as client:
            html = listing_retrying(self.retries)(get_text, client, page_url)
        return self.parse_html(html, page_url=page_url)

    def parse_html(self, html: str, *, page_url: str) -> EntryMap:
        doc = HTMLParser(html)
        table = doc.css_first(self.table_sel)
        if table is None:
            raise ParseError(f"Catalog table {self.table_sel} not found at {page_url}")

        rows = table.css(self.row_sel)
        logger.info("Found %d documents.", len(rows))

        entries: EntryMap = {}
        sort_index = 1
        for row in rows:
            entry = self.parse_row(row, page_url=page_url, sort_index=sort_index)
            if self._admit(entries, entry):
                entries[entry.cross_ref_id] = entry
                sort_index += 1

        if not entries:
            raise ParseError(f"Loaded no entries from {page_url}")
        return entries

    def parse_row(self, row: Node, *, page_url: str, sort_index: int) -> CatalogEntry:
        cells = row.css("td")
        if not cells:
            raise ParseError("Unable to parse document entry: " + (row.html or ""))
        document = cells[0]

        link = document.css_first(self.link_sel)
        title_node = link.css_first(self.title_sel) if link is not None else None
        href = link.attributes.get("href") if link is not None else None
        if title_node is None or not href:
            raise ParseError("Unable to parse document entry: " + (document.html or ""))
        title = title_node.text().strip()
        summary = _clean_summary(document.css_first(self.summary_sel))

        identity = resolve_identity(title)

        icon = link.css_first(self.icon_sel)
        if icon is None:
            raise ParseError("Unable to find the status icon in entry: " + (document.html or ""))
        status, withdrawn, deleted, under_development = map_status_icon(icon)

        # A published document "under review" may already have a newer
        # published version that has not yet formally replaced it.
        stage_link = cells[1].css_first(self.stage_sel) if len(cells) > 1 else None
        stage = stage_link.text().strip() if stage_link is not None else ""
        if not stage:
            raise ParseError(f"Unable to determine publication stage for {identity.cross_ref_id}.")
        under_review = stage.startswith(UNDER_REVIEW_STAGE_PREFIX)

        url = strip_query(urljoin(page_url, href))
        logger.info(
            '%s [%s] is titled "%s" and can be found at %s and will get the ID %s',
            title, status.value, summary, url, identity.cross_ref_id,
        )

        return CatalogEntry(
            cross_ref_id=identity.cross_ref_id,
            base_id=identity.base_id,
            is_addon=identity.is_addon,
            sort_index=sort_index,
            url=url,
            title=summary or title,
            status=status,
            is_superseded=withdrawn,
            is_retired=deleted,
            is_under_development=under_development,
            is_potentially_implicitly_superseded=under_review,
            iso_number=identity.iso_number,
        )

    # --- Internals ---
    @staticmethod
    def _admit(entries: EntryMap, entry: CatalogEntry) -> bool:
        existing = entries.get(entry.cross_ref_id)
        if existing is None:
            return True
        if _supersedes_existing(existing):
            logger.info("Overwriting %s because this one is a more preferred version.", entry.cross_ref_id)
            return True
        if entry.is_under_development or entry.is_superseded or entry.is_retired:
            logger.info("Skipping %s because we already have a more preferred version.", entry.cross_ref_id)
            return False
        raise DuplicateIdentityError(entry.cross_ref_id)
