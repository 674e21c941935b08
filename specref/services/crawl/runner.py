from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from typing import Callable, List, Optional, Tuple

import httpx

from specref.config import ScrapeSettings, load_settings

from .errors import ScrapeError
from .pipeline import Snapshot, build_snapshot, clear_snapshots, dumps_snapshot, write_json
from .spiders.iso_catalog_spider import IsoCatalogSpider
from .spiders.iso_detail_spider import IsoDetailSpider
from .supersession import resolve_supersession

logger = logging.getLogger(__name__)


def scrape_catalog_page(
    page_url: str,
    settings: ScrapeSettings,
    *,
    listing_transport: Optional[httpx.BaseTransport] = None,
    detail_transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Optional[Callable] = None,
) -> Snapshot:
    """Catalog -> supersession -> publication dates -> snapshot, for one page."""
    catalog = IsoCatalogSpider(
        timeout=settings.listing_timeout,
        user_agent=settings.user_agent,
        retries=settings.listing_retries,
    )
    details = IsoDetailSpider(
        timeout=settings.detail_timeout,
        user_agent=settings.user_agent,
        concurrency=settings.detail_concurrency,
        retry_delays=settings.detail_retry_delays,
        sleep=sleep,
    )

    entries = catalog.fetch(page_url, transport=listing_transport)
    entries = resolve_supersession(entries)
    entries = details.fetch(entries, transport=detail_transport)
    return build_snapshot(entries)


def run_scrape(settings: ScrapeSettings, *, keep_existing: bool = False, **transports) -> Tuple[List[str], List[str]]:
    """Scrape every configured page; returns (written paths, failed outfiles).

    A page that fails for any reason gets no output file. The other pages
    are still attempted.
    """
    out_dir = os.path.abspath(settings.output_dir)
    os.makedirs(out_dir, exist_ok=True)
    logger.info("Output will be saved in %s", out_dir)
    if not keep_existing:
        for path in clear_snapshots(out_dir):
            logger.info("Removed previous snapshot %s", path)

    written: List[str] = []
    failed: List[str] = []
    for outfile, page_url in settings.catalog_pages:
        try:
            snapshot = scrape_catalog_page(page_url, settings, **transports)
        except ScrapeError:
            logger.exception("Scraping %s failed; %s was not written", page_url, outfile)
            failed.append(outfile)
            continue
        path = write_json(snapshot, out_dir=out_dir, filename=outfile)
        logger.info("Wrote %d entries to %s", len(snapshot), path)
        written.append(path)
    return written, failed


def parse_catalog_file(path: str, page_url: str) -> Snapshot:
    """Parse a saved catalog page without fetching document pages."""
    with open(path, "r", encoding="utf-8") as f:
        html = f.read()
    spider = IsoCatalogSpider(timeout=0, user_agent="")
    entries = resolve_supersession(spider.parse_html(html, page_url=page_url))
    return build_snapshot(entries)


def _page_arg(value: str) -> Tuple[str, str]:
    outfile, sep, url = value.partition("=")
    if not sep or not outfile or not url:
        raise argparse.ArgumentTypeError(f"expected OUTFILE=URL, got {value!r}")
    return outfile, url


def build_parser(settings: ScrapeSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape ISO catalog pages into SpecRef JSON snapshots")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    scrape = sub.add_parser("scrape", help="Scrape catalog pages and write one snapshot per page")
    scrape.add_argument(
        "--page",
        dest="pages",
        action="append",
        type=_page_arg,
        metavar="OUTFILE=URL",
        help="Catalog page to scrape instead of the configured ones (repeatable)",
    )
    scrape.add_argument("--out-dir", default=settings.output_dir, help="Output directory for snapshots")
    scrape.add_argument(
        "--concurrency",
        type=int,
        default=settings.detail_concurrency,
        help="Max document pages fetched in parallel",
    )
    scrape.add_argument(
        "--keep-existing",
        action="store_true",
        help="Do not remove snapshots from previous runs in the output directory",
    )

    parse = sub.add_parser("parse", help="Parse a locally saved catalog page (no document pages fetched)")
    parse.add_argument("file", help="Local HTML file path")
    parse.add_argument("--page-url", required=True, help="URL the page was saved from, for resolving links")
    parse.add_argument("--out", help="Write the snapshot here instead of stdout")
    return parser


def main(argv: Optional[list] = None) -> int:
    try:
        settings = load_settings()
    except ValueError as exc:
        build_parser(ScrapeSettings()).error(str(exc))
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "scrape":
        if args.concurrency < 1:
            parser.error("--concurrency must be positive")
        settings = dataclasses.replace(
            settings,
            output_dir=args.out_dir,
            detail_concurrency=args.concurrency,
            catalog_pages=tuple(args.pages) if args.pages else settings.catalog_pages,
        )
        written, failed = run_scrape(settings, keep_existing=args.keep_existing)
        for path in written:
            print(path)
        return 1 if failed else 0

    if args.cmd == "parse":
        try:
            snapshot = parse_catalog_file(args.file, args.page_url)
        except ScrapeError:
            logger.exception("Parsing %s failed", args.file)
            return 1
        if args.out:
            path = write_json(
                snapshot,
                out_dir=os.path.dirname(os.path.abspath(args.out)),
                filename=os.path.basename(args.out),
            )
            print(path)
        else:
            sys.stdout.write(dumps_snapshot(snapshot) + "\n")
        return 0

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
