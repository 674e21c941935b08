import os
from dataclasses import dataclass
from typing import Tuple

# Explicit listing because the naming rules are reverse engineered and oddball
# entries are sure to exist. Review each catalog page by hand (see the
# `parse` command of the runner) before adding it here.
# The URL filter must include withdrawn and deleted documents; those are
# marked as such in the output, never dropped.
CATALOG_PAGES: Tuple[Tuple[str, str], ...] = (
    # ISO/IEC JTC 1/SC 29 Coding of audio, picture, multimedia and hypermedia information
    ("iso_jtc1_sc29.json", "https://www.iso.org/committee/45316/x/catalogue/p/1/u/1/w/1/d/1"),
)

OUTPUT_DIR = "SpecRef"

USER_AGENT = "SpecRef-Scraper/1.0"

# The catalog page can be very slow; a single document page must load fast.
LISTING_TIMEOUT = 300.0
DETAIL_TIMEOUT = 100.0

DETAIL_CONCURRENCY = 30

# The ISO website fails a lot. The listing is retried right away, detail
# pages back off so dozens of concurrent failures do not hammer the server.
LISTING_RETRIES = 3
DETAIL_RETRY_DELAYS: Tuple[float, ...] = (0.0, 1.0, 10.0)

LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ScrapeSettings:
    catalog_pages: Tuple[Tuple[str, str], ...] = CATALOG_PAGES
    output_dir: str = OUTPUT_DIR
    user_agent: str = USER_AGENT
    listing_timeout: float = LISTING_TIMEOUT
    detail_timeout: float = DETAIL_TIMEOUT
    detail_concurrency: int = DETAIL_CONCURRENCY
    listing_retries: int = LISTING_RETRIES
    detail_retry_delays: Tuple[float, ...] = DETAIL_RETRY_DELAYS
    log_level: str = LOG_LEVEL


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings() -> ScrapeSettings:
    """Build settings from SPECREF_* environment variables.

    Raises ValueError naming the variable when a value is malformed.
    """
    concurrency = _env_number("SPECREF_DETAIL_CONCURRENCY", DETAIL_CONCURRENCY, int)
    if concurrency < 1:
        raise ValueError(f"SPECREF_DETAIL_CONCURRENCY must be positive, got {concurrency}")
    retries = _env_number("SPECREF_LISTING_RETRIES", LISTING_RETRIES, int)
    if retries < 0:
        raise ValueError(f"SPECREF_LISTING_RETRIES must not be negative, got {retries}")

    return ScrapeSettings(
        output_dir=os.getenv("SPECREF_OUTPUT_DIR") or OUTPUT_DIR,
        user_agent=os.getenv("SPECREF_USER_AGENT") or USER_AGENT,
        listing_timeout=_env_number("SPECREF_LISTING_TIMEOUT", LISTING_TIMEOUT, float),
        detail_timeout=_env_number("SPECREF_DETAIL_TIMEOUT", DETAIL_TIMEOUT, float),
        detail_concurrency=concurrency,
        listing_retries=retries,
        log_level=(os.getenv("SPECREF_LOG_LEVEL") or LOG_LEVEL).upper(),
    )
