"""Derive document identifiers from ISO catalog titles.

Titles on the catalog page carry lifecycle decorations that must be ignored
when identifying a document. These are the same document in two versions and
both map to ``iso21000-22``:

    ISO/IEC FDIS 21000-22       (under development, no year)
    ISO/IEC 21000-22:2016       (published)

Addon documents (amendments, corrigenda) only exist relative to a specific
version of a base document, so their id keeps the year information:

    ISO/IEC 21000-22:2016/Amd 1:2018  ->  iso21000-22-2016-amd1-2018
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import ParseError

PUBLISHER_PREFIX = "ISO/IEC "

# First "12345-6" looking run. Any year suffix is not part of it.
BASE_ID_PATTERN = re.compile(r"[\d-]+")

# First "12345-6:2016" looking run.
ISO_NUMBER_PATTERN = re.compile(r"[\d-]+:[\d-]+")

RAW_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}$")


@dataclass(frozen=True)
class Identity:
    is_addon: bool
    base_id: str
    cross_ref_id: str
    iso_number: Optional[str]


def strip_publisher_prefix(title: str) -> str:
    if title.startswith(PUBLISHER_PREFIX):
        return title[len(PUBLISHER_PREFIX):]
    return title


def is_addon(title: str) -> bool:
    return "/" in strip_publisher_prefix(title)


def _match_base_id(title: str) -> re.Match:
    stripped = strip_publisher_prefix(title)
    match = BASE_ID_PATTERN.search(stripped)
    if match is None:
        raise ParseError(f"Failed to parse ID from title: {title}")
    return match


def extract_base_id(title: str) -> str:
    """Return the numeric core of the title.

    For addon titles this is the base id of the parent document.
    """
    return _match_base_id(title).group(0)


def build_cross_ref_id(title: str, addon: bool) -> str:
    match = _match_base_id(title)
    if not addon:
        return "iso" + match.group(0)

    tail = strip_publisher_prefix(title)[match.start():]
    tail = tail.lower().replace(" ", "").replace(":", "-").replace("/", "-")
    return "iso" + tail


def build_iso_number(title: str, addon: bool) -> Optional[str]:
    if addon:
        return None

    stripped = strip_publisher_prefix(title)
    if ":" not in stripped:
        # No year suffix; the document has not been published yet.
        return None

    match = ISO_NUMBER_PATTERN.search(stripped)
    if match is None:
        raise ParseError(f"Unexpected failure parsing ISO number: {title}")
    return "ISO " + match.group(0)


def is_valid_raw_date(value: str) -> bool:
    return RAW_DATE_PATTERN.match(value) is not None


def resolve_identity(title: str) -> Identity:
    addon = is_addon(title)
    return Identity(
        is_addon=addon,
        base_id=extract_base_id(title),
        cross_ref_id=build_cross_ref_id(title, addon),
        iso_number=build_iso_number(title, addon),
    )
