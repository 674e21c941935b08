"""Link obsolete catalog entries to the published documents that replace them.

This is a heuristic: an obsolete entry is considered replaced by the single
published, non-addon entry that shares its base id. The ISO website has
explicit references on each document page, which this does not read.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from .base import CatalogEntry, EntryMap
from .errors import AmbiguousSupersessionError

logger = logging.getLogger(__name__)


def partition_entries(entries: EntryMap) -> Tuple[List[CatalogEntry], List[CatalogEntry]]:
    """Split entries into (published, not published)."""
    published: List[CatalogEntry] = []
    not_published: List[CatalogEntry] = []
    for entry in entries.values():
        (published if entry.is_published else not_published).append(entry)
    return published, not_published


def find_replacements(obsolete: CatalogEntry, published: List[CatalogEntry]) -> List[str]:
    return [
        candidate.cross_ref_id
        for candidate in published
        if not candidate.is_addon and candidate.base_id == obsolete.base_id
    ]


def resolve_supersession(entries: EntryMap) -> EntryMap:
    """Return a copy of ``entries`` with ``obsoleted_by`` filled in where known."""
    published, not_published = partition_entries(entries)
    resolved: EntryMap = dict(entries)

    for obsolete in not_published:
        # Documents still under development cannot have been obsoleted.
        if obsolete.is_under_development:
            continue

        candidates = find_replacements(obsolete, published)
        if len(candidates) > 1:
            raise AmbiguousSupersessionError(obsolete.cross_ref_id, candidates)
        if not candidates:
            continue

        resolved[obsolete.cross_ref_id] = obsolete.with_changes(obsoleted_by=candidates[0])
        logger.info("Marking as obsoleted: %s -> %s", obsolete.cross_ref_id, candidates[0])

    return resolved
