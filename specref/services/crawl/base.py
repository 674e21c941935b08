from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional


class DocumentStatus(str, Enum):
    PUBLISHED = "Published"
    WITHDRAWN = "Withdrawn"
    DELETED = "Deleted"
    UNDER_DEVELOPMENT = "Under development"


@dataclass(frozen=True)
class CatalogEntry:
    """One logical document version from a catalog page."""

    cross_ref_id: str
    # For regular documents this is the document itself (e.g. 12345-6).
    # For addon documents this is the base id of the parent document.
    base_id: Optional[str]
    is_addon: bool
    sort_index: int
    url: str
    title: str
    status: DocumentStatus
    is_superseded: bool = False
    is_retired: bool = False
    is_under_development: bool = False
    # ISO marks some documents "under review" when a newer version is already out.
    is_potentially_implicitly_superseded: bool = False
    iso_number: Optional[str] = None
    raw_date: Optional[str] = None
    obsoleted_by: Optional[str] = None

    @property
    def is_published(self) -> bool:
        return not (self.is_superseded or self.is_under_development or self.is_retired)

    def with_changes(self, **changes) -> "CatalogEntry":
        return replace(self, **changes)


# Keyed by cross-reference id.
EntryMap = Dict[str, CatalogEntry]


class Spider:
    """Minimal spider contract.

    Subclasses fetch one kind of ISO page and hand the markup to a pure
    parse method so that parsing can be tested without the network.
    """

    name: str = "base"

    def __init__(self, *, timeout: float, user_agent: str) -> None:
        self.timeout = float(timeout)
        self.headers = {"User-Agent": user_agent}
