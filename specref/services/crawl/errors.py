from __future__ import annotations

from typing import Iterable


class ScrapeError(Exception):
    """Base class for everything that aborts scraping of a catalog page."""


class ParseError(ScrapeError):
    """Markup or text did not have the shape the parsing rules expect."""


class UnknownStatusError(ParseError):
    """The status icon of a catalog row is not one we know how to map."""

    def __init__(self, classes: Iterable[str]):
        self.classes = list(classes)
        super().__init__("Unexpected status icon: " + ", ".join(self.classes))


class DuplicateIdentityError(ScrapeError):
    """Two published rows collapsed to the same cross-reference id."""

    def __init__(self, cross_ref_id: str):
        self.cross_ref_id = cross_ref_id
        super().__init__(
            "Unexpected duplicate ID that does not seem to be a different version "
            f"of the same document: {cross_ref_id}"
        )


class AmbiguousSupersessionError(ScrapeError):
    """More than one published document could replace an obsolete one."""

    def __init__(self, obsolete_id: str, candidates: Iterable[str]):
        self.obsolete_id = obsolete_id
        self.candidates = list(candidates)
        super().__init__(
            f"Found multiple new versions of {obsolete_id}: {', '.join(self.candidates)}"
        )


class FetchError(ScrapeError):
    """An HTTP request failed in a way that retrying will not fix."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"{message} ({url})")


class TransientFetchError(FetchError):
    """Network error, timeout or server-side failure; retried per policy."""
