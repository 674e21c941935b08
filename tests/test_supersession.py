import pytest

from specref.services.crawl.base import CatalogEntry, DocumentStatus
from specref.services.crawl.errors import AmbiguousSupersessionError
from specref.services.crawl.supersession import partition_entries, resolve_supersession


def entry(cross_ref_id, base_id, status=DocumentStatus.PUBLISHED, is_addon=False, sort_index=1, **flags):
    return CatalogEntry(
        cross_ref_id=cross_ref_id,
        base_id=base_id,
        is_addon=is_addon,
        sort_index=sort_index,
        url=f"https://www.iso.org/standard/{sort_index}.html",
        title=cross_ref_id,
        status=status,
        **flags,
    )


def as_map(*entries):
    return {e.cross_ref_id: e for e in entries}


def test_withdrawn_addon_points_to_published_base():
    entries = as_map(
        entry("iso14496-10", "14496-10", sort_index=1),
        entry("iso14496-10-2014-amd1-2015", "14496-10", DocumentStatus.WITHDRAWN, is_addon=True, sort_index=2, is_superseded=True),
    )
    resolved = resolve_supersession(entries)
    assert resolved["iso14496-10-2014-amd1-2015"].obsoleted_by == "iso14496-10"
    assert resolved["iso14496-10"].obsoleted_by is None
    # Input mapping is left untouched.
    assert entries["iso14496-10-2014-amd1-2015"].obsoleted_by is None


def test_published_addons_are_not_replacements():
    entries = as_map(
        entry("iso21000-22-2016-amd1-2018", "21000-22", is_addon=True, sort_index=1),
        entry("iso21000-22-2012-cor1-2013", "21000-22", DocumentStatus.WITHDRAWN, is_addon=True, sort_index=2, is_superseded=True),
    )
    resolved = resolve_supersession(entries)
    assert resolved["iso21000-22-2012-cor1-2013"].obsoleted_by is None


def test_deleted_without_replacement_stays_unresolved():
    entries = as_map(
        entry("iso23090-99", "23090-99", DocumentStatus.DELETED, is_retired=True),
    )
    assert resolve_supersession(entries)["iso23090-99"].obsoleted_by is None


def test_under_development_is_never_obsoleted():
    entries = as_map(
        entry("iso23090-3", "23090-3", sort_index=1),
        entry("iso23090-3-amd1", "23090-3", DocumentStatus.UNDER_DEVELOPMENT, is_addon=True, sort_index=2, is_under_development=True),
    )
    assert resolve_supersession(entries)["iso23090-3-amd1"].obsoleted_by is None


def test_ambiguous_replacement_fails():
    entries = as_map(
        entry("iso23008-2", "23008-2", sort_index=1),
        entry("iso23008-2x", "23008-2", sort_index=2),
        entry("iso23008-2-2013-amd1-2014", "23008-2", DocumentStatus.WITHDRAWN, is_addon=True, sort_index=3, is_superseded=True),
    )
    with pytest.raises(AmbiguousSupersessionError) as exc:
        resolve_supersession(entries)
    assert exc.value.obsolete_id == "iso23008-2-2013-amd1-2014"
    assert exc.value.candidates == ["iso23008-2", "iso23008-2x"]


def test_under_review_counts_as_published():
    under_review = entry("iso14496-10", "14496-10", is_potentially_implicitly_superseded=True)
    withdrawn = entry("iso14496-10-old", "14496-10", DocumentStatus.WITHDRAWN, sort_index=2, is_superseded=True)
    published, not_published = partition_entries(as_map(under_review, withdrawn))
    assert published == [under_review]
    assert not_published == [withdrawn]
