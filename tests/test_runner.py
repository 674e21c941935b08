import json
import os
from pathlib import Path

import argparse
import httpx
import pytest

from specref.config import ScrapeSettings
from specref.services.crawl.runner import _page_arg, main, run_scrape, scrape_catalog_page

PAGE_URL = "https://www.iso.org/committee/45316/x/catalogue/p/1/u/1/w/1/d/1"
FIXTURE = Path(__file__).parent / "fixtures" / "iso_catalog_sample.html"

RELEASE_DATES = {
    "/standard/66288.html": "2016-07",
    "/standard/73237.html": "2018-02",
    "/standard/75400.html": "2022-11",
    "/standard/63489.html": "2015-03",
}


def listing_transport() -> httpx.MockTransport:
    html = FIXTURE.read_text(encoding="utf-8")

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == PAGE_URL
        return httpx.Response(200, text=html)

    return httpx.MockTransport(handler)


def detail_transport(dates=RELEASE_DATES) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        date = dates.get(request.url.path)
        span = f'<span itemprop="releaseDate">{date}</span>' if date else ""
        return httpx.Response(200, text=f"<html><body>{span}</body></html>")

    return httpx.MockTransport(handler)


def settings_for(out_dir: str) -> ScrapeSettings:
    return ScrapeSettings(
        catalog_pages=(("iso_jtc1_sc29.json", PAGE_URL),),
        output_dir=out_dir,
        detail_retry_delays=(0.0, 0.0, 0.0),
    )


def test_scrape_catalog_page_end_to_end(tmp_path):
    snapshot = scrape_catalog_page(
        PAGE_URL,
        settings_for(str(tmp_path)),
        listing_transport=listing_transport(),
        detail_transport=detail_transport(),
    )
    assert list(snapshot) == [
        "iso21000-22",
        "iso21000-22-2016-amd1-2018",
        "iso14496-10",
        "iso14496-10-2014-amd1-2015",
        "iso23090-99",
        "iso23090-3",
    ]
    assert snapshot["iso21000-22"]["rawDate"] == "2016-07"
    assert snapshot["iso21000-22"]["isoNumber"] == "ISO 21000-22:2016"
    assert snapshot["iso14496-10-2014-amd1-2015"]["obsoletedBy"] == ["iso14496-10"]
    assert snapshot["iso14496-10-2014-amd1-2015"]["isSuperseded"] is True
    assert snapshot["iso23090-99"] == {
        "href": "https://www.iso.org/standard/80000.html",
        "title": "Information technology — Coded representation of immersive media — Part 99: Withdrawn project",
        "status": "Deleted",
        "publisher": "ISO/IEC",
        "isRetired": True,
    }
    assert "rawDate" not in snapshot["iso23090-3"]


def test_run_scrape_writes_snapshot(tmp_path):
    out_dir = tmp_path / "SpecRef"
    out_dir.mkdir()
    (out_dir / "stale.json").write_text("{}", encoding="utf-8")

    written, failed = run_scrape(
        settings_for(str(out_dir)),
        listing_transport=listing_transport(),
        detail_transport=detail_transport(),
    )
    assert failed == []
    assert written == [str(out_dir / "iso_jtc1_sc29.json")]
    assert sorted(os.listdir(out_dir)) == ["iso_jtc1_sc29.json"]
    data = json.loads((out_dir / "iso_jtc1_sc29.json").read_text(encoding="utf-8"))
    assert len(data) == 6


def test_run_scrape_writes_nothing_when_page_fails(tmp_path):
    # A published document without a release date aborts the page.
    dates = dict(RELEASE_DATES)
    del dates["/standard/75400.html"]

    written, failed = run_scrape(
        settings_for(str(tmp_path)),
        keep_existing=True,
        listing_transport=listing_transport(),
        detail_transport=detail_transport(dates),
    )
    assert written == []
    assert failed == ["iso_jtc1_sc29.json"]
    assert os.listdir(tmp_path) == []


def test_main_parse_writes_snapshot_without_dates(tmp_path, capsys):
    out = tmp_path / "review.json"
    code = main(["parse", str(FIXTURE), "--page-url", PAGE_URL, "--out", str(out)])
    assert code == 0
    assert capsys.readouterr().out.strip() == str(out)
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["iso14496-10-2014-amd1-2015"]["obsoletedBy"] == ["iso14496-10"]
    assert all("rawDate" not in v for v in data.values())


def test_main_parse_reports_parse_errors(tmp_path):
    bad = tmp_path / "bad.html"
    bad.write_text("<html><body>maintenance</body></html>", encoding="utf-8")
    assert main(["parse", str(bad), "--page-url", PAGE_URL]) == 1


def test_page_arg():
    assert _page_arg("a.json=https://x/y?z=1") == ("a.json", "https://x/y?z=1")
    with pytest.raises(argparse.ArgumentTypeError):
        _page_arg("https://x")


def test_run_scrape_continues_after_redirect_loop(tmp_path):
    loop_url = "https://www.iso.org/committee/1/x/catalogue/loop"
    html = FIXTURE.read_text(encoding="utf-8")

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == loop_url:
            return httpx.Response(302, headers={"Location": loop_url})
        assert str(request.url) == PAGE_URL
        return httpx.Response(200, text=html)

    settings = ScrapeSettings(
        catalog_pages=(("loop.json", loop_url), ("good.json", PAGE_URL)),
        output_dir=str(tmp_path),
        detail_retry_delays=(0.0, 0.0, 0.0),
    )
    written, failed = run_scrape(
        settings,
        listing_transport=httpx.MockTransport(handler),
        detail_transport=detail_transport(),
    )
    assert failed == ["loop.json"]
    assert written == [str(tmp_path / "good.json")]
    assert os.listdir(tmp_path) == ["good.json"]


def test_main_rejects_malformed_environment(monkeypatch, capsys):
    monkeypatch.setenv("SPECREF_DETAIL_CONCURRENCY", "abc")
    with pytest.raises(SystemExit) as exc:
        main(["parse", str(FIXTURE), "--page-url", PAGE_URL])
    assert exc.value.code == 2
    assert "SPECREF_DETAIL_CONCURRENCY" in capsys.readouterr().err
