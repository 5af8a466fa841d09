import asyncio
import re
import time

from kaiji.collectors.disclosure_scraper import DisclosureScanner
from kaiji.collectors.sites import NikkeiAdapter, TdnetAdapter
from kaiji.collectors.watermark import pack_watermark

from tests.helpers import FakeFetcher, detail_page, nikkei_page, nikkei_row

TODAY = 20240115
MATCH_ALL = ["."]


def _scan(fetcher, watermark, patterns, now, adapter=None):
    scanner = DisclosureScanner(adapter or NikkeiAdapter(), fetcher)
    return asyncio.run(scanner.scan(watermark, patterns, now=now))


def test_stops_when_last_row_is_already_seen(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("09:10", "a"),
            nikkei_row("09:00", "b"),
            nikkei_row("08:00", "c"),
        ], next_page=True),
        2: nikkei_page([nikkei_row("07:00", "d")]),
    })
    result = _scan(fetcher, pack_watermark(TODAY, 830), MATCH_ALL, scan_time)

    assert fetcher.visited == [1]
    assert [e.title for e in result.entries] == ["a", "b"]
    assert result.latest_entry_time == pack_watermark(TODAY, 910)


def test_continues_while_whole_page_is_new(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("10:00", "a"),
            nikkei_row("09:50", "b"),
            nikkei_row("09:40", "c"),
        ], next_page=True),
        2: nikkei_page([
            nikkei_row("09:30", "d"),
            nikkei_row("08:00", "e"),
        ], next_page=True),
        3: nikkei_page([nikkei_row("07:00", "f")]),
    })
    result = _scan(fetcher, pack_watermark(TODAY, 900), MATCH_ALL, scan_time)

    assert fetcher.visited == [1, 2]
    assert [e.title for e in result.entries] == ["a", "b", "c", "d"]
    assert result.latest_entry_time == pack_watermark(TODAY, 1000)


def test_stops_without_next_page_link(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([nikkei_row("09:00", "a")]),
        2: nikkei_page([nikkei_row("08:00", "b")]),
    })
    result = _scan(fetcher, 0, MATCH_ALL, scan_time)

    assert fetcher.visited == [1]
    assert len(result.entries) == 1


def test_empty_page_ends_pagination(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([nikkei_row("09:00", "a")], next_page=True),
        2: nikkei_page([]),
    })
    result = _scan(fetcher, 0, MATCH_ALL, scan_time)

    assert fetcher.visited == [1, 2]
    assert len(result.entries) == 1


def test_fetch_failure_before_first_page_keeps_watermark_at_zero(scan_time):
    fetcher = FakeFetcher(pages={})
    result = _scan(fetcher, pack_watermark(TODAY, 900), MATCH_ALL, scan_time)

    assert result.latest_entry_time == 0
    assert result.entries == []


def test_second_scan_with_updated_watermark_is_empty(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("09:00", "業務提携"),
            nikkei_row("08:00", "協業開始"),
        ]),
    })
    first = _scan(fetcher, 0, ["提携", "協業"], scan_time)
    assert len(first.entries) == 2

    second = _scan(fetcher, first.latest_entry_time, ["提携", "協業"], scan_time)
    assert second.entries == []
    assert second.latest_entry_time == first.latest_entry_time


def test_keyword_filter(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("09:30", "AとBが業務提携"),
            nikkei_row("09:20", "決算短信"),
            nikkei_row("09:10", "新製品を発売"),
        ]),
    })
    result = _scan(fetcher, 0, ["提携", re.compile("発売")], scan_time)

    assert [e.title for e in result.entries] == ["AとBが業務提携", "新製品を発売"]


def test_pattern_alternation(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("09:30", "資本提携"),
            nikkei_row("09:20", "連携協定"),
            nikkei_row("09:10", "携帯事業"),
        ]),
    })
    result = _scan(fetcher, 0, ["(提|連)携"], scan_time)

    assert [e.title for e in result.entries] == ["資本提携", "連携協定"]


def test_category_marker_is_required(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("09:30", "業務提携", category="PR"),
            nikkei_row("09:20", "業務提携", category="決算"),
        ]),
    })
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert len(result.entries) == 1


def test_end_to_end_first_run(scan_time):
    row_detail = "https://www.nikkei.com/nkd/disclosure/tdnr/12340900/"
    fetcher = FakeFetcher(
        pages={
            1: nikkei_page([
                nikkei_row("09:00", "AとBが業務提携", code="1234", name="A社"),
                nikkei_row("08:00", "決算短信", code="5678", name="B社"),
            ]),
        },
        details={row_detail: detail_page("/nkd/disclosure/tdnr/12340900/12340900.pdf")},
    )
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert result.latest_entry_time == 202401150900
    assert len(result.entries) == 1
    entry = result.entries[0]
    assert entry.time == "2024/01/15 09:00"
    assert entry.stock_code == "1234"
    assert entry.company_name == "A社"
    assert entry.page_url == row_detail
    assert entry.file_url == "https://www.nikkei.com/nkd/disclosure/tdnr/12340900/12340900.pdf"
    assert fetcher.fetched == [row_detail]


def test_missing_detail_page_means_no_attachment(scan_time):
    fetcher = FakeFetcher(pages={1: nikkei_page([nikkei_row("09:00", "業務提携")])})
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert len(result.entries) == 1
    assert result.entries[0].file_url is None


def test_enrichment_error_keeps_entry(scan_time):
    def boom():
        raise RuntimeError("parser exploded")

    url = "https://www.nikkei.com/nkd/disclosure/tdnr/12340900/"
    fetcher = FakeFetcher(
        pages={1: nikkei_page([nikkei_row("09:00", "業務提携")])},
        details={url: boom},
    )
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert len(result.entries) == 1
    assert result.entries[0].file_url is None


def test_entries_follow_row_order_not_completion_order(scan_time):
    def slow(pdf, delay):
        def fetch():
            time.sleep(delay)
            return detail_page(pdf)
        return fetch

    base = "https://www.nikkei.com/nkd/disclosure/tdnr/"
    fetcher = FakeFetcher(
        pages={1: nikkei_page([
            nikkei_row("09:30", "提携1", code="1111"),
            nikkei_row("09:20", "提携2", code="2222"),
            nikkei_row("09:10", "提携3", code="3333"),
        ])},
        details={
            base + "11110930/": slow("/a.pdf", 0.2),
            base + "22220920/": slow("/b.pdf", 0.1),
            base + "33330910/": slow("/c.pdf", 0.0),
        },
    )
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert [e.stock_code for e in result.entries] == ["1111", "2222", "3333"]
    assert [e.file_url for e in result.entries] == [
        "https://www.nikkei.com/a.pdf",
        "https://www.nikkei.com/b.pdf",
        "https://www.nikkei.com/c.pdf",
    ]


def test_unexpected_error_returns_partial_result(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("10:00", "提携1"),
            nikkei_row("09:50", "提携2"),
        ], next_page=True),
        2: RuntimeError("connection reset by a very unusual peer"),
    })
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert fetcher.visited == [1, 2]
    assert [e.title for e in result.entries] == ["提携1", "提携2"]
    assert result.latest_entry_time == pack_watermark(TODAY, 1000)


def test_unreadable_first_row_time_does_not_advance_watermark(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("--:--", "提携1"),
            nikkei_row("09:00", "提携2"),
        ]),
    })
    result = _scan(fetcher, 0, ["提携"], scan_time)

    assert result.latest_entry_time == 0
    assert len(result.entries) == 2


def test_new_day_resets_boundary(scan_time):
    fetcher = FakeFetcher(pages={
        1: nikkei_page([
            nikkei_row("08:00", "提携1"),
            nikkei_row("07:00", "提携2"),
        ]),
    })
    result = _scan(fetcher, pack_watermark(20240112, 1530), ["提携"], scan_time)

    assert len(result.entries) == 2
    assert result.latest_entry_time == pack_watermark(TODAY, 800)


def test_tdnet_scan_uses_pdf_link_directly(scan_time):
    page = """
    <table id="main-list-table">
    <tr><td class="kjTime">15:30</td><td class="kjCode">72030</td><td class="kjName">トヨタ</td>
    <td class="kjTitle"><a href="140120240115500001.pdf">資本業務提携</a></td></tr>
    </table>
    """
    fetcher = FakeFetcher(pages={1: page})
    result = _scan(fetcher, 0, ["提携"], scan_time, adapter=TdnetAdapter())

    assert fetcher.fetched == []
    entry = result.entries[0]
    assert entry.file_url == "https://www.release.tdnet.info/inbs/140120240115500001.pdf"
    assert entry.page_url == entry.file_url
    assert result.latest_entry_time == pack_watermark(TODAY, 1530)
