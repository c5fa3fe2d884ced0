import asyncio
import threading

import pytest
from twisted.internet.error import DNSLookupError, TimeoutError

from ciaa_crawler.catalog import CURRENT, FISCAL_YEARS, Category, ConfigurationError
from ciaa_crawler.fetcher import page_url
from ciaa_crawler.items import CaseRecord
from ciaa_crawler.spiders.cases import CasesSpider

from conftest import drive, full_row, listing_page, row


def spider(**kwargs):
    kwargs.setdefault("categories", "charge")
    kwargs.setdefault("fiscal_years", "none")
    return CasesSpider(**kwargs)


def rows(start, n):
    return [full_row(i) for i in range(start, start + n)]


def test_two_page_category_yields_eight_records_with_one_page_delay():
    s = spider(max_pages=20)
    pages = {
        page_url(Category.CHARGE, CURRENT, 1): listing_page(rows(0, 5), next_link=True),
        page_url(Category.CHARGE, CURRENT, 2): listing_page(rows(5, 3), next_link=False),
    }
    fetched, delays, items = drive(s, pages)
    assert fetched == list(pages)
    assert delays == [1.5]
    assert len(items) == 8
    assert all(isinstance(i, CaseRecord) for i in items)
    assert s.summary.total == 8
    assert s.summary.stats["pages"] == 2


def test_no_next_indicator_stops_after_one_page_regardless_of_max_pages():
    s = spider(max_pages=50)
    pages = {page_url(Category.CHARGE, CURRENT, 1): listing_page(rows(0, 5), next_link=False)}
    fetched, delays, items = drive(s, pages)
    assert len(fetched) == 1
    assert delays == []
    assert len(items) == 5


def test_empty_page_ends_pagination_even_with_next_link():
    s = spider()
    pages = {
        page_url(Category.CHARGE, CURRENT, 1): listing_page(rows(0, 2), next_link=True),
        page_url(Category.CHARGE, CURRENT, 2): listing_page([], next_link=True),
    }
    fetched, _, items = drive(s, pages)
    assert len(fetched) == 2
    assert len(items) == 2


def test_max_pages_bounds_a_pagination_loop():
    s = spider(max_pages=3)
    page = listing_page(rows(0, 1), next_link=True)
    pages = {page_url(Category.CHARGE, CURRENT, n): page for n in range(1, 10)}
    fetched, delays, _ = drive(s, pages)
    assert len(fetched) == 3
    assert delays == [1.5, 1.5]


def test_timeout_does_not_abort_later_fiscal_years():
    fy_a, fy_b = FISCAL_YEARS[-2], FISCAL_YEARS[-1]
    s = spider(fiscal_years=f"{fy_a.value},{fy_b.value}")
    pages = {
        page_url(Category.CHARGE, fy_a, 1): TimeoutError("took longer than 15.0 seconds"),
        page_url(Category.CHARGE, fy_b, 1): listing_page(rows(0, 4)),
    }
    fetched, delays, items = drive(s, pages)
    assert fetched == list(pages)
    assert delays == [2.0]
    assert len(items) == 4
    assert s.summary.pair_count(Category.CHARGE, fy_a) == 0
    assert s.summary.pair_count(Category.CHARGE, fy_b) == 4
    assert s.summary.stats["fetch_failures"] == 1
    assert any("2081/82" in line and "Pairs with no cases" in line for line in s.summary.report_lines())


def test_failed_first_category_moves_on_with_category_delay():
    s = spider(categories="charge,appeal")
    pages = {
        page_url(Category.CHARGE, CURRENT, 1): DNSLookupError("ciaa.gov.np"),
        page_url(Category.APPEAL, CURRENT, 1): listing_page(rows(0, 2)),
    }
    fetched, delays, items = drive(s, pages)
    assert fetched == list(pages)
    assert delays == [3.0]
    assert [i.category for i in items] == ["Appeal", "Appeal"]
    assert s.summary.by_category == {"Charge Sheet": 0, "Appeal": 2}


def test_full_key_space_order_and_delays():
    years = FISCAL_YEARS[:2]
    s = spider(categories="charge,sting", fiscal_years=",".join(fy.value for fy in years))
    fetched, delays, _ = drive(s, {})
    assert fetched == [
        page_url(Category.CHARGE, years[0], 1),
        page_url(Category.CHARGE, years[1], 1),
        page_url(Category.STING, years[0], 1),
        page_url(Category.STING, years[1], 1),
    ]
    assert delays == [2.0, 3.0, 2.0]


def test_delays_can_be_overridden():
    s = spider(page_delay="0.1")
    pages = {
        page_url(Category.CHARGE, CURRENT, 1): listing_page(rows(0, 1), next_link=True),
        page_url(Category.CHARGE, CURRENT, 2): listing_page(rows(1, 1)),
    }
    _, delays, _ = drive(s, pages)
    assert delays == [0.1]


def test_cancel_event_stops_before_next_fetch():
    event = threading.Event()
    s = spider(categories="charge,sting", cancel_event=event)
    parse = s.parse

    def parse_then_cancel(response, **kwargs):
        event.set()
        yield from parse(response, **kwargs)

    s.parse = parse_then_cancel
    first = page_url(Category.CHARGE, CURRENT, 1)
    fetched, _, items = drive(s, {first: listing_page(rows(0, 3), next_link=True)})
    assert fetched == [first]
    assert len(items) == 3
    assert s.summary.cancelled is True
    assert s.summary.total == 3


def test_cancelled_before_start_fetches_nothing():
    s = spider()
    s.cancel()
    fetched, _, items = drive(s, {})
    assert fetched == []
    assert items == []


def test_summary_counts_skipped_rows():
    s = spider()
    pages = {page_url(Category.CHARGE, CURRENT, 1): listing_page([row("a", "b"), full_row(1)])}
    drive(s, pages)
    assert s.summary.stats["rows_skipped"] == 1
    assert s.summary.total == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"categories": "charge,bogus"},
        {"fiscal_years": "1999/00"},
        {"max_pages": "0"},
        {"max_pages": "many"},
    ],
)
def test_bad_configuration_is_fatal(kwargs):
    with pytest.raises(ConfigurationError):
        spider(**kwargs)


def test_defaults_cover_three_categories_and_all_fiscal_years():
    s = CasesSpider()
    assert s.traversal.categories == [Category.CHARGE, Category.STING, Category.APPEAL]
    assert len(s.traversal.fiscal_years) == 11
    assert s.traversal.max_pages == 20


def test_start_yields_only_the_first_listing_request():
    s = spider(categories="charge,sting")

    async def collect():
        return [request async for request in s.start()]

    (request,) = asyncio.run(collect())
    assert request.url == page_url(Category.CHARGE, CURRENT, 1)
    assert request.callback == s.parse
    assert request.errback == s.on_fetch_error
