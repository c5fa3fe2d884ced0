from urllib.parse import urlparse

import scrapy

from ciaa_crawler.catalog import BASE_URL, resolve_categories, resolve_fiscal_years, resolve_max_pages
from ciaa_crawler.extractor import extract_records
from ciaa_crawler.fetcher import failure_reason, has_next_page, page_request
from ciaa_crawler.stats import CrawlSummary
from ciaa_crawler.traversal import (
    DEFAULT_CATEGORY_DELAY,
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_DELAY,
    DEFAULT_YEAR_DELAY,
    Traversal,
)


class CasesSpider(scrapy.Spider):
    """CIAA press-release listings, category by fiscal year by page.

    Exactly one listing request is in flight at any time: the next request
    is only yielded from the callback (or errback) of the previous one, after
    the page has been parsed. A failed fetch counts as an empty last page.
    """

    name = "cases"
    allowed_domains = [urlparse(BASE_URL).hostname]

    def __init__(
        self,
        categories=None,
        fiscal_years=None,
        max_pages=None,
        output=None,
        page_delay=None,
        year_delay=None,
        category_delay=None,
        cancel_event=None,
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.categories = resolve_categories(categories)
        self.fiscal_years = resolve_fiscal_years(fiscal_years)
        self.max_pages = resolve_max_pages(max_pages) if max_pages is not None else None
        self.output = output
        self.cancel_event = cancel_event
        self.summary = CrawlSummary()
        self._delays = {
            "page": page_delay,
            "year": year_delay,
            "category": category_delay,
        }
        self.traversal = self._build_traversal()

    @classmethod
    def from_crawler(cls, crawler, *args, **kwargs):
        spider = super().from_crawler(crawler, *args, **kwargs)
        spider.traversal = spider._build_traversal(crawler.settings)
        return spider

    def _build_traversal(self, settings=None):
        def pick(own, key, default):
            if own is not None:
                return float(own)
            if settings is not None:
                return settings.getfloat(key, default)
            return default

        max_pages = self.max_pages
        if max_pages is None:
            max_pages = resolve_max_pages(
                settings.getint("CIAA_MAX_PAGES", DEFAULT_MAX_PAGES) if settings is not None else DEFAULT_MAX_PAGES
            )
        return Traversal(
            self.categories,
            self.fiscal_years,
            max_pages=max_pages,
            page_delay=pick(self._delays["page"], "CIAA_PAGE_DELAY", DEFAULT_PAGE_DELAY),
            year_delay=pick(self._delays["year"], "CIAA_YEAR_DELAY", DEFAULT_YEAR_DELAY),
            category_delay=pick(self._delays["category"], "CIAA_CATEGORY_DELAY", DEFAULT_CATEGORY_DELAY),
        )

    def cancel(self):
        """Stop before the next fetch; what was already yielded is kept."""
        self.summary.cancelled = True

    def is_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.summary.cancelled = True
        return self.summary.cancelled

    async def start(self):
        for request in self.first_requests():
            yield request

    def first_requests(self):
        self.logger.info(
            "Crawling %d categories x %d fiscal years, up to %d pages each",
            len(self.traversal.categories),
            len(self.traversal.fiscal_years),
            self.traversal.max_pages,
        )
        step = self.traversal.first()
        if step is not None and not self.is_cancelled():
            yield self._request(step)

    def parse(self, response, step=None, **kwargs):
        result = extract_records(response, step.category, step.fiscal_year, step.page)
        count = len(result.records)
        self.summary.bump("pages")
        self.summary.bump("rows_skipped", result.skipped_rows)
        self.summary.bump("rows_errored", result.errored_rows)
        self.summary.add_records(step.category, step.fiscal_year, count)
        self.logger.info(
            "Found %d cases on page %d for %s%s",
            count,
            step.page,
            step.category.label,
            self._fy_suffix(step),
        )

        for record in result.records:
            yield record

        more = has_next_page(response) and count > 0
        nxt = self._follow(step, more)
        if nxt is not None:
            yield nxt

    def on_fetch_error(self, failure):
        step = failure.request.cb_kwargs.get("step")
        self.summary.bump("fetch_failures")
        self.logger.warning(
            "Fetch failed for %s (%s); treating page %d of %s%s as empty",
            failure.request.url,
            failure_reason(failure),
            step.page,
            step.category.label,
            self._fy_suffix(step),
        )
        nxt = self._follow(step, False)
        if nxt is not None:
            yield nxt

    def _request(self, step):
        self.summary.start_pair(step.category, step.fiscal_year)
        return page_request(step, callback=self.parse, errback=self.on_fetch_error)

    def _follow(self, step, more):
        nxt = self.traversal.advance(step, more)
        if more and step.page >= self.traversal.max_pages:
            self.logger.warning(
                "Reached max_pages=%d for %s%s, stopping pagination",
                self.traversal.max_pages,
                step.category.label,
                self._fy_suffix(step),
            )
        if nxt is None or (nxt.category, nxt.fiscal_year) != (step.category, step.fiscal_year):
            self.logger.info(
                "%s%s done: %d cases",
                step.category.label,
                self._fy_suffix(step),
                self.summary.pair_count(step.category, step.fiscal_year),
            )
        if nxt is None or nxt.category != step.category:
            self.logger.info(
                "Category %s done: %d cases", step.category.label, self.summary.by_category[step.category.label]
            )
        if nxt is None:
            return None
        if self.is_cancelled():
            self.logger.warning("Crawl cancelled; skipping %s page %d onwards", nxt.category.label, nxt.page)
            return None
        return self._request(nxt)

    @staticmethod
    def _fy_suffix(step):
        fy = step.fiscal_year
        if fy.value is None:
            return ""
        return f" [FY {fy.label} ({fy.gregorian})]"

    def closed(self, reason):
        for line in self.summary.report_lines():
            self.logger.info(line)
        stats = getattr(getattr(self, "crawler", None), "stats", None)
        if stats is None:
            return
        for key, value in self.summary.as_dict().items():
            if isinstance(value, dict):
                for sub, n in value.items():
                    stats.set_value(f"cases/{key}/{sub}", n)
            else:
                stats.set_value(f"cases/{key}", value)
