from urllib.parse import urlencode

import scrapy

from ciaa_crawler.catalog import Category, FiscalYear

NEXT_GLYPHS = ("»", "›", "→")


def page_url(category: Category, fiscal_year: FiscalYear, page: int):
    params = {}
    if fiscal_year.value:
        params["fiscal_year"] = fiscal_year.value
        params["page"] = str(page)
    elif page and page > 1:
        params["page"] = str(page)
    if not params:
        return category.url
    return category.url + "?" + urlencode(params)


def has_next_page(response):
    if response.css(".pagination a[rel='next']"):
        return True
    anchors = response.css(".pagination a")
    if not anchors:
        return False
    last = " ".join((anchors[-1].xpath("string(.)").get() or "").split())
    return "Next" in last or any(g in last for g in NEXT_GLYPHS)


def page_request(step, callback, errback):
    """One listing fetch; the step travels with it so the callback knows where it is."""
    return scrapy.Request(
        page_url(step.category, step.fiscal_year, step.page),
        callback=callback,
        errback=errback,
        cb_kwargs={"step": step},
        meta={"courtesy_delay": step.delay},
        dont_filter=True,
    )


def failure_reason(failure):
    exc = getattr(failure, "value", failure)
    response = getattr(exc, "response", None)
    if response is not None:
        return f"HTTP {response.status}"
    return type(exc).__name__
