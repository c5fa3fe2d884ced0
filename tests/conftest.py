import pytest
import scrapy
from scrapy.http import HtmlResponse
from twisted.python.failure import Failure


def row(*cells):
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


def full_row(n, amount="१,००,०००"):
    return row(
        f"2081-0{n % 9 + 1}-1{n % 10}",
        f'<a href="/pressrelease/{1000 + n}">Case {n} रू.१,२५,६६,५५५।५०</a>',
        f"Accused {n}",
        f"Office {n}",
        "Bribery",
        amount,
    )


def listing_page(rows, next_link=False, pagination=True):
    nav = ""
    if pagination:
        links = '<a href="?page=1">1</a><a href="?page=2">2</a>'
        if next_link:
            links += '<a href="?page=2" rel="next">»</a>'
        nav = f'<ul class="pagination">{links}</ul>'
    return (
        "<html><body><table><thead><tr><th>Date</th><th>Title</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>{nav}</body></html>"
    )


def html_response(url, html, request=None):
    return HtmlResponse(url=url, body=html.encode("utf-8"), encoding="utf-8", request=request)


def drive(spider, pages):
    """Play the spider's request chain against canned pages keyed by URL.

    A page value that is an exception is delivered to the errback the way
    the downloader would. Returns (fetched urls, courtesy delays, items).
    """
    fetched, delays, items = [], [], []
    pending = list(spider.first_requests())
    while pending:
        request = pending.pop(0)
        fetched.append(request.url)
        if request.meta.get("courtesy_delay"):
            delays.append(request.meta["courtesy_delay"])
        page = pages.get(request.url, listing_page([]))
        if isinstance(page, Exception):
            failure = Failure(page)
            failure.request = request
            output = request.errback(failure)
        else:
            output = request.callback(html_response(request.url, page, request), **request.cb_kwargs)
        for obj in output or []:
            if isinstance(obj, scrapy.Request):
                pending.append(obj)
            else:
                items.append(obj)
    return fetched, delays, items


@pytest.fixture
def make_response():
    return html_response
