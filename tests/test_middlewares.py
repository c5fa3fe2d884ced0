import asyncio

import pytest
from scrapy import Request

from ciaa_crawler.middlewares import CourtesyDelayMiddleware

URL = "https://ciaa.gov.np/pressreleaseCategory/charge?page=2"


@pytest.fixture
def slept(monkeypatch):
    calls = []

    async def fake_sleep(seconds):
        calls.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return calls


@pytest.mark.parametrize("meta, expected", [({}, 0.0), ({"courtesy_delay": 1.5}, 1.5), ({"courtesy_delay": "x"}, 0.0), ({"courtesy_delay": -2}, 0.0)])
def test_delay_for(meta, expected):
    assert CourtesyDelayMiddleware.delay_for(Request(URL, meta=meta)) == expected


def test_sleeps_for_the_requested_delay(slept):
    mw = CourtesyDelayMiddleware()
    assert asyncio.run(mw.process_request(Request(URL, meta={"courtesy_delay": 3.0}))) is None
    assert slept == [3.0]
    assert mw.slept == 3.0


def test_no_delay_no_sleep(slept):
    mw = CourtesyDelayMiddleware()
    asyncio.run(mw.process_request(Request(URL)))
    assert slept == []


def test_disabled_middleware_never_sleeps(slept):
    mw = CourtesyDelayMiddleware(enabled=False)
    asyncio.run(mw.process_request(Request(URL, meta={"courtesy_delay": 3.0})))
    assert slept == []
