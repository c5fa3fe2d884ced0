# Define here the models for your downloader middlewares
#
# See documentation in:
# https://docs.scrapy.org/en/latest/topics/downloader-middleware.html
import asyncio
import logging

from scrapy import signals

logger = logging.getLogger(__name__)


class CourtesyDelayMiddleware:
    """Pause before a request for ``request.meta["courtesy_delay"]`` seconds.

    The spider decides the pause per step (page, fiscal year, category), so
    DOWNLOAD_DELAY stays at 0. Requires the asyncio reactor.
    """

    def __init__(self, enabled=True):
        self.enabled = enabled
        self.slept = 0.0

    @classmethod
    def from_crawler(cls, crawler):
        mw = cls(enabled=crawler.settings.getbool("CIAA_COURTESY_DELAY_ENABLED", True))
        crawler.signals.connect(mw.spider_closed, signal=signals.spider_closed)
        return mw

    @staticmethod
    def delay_for(request):
        try:
            return max(float(request.meta.get("courtesy_delay") or 0), 0.0)
        except (TypeError, ValueError):
            return 0.0

    async def process_request(self, request):
        delay = self.delay_for(request)
        if not self.enabled or delay <= 0:
            return None
        logger.debug("Courtesy delay %.1fs before %s", delay, request.url)
        await asyncio.sleep(delay)
        self.slept += delay
        return None

    def spider_closed(self, spider):
        logger.info("Courtesy delays total: %.1fs", self.slept)
