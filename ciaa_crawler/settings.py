# Scrapy settings for ciaa_crawler project
#
# For simplicity, this file contains only settings considered important or
# commonly used. You can find more settings consulting the documentation:
#
#     https://docs.scrapy.org/en/latest/topics/settings.html
#     https://docs.scrapy.org/en/latest/topics/downloader-middleware.html

import os

# ##################################################
# Crawl shape and courtesy delays (seconds)
# ##################################################

CIAA_MAX_PAGES = int(os.getenv("CIAA_MAX_PAGES", "20"))
CIAA_PAGE_DELAY = float(os.getenv("CIAA_PAGE_DELAY", "1.5"))
CIAA_YEAR_DELAY = float(os.getenv("CIAA_YEAR_DELAY", "2.0"))
CIAA_CATEGORY_DELAY = float(os.getenv("CIAA_CATEGORY_DELAY", "3.0"))

CIAA_OUTPUT = os.getenv("CIAA_OUTPUT", "ciaa-historical-cases.json")
CIAA_TOP_N = int(os.getenv("CIAA_TOP_N", "10"))

# ##################################################

BOT_NAME = "ciaa_crawler"

SPIDER_MODULES = ["ciaa_crawler.spiders"]
NEWSPIDER_MODULE = "ciaa_crawler.spiders"

# One static identity, no rotation
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

DEFAULT_REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ne,en;q=0.8",
}

ROBOTSTXT_OBEY = False

# The spider chains its requests; these keep it to one in flight regardless
CONCURRENT_REQUESTS = 1
CONCURRENT_REQUESTS_PER_DOMAIN = 1

# Pauses are per step, applied by CourtesyDelayMiddleware
DOWNLOAD_DELAY = 0
AUTOTHROTTLE_ENABLED = False

DOWNLOAD_TIMEOUT = int(os.getenv("CIAA_DOWNLOAD_TIMEOUT", "15"))

# A failed page is an empty page. Set CIAA_RETRY_TIMES to retry transport
# errors and 5xx responses a bounded number of times.
RETRY_TIMES = int(os.getenv("CIAA_RETRY_TIMES", "0"))
RETRY_ENABLED = RETRY_TIMES > 0
RETRY_HTTP_CODES = [500, 502, 503, 504, 522, 524, 408]

TELNETCONSOLE_ENABLED = False

CIAA_COURTESY_DELAY_ENABLED = os.getenv("CIAA_COURTESY_DELAY_ENABLED", "1") == "1"

DOWNLOADER_MIDDLEWARES = {
    "ciaa_crawler.middlewares.CourtesyDelayMiddleware": 50,
}

ITEM_PIPELINES = {
    "ciaa_crawler.pipelines.DedupePipeline": 100,
    "ciaa_crawler.pipelines.JsonSnapshotPipeline": 300,
}
if os.getenv("MONGO_URI"):
    ITEM_PIPELINES["ciaa_crawler.pipelines_mongo.MongoPipeline"] = 400

# CourtesyDelayMiddleware awaits asyncio.sleep
TWISTED_REACTOR = "twisted.internet.asyncioreactor.AsyncioSelectorReactor"
FEED_EXPORT_ENCODING = "utf-8"

LOG_LEVEL = os.getenv("CIAA_LOGLEVEL", "INFO")
