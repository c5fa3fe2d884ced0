# Define your item pipelines here
#
# Don't forget to add your pipeline to the ITEM_PIPELINES setting
# See: https://docs.scrapy.org/en/latest/topics/item-pipeline.html
import json
import logging
import os
import stat
import tempfile
from pathlib import Path

from itemadapter import ItemAdapter
from scrapy.exceptions import DropItem

from ciaa_crawler.analysis import report_lines
from ciaa_crawler.catalog import ConfigurationError
from ciaa_crawler.items import to_document

logger = logging.getLogger(__name__)


def _spider(crawler):
    return getattr(crawler, "spider", None)


class DedupePipeline:
    """Drop repeats within one run, keyed by detail URL, else by id."""

    def __init__(self, crawler=None):
        self.crawler = crawler
        self.seen = set()

    @classmethod
    def from_crawler(cls, crawler):
        return cls(crawler)

    def open_spider(self):
        self.seen = set()

    def process_item(self, item):
        adapter = ItemAdapter(item)
        key = adapter.get("detail_url") or adapter.get("id")
        if key in self.seen:
            summary = getattr(_spider(self.crawler), "summary", None)
            if summary is not None:
                summary.bump("duplicates")
            raise DropItem(f"Duplicate case {key}")
        self.seen.add(key)
        return item


def ensure_writable(path: Path):
    parent = path.resolve().parent
    if not parent.is_dir():
        raise ConfigurationError(f"Output directory does not exist: {parent}")
    if not os.access(parent, os.W_OK):
        raise ConfigurationError(f"Output directory is not writable: {parent}")
    if path.exists() and not os.access(path, os.W_OK):
        raise ConfigurationError(f"Output file is not writable: {path}")


def output_mode(path: Path):
    """Mode for the output file: the existing file's, else 0666 minus umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_json_atomic(path: Path, payload):
    """Write to a sibling temp file and move it into place.

    A crash mid-write leaves any previous output untouched.
    """
    path = Path(path)
    mode = output_mode(path)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.resolve().parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class JsonSnapshotPipeline:
    def __init__(self, path: str, top_n: int = 10, crawler=None):
        self.path = Path(path)
        self.top_n = top_n
        self.crawler = crawler
        self.documents = []

    @classmethod
    def from_crawler(cls, crawler):
        return cls(
            crawler.settings.get("CIAA_OUTPUT", "ciaa-historical-cases.json"),
            crawler.settings.getint("CIAA_TOP_N", 10),
            crawler,
        )

    def open_spider(self):
        override = getattr(_spider(self.crawler), "output", None)
        if override:
            self.path = Path(override)
        ensure_writable(self.path)
        self.documents = []

    def process_item(self, item):
        self.documents.append(to_document(item))
        return item

    def close_spider(self):
        write_json_atomic(self.path, self.documents)
        logger.info("Saved %d cases to %s", len(self.documents), self.path)
        for line in report_lines(self.documents, self.top_n):
            logger.info(line)
