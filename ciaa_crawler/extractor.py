import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from urllib.parse import urlparse

from ciaa_crawler.catalog import Category, FiscalYear
from ciaa_crawler.items import CaseRecord
from ciaa_crawler.utility import parse_date, record_id, unique_preserve

logger = logging.getLogger(__name__)

DOC_EXTENSIONS = (".pdf", ".doc", ".docx")
MIN_CELLS = 4
FULL_CELLS = 6


@dataclass
class PageExtraction:
    records: List[CaseRecord] = field(default_factory=list)
    skipped_rows: int = 0
    errored_rows: int = 0


def cell_text(cell):
    return " ".join((cell.xpath("string(.)").get() or "").split())


def listing_rows(response):
    # lxml does not invent <tbody> the way browsers do
    return response.css("table tbody tr") or response.css("table tr")


def download_links(row, response):
    out = []
    for href in row.css("a::attr(href)").getall():
        full = response.urljoin(href.strip())
        if urlparse(full).path.lower().endswith(DOC_EXTENSIONS):
            out.append(full)
    return unique_preserve(out)


def extract_row(row, index, response, category: Category, fiscal_year: FiscalYear, page: int, scraped_at: str):
    cells = row.css("td")
    if len(cells) < MIN_CELLS:
        return None

    date_txt = cell_text(cells[0])
    title_txt = cell_text(cells[1])
    title_href = cells[1].css("a::attr(href)").get()

    accused = office = accusation = amount = ""
    if len(cells) >= FULL_CELLS:
        accused, office, accusation, amount = (cell_text(c) for c in cells[2:6])
    else:
        accused, office = cell_text(cells[2]), cell_text(cells[3])

    if not (title_txt or accused):
        return None

    detail_url = response.urljoin(title_href.strip()) if title_href and title_href.strip() else None
    # historical listings keep dates as YYYY/MM/DD
    date = parse_date(date_txt, "/" if fiscal_year.value else None)

    return CaseRecord(
        id=record_id(detail_url, category.key, fiscal_year.value, page, index),
        category=category.label,
        category_type=category.case_type,
        fiscal_year=fiscal_year.label,
        fiscal_year_gregorian=fiscal_year.gregorian,
        date=date.value,
        date_parsed=date.parsed,
        title=title_txt,
        accused_person=accused,
        office=office,
        accusation=accusation,
        amount=amount,
        detail_url=detail_url,
        download_links=tuple(download_links(row, response)),
        scraped_at=scraped_at,
        source_url=response.url,
    )


def extract_records(response, category: Category, fiscal_year: FiscalYear, page: int) -> PageExtraction:
    """Parse one listing page into case records.

    Rows with fewer than four cells and rows with neither a title nor an
    accused person are skipped. A row that fails to parse is logged and
    skipped; the rest of the page is still read.
    """
    result = PageExtraction()
    scraped_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    for index, row in enumerate(listing_rows(response)):
        try:
            record = extract_row(row, index, response, category, fiscal_year, page, scraped_at)
        except Exception:
            logger.exception("Error parsing row %d on %s", index, response.url)
            result.errored_rows += 1
            continue
        if record is None:
            result.skipped_rows += 1
            continue
        result.records.append(record)
    return result
