# Scrapy accepts dataclass objects as items through itemadapter.
#
# See documentation in:
# https://docs.scrapy.org/en/latest/topics/items.html#dataclass-objects

from dataclasses import dataclass, field
from typing import Optional, Tuple

from itemadapter import ItemAdapter

# attribute name -> serialized document key
DOCUMENT_KEYS = {
    "id": "id",
    "category": "category",
    "category_type": "categoryType",
    "fiscal_year": "fiscalYear",
    "fiscal_year_gregorian": "fiscalYearGregorian",
    "date": "date",
    "date_parsed": "dateParsed",
    "title": "title",
    "accused_person": "accusedPerson",
    "office": "office",
    "accusation": "accusation",
    "amount": "amount",
    "detail_url": "detailUrl",
    "download_links": "downloadLinks",
    "scraped_at": "scrapedAt",
    "source_url": "sourceUrl",
}


@dataclass(frozen=True)
class CaseRecord:
    # Core identity
    id: str                                  # detail URL tail, or category_fy_page_row
    category: str                            # 'Charge Sheet', 'Sting Operation', 'Appeal', 'Others'
    category_type: str                       # court_filing | arrest | appeal | other
    fiscal_year: str                         # e.g. '2082/83'; 'current' without the fiscal-year filter
    fiscal_year_gregorian: Optional[str]     # e.g. '2025/26'

    # Listing row
    date: str                                # matched date, or raw cell text when no pattern matched
    date_parsed: bool                        # False means `date` is the raw cell text
    title: str
    accused_person: str = ""
    office: str = ""
    accusation: str = ""
    amount: str = ""                         # raw cell text; see utility.normalize_amount

    # Source & links
    detail_url: Optional[str] = None
    download_links: Tuple[str, ...] = field(default_factory=tuple)
    scraped_at: str = ""
    source_url: str = ""

    def to_document(self):
        doc = {DOCUMENT_KEYS[k]: getattr(self, k) for k in DOCUMENT_KEYS}
        doc["downloadLinks"] = list(self.download_links)
        return doc


def to_document(item):
    """Serialized form of an item coming out of the crawl."""
    if isinstance(item, CaseRecord):
        return item.to_document()
    adapter = ItemAdapter(item)
    return {DOCUMENT_KEYS.get(k, k): v for k, v in adapter.items()}
