from dataclasses import dataclass, replace
from typing import List, Optional

from ciaa_crawler.catalog import Category, FiscalYear
from ciaa_crawler.utility import unique_preserve

DEFAULT_PAGE_DELAY = 1.5
DEFAULT_YEAR_DELAY = 2.0
DEFAULT_CATEGORY_DELAY = 3.0
DEFAULT_MAX_PAGES = 20


@dataclass(frozen=True)
class CrawlStep:
    category: Category
    fiscal_year: FiscalYear
    page: int = 1
    delay: float = 0.0   # courtesy pause before this fetch


class Traversal:
    """Walks (category, fiscal year, page) in order, one step at a time.

    A step's successor depends on whether the page asked for continuation:
    the next page of the same pair, else the next fiscal year, else the
    first fiscal year of the next category. Each move carries the pause for
    the level it crosses; nothing is paused after the last step.
    """

    def __init__(
        self,
        categories: List[Category],
        fiscal_years: List[FiscalYear],
        max_pages: int = DEFAULT_MAX_PAGES,
        page_delay: float = DEFAULT_PAGE_DELAY,
        year_delay: float = DEFAULT_YEAR_DELAY,
        category_delay: float = DEFAULT_CATEGORY_DELAY,
    ):
        self.categories = unique_preserve(categories)
        self.fiscal_years = unique_preserve(fiscal_years)
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.year_delay = year_delay
        self.category_delay = category_delay

    def first(self) -> Optional[CrawlStep]:
        if not self.categories or not self.fiscal_years:
            return None
        return CrawlStep(self.categories[0], self.fiscal_years[0], 1, 0.0)

    def advance(self, step: CrawlStep, has_more: bool) -> Optional[CrawlStep]:
        if has_more and step.page < self.max_pages:
            return replace(step, page=step.page + 1, delay=self.page_delay)

        fy_idx = self.fiscal_years.index(step.fiscal_year)
        if fy_idx + 1 < len(self.fiscal_years):
            return CrawlStep(step.category, self.fiscal_years[fy_idx + 1], 1, self.year_delay)

        cat_idx = self.categories.index(step.category)
        if cat_idx + 1 < len(self.categories):
            return CrawlStep(self.categories[cat_idx + 1], self.fiscal_years[0], 1, self.category_delay)
        return None

    def __len__(self):
        return len(self.categories) * len(self.fiscal_years)
