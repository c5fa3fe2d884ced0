from collections import defaultdict


class CrawlSummary:
    """Counters owned by one crawl run."""

    def __init__(self):
        self.stats = defaultdict(int)
        self.by_category = defaultdict(int)
        self.by_fiscal_year = defaultdict(int)
        self.by_pair = {}
        self.gregorian = {}
        self.cancelled = False

    def bump(self, key: str, n: int = 1):
        self.stats[key] += n

    def start_pair(self, category, fiscal_year):
        key = (category.label, fiscal_year.label)
        self.by_pair.setdefault(key, 0)
        self.by_category.setdefault(category.label, 0)
        self.by_fiscal_year.setdefault(fiscal_year.label, 0)
        self.gregorian[fiscal_year.label] = fiscal_year.gregorian

    def add_records(self, category, fiscal_year, n: int):
        self.start_pair(category, fiscal_year)
        self.by_pair[(category.label, fiscal_year.label)] += n
        self.by_category[category.label] += n
        self.by_fiscal_year[fiscal_year.label] += n
        self.stats["records"] += n

    def pair_count(self, category, fiscal_year):
        return self.by_pair.get((category.label, fiscal_year.label), 0)

    @property
    def total(self):
        return self.stats["records"]

    def as_dict(self):
        return {
            "records": self.total,
            "pages": self.stats["pages"],
            "fetch_failures": self.stats["fetch_failures"],
            "rows_skipped": self.stats["rows_skipped"],
            "rows_errored": self.stats["rows_errored"],
            "duplicates": self.stats["duplicates"],
            "cancelled": self.cancelled,
            "by_category": dict(self.by_category),
            "by_fiscal_year": dict(self.by_fiscal_year),
        }

    def report_lines(self):
        lines = [f"Total cases scraped: {self.total}", "By category:"]
        for cat, n in sorted(self.by_category.items(), key=lambda kv: -kv[1]):
            lines.append(f"  {cat}: {n}")
        lines.append("By fiscal year:")
        for fy, n in sorted(self.by_fiscal_year.items()):
            greg = self.gregorian.get(fy)
            lines.append(f"  {fy} ({greg}): {n}" if greg else f"  {fy}: {n}")
        empty = [f"{c} / {fy}" for (c, fy), n in self.by_pair.items() if n == 0]
        if empty:
            lines.append(f"Pairs with no cases: {', '.join(empty)}")
        lines.append(
            "Pages fetched: %d, fetch failures: %d, rows skipped: %d, rows errored: %d, duplicates dropped: %d"
            % (
                self.stats["pages"],
                self.stats["fetch_failures"],
                self.stats["rows_skipped"],
                self.stats["rows_errored"],
                self.stats["duplicates"],
            )
        )
        if self.cancelled:
            lines.append("Run was cancelled before the key space was exhausted")
        return lines
