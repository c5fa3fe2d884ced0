import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

BASE_URL = os.getenv("CIAA_BASE_URL", "https://ciaa.gov.np").rstrip("/")


class ConfigurationError(ValueError):
    """Operator or programming mistake; never a transient network condition."""


class Category(Enum):
    CHARGE = ("charge", "Charge Sheet", "court_filing")
    STING = ("sting", "Sting Operation", "arrest")
    APPEAL = ("appeal", "Appeal", "appeal")
    OTHERS = ("others", "Others", "other")

    def __init__(self, key, label, case_type):
        self.key = key
        self.label = label
        self.case_type = case_type

    @property
    def url(self):
        return f"{BASE_URL}/pressreleaseCategory/{self.key}"


@dataclass(frozen=True)
class FiscalYear:
    value: Optional[str]          # query value for ?fiscal_year=, None for the implicit pass
    label: str                    # Bikram Sambat label, e.g. 2082/83
    gregorian: Optional[str] = None


CURRENT = FiscalYear(value=None, label="current")

FISCAL_YEARS = [
    FiscalYear("2", "2072/73", "2015/16"),
    FiscalYear("3", "2073/74", "2016/17"),
    FiscalYear("4", "2074/75", "2017/18"),
    FiscalYear("5", "2075/76", "2018/19"),
    FiscalYear("6", "2076/77", "2019/20"),
    FiscalYear("7", "2077/78", "2020/21"),
    FiscalYear("8", "2078/79", "2021/22"),
    FiscalYear("9", "2079/80", "2022/23"),
    FiscalYear("10", "2080/81", "2023/24"),
    FiscalYear("11", "2081/82", "2024/25"),
    FiscalYear("12", "2082/83", "2025/26"),
]

DEFAULT_CATEGORIES = [Category.CHARGE, Category.STING, Category.APPEAL]


def _split(raw):
    if isinstance(raw, str):
        return [x.strip() for x in raw.split(",") if x.strip()]
    return list(raw)


def resolve_categories(raw: Union[None, str, Iterable]) -> List[Category]:
    if raw is None:
        return list(DEFAULT_CATEGORIES)
    by_key = {c.key: c for c in Category}
    out = []
    for x in _split(raw):
        if isinstance(x, Category):
            out.append(x)
            continue
        cat = by_key.get(str(x).lower())
        if cat is None:
            raise ConfigurationError(
                f"Unknown category {x!r}; expected one of {', '.join(sorted(by_key))}"
            )
        out.append(cat)
    if not out:
        raise ConfigurationError("No categories selected")
    return out


def resolve_fiscal_years(raw: Union[None, str, Iterable]) -> List[FiscalYear]:
    """Map a spider argument to the fiscal-year dimension.

    ``None`` or ``"all"`` means every known year, ``"none"``/``"current"``
    means the single implicit pass without a fiscal_year filter, otherwise a
    comma list of query values ("12") or labels ("2082/83").
    """
    if raw is None:
        return list(FISCAL_YEARS)
    if isinstance(raw, str) and raw.strip().lower() == "all":
        return list(FISCAL_YEARS)
    if isinstance(raw, str) and raw.strip().lower() in {"none", "current"}:
        return [CURRENT]

    lookup = {}
    for fy in FISCAL_YEARS:
        lookup[fy.value] = fy
        lookup[fy.label] = fy
        lookup[fy.gregorian] = fy
    out = []
    for x in _split(raw):
        if isinstance(x, FiscalYear):
            out.append(x)
            continue
        fy = lookup.get(str(x))
        if fy is None:
            raise ConfigurationError(f"Unknown fiscal year {x!r}")
        out.append(fy)
    if not out:
        raise ConfigurationError("No fiscal years selected")
    return out


def resolve_max_pages(raw) -> int:
    try:
        n = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"max_pages must be an integer, got {raw!r}")
    if n < 1:
        raise ConfigurationError(f"max_pages must be at least 1, got {n}")
    return n
