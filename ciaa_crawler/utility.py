import math
import os
import re
from typing import List, NamedTuple, Optional
from urllib.parse import urlparse

DEVANAGARI_DIGITS = "०१२३४५६७८९"
_DIGIT_TABLE = {ord(d): str(i) for i, d in enumerate(DEVANAGARI_DIGITS)}

# Devanagari danda doubles as the decimal separator in amounts.
DANDA = "।"

AMOUNT_RE = re.compile(
    r"(?:रू|रु)\.?\s?(?P<num>[0-9०-९][0-9०-९,।.]*)"
    r"|(?<![A-Za-z])N?Rs\.?\s?(?P<num2>[0-9०-९][0-9०-९,।.]*)"
)
BARE_AMOUNT_RE = re.compile(r"[0-9०-९][0-9०-९,।.]*(?:[eE][+-]?[0-9]+)?")
DATE_RE = re.compile(r"[0-9०-९]{4}[-/][0-9०-९]{2}[-/][0-9०-९]{2}")


class AmountMatch(NamedTuple):
    value: float
    text: str


class DateText(NamedTuple):
    value: str
    parsed: bool


def to_ascii_digits(text: str):
    return (text or "").translate(_DIGIT_TABLE)


def parse_number(raw: str) -> Optional[float]:
    s = to_ascii_digits(raw).replace(",", "").replace(DANDA, ".").rstrip(".")
    if not s:
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    if math.isnan(n) or math.isinf(n) or n <= 0:
        return None
    return n


def find_amounts(text: str) -> List[AmountMatch]:
    """Every currency-prefixed amount in ``text``, in order of appearance."""
    out = []
    for m in AMOUNT_RE.finditer(text or ""):
        n = parse_number(m.group("num") or m.group("num2"))
        if n is not None:
            out.append(AmountMatch(n, m.group(0)))
    return out


def normalize_amount(text: str) -> Optional[float]:
    """First currency-prefixed amount in ``text``.

    Text that is nothing but a numeral (``"12566555.5"``, ``"1e-05"``) is read as-is, so
    feeding a normalized value back in gives the same number. Callers that
    want every amount, or the largest, use ``find_amounts``.
    """
    found = find_amounts(text)
    if found:
        return found[0].value
    bare = (text or "").strip()
    if bare and BARE_AMOUNT_RE.fullmatch(bare):
        return parse_number(bare)
    return None


def parse_date(raw: str, separator: Optional[str] = None) -> DateText:
    raw = (raw or "").strip()
    m = DATE_RE.search(raw)
    if not m:
        return DateText(raw, False)
    value = m.group(0)
    if separator:
        value = re.sub(r"[-/]", separator, value)
    return DateText(value, True)


def normalize_date(raw: str, separator: Optional[str] = None) -> str:
    return parse_date(raw, separator).value


def url_tail(url: Optional[str]):
    if not url:
        return ""
    return os.path.basename(urlparse(url).path.rstrip("/"))


def record_id(detail_url, category_key, fiscal_value, page, row_index):
    tail = url_tail(detail_url)
    if tail:
        return tail
    return f"{category_key}_{fiscal_value or 'current'}_{page}_{row_index}"


def unique_preserve(seq):
    seen = set()
    out = []
    for x in seq:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out
