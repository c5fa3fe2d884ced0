from collections import Counter
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from ciaa_crawler.utility import find_amounts


class AmountObservation(NamedTuple):
    id: str
    category: str
    amount: float
    text: str
    title: str


class AmountStats(NamedTuple):
    count: int
    total: float
    average: float
    maximum: float
    minimum: float
    top: List[AmountObservation]


def amount_observations(documents: Iterable[Dict[str, Any]]) -> List[AmountObservation]:
    """Every amount mentioned in every title; one title can give several."""
    out = []
    for doc in documents:
        title = doc.get("title") or ""
        for m in find_amounts(title):
            out.append(AmountObservation(doc.get("id"), doc.get("category"), m.value, m.text, title))
    return out


def amount_stats(observations: List[AmountObservation], top_n: int = 10) -> Optional[AmountStats]:
    if not observations:
        return None
    amounts = [o.amount for o in observations]
    total = sum(amounts)
    top = sorted(observations, key=lambda o: o.amount, reverse=True)[:top_n]
    return AmountStats(len(amounts), total, total / len(amounts), max(amounts), min(amounts), top)


def count_by(documents, key, missing="Not specified"):
    return Counter((doc.get(key) or missing) for doc in documents)


def with_amount(documents):
    return sum(1 for doc in documents if (doc.get("amount") or "").strip())


def date_range(documents):
    dates = sorted(
        doc["date"] for doc in documents
        if doc.get("date") and doc.get("dateParsed", True)
    )
    if not dates:
        return None
    return dates[0], dates[-1]


def format_rs(n: float):
    return f"Rs {n:,.2f}"


def report_lines(documents: List[Dict[str, Any]], top_n: int = 10, by_accusation: bool = False):
    lines = [f"Total cases: {len(documents)}", "By category:"]
    for cat, n in count_by(documents, "category").most_common():
        lines.append(f"  {cat}: {n}")

    fiscal = count_by(documents, "fiscalYear")
    if fiscal:
        lines.append("By fiscal year:")
        for fy, n in sorted(fiscal.items()):
            lines.append(f"  {fy}: {n}")

    if by_accusation:
        lines.append("By accusation:")
        for acc, n in count_by(documents, "accusation").most_common():
            lines.append(f"  {acc}: {n}")

    lines.append(f"Cases with amount specified: {with_amount(documents)}")

    obs = amount_observations(documents)
    lines.append(f"Amounts mentioned in titles: {len(obs)}")
    stats = amount_stats(obs, top_n)
    if stats:
        lines.append(f"  Total amount: {format_rs(stats.total)}")
        lines.append(f"  Average amount: {format_rs(stats.average)}")
        lines.append(f"  Largest amount: {format_rs(stats.maximum)}")
        lines.append(f"  Smallest amount: {format_rs(stats.minimum)}")
        lines.append(f"Top {len(stats.top)} by amount:")
        for i, o in enumerate(stats.top, 1):
            lines.append(f"  {i}. {format_rs(o.amount)} - {o.category} - {o.title[:100]}")

    span = date_range(documents)
    if span:
        lines.append(f"Date range: {span[0]} .. {span[1]}")

    if documents:
        linked = sum(1 for doc in documents if doc.get("detailUrl"))
        lines.append(f"Cases with detail URLs: {linked} ({round(linked / len(documents) * 100)}%)")
    return lines
