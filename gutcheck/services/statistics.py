"""Summary statistics over logged entries."""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from gutcheck.models.entries import Entry
from gutcheck.models.tools import EntryInsights

RECENT_TREND_SIZE = 3


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, as users expect from a percentage."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def consistency_score(entries: Sequence[Entry]) -> int:
    """Percentage of entries with a typical (3-4) Bristol type, 0 for no entries."""
    if not entries:
        return 0
    healthy = sum(1 for e in entries if e.is_healthy)
    return int(round_half_up(healthy / len(entries) * 100))


def average_bristol_type(entries: Sequence[Entry]) -> float:
    """Mean Bristol type to one decimal; entries without a type count as 0."""
    if not entries:
        return 0.0
    total = sum(e.bristol_type or 0 for e in entries)
    return round_half_up(total / len(entries), 1)


def most_common_bristol_type(entries: Sequence[Entry]) -> int | None:
    """Most frequent Bristol type; on a tie the one encountered first wins."""
    types = [e.bristol_type for e in entries if e.bristol_type]
    if not types:
        return None
    counts: dict[int, int] = {}
    for t in types:
        counts[t] = counts.get(t, 0) + 1
    best = types[0]
    for t in types[1:]:
        if counts[t] > counts[best]:
            best = t
    return best


def recent_trend(entries: Sequence[Entry]) -> list[int] | None:
    """Bristol types of the newest entries; expects entries newest first."""
    trend = [e.bristol_type for e in entries[:RECENT_TREND_SIZE] if e.bristol_type]
    return trend or None


def summarize_entries(entries: Sequence[Entry], note: str | None = None) -> EntryInsights:
    """Compute the insight block returned by the queryUserData tool."""
    return EntryInsights(
        total_entries=len(entries),
        healthy_entries=sum(1 for e in entries if e.is_healthy),
        consistency_score=consistency_score(entries),
        avg_bristol_type=average_bristol_type(entries),
        most_common_bristol_type=most_common_bristol_type(entries),
        recent_trend=recent_trend(entries),
        note=note,
    )
