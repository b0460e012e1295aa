from __future__ import annotations

from typing import Dict, List, Sequence

from sov_engine.aggregations import AggregatedEntry, BrandBreakdown


def others_label(count: int) -> str:
    return f"Others ({count} brands)"


def bucket_entries(entries: Sequence[AggregatedEntry], max_count: int, denominator: float) -> List[AggregatedEntry]:
    """Fold everything past the top ``max_count - 1`` entries into one Others entry.

    The Others percentage is taken against the same ``denominator`` the
    ranked entries used, and the folded names are kept on the entry.
    """
    max_count = max(1, int(max_count))
    if len(entries) <= max_count:
        return list(entries)
    head = list(entries[: max_count - 1])
    tail = entries[max_count - 1:]
    value = sum(e.value for e in tail)
    percentage = (value / denominator * 100) if denominator > 0 else 0.0
    names: List[str] = []
    for e in tail:
        names.extend(e.other_brands or [e.name])
    head.append(AggregatedEntry(name=others_label(len(tail)), value=value, percentage=percentage, other_brands=names))
    return head


def bucket_breakdown(rows: Sequence[BrandBreakdown], max_count: int) -> List[BrandBreakdown]:
    """Top-N for brand x category rows; Others shares are against its own total."""
    max_count = max(1, int(max_count))
    if len(rows) <= max_count:
        return list(rows)
    head = list(rows[: max_count - 1])
    tail = rows[max_count - 1:]
    values: Dict[str, float] = {}
    names: List[str] = []
    for row in tail:
        for category, value in row.values.items():
            values[category] = values.get(category, 0.0) + value
        names.extend(row.other_brands or [row.name])
    head.append(BrandBreakdown(name=others_label(len(tail)), values=values, other_brands=names))
    return head
