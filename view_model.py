"""Category aggregation for the dashboard chart."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from models import CATEGORIES, CategorySummary, ClassifiedProposal

# One color per canonical category position; "Outros" gets the last one.
CHART_COLORS: tuple[str, ...] = (
    "#3b82f6",  # blue
    "#14b8a6",  # teal
    "#8b5cf6",  # violet
    "#ef4444",  # red
    "#f97316",  # orange
    "#22c55e",  # green
    "#ec4899",  # pink
    "#6b7280",  # gray
    "#d946ef",  # fuchsia
)


def summarize(proposals: Sequence[ClassifiedProposal]) -> list[CategorySummary]:
    """Count proposals per category in canonical order, omitting empty ones."""
    total = len(proposals)
    counts = Counter(p.category for p in proposals)

    summaries: list[CategorySummary] = []
    for index, name in enumerate(CATEGORIES):
        count = counts.get(name, 0)
        if count == 0:
            continue
        summaries.append(
            CategorySummary(
                name=name,
                count=count,
                percentage=(count / total) * 100 if total > 0 else 0.0,
                color=CHART_COLORS[index % len(CHART_COLORS)],
            )
        )
    return summaries


def filter_by_category(
    proposals: Iterable[ClassifiedProposal], category: str | None
) -> list[ClassifiedProposal]:
    """Return proposals in ``category``, or all of them when no category is selected."""
    if category is None:
        return list(proposals)
    return [p for p in proposals if p.category == category]
