"""Dashboard rendering: category summary CSV and a plain-text view.

Two outputs are available:

  indicacoes_resumo.csv: one row per non-empty category in canonical order,
                          with count, percentage and chart color.

  render_dashboard():    text dashboard for the CLI: a horizontal bar per
                          category followed by the (optionally filtered)
                          proposal list, newest first.
"""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Sequence

from models import CategorySummary, ClassifiedProposal

LOGGER = logging.getLogger(__name__)

SUMMARY_REPORT_PATH = os.getenv("SUMMARY_REPORT_PATH", "indicacoes_resumo.csv")
BAR_WIDTH = 40

SUMMARY_COLUMNS = [
    "category",
    "count",
    "percentage",
    "color",
]


def write_summary(summaries: Sequence[CategorySummary], path: str | None = None) -> Path:
    """Write the category summary table to CSV."""
    target = Path(path or SUMMARY_REPORT_PATH)
    with target.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=SUMMARY_COLUMNS)
        writer.writeheader()
        for s in summaries:
            writer.writerow({
                "category": s.name,
                "count": s.count,
                "percentage": f"{s.percentage:.1f}",
                "color": s.color,
            })
    LOGGER.info("report: %d categories → %s", len(summaries), target)
    return target


def render_summary(summaries: Sequence[CategorySummary]) -> str:
    if not summaries:
        return "Nenhuma categoria para exibir."

    label_width = max(len(s.name) for s in summaries)
    lines = []
    for s in summaries:
        bar = "█" * max(1, round(s.percentage / 100 * BAR_WIDTH))
        lines.append(f"{s.name:<{label_width}}  {bar} {s.count} propostas ({s.percentage:.1f}%)")
    return "\n".join(lines)


def render_proposal(proposal: ClassifiedProposal) -> str:
    lines = [
        f"{proposal.title}  [{proposal.category}]",
        f"  {proposal.description}",
    ]
    if proposal.locations:
        lines.append(f"  Locais Mencionados: {', '.join(str(loc) for loc in proposal.locations)}")
    lines.append(f"  {proposal.protocol_date}  {proposal.pdf_url}")
    return "\n".join(lines)


def render_dashboard(
    proposals: Sequence[ClassifiedProposal],
    summaries: Sequence[CategorySummary],
    selected_category: str | None = None,
) -> str:
    """Render the full text dashboard.

    ``proposals`` is the list to display (already filtered by the caller);
    ``summaries`` always describe the full set.
    """
    sections = [
        "Dashboard Legislativo",
        "",
        "Indicações por Categoria",
        render_summary(summaries),
        "",
    ]
    if selected_category:
        sections.append(f"Filtrando por: {selected_category} ({len(proposals)})")
    else:
        sections.append(f"Todas as Indicações ({len(proposals)})")

    if proposals:
        sections.extend(render_proposal(p) + "\n" for p in proposals)
    else:
        sections.append("Nenhuma proposta encontrada para esta categoria.")
    return "\n".join(sections)
