"""CSV export of classified proposals."""

from __future__ import annotations

import csv
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Iterable

from models import ClassifiedProposal

CSV_OUTPUT_PATH = os.getenv("CSV_OUTPUT_PATH", "indicacoes.csv")
LOCATION_SEPARATOR = "; "

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id",
    "title",
    "protocol_date",
    "year",
    "category",
    "locations",  # joined with LOCATION_SEPARATOR
    "status",
    "description",
    "pdf_url",
    "exported_at",
]


def write_proposals(proposals: Iterable[ClassifiedProposal], csv_path: str | None = None) -> Path:
    """Write one row per proposal, replacing any previous export.

    Each run exports a full snapshot, so the file is rewritten rather than
    appended to.
    """
    path = Path(csv_path or CSV_OUTPUT_PATH)
    exported_at = datetime.now(UTC).isoformat()

    count = 0
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for proposal in proposals:
            writer.writerow(_proposal_row(proposal, exported_at))
            count += 1

    LOGGER.info("Wrote %s proposals to %s", count, path)
    return path


def _proposal_row(proposal: ClassifiedProposal, exported_at: str) -> dict[str, Any]:
    return {
        "id": proposal.id,
        "title": proposal.title,
        "protocol_date": proposal.protocol_date,
        "year": proposal.year,
        "category": proposal.category,
        "locations": LOCATION_SEPARATOR.join(_as_text(loc) for loc in proposal.locations if _as_text(loc)),
        "status": proposal.status,
        "description": _as_text(proposal.description, max_len=None),
        "pdf_url": proposal.pdf_url,
        "exported_at": exported_at,
    }


def _as_text(value: Any, max_len: int | None = 500) -> str:
    """Convert value to a stripped string, truncated to max_len chars (None keeps it whole)."""
    s = value.strip() if isinstance(value, str) else ""
    if max_len is not None and len(s) > max_len:
        return s[: max_len - 1] + "…"
    return s
