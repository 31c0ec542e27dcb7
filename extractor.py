"""Record extraction from SAPL "pesquisar-materia" listing pages."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag

from models import RawProposal

LOGGER = logging.getLogger(__name__)

ROW_SELECTOR = "table.table-striped tbody tr"
# Browsers insert an implicit <tbody>; html.parser does not.
BARE_ROW_SELECTOR = "table.table-striped > tr"
ID_SELECTOR = "td:nth-child(1) > b > a"
PROTOCOL_SELECTOR = "td:nth-child(1) > div"
DESCRIPTION_SELECTOR = "td:nth-child(2) > p.mb-0"
DOCUMENT_SELECTOR = ".texto-original a"

EMENTA_LABEL = "Ementa:"
PROTOCOL_LABEL = "Protocolo:"
PROTOCOL_DATE_FORMAT = "%d/%m/%Y"

_ID_PATTERN = re.compile(r"IND\s(\d+/\d+)")
_PROTOCOL_DATE_PATTERN = re.compile(r"de\s(\d{2}/\d{2}/\d{4})")


def parse_proposals(markup: str, base_url: str) -> list[RawProposal]:
    """Parse one listing page into RawProposal records.

    Rows missing the identifier, protocol date, ementa or original-document
    link are skipped with a warning. Markup without matching rows yields an
    empty list.
    """
    if not markup or not markup.strip():
        return []

    soup = BeautifulSoup(markup, "html.parser")
    rows = soup.select(ROW_SELECTOR) or soup.select(BARE_ROW_SELECTOR)

    proposals: list[RawProposal] = []
    for index, row in enumerate(rows):
        try:
            proposal = _parse_row(row, base_url)
        except Exception:  # one bad row must not sink the page
            LOGGER.exception("Error parsing proposal row %s", index)
            continue
        if proposal is not None:
            proposals.append(proposal)

    LOGGER.info("Extractor: rows=%s parsed=%s skipped=%s", len(rows), len(proposals), len(rows) - len(proposals))
    return proposals


def _parse_row(row: Tag, base_url: str) -> RawProposal | None:
    id_element = row.select_one(ID_SELECTOR)
    protocol_element = row.select_one(PROTOCOL_SELECTOR)
    paragraph = row.select_one(DESCRIPTION_SELECTOR)

    if id_element is None or protocol_element is None or paragraph is None:
        LOGGER.warning("Skipping row without id, protocol or description cell: %s", _snippet(row))
        return None

    description = extract_ementa(paragraph)
    if not description:
        LOGGER.warning("Skipping row without ementa: %s", _snippet(row))
        return None

    link = paragraph.select_one(DOCUMENT_SELECTOR)
    href = link.get("href") if link is not None else None
    if not href:
        LOGGER.warning("Skipping row due to missing PDF link: %s", _snippet(row))
        return None

    id_text = id_element.get_text().strip()
    match = _ID_PATTERN.search(id_text)
    proposal_id = f"IND {match.group(1)}" if match else id_text

    protocol_text = protocol_element.get_text().replace(PROTOCOL_LABEL, "").strip()
    date_match = _PROTOCOL_DATE_PATTERN.search(protocol_text)
    if not proposal_id or date_match is None:
        LOGGER.warning("Skipping row due to missing data: %s", _snippet(row))
        return None

    protocol_date = date_match.group(1)
    return RawProposal(
        id=proposal_id,
        title=id_text,
        description=description,
        protocol_date=protocol_date,
        year=int(protocol_date.split("/")[2]),
        pdf_url=urljoin(base_url, href),
    )


def extract_ementa(paragraph: Tag) -> str:
    """Return the text node that follows the ``<b>Ementa:</b>`` label, trimmed."""
    for child in paragraph.children:
        if isinstance(child, Tag) and child.name == "b" and child.get_text().strip() == EMENTA_LABEL:
            sibling = child.next_sibling
            if isinstance(sibling, NavigableString):
                return str(sibling).strip()
            return ""
    return ""


def parse_protocol_date(value: str) -> date:
    """Parse a ``dd/mm/yyyy`` protocol date.

    Raises:
        ValueError: if ``value`` is not a valid calendar date in that format.
    """
    return datetime.strptime(value.strip(), PROTOCOL_DATE_FORMAT).date()


def _snippet(row: Tag, max_len: int = 160) -> str:
    text = " ".join(row.get_text().split())
    return text if len(text) <= max_len else text[: max_len - 1] + "…"
