"""Pipeline orchestrator: fetch -> parse -> dedupe -> classify -> sort."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, Iterable
from urllib.parse import urlencode

from classification_cache import ClassificationCache
from classifier import ClassifierAdapter
from extractor import parse_proposals, parse_protocol_date
from fetch_relay import FetchedPage, FetchError, fetch_page
from models import ClassifiedProposal, RawProposal

SAPL_BASE_URL = os.getenv("SAPL_BASE_URL", "https://sapl.camarabento.rs.gov.br")
SAPL_YEAR = int(os.getenv("SAPL_YEAR", "2024"))
SAPL_AUTHOR_ID = os.getenv("SAPL_AUTHOR_ID", "400")
SAPL_MATERIA_TYPE = os.getenv("SAPL_MATERIA_TYPE", "8")  # 8 = Indicação
CLASSIFY_MAX_WORKERS = int(os.getenv("CLASSIFY_MAX_WORKERS", "8"))

LOGGER = logging.getLogger(__name__)

# The search form submits every field, empty or not; the portal expects them all.
_EMPTY_SEARCH_FIELDS = (
    "ementa",
    "numero",
    "numeracao__numero_materia",
    "numero_protocolo",
)
_TRAILING_SEARCH_FIELDS = (
    "autoria__autor__tipo",
    "autoria__autor__parlamentar_set__filiacao__partido",
    "o",
)
_ORIGIN_SEARCH_FIELDS = (
    "tipo_origem_externa",
    "numero_origem_externa",
    "ano_origem_externa",
    "data_origem_externa_0",
    "data_origem_externa_1",
    "local_origem_externa",
    "data_apresentacao_0",
    "data_apresentacao_1",
    "data_publicacao_0",
    "data_publicacao_1",
    "relatoria__parlamentar_id",
    "em_tramitacao",
    "tramitacao__unidade_tramitacao_destino",
    "tramitacao__status",
    "materiaassunto__assunto",
    "indexacao",
    "regime_tramitacao",
)

PRIMARY_SOURCE_ERROR = (
    "Falha ao carregar dados principais do portal da câmara. "
    "O serviço pode estar indisponível. Detalhes: {details}"
)
NO_RECORDS_ERROR = (
    "Nenhuma indicação foi encontrada para processar. O site de origem pode ter mudado "
    "sua estrutura ou está temporariamente bloqueando o acesso automatizado."
)


class PipelineError(RuntimeError):
    """Fatal pipeline failure; the message is meant for the end user."""


def build_search_url(
    page: int = 1,
    year: int = SAPL_YEAR,
    author_id: str = SAPL_AUTHOR_ID,
    base_url: str = SAPL_BASE_URL,
    materia_type: str = SAPL_MATERIA_TYPE,
) -> str:
    """Build the SAPL materia search URL for one results page."""
    params: list[tuple[str, str]] = []
    if page > 1:
        params.append(("page", str(page)))
    params.append(("tipo", materia_type))
    params.extend((name, "") for name in _EMPTY_SEARCH_FIELDS)
    params.append(("ano", str(year)))
    params.append(("autoria__autor", author_id))
    params.append(("autoria__primeiro_autor", "unknown"))
    params.extend((name, "") for name in _TRAILING_SEARCH_FIELDS)
    params.append(("tipo_listagem", "1"))
    params.extend((name, "") for name in _ORIGIN_SEARCH_FIELDS)
    return f"{base_url.rstrip('/')}/materia/pesquisar-materia?{urlencode(params)}"


def run_pipeline(
    fetch: Callable[[str], FetchedPage] = fetch_page,
    classifier: ClassifierAdapter | None = None,
    cache: ClassificationCache | None = None,
    page_urls: tuple[str, str] | None = None,
    base_url: str = SAPL_BASE_URL,
    max_workers: int = CLASSIFY_MAX_WORKERS,
) -> list[ClassifiedProposal]:
    """Run the end-to-end pipeline and return classified proposals, newest first.

    A fresh ClassificationCache is created per call unless ``cache`` (or a
    ``classifier`` carrying its own cache) is passed in to share results
    across runs.

    Raises:
        PipelineError: page 1 is unreachable, or no proposal survives extraction.
    """
    raw_proposals = collect_raw_proposals(fetch=fetch, page_urls=page_urls, base_url=base_url)

    if classifier is None:
        classifier = ClassifierAdapter(cache if cache is not None else ClassificationCache())

    proposals = classify_proposals(raw_proposals, classifier, max_workers=max_workers)
    proposals = sort_by_protocol_date(proposals)
    LOGGER.info(
        "Pipeline complete: proposals=%s classifier_calls=%s cached=%s",
        len(proposals),
        classifier.calls,
        len(classifier.cache),
    )
    return proposals


def collect_raw_proposals(
    fetch: Callable[[str], FetchedPage] = fetch_page,
    page_urls: tuple[str, str] | None = None,
    base_url: str = SAPL_BASE_URL,
) -> list[RawProposal]:
    """Fetch both listing pages, parse them and return unique raw proposals."""
    first_url, second_url = page_urls or (build_search_url(page=1), build_search_url(page=2))

    try:
        first_page = fetch(first_url).body
    except Exception as exc:
        LOGGER.error("Error fetching the primary legislative page: %s", exc)
        raise PipelineError(PRIMARY_SOURCE_ERROR.format(details=exc)) from exc

    second_page = ""
    try:
        second_page = fetch(second_url).body
    except FetchError as exc:
        if exc.is_not_found:
            LOGGER.warning(
                "Second results page not found (404); expected when results fit on one page. "
                "Continuing with the first page."
            )
        else:
            LOGGER.warning("Could not load the second results page, continuing with the first: %s", exc)
    except Exception as exc:
        LOGGER.warning("Could not load the second results page, continuing with the first: %s", exc)

    first_records = parse_proposals(first_page, base_url)
    second_records = parse_proposals(second_page, base_url)
    LOGGER.info("Extracted page1=%s page2=%s records", len(first_records), len(second_records))

    unique = dedupe_by_id([*first_records, *second_records])
    if not unique:
        raise PipelineError(NO_RECORDS_ERROR)
    return unique


def dedupe_by_id(records: Iterable[RawProposal]) -> list[RawProposal]:
    """Keep one record per id; later records replace earlier ones in place."""
    by_id: dict[str, RawProposal] = {}
    for record in records:
        by_id[record.id] = record
    return list(by_id.values())


def classify_proposals(
    raw_proposals: list[RawProposal],
    classifier: ClassifierAdapter,
    max_workers: int = CLASSIFY_MAX_WORKERS,
) -> list[ClassifiedProposal]:
    """Classify every proposal on a bounded worker pool, preserving input order."""
    if not raw_proposals:
        return []

    def _classify(raw: RawProposal) -> ClassifiedProposal:
        return ClassifiedProposal.from_raw(raw, classifier.classify(raw.description))

    workers = max(1, min(max_workers, len(raw_proposals)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(_classify, raw_proposals))


def sort_by_protocol_date(proposals: Iterable[ClassifiedProposal]) -> list[ClassifiedProposal]:
    """Sort newest protocol date first; ties keep their incoming order."""
    return sorted(proposals, key=_protocol_sort_key, reverse=True)


def _protocol_sort_key(proposal: ClassifiedProposal) -> date:
    # Pattern-valid but impossible dates (e.g. 31/02/2024) sort last.
    try:
        return parse_protocol_date(proposal.protocol_date)
    except ValueError:
        LOGGER.warning("Invalid protocol date %r for %s", proposal.protocol_date, proposal.id)
        return date.min
