"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

CATCH_ALL_CATEGORY = "Outros"

# Canonical order; the dashboard lists categories in this sequence.
CATEGORIES: tuple[str, ...] = (
    "Iluminação Pública",
    "Sinalização e Trânsito",
    "Pavimentação e Vias",
    "Manutenção e Limpeza Urbana",
    "Gestão de Resíduos",
    "Planejamento Urbano e Programas",
    "Espaços Públicos e Infraestrutura",
    "Prédios Públicos",
    CATCH_ALL_CATEGORY,
)

STATUS_ACTIVE = "Ativo"


@dataclass(frozen=True, slots=True)
class RawProposal:
    """One indicação as scraped from the listing page, before classification."""

    id: str
    title: str
    description: str
    protocol_date: str  # dd/mm/yyyy
    year: int
    pdf_url: str


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    category: str
    locations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClassifiedProposal:
    """RawProposal enriched with category, mentioned locations and status."""

    id: str
    title: str
    description: str
    protocol_date: str
    year: int
    pdf_url: str
    category: str
    locations: tuple[str, ...] = field(default_factory=tuple)
    status: str = STATUS_ACTIVE

    @classmethod
    def from_raw(cls, raw: RawProposal, result: ClassificationResult) -> ClassifiedProposal:
        return cls(
            id=raw.id,
            title=raw.title,
            description=raw.description,
            protocol_date=raw.protocol_date,
            year=raw.year,
            pdf_url=raw.pdf_url,
            category=result.category,
            locations=tuple(result.locations),
            status=STATUS_ACTIVE,
        )


@dataclass(frozen=True, slots=True)
class CategorySummary:
    name: str
    count: int
    percentage: float
    color: str
