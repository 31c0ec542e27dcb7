from datetime import date

import pytest

from extractor import parse_proposals, parse_protocol_date

BASE_URL = "https://sapl.camarabento.rs.gov.br"


def _row(
    id_text: str = "IND 12/2024 - Indicação",
    protocol: str = "Protocolo: 456/2024 de 10/01/2024 às 10:15",
    ementa: str | None = "Solicita a troca de lâmpadas na Rua Marechal Deodoro.",
    href: str | None = "/media/sapl/public/materialegislativa/2024/123/ind_12.pdf",
) -> str:
    ementa_html = f"<b>Ementa:</b> {ementa}" if ementa is not None else "<b>Autor:</b> Vereador"
    link_html = (
        f'<span class="texto-original"><a href="{href}">Texto Original</a></span>'
        if href is not None
        else ""
    )
    return f"""
      <tr>
        <td>
          <b><a href="/materia/123">{id_text}</a></b>
          <div>{protocol}</div>
        </td>
        <td>
          <p class="mb-0">
            <b>Autor:</b> Vereador Postal<br>
            {ementa_html}
            <br>{link_html}
          </p>
        </td>
      </tr>
    """


def _page(*rows: str) -> str:
    return f"""
    <html><body>
      <table class="table table-striped">
        <thead><tr><th>Matéria</th><th>Dados</th></tr></thead>
        <tbody>{''.join(rows)}</tbody>
      </table>
    </body></html>
    """


def test_parse_proposals_smoke() -> None:
    proposals = parse_proposals(_page(_row()), BASE_URL)

    assert len(proposals) == 1
    proposal = proposals[0]
    assert proposal.id == "IND 12/2024"
    assert proposal.title == "IND 12/2024 - Indicação"
    assert proposal.description == "Solicita a troca de lâmpadas na Rua Marechal Deodoro."
    assert proposal.protocol_date == "10/01/2024"
    assert proposal.year == 2024
    assert proposal.pdf_url == (
        "https://sapl.camarabento.rs.gov.br/media/sapl/public/materialegislativa/2024/123/ind_12.pdf"
    )


@pytest.mark.parametrize("markup", [
    "",
    "   \n  ",
    "<html><body><p>Nenhum registro encontrado.</p></body></html>",
    '<table class="table table-striped"><tbody></tbody></table>',
])
def test_parse_proposals_without_rows_returns_empty_list(markup: str) -> None:
    assert parse_proposals(markup, BASE_URL) == []


def test_unmatched_id_text_is_used_verbatim() -> None:
    proposals = parse_proposals(_page(_row(id_text="  Requerimento 7/2024  ")), BASE_URL)

    assert len(proposals) == 1
    assert proposals[0].id == "Requerimento 7/2024"
    assert proposals[0].title == "Requerimento 7/2024"


def test_absolute_pdf_link_is_kept() -> None:
    href = "https://cdn.example.org/docs/ind.pdf"
    proposals = parse_proposals(_page(_row(href=href)), BASE_URL)

    assert proposals[0].pdf_url == href


@pytest.mark.parametrize("broken_row", [
    _row(id_text="IND 2/2024", protocol="Protocolo: 456/2024"),  # no date
    _row(id_text="IND 3/2024", ementa=None),  # no ementa label
    _row(id_text="IND 4/2024", ementa=""),  # empty ementa
    _row(id_text="IND 5/2024", href=None),  # no original document
])
def test_malformed_row_is_dropped_and_siblings_kept(broken_row: str) -> None:
    markup = _page(
        _row(id_text="IND 1/2024"),
        broken_row,
        _row(id_text="IND 6/2024", protocol="Protocolo: 9/2024 de 05/03/2024"),
    )

    proposals = parse_proposals(markup, BASE_URL)

    assert [p.id for p in proposals] == ["IND 1/2024", "IND 6/2024"]


def test_row_without_cells_is_skipped() -> None:
    markup = _page("<tr><td colspan='2'>Sem dados</td></tr>", _row())

    proposals = parse_proposals(markup, BASE_URL)

    assert [p.id for p in proposals] == ["IND 12/2024"]


def test_rows_without_explicit_tbody_are_parsed() -> None:
    markup = f'<table class="table-striped">{_row()}</table>'

    proposals = parse_proposals(markup, BASE_URL)

    assert len(proposals) == 1


def test_ementa_is_the_text_right_after_the_label() -> None:
    markup = _page(_row(ementa="Pede pintura de faixa de pedestres na Avenida Osvaldo Aranha."))

    proposals = parse_proposals(markup, BASE_URL)

    assert proposals[0].description == "Pede pintura de faixa de pedestres na Avenida Osvaldo Aranha."


def test_tables_without_striped_class_are_ignored() -> None:
    markup = f"<table class='table'><tbody>{_row()}</tbody></table>"

    assert parse_proposals(markup, BASE_URL) == []


def test_parse_protocol_date() -> None:
    assert parse_protocol_date("05/03/2024") == date(2024, 3, 5)
    assert parse_protocol_date(" 31/12/2023 ") == date(2023, 12, 31)


@pytest.mark.parametrize("value", ["31/02/2024", "2024-03-05", "N/A", ""])
def test_parse_protocol_date_rejects_invalid_values(value: str) -> None:
    with pytest.raises(ValueError):
        parse_protocol_date(value)
