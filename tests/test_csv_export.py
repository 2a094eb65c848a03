# -*- coding: utf-8 -*-
"""Testes da exportação CSV (BOM, ';', aspas duplicadas, CRLF)."""

from apoio_factual.csv_export import (
    BOM,
    CHRONOLOGY_HEADERS,
    TREASURY_HEADERS,
    build_csv,
    chronology_rows,
    csv_bytes,
    report_rows,
    treasury_rows,
)
from apoio_factual.models import ChronologyEntry, Dossier, TreasuryEntry
from apoio_factual.reports import build_dossier_summaries


class TestBuildCsv:

    def test_format_contract(self):
        """Cabeçalho sem aspas, células entre aspas, aspas internas duplicadas."""
        text = build_csv(["A", "B"], [["x;y", 'say "hi"']])
        assert text.startswith("\ufeff")
        assert text == BOM + 'A;B\r\n"x;y";"say ""hi"""'

    def test_none_becomes_empty_cell(self):
        text = build_csv(["A", "B"], [[None, 3]])
        assert text.endswith('"";"3"')

    def test_no_rows_only_header(self):
        assert build_csv(["A"], []) == BOM + "A"

    def test_multiple_rows_joined_with_crlf(self):
        text = build_csv(["A"], [["1"], ["2"]])
        assert text.split("\r\n") == [BOM + "A", '"1"', '"2"']

    def test_bytes_are_utf8_with_bom(self):
        data = csv_bytes(["Título"], [["Reclamação"]])
        assert data.startswith(b"\xef\xbb\xbf")
        assert "Reclamação".encode("utf-8") in data


class TestExportRows:

    def test_chronology_rows(self):
        entry = ChronologyEntry(
            id="e1", event_date="2024-03-01", title="Carta",
            description=None, source_reference="Correio",
            dossier_title="Dossiê A", document_title=None,
        )
        rows = chronology_rows([entry])
        assert len(rows[0]) == len(CHRONOLOGY_HEADERS)
        assert rows[0][0] == "01/03/2024"
        assert rows[0][3] == "Correio"

    def test_treasury_rows_signed_amounts(self):
        entries = [
            TreasuryEntry(id="t1", entry_type="receita", amount=100, description="a", entry_date="2024-03-01"),
            TreasuryEntry(id="t2", entry_type="despesa", amount=20.5, description="b", entry_date="2024-03-02"),
        ]
        rows = treasury_rows(entries)
        assert len(rows[0]) == len(TREASURY_HEADERS)
        assert rows[0][1] == "Receita"
        assert rows[0][4] == "100.00"
        assert rows[1][4] == "-20.50"

    def test_report_rows_labels(self):
        summaries = build_dossier_summaries(
            [Dossier(id="d1", title="A", status="completo", category="fiscal")], [], [],
        )
        row = report_rows(summaries)[0]
        assert row[1] == "Completo"
        assert row[2] == "Fiscal"
        assert row[-1] == "Sim"
