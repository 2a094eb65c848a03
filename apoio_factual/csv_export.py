# -*- coding: utf-8 -*-
"""
EXPORTAÇÃO CSV
============================================================
Formato compatível com Excel em locale europeu:
  - BOM UTF-8 no início
  - separador ";" (não ",")
  - células do corpo entre aspas, aspas internas duplicadas
  - linhas separadas por CRLF
============================================================
"""

from typing import Any, Iterable, List, Sequence

from apoio_factual.config import (
    CATEGORY_LABELS,
    DOSSIER_STATUS_LABELS,
    TREASURY_TYPE_LABELS,
)
from apoio_factual.formatting import format_date_pt


BOM = "\ufeff"
SEPARATOR = ";"
LINE_BREAK = "\r\n"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _quote(cell: Any) -> str:
    text = "" if cell is None else str(cell)
    return '"' + text.replace('"', '""') + '"'


def build_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Serializa cabeçalhos + linhas no formato descrito acima."""
    header_line = SEPARATOR.join(headers)
    body_lines = [SEPARATOR.join(_quote(cell) for cell in row) for row in rows]
    return BOM + LINE_BREAK.join([header_line, *body_lines])


def csv_bytes(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> bytes:
    return build_csv(headers, rows).encode("utf-8")


# ============================================================================
# TABELAS EXPORTÁVEIS
# ============================================================================

REPORT_HEADERS = ["Título", "Estado", "Categoria", "Cliente", "Documentos", "Entradas", "Lacunas"]
CHRONOLOGY_HEADERS = ["Data", "Título", "Descrição", "Fonte", "Dossiê", "Documento"]
TREASURY_HEADERS = ["Data", "Tipo", "Descrição", "Categoria", "Valor (€)"]


def report_rows(summaries) -> List[List[Any]]:
    """Linhas do relatório de dossiês (ver reports.build_dossier_summaries)."""
    rows = []
    for s in summaries:
        category = s.category or ""
        rows.append([
            s.title,
            DOSSIER_STATUS_LABELS.get(s.status, s.status),
            CATEGORY_LABELS.get(category, category),
            s.client_name or "",
            s.document_count,
            s.chronology_count,
            "Sim" if s.has_gaps else "Não",
        ])
    return rows


def chronology_rows(entries) -> List[List[Any]]:
    return [
        [
            format_date_pt(e.event_date),
            e.title,
            e.description,
            e.source_reference,
            e.dossier_title,
            e.document_title,
        ]
        for e in entries
    ]


def treasury_rows(entries) -> List[List[Any]]:
    rows = []
    for e in entries:
        signed = e.amount if e.is_income else -e.amount
        rows.append([
            format_date_pt(e.entry_date),
            TREASURY_TYPE_LABELS.get(e.entry_type, e.entry_type),
            e.description,
            e.category,
            f"{signed:.2f}",
        ])
    return rows
