# -*- coding: utf-8 -*-
"""
EXPORTAÇÃO PDF (reportlab)
============================================================
  - build_chronology_pdf: cronologia factual agrupada por ano
  - build_report_pdf:     relatório de dossiês + lacunas

Todo o texto do utilizador é escapado antes de entrar num Paragraph
(reportlab interpreta marcação tipo XML).
============================================================
"""

import io
import logging
from typing import Any, Dict, Optional, Sequence

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from apoio_factual.analysis import group_chronology_by_year
from apoio_factual.config import APP_NAME, DOSSIER_STATUS_LABELS, REPORT_FOOTER
from apoio_factual.formatting import format_date_long_pt, format_date_pt
from apoio_factual.models import ChronologyEntry

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


def _escape(text: Any) -> str:
    if text is None:
        return ""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        "ApoioTitle", parent=styles["Title"],
        fontSize=20, textColor=HexColor("#1a1a2e"), spaceAfter=6,
    ))
    styles.add(ParagraphStyle(
        "ApoioSubtitle", parent=styles["Normal"],
        fontSize=9, textColor=HexColor("#666666"), alignment=1, spaceAfter=18,
    ))
    styles.add(ParagraphStyle(
        "SectionHead", parent=styles["Heading1"],
        fontSize=14, textColor=HexColor("#16213e"),
        spaceBefore=14, spaceAfter=6,
    ))
    styles.add(ParagraphStyle(
        "BodyText2", parent=styles["BodyText"],
        fontSize=10, leading=14, spaceAfter=2,
    ))
    styles.add(ParagraphStyle(
        "ApoioSmall", parent=styles["Normal"],
        fontSize=8, textColor=HexColor("#666666"), spaceAfter=8,
    ))
    styles.add(ParagraphStyle(
        "ApoioFooter", parent=styles["Normal"],
        fontSize=7, textColor=HexColor("#999999"), alignment=1,
    ))
    return styles


def _new_doc(buf: io.BytesIO, title: str) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        buf, pagesize=A4, title=title, author=APP_NAME,
        topMargin=2 * cm, bottomMargin=2 * cm,
        leftMargin=2 * cm, rightMargin=2 * cm,
    )


_TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), HexColor("#e8e8e8")),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("GRID", (0, 0), (-1, -1), 0.5, HexColor("#cccccc")),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ("TOPPADDING", (0, 0), (-1, -1), 4),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
])


# ============================================================================
# CRONOLOGIA
# ============================================================================

def build_chronology_pdf(entries: Sequence[ChronologyEntry], dossier_title: Optional[str] = None) -> bytes:
    """PDF da cronologia factual, anos do mais recente para o mais antigo."""
    buf = io.BytesIO()
    doc = _new_doc(buf, "Cronologia Factual")
    styles = _styles()

    subtitle = f"Gerado em {format_date_long_pt()}"
    if dossier_title:
        subtitle += f" • Dossiê: {_escape(dossier_title)}"

    elements = [
        Paragraph("Cronologia Factual", styles["ApoioTitle"]),
        Paragraph(subtitle, styles["ApoioSubtitle"]),
    ]

    groups = group_chronology_by_year(entries)
    if not groups:
        elements.append(Paragraph("Cronologia vazia.", styles["BodyText2"]))

    for year, year_entries in groups.items():
        elements.append(Paragraph(str(year), styles["SectionHead"]))
        for entry in year_entries:
            elements.append(Paragraph(_escape(format_date_pt(entry.event_date)), styles["ApoioSmall"]))
            elements.append(Paragraph(f"<b>{_escape(entry.title)}</b>", styles["BodyText2"]))
            if entry.description:
                elements.append(Paragraph(_escape(entry.description), styles["BodyText2"]))
            if entry.source_reference:
                elements.append(Paragraph(f"Fonte: {_escape(entry.source_reference)}", styles["ApoioSmall"]))
            elements.append(Spacer(1, 4))

    elements.append(Spacer(1, 24))
    elements.append(Paragraph(REPORT_FOOTER, styles["ApoioFooter"]))

    doc.build(elements)
    logger.info(f"[EXPORT] PDF cronologia gerado: {len(entries)} entrada(s)")
    return buf.getvalue()


# ============================================================================
# RELATÓRIO
# ============================================================================

def build_report_pdf(report: Dict[str, Any]) -> bytes:
    """
    PDF do relatório de dossiês.

    Args:
        report: dict devolvido por reports.build_report()
    """
    buf = io.BytesIO()
    doc = _new_doc(buf, "Relatório de Dossiês")
    styles = _styles()
    stats = report.get("stats", {})
    dossiers = report.get("dossiers", [])

    elements = [
        Paragraph("Relatório de Dossiês", styles["ApoioTitle"]),
        Paragraph(f"Gerado em {format_date_long_pt()}", styles["ApoioSubtitle"]),
    ]

    # Resumo
    elements.append(Paragraph("Resumo", styles["SectionHead"]))
    summary = Table([
        ["Total de Dossiês", "Com Lacunas", "Completos", "Pendentes"],
        [
            str(stats.get("total", 0)),
            str(stats.get("with_gaps", 0)),
            str(stats.get("complete", 0)),
            str(stats.get("pending", 0)),
        ],
    ], colWidths=[4.25 * cm] * 4)
    summary.setStyle(_TABLE_STYLE)
    elements.append(summary)

    # Listagem
    elements.append(Paragraph("Listagem de Dossiês", styles["SectionHead"]))
    if dossiers:
        rows = [["Título", "Estado", "Cliente", "Docs", "Entradas"]]
        for d in dossiers:
            rows.append([
                Paragraph(_escape(d.get("title")), styles["BodyText2"]),
                DOSSIER_STATUS_LABELS.get(d.get("status"), d.get("status") or ""),
                Paragraph(_escape(d.get("client_name") or "—"), styles["BodyText2"]),
                str(d.get("document_count", 0)),
                str(d.get("chronology_count", 0)),
            ])
        listing = Table(rows, colWidths=[6 * cm, 2.5 * cm, 4.5 * cm, 1.5 * cm, 2.5 * cm], repeatRows=1)
        listing.setStyle(_TABLE_STYLE)
        elements.append(listing)
    else:
        elements.append(Paragraph("Não há dossiês correspondentes aos filtros.", styles["BodyText2"]))

    # Lacunas
    with_gaps = [d for d in dossiers if d.get("has_gaps")]
    if with_gaps:
        elements.append(Paragraph("Lacunas Identificadas", styles["SectionHead"]))
        for d in with_gaps:
            elements.append(Paragraph(f"<b>{_escape(d.get('title'))}:</b>", styles["BodyText2"]))
            for gap in d.get("gaps", []):
                elements.append(Paragraph(f"• {_escape(gap)}", styles["BodyText2"]))
            elements.append(Spacer(1, 4))

    elements.append(Spacer(1, 30))
    elements.append(Paragraph(REPORT_FOOTER, styles["ApoioFooter"]))

    doc.build(elements)
    logger.info(f"[EXPORT] PDF relatório gerado: {len(dossiers)} dossiê(s)")
    return buf.getvalue()
