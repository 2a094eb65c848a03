# -*- coding: utf-8 -*-
"""
RELATÓRIOS - Listagem factual e identificação de lacunas
============================================================
Agregações em memória sobre os dossiês de um utilizador:

  - resumo por dossiê (nº de documentos, nº de entradas, lacunas)
  - estatísticas globais (total, com lacunas, completos, pendentes)
  - dados para gráficos (estado, categoria, dossiês mais activos)
  - estatísticas do dashboard e listagem do arquivo

Um dossiê "tem lacunas" quando não tem documentos OU não tem
cronologia. A análise detalhada de um dossiê vive em analysis.py.
============================================================
"""

import logging
from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence

from apoio_factual.analysis import MSG_NO_CHRONOLOGY, MSG_NO_DOCUMENTS
from apoio_factual.config import (
    CATEGORY_LABELS,
    DEFAULT_CATEGORY,
    DOSSIER_STATUS_LABELS,
    TOP_DOSSIER_NAME_MAX,
    TOP_DOSSIERS_LIMIT,
)
from apoio_factual.models import ChronologyEntry, Document, Dossier, DossierStatus

logger = logging.getLogger(__name__)

PENDING_STATUSES = (DossierStatus.PENDENTE.value, DossierStatus.EM_ANALISE.value)
FILTER_WITH_GAPS = "with_gaps"


@dataclass
class DossierSummary:
    """Linha do relatório: um dossiê com as suas contagens."""
    id: str
    title: str
    status: str
    category: Optional[str] = None
    client_name: Optional[str] = None
    document_count: int = 0
    chronology_count: int = 0
    gaps: List[str] = field(default_factory=list)

    @property
    def has_gaps(self) -> bool:
        return self.document_count == 0 or self.chronology_count == 0

    @property
    def activity(self) -> int:
        return self.document_count + self.chronology_count

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["has_gaps"] = self.has_gaps
        data["status_label"] = DOSSIER_STATUS_LABELS.get(self.status, self.status)
        return data


def build_dossier_summaries(
    dossiers: Sequence[Dossier],
    documents: Sequence[Document],
    entries: Sequence[ChronologyEntry],
) -> List[DossierSummary]:
    """Cruza dossiês com documentos e entradas (por dossier_id), mantendo a ordem dos dossiês."""
    doc_counts = Counter(d.dossier_id for d in documents)
    entry_counts = Counter(e.dossier_id for e in entries)

    summaries = []
    for d in dossiers:
        summary = DossierSummary(
            id=d.id,
            title=d.title,
            status=d.status,
            category=d.category,
            client_name=d.client_name,
            document_count=doc_counts.get(d.id, 0),
            chronology_count=entry_counts.get(d.id, 0),
        )
        if summary.document_count == 0:
            summary.gaps.append(MSG_NO_DOCUMENTS)
        if summary.chronology_count == 0:
            summary.gaps.append(MSG_NO_CHRONOLOGY)
        summaries.append(summary)
    return summaries


def filter_summaries(summaries: Sequence[DossierSummary], report_filter: Optional[str] = None) -> List[DossierSummary]:
    """'all' (ou vazio), 'with_gaps', ou um estado de dossiê."""
    if not report_filter or report_filter == "all":
        return list(summaries)
    if report_filter == FILTER_WITH_GAPS:
        return [s for s in summaries if s.has_gaps]
    return [s for s in summaries if s.status == report_filter]


def compute_report_stats(summaries: Sequence[DossierSummary]) -> Dict[str, int]:
    return {
        "total": len(summaries),
        "with_gaps": sum(1 for s in summaries if s.has_gaps),
        "complete": sum(1 for s in summaries if s.status == DossierStatus.COMPLETO.value),
        "pending": sum(1 for s in summaries if s.status in PENDING_STATUSES),
    }


# ============================================================================
# GRÁFICOS
# ============================================================================

def status_distribution(summaries: Sequence[DossierSummary]) -> List[Dict[str, Any]]:
    """Contagem por estado, pela ordem em que cada estado aparece."""
    counts = Counter(s.status for s in summaries)
    return [
        {"status": status, "name": DOSSIER_STATUS_LABELS.get(status, status), "value": count}
        for status, count in counts.items()
    ]


def category_distribution(summaries: Sequence[DossierSummary]) -> List[Dict[str, Any]]:
    """Contagem por categoria; dossiês sem categoria contam como 'outros'."""
    counts = Counter(s.category or DEFAULT_CATEGORY for s in summaries)
    return [
        {"category": CATEGORY_LABELS.get(category, category), "count": count}
        for category, count in counts.items()
    ]


def _short_name(title: str) -> str:
    if len(title) > TOP_DOSSIER_NAME_MAX:
        return title[:TOP_DOSSIER_NAME_MAX] + "..."
    return title


def top_dossiers(summaries: Sequence[DossierSummary], limit: int = TOP_DOSSIERS_LIMIT) -> List[Dict[str, Any]]:
    """Dossiês mais activos (documentos + entradas), empates pela ordem original."""
    ranked = sorted(summaries, key=lambda s: s.activity, reverse=True)[:limit]
    return [
        {"name": _short_name(s.title), "documentos": s.document_count, "entradas": s.chronology_count}
        for s in ranked
    ]


def build_chart_data(summaries: Sequence[DossierSummary]) -> Dict[str, Any]:
    if not summaries:
        return {"status": [], "categories": [], "top_dossiers": []}
    return {
        "status": status_distribution(summaries),
        "categories": category_distribution(summaries),
        "top_dossiers": top_dossiers(summaries),
    }


def build_report(
    dossiers: Sequence[Dossier],
    documents: Sequence[Document],
    entries: Sequence[ChronologyEntry],
    report_filter: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Relatório completo: estatísticas e gráficos sobre TODOS os dossiês,
    lista de dossiês já filtrada.
    """
    summaries = build_dossier_summaries(dossiers, documents, entries)
    filtered = filter_summaries(summaries, report_filter)
    logger.info(
        f"[REPORTS] {len(summaries)} dossiê(s), {len(filtered)} após filtro '{report_filter or 'all'}'"
    )
    return {
        "stats": compute_report_stats(summaries),
        "charts": build_chart_data(summaries),
        "dossiers": [s.to_dict() for s in filtered],
    }


# ============================================================================
# DASHBOARD / ARQUIVO
# ============================================================================

def dashboard_stats(dossiers: Sequence[Dossier], total_documents: int) -> Dict[str, int]:
    return {
        "total_dossiers": len(dossiers),
        "active_dossiers": sum(1 for d in dossiers if d.status != DossierStatus.ARQUIVADO.value),
        "total_documents": total_documents,
        "pending_review": sum(1 for d in dossiers if d.status in PENDING_STATUSES),
    }


def archived_dossiers(dossiers: Sequence[Dossier], documents: Sequence[Document]) -> List[Dict[str, Any]]:
    """Dossiês arquivados com o respectivo nº de documentos."""
    doc_counts = Counter(d.dossier_id for d in documents)
    return [
        {
            "id": d.id,
            "title": d.title,
            "client_name": d.client_name,
            "reference_code": d.reference_code,
            "updated_at": d.updated_at,
            "document_count": doc_counts.get(d.id, 0),
        }
        for d in dossiers
        if d.status == DossierStatus.ARQUIVADO.value
    ]
