# -*- coding: utf-8 -*-
"""
ANÁLISE DE COMPLETUDE FACTUAL
============================================================
Funções puras sobre os documentos e a cronologia de UM dossiê:

  - analyze_gaps:             lacunas (dados em falta)
  - analyze_inconsistencies:  inconsistências (incl. ordem cronológica)
  - analyze_relations:        cobertura documental da cronologia
  - group_chronology_by_year: agrupamento por ano para a linha temporal

REGRAS:
1. Nunca lançam excepções: listas vazias e campos a None são válidos
2. Nunca alteram os registos recebidos (ordenam sempre uma cópia)
3. A ordem dos itens devolvidos é fixa (não é ordenada por gravidade)
4. Aceitam dataclasses (models.py) ou dicts com as mesmas chaves

NOTA: o default de analyze_gaps é 'info' e o de analyze_inconsistencies
é 'warning'. A assimetria é mantida tal como está no produto.
============================================================
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Mensagens (pt-PT)
MSG_NO_DOCUMENTS = "Nenhum documento associado ao dossiê"
MSG_NO_CHRONOLOGY = "Cronologia factual não iniciada"
MSG_NO_GAPS = "Não foram identificadas lacunas documentais"
MSG_NO_INCONSISTENCIES = "Nenhuma inconsistência detetada"


# ============================================================================
# TIPOS DE RESULTADO
# ============================================================================

@dataclass
class GapItem:
    """Lacuna documental. type: 'warning' | 'info'."""
    type: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "message": self.message}


@dataclass
class Inconsistency:
    """Inconsistência factual. type: 'error' | 'warning'."""
    type: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "message": self.message}


@dataclass
class RelationsAnalysis:
    """
    Cobertura documental da cronologia.

    unreferenced_docs contém TODOS os documentos órfãos; truncar para
    apresentação é responsabilidade de quem mostra a lista.
    """
    total_entries: int
    with_document: int
    without_document: int
    coverage_percent: int
    unreferenced_docs: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        docs = [_record_to_dict(d) for d in self.unreferenced_docs]
        return {
            "total_entries": self.total_entries,
            "with_document": self.with_document,
            "without_document": self.without_document,
            "coverage_percent": self.coverage_percent,
            "unreferenced_docs": docs,
            # Chaves camelCase consumidas pelo front-end
            "totalEntries": self.total_entries,
            "withDocument": self.with_document,
            "withoutDocument": self.without_document,
            "coveragePercent": self.coverage_percent,
            "unreferencedDocs": docs,
        }


# ============================================================================
# HELPERS
# ============================================================================

def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _record_to_dict(record: Any) -> Dict[str, Any]:
    if isinstance(record, Mapping):
        return dict(record)
    if hasattr(record, "to_dict"):
        return record.to_dict()
    return dict(vars(record))


def parse_event_date(value: Any) -> Optional[date]:
    """
    Converte uma data ISO (YYYY-MM-DD, ou timestamp ISO) num `date`.
    Devolve None se o valor não for interpretável.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _raw_date(record: Any) -> str:
    value = _get(record, "event_date")
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _chronological_key(record: Any):
    # Datas inválidas vão para o fim, mantendo a ordem de entrada (sort estável)
    parsed = parse_event_date(_get(record, "event_date"))
    return (parsed is None, parsed or date.min)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ============================================================================
# LACUNAS
# ============================================================================

def analyze_gaps(documents: Sequence[Any], entries: Sequence[Any]) -> List[GapItem]:
    """
    Lista de lacunas de um dossiê, por esta ordem:
    sem documentos, sem cronologia, documentos sem data,
    entradas sem fonte, entradas sem documento.
    Se nada faltar, devolve um único item 'info'.
    """
    gaps: List[GapItem] = []

    if len(documents) == 0:
        gaps.append(GapItem("warning", MSG_NO_DOCUMENTS))

    if len(entries) == 0:
        gaps.append(GapItem("warning", MSG_NO_CHRONOLOGY))

    docs_without_date = [d for d in documents if not _get(d, "document_date")]
    if docs_without_date:
        gaps.append(GapItem(
            "warning",
            f"{len(docs_without_date)} documento(s) sem data definida",
        ))

    entries_without_source = [e for e in entries if not _get(e, "source_reference")]
    if entries_without_source:
        gaps.append(GapItem(
            "info",
            f"{len(entries_without_source)} entrada(s) de cronologia sem fonte indicada",
        ))

    entries_without_doc = [e for e in entries if not _get(e, "document_id")]
    if entries_without_doc:
        gaps.append(GapItem(
            "info",
            f"{len(entries_without_doc)} entrada(s) de cronologia sem documento associado",
        ))

    if not gaps:
        gaps.append(GapItem("info", MSG_NO_GAPS))

    return gaps


# ============================================================================
# INCONSISTÊNCIAS
# ============================================================================

def count_order_violations(entries: Sequence[Any]) -> int:
    """
    Ordena uma cópia por data interpretada e conta as posições em que a
    string `event_date` é estritamente menor que a da posição anterior.

    Com datas todas no formato YYYY-MM-DD o resultado é sempre 0; só
    formatos misturados (ex: "01/03/2024", que ordena no fim, vs "2024-01-01")
    produzem violações.
    """
    ordered = sorted(entries, key=_chronological_key)
    violations = 0
    for previous, current in zip(ordered, ordered[1:]):
        if _raw_date(current) < _raw_date(previous):
            violations += 1
    return violations


def analyze_inconsistencies(documents: Sequence[Any], entries: Sequence[Any]) -> List[Inconsistency]:
    """
    Inconsistências de um dossiê, por esta ordem (cada uma só se > 0):
    entradas sem fonte, documentos sem data, entradas sem documento,
    violações de ordem cronológica ('error').
    Se nada for encontrado, devolve um único item 'warning'.
    """
    issues: List[Inconsistency] = []

    no_source = [e for e in entries if not _get(e, "source_reference")]
    if no_source:
        issues.append(Inconsistency(
            "warning",
            f"{len(no_source)} entrada(s) sem fonte de referência",
        ))

    no_date = [d for d in documents if not _get(d, "document_date")]
    if no_date:
        issues.append(Inconsistency(
            "warning",
            f"{len(no_date)} documento(s) sem data definida",
        ))

    no_doc = [e for e in entries if not _get(e, "document_id")]
    if no_doc:
        issues.append(Inconsistency(
            "warning",
            f"{len(no_doc)} entrada(s) sem ligação a documento",
        ))

    out_of_order = count_order_violations(entries)
    if out_of_order > 0:
        issues.append(Inconsistency(
            "error",
            f"{out_of_order} inconsistência(s) na ordem cronológica",
        ))

    if not issues:
        issues.append(Inconsistency("warning", MSG_NO_INCONSISTENCIES))

    return issues


# ============================================================================
# RELAÇÕES DOCUMENTO / CRONOLOGIA
# ============================================================================

def analyze_relations(documents: Sequence[Any], entries: Sequence[Any]) -> RelationsAnalysis:
    """Cobertura documental e documentos nunca referenciados."""
    with_doc = [e for e in entries if _get(e, "document_id")]
    without_doc = [e for e in entries if not _get(e, "document_id")]

    referenced_ids = {_get(e, "document_id") for e in with_doc}
    unreferenced = [d for d in documents if _get(d, "id") not in referenced_ids]

    total = len(entries)
    coverage = _round_half_up(len(with_doc) / total * 100) if total > 0 else 0

    return RelationsAnalysis(
        total_entries=total,
        with_document=len(with_doc),
        without_document=len(without_doc),
        coverage_percent=coverage,
        unreferenced_docs=unreferenced,
    )


# ============================================================================
# AGRUPAMENTO POR ANO
# ============================================================================

def group_chronology_by_year(entries: Sequence[Any]) -> Dict[int, List[Any]]:
    """
    Agrupa entradas pelo ano da data do evento.

    Anos por ordem decrescente (mais recente primeiro); dentro de cada ano,
    entradas por ordem crescente da string `event_date`.
    """
    buckets: Dict[int, List[Any]] = {}
    skipped = 0
    for entry in entries:
        parsed = parse_event_date(_get(entry, "event_date"))
        if parsed is None:
            skipped += 1
            continue
        buckets.setdefault(parsed.year, []).append(entry)

    if skipped:
        logger.warning(f"[CRONOLOGIA] {skipped} entrada(s) com data inválida ignorada(s) no agrupamento")

    return {
        year: sorted(buckets[year], key=_raw_date)
        for year in sorted(buckets, reverse=True)
    }


def analyze_dossier(documents: Sequence[Any], entries: Sequence[Any]) -> Dict[str, Any]:
    """Lacunas, inconsistências e relações de um dossiê, prontos para JSON."""
    return {
        "gaps": [g.to_dict() for g in analyze_gaps(documents, entries)],
        "inconsistencies": [i.to_dict() for i in analyze_inconsistencies(documents, entries)],
        "relations": analyze_relations(documents, entries).to_dict(),
    }
