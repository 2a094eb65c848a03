# -*- coding: utf-8 -*-
"""
Filtros de pesquisa sobre listas já carregadas (dossiês, cronologia, tesouraria).
Pesquisa sem distinção de maiúsculas; "all" (ou vazio) desactiva o filtro.
"""

from typing import List, Optional, Sequence

from apoio_factual.models import ChronologyEntry, Dossier, TreasuryEntry
from apoio_factual.utils.sanitize import sanitize_search_query

ALL = "all"


def _active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def _contains(value: Optional[str], query: str) -> bool:
    return bool(value) and query in value.lower()


def filter_dossiers(
    dossiers: Sequence[Dossier],
    query: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dossier]:
    """Pesquisa por título, cliente ou referência; filtra por estado."""
    q = sanitize_search_query(query)
    result = []
    for d in dossiers:
        if q and not (
            _contains(d.title, q)
            or _contains(d.client_name, q)
            or _contains(d.reference_code, q)
        ):
            continue
        if _active(status) and d.status != status:
            continue
        result.append(d)
    return result


def filter_chronology(
    entries: Sequence[ChronologyEntry],
    dossier_id: Optional[str] = None,
    query: Optional[str] = None,
) -> List[ChronologyEntry]:
    """Filtra por dossiê e pesquisa em título, descrição e fonte."""
    q = sanitize_search_query(query)
    result = []
    for e in entries:
        if _active(dossier_id) and e.dossier_id != dossier_id:
            continue
        if q and not (
            _contains(e.title, q)
            or _contains(e.description, q)
            or _contains(e.source_reference, q)
        ):
            continue
        result.append(e)
    return result


def filter_treasury(
    entries: Sequence[TreasuryEntry],
    entry_type: Optional[str] = None,
    month: Optional[str] = None,
) -> List[TreasuryEntry]:
    """Filtra por tipo (receita/despesa) e por mês 'YYYY-MM'."""
    return [
        e for e in entries
        if (not _active(entry_type) or e.entry_type == entry_type)
        and (not _active(month) or (e.entry_date or "").startswith(month))
    ]
