# -*- coding: utf-8 -*-
"""
TESOURARIA PESSOAL
============================================================
Totais (receitas, despesas, saldo) e lista de meses disponíveis,
calculados sobre os movimentos já filtrados.
============================================================
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from apoio_factual.models import TreasuryEntry


@dataclass
class TreasuryTotals:
    receitas: float = 0.0
    despesas: float = 0.0

    @property
    def saldo(self) -> float:
        return self.receitas - self.despesas

    def to_dict(self) -> Dict[str, float]:
        return {
            "receitas": round(self.receitas, 2),
            "despesas": round(self.despesas, 2),
            "saldo": round(self.saldo, 2),
        }


def compute_totals(entries: Sequence[TreasuryEntry]) -> TreasuryTotals:
    """Soma receitas e despesas. Qualquer tipo que não 'receita' conta como despesa."""
    totals = TreasuryTotals()
    for entry in entries:
        if entry.is_income:
            totals.receitas += entry.amount
        else:
            totals.despesas += entry.amount
    return totals


def available_months(entries: Sequence[TreasuryEntry]) -> List[str]:
    """Meses distintos ('YYYY-MM') presentes nos movimentos, mais recente primeiro."""
    months = {e.entry_date[:7] for e in entries if e.entry_date}
    return sorted(months, reverse=True)
