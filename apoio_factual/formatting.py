# -*- coding: utf-8 -*-
"""Formatação pt-PT de datas e valores para exportações."""

from datetime import date, datetime
from typing import Any, Optional

from apoio_factual.analysis import parse_event_date

MONTHS_PT = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]


def format_date_pt(value: Any) -> str:
    """'2024-03-01' -> '01/03/2024'. Valores inválidos são devolvidos como estão."""
    parsed = parse_event_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime("%d/%m/%Y")


def format_date_long_pt(value: Optional[date] = None) -> str:
    """Data por extenso, ex: '19 de outubro de 2026'. Sem argumento usa hoje."""
    if value is None:
        value = datetime.now().date()
    return f"{value.day} de {MONTHS_PT[value.month - 1]} de {value.year}"


def format_month_pt(month: str) -> str:
    """'2024-03' -> 'março de 2024'."""
    parsed = parse_event_date(f"{month}-01")
    if parsed is None:
        return month
    return f"{MONTHS_PT[parsed.month - 1]} de {parsed.year}"


def format_euro(amount: float) -> str:
    return f"€{amount:.2f}"
